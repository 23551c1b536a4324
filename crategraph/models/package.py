"""
Package and version record data models for crategraph.

This module defines the parsed form of one registry index line
(:class:`VersionRecord`) and the per-file aggregate (:class:`Package`),
whose versions are kept newest-declared first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

import semver

from crategraph.models.dependency import Dependency
from crategraph.utils.version_utils import format_identity, parse_version

#: ``(name, version)`` pair that uniquely identifies a record in an index.
Identity = Tuple[str, semver.Version]


@dataclass(frozen=True)
class VersionRecord:
    """One published version of a package.

    Attributes:
        name: Package name.
        version: Parsed semantic version.
        dependencies: Declared dependencies, in index order.
        checksum: SHA-256 of the published archive (``cksum``).
        features: Feature name to the features/dependencies it enables.
            Entries from the index's ``features2`` table are merged in.
        yanked: Whether the publisher withdrew this version. Informational
            only; yanked versions still take part in resolution.
        links: Native library this package links, if declared.
        rust_version: Minimum supported toolchain version, if declared.
    """

    name: str
    version: semver.Version
    dependencies: Tuple[Dependency, ...] = ()
    checksum: str = ""
    features: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    yanked: bool = False
    links: Optional[str] = None
    rust_version: Optional[str] = None

    def __post_init__(self) -> None:
        features = {key: tuple(value) for key, value in self.features.items()}
        object.__setattr__(self, "features", MappingProxyType(features))

    @property
    def identity(self) -> Identity:
        return (self.name, self.version)

    def __hash__(self) -> int:
        return hash(self.identity)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "VersionRecord":
        """Build a record from one decoded index line.

        Raises:
            KeyError: A required field (``name``, ``vers``) is missing.
            TypeError: A field has the wrong JSON type.
            ValueError: ``vers`` is not a valid semantic version, or a
                dependency ``kind`` is unknown.
            InvalidRequirementError: A dependency requirement is invalid.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"record must be a JSON object, got {type(data).__name__}")

        name = data["name"]
        if not isinstance(name, str) or not name:
            raise TypeError("record field 'name' must be a non-empty string")

        deps = data.get("deps") or []
        if not isinstance(deps, list):
            raise TypeError("record field 'deps' must be a list")

        checksum = data.get("cksum", "")
        if not isinstance(checksum, str):
            raise TypeError("record field 'cksum' must be a string")

        yanked = data.get("yanked", False)
        if not isinstance(yanked, bool):
            raise TypeError("record field 'yanked' must be a boolean")

        features: Dict[str, Tuple[str, ...]] = {}
        for key in ("features", "features2"):
            features.update(_parse_features(data.get(key), key))

        return cls(
            name=name,
            version=parse_version(data["vers"]),
            dependencies=tuple(Dependency.from_json(dep) for dep in deps),
            checksum=checksum,
            features=features,
            yanked=yanked,
            links=_optional_str(data, "links"),
            rust_version=_optional_str(data, "rust_version"),
        )

    def to_json(self) -> Dict[str, Any]:
        """Serialize to the registry index's line layout."""
        entry: Dict[str, Any] = {
            "name": self.name,
            "vers": str(self.version),
            "deps": [dep.to_json() for dep in self.dependencies],
            "cksum": self.checksum,
            "features": {key: list(value) for key, value in self.features.items()},
            "yanked": self.yanked,
        }
        if self.links is not None:
            entry["links"] = self.links
        if self.rust_version is not None:
            entry["rust_version"] = self.rust_version
        return entry

    def __str__(self) -> str:
        return format_identity(self.name, self.version)


@dataclass(frozen=True)
class Package:
    """All published versions of one package, newest-declared first.

    Registries append new versions at the end of a package's file, so
    ``versions`` is the file's declaration order reversed.

    Attributes:
        name: Package name shared by every version.
        versions: Version records, newest-declared first. Never empty.
        source_path: Index file the package was read from, if known.
    """

    name: str
    versions: Tuple[VersionRecord, ...]
    source_path: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.versions:
            raise ValueError(f"Package {self.name!r} has no versions")
        stray = next((v for v in self.versions if v.name != self.name), None)
        if stray is not None:
            raise ValueError(
                f"Version record {stray} does not belong to package {self.name!r}"
            )

    @classmethod
    def from_declared(
        cls,
        records: Sequence[VersionRecord],
        *,
        source_path: Optional[str] = None,
    ) -> "Package":
        """Build a package from records in on-disk (oldest-first) order."""
        newest_first = tuple(reversed(records))
        if not newest_first:
            raise ValueError("Cannot build a package from zero version records")
        return cls(
            name=newest_first[0].name,
            versions=newest_first,
            source_path=source_path,
        )

    @property
    def latest(self) -> VersionRecord:
        """The most recently declared version."""
        return self.versions[0]

    def get(self, version: semver.Version) -> Optional[VersionRecord]:
        """Return the record for ``version``, if published."""
        return next((v for v in self.versions if v.version == version), None)

    def __iter__(self) -> Iterator[VersionRecord]:
        return iter(self.versions)

    def __len__(self) -> int:
        return len(self.versions)

    def __str__(self) -> str:
        return f"{self.name} ({len(self.versions)} version(s))"


def _parse_features(raw: Any, key: str) -> Dict[str, Tuple[str, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise TypeError(f"record field {key!r} must be an object")
    parsed: Dict[str, Tuple[str, ...]] = {}
    for feature, enables in raw.items():
        if not isinstance(enables, list) or not all(isinstance(e, str) for e in enables):
            raise TypeError(f"feature {feature!r} in {key!r} must list strings")
        parsed[feature] = tuple(enables)
    return parsed


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"record field {key!r} must be a string or null")
    return value
