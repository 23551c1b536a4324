"""
Dependency data model for crategraph.

A :class:`Dependency` is one entry of a version record's ``deps`` array:
the depended-on package, the version requirement, and the feature/target
metadata that travels with it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from crategraph.constants import DEFAULT_DEPENDENCY_KIND
from crategraph.models.requirement import VersionRequirement


class DependencyKind(str, Enum):
    """When a dependency is needed."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @classmethod
    def from_index(cls, value: Optional[str]) -> "DependencyKind":
        """Map the index's ``kind`` field; absent or null means normal.

        Raises:
            ValueError: ``value`` is not a known kind.
        """
        return cls(value if value is not None else DEFAULT_DEPENDENCY_KIND)


@dataclass(frozen=True)
class Dependency:
    """A declared dependency of one package version.

    Attributes:
        name: Name of the depended-on package in the registry. For renamed
            dependencies this is the real package, not the alias.
        requirement: Parsed version requirement.
        features: Features enabled on the dependency, in declaration order.
        optional: Whether the dependency is behind a feature.
        default_features: Whether the dependency's default features are on.
        target: Platform ``cfg(...)`` or triple restricting the dependency.
        kind: Normal, build or dev.
        alias: Name used in the depending manifest when it renamed the
            dependency (the index's ``name`` field when ``package`` is set).
    """

    name: str
    requirement: VersionRequirement
    features: Tuple[str, ...] = ()
    optional: bool = False
    default_features: bool = True
    target: Optional[str] = None
    kind: DependencyKind = DependencyKind.NORMAL
    alias: Optional[str] = None

    @property
    def is_dev(self) -> bool:
        return self.kind is DependencyKind.DEV

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Dependency":
        """Build a dependency from one element of an index ``deps`` array.

        Missing optional fields take Cargo's defaults.

        Raises:
            KeyError: ``name`` or ``req`` is missing.
            TypeError: A field has the wrong JSON type.
            ValueError: ``kind`` is not a known dependency kind.
            InvalidRequirementError: ``req`` is not a valid requirement.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"dependency must be an object, got {type(data).__name__}")

        declared_name = _require_str(data, "name")
        package = data.get("package")
        if package is not None and not isinstance(package, str):
            raise TypeError("dependency field 'package' must be a string")

        features = data.get("features") or []
        if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
            raise TypeError("dependency field 'features' must be a list of strings")

        target = data.get("target")
        if target is not None and not isinstance(target, str):
            raise TypeError("dependency field 'target' must be a string or null")

        return cls(
            name=package or declared_name,
            requirement=VersionRequirement.parse(_require_str(data, "req")),
            features=tuple(features),
            optional=_optional_bool(data, "optional", False),
            default_features=_optional_bool(data, "default_features", True),
            target=target,
            kind=DependencyKind.from_index(data.get("kind")),
            alias=declared_name if package else None,
        )

    def to_json(self) -> Dict[str, Any]:
        """Serialize back to the registry index's dependency layout."""
        entry: Dict[str, Any] = {
            "name": self.alias or self.name,
            "req": self.requirement.raw,
            "features": list(self.features),
            "optional": self.optional,
            "default_features": self.default_features,
            "target": self.target,
            "kind": self.kind.value,
        }
        if self.alias:
            entry["package"] = self.name
        return entry

    def __str__(self) -> str:
        text = f"{self.name} {self.requirement.raw}"
        if self.kind is not DependencyKind.NORMAL:
            text += f" ({self.kind.value})"
        return text


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"dependency field {key!r} must be a string")
    return value


def _optional_bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TypeError(f"dependency field {key!r} must be a boolean")
    return value
