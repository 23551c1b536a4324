"""
Version requirement data model for crategraph.

This module turns Cargo-style version requirements (``^1.2``,
``>=1.0, <2.0``, ``~0.3.1``, ``1.*``) into ``semantic_version.SimpleSpec``
ranges and evaluates them against :class:`semver.Version` objects.

Cargo spells a few things differently from ``SimpleSpec``, so each term is
normalized first:

- a bare version (``1.2.3``) is a caret requirement;
- whitespace between an operator and its version is dropped;
- ``x``/``X`` wildcards become ``*`` and build metadata is ignored;
- an empty requirement means ``*``.

On top of the range check, a pre-release version only matches when some
term names the same ``major.minor.patch`` with a pre-release tag of its
own. ``*`` therefore never matches a pre-release.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

import semantic_version
import semver

from crategraph.exceptions import InvalidRequirementError

_TERM_RE = re.compile(r"^(?P<op>>=|<=|=|>|<|~|\^)?(?P<version>.*)$")

_WILDCARDS = frozenset("*xX")

#: ``(major, minor, patch)`` of a term that opts in to pre-releases.
Triple = Tuple[int, int, int]


def _normalize_term(term: str, *, requirement: str) -> Tuple[str, List[Triple]]:
    """Rewrite one comma-separated term into ``SimpleSpec`` syntax.

    Returns:
        The rewritten term and the pre-release opt-in it carries, if any.

    Raises:
        InvalidRequirementError: The term is not valid Cargo syntax.
    """
    compact = "".join(term.split())
    if not compact:
        raise InvalidRequirementError(
            "Empty comparator in version requirement", requirement=requirement
        )

    match = _TERM_RE.match(compact)
    op, version = match.group("op") or "", match.group("version").split("+", 1)[0]
    if not version or version[0] in "=<>!~^":
        raise InvalidRequirementError(
            f"Invalid version requirement term {term.strip()!r}",
            requirement=requirement,
        )

    parts = version.split("-", 1)[0].split(".")
    wildcard_at = next((i for i, p in enumerate(parts) if p in _WILDCARDS), None)
    if wildcard_at is not None:
        # Nothing but wildcards may follow a wildcard
        if any(p not in _WILDCARDS for p in parts[wildcard_at:]):
            raise InvalidRequirementError(
                f"Unexpected version number after wildcard in {term.strip()!r}",
                requirement=requirement,
            )
        if op not in ("", "="):
            raise InvalidRequirementError(
                f"Operator {op!r} cannot be combined with a wildcard",
                requirement=requirement,
            )
        if "-" in version:
            raise InvalidRequirementError(
                f"Wildcard requirement cannot carry a pre-release: {term.strip()!r}",
                requirement=requirement,
            )
        return ".".join("*" if p in _WILDCARDS else p for p in parts), []

    opt_in: List[Triple] = []
    if "-" in version:
        try:
            tagged = semantic_version.Version(version)
        except ValueError as exc:
            raise InvalidRequirementError(
                f"Pre-release requires a full MAJOR.MINOR.PATCH version: {term.strip()!r}",
                requirement=requirement,
            ) from exc
        opt_in.append((tagged.major, tagged.minor, tagged.patch))

    return f"{op or '^'}{version}", opt_in


@dataclass(frozen=True)
class VersionRequirement:
    """An immutable, parsed version requirement.

    Equality is by the raw declaration string; the range is derived
    from it.

    Attributes:
        raw: The requirement exactly as declared in the index.
        spec: The equivalent ``semantic_version.SimpleSpec``.
        prerelease_opt_in: ``major.minor.patch`` triples whose
            pre-releases the requirement accepts.

    Example::

        >>> req = VersionRequirement.parse("^1.2")
        >>> req.matches(semver.Version.parse("1.9.0"))
        True
        >>> req.matches(semver.Version.parse("2.0.0"))
        False
    """

    raw: str
    spec: semantic_version.SimpleSpec = field(compare=False, repr=False)
    prerelease_opt_in: Tuple[Triple, ...] = field(default=(), compare=False, repr=False)

    @classmethod
    def parse(cls, raw: str) -> "VersionRequirement":
        """Parse a requirement string.

        Raises:
            InvalidRequirementError: ``raw`` is not a valid requirement.
        """
        if not isinstance(raw, str):
            raise InvalidRequirementError(
                f"Requirement must be a string, got {type(raw).__name__}",
                requirement=repr(raw),
            )

        terms: List[str] = []
        opt_in: List[Triple] = []
        if raw.strip():
            for term in raw.split(","):
                normalized, triples = _normalize_term(term, requirement=raw)
                terms.append(normalized)
                opt_in.extend(triples)
        else:
            terms.append("*")

        expression = ",".join(terms)
        try:
            spec = semantic_version.SimpleSpec(expression)
        except ValueError as exc:
            raise InvalidRequirementError(
                f"Invalid version requirement {raw.strip()!r}: {exc}",
                requirement=raw,
            ) from exc

        return cls(raw=raw, spec=spec, prerelease_opt_in=tuple(opt_in))

    def matches(self, version: semver.Version) -> bool:
        """Return True if ``version`` satisfies the requirement."""
        if version.prerelease and (
            (version.major, version.minor, version.patch) not in self.prerelease_opt_in
        ):
            return False
        return self.spec.match(semantic_version.Version(str(version)))

    def __str__(self) -> str:
        return self.raw
