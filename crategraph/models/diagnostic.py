"""
Diagnostic data models for crategraph.

This module defines the non-fatal conditions collected during a run
(dependencies that resolve to nothing, index entries that had to be
skipped) and the report that aggregates them for the end-of-run summary.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Tuple


class SkipPhase(str, Enum):
    """Pipeline phase in which an index entry was skipped."""

    WALK = "walk"
    READ = "read"
    PARSE = "parse"


@dataclass(frozen=True)
class UnresolvedDependency:
    """A dependency for which no published version satisfies the requirement.

    Args:
        dependent: ``name@version`` of the record declaring the dependency.
        dependency_name: Package that was looked up.
        requirement: Raw requirement string.
        package_missing: True when no package of that name exists at all,
            False when the package exists but no version matches.
    """

    dependent: str
    dependency_name: str
    requirement: str
    package_missing: bool = False

    @property
    def reason(self) -> str:
        return "no such package" if self.package_missing else "no matching version"

    def to_display_string(self) -> str:
        """Return a human-readable description of the failure."""
        return (
            f"{self.dependent} requires {self.dependency_name} "
            f"{self.requirement} ({self.reason})"
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "dependent": self.dependent,
            "dependency": self.dependency_name,
            "requirement": self.requirement,
            "reason": self.reason,
        }

    def __str__(self) -> str:
        return self.to_display_string()


@dataclass(frozen=True)
class SkippedEntry:
    """An index entry left out of the run.

    Args:
        path: File or directory that was skipped.
        reason: Underlying error message.
        phase: Where in the pipeline the entry was dropped.
    """

    path: str
    reason: str
    phase: SkipPhase

    def to_json(self) -> Dict[str, str]:
        return {"path": self.path, "reason": self.reason, "phase": self.phase.value}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SkippedEntry":
        """Rebuild an entry written by :meth:`to_json`."""
        return cls(path=data["path"], reason=data["reason"], phase=SkipPhase(data["phase"]))

    def __str__(self) -> str:
        return f"{self.path}: {self.reason} ({self.phase.value})"


@dataclass
class DiagnosticReport:
    """Aggregate of every non-fatal condition seen in one run."""

    unresolved: List[UnresolvedDependency] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    def add_unresolved(self, item: UnresolvedDependency) -> None:
        self.unresolved.append(item)

    def add_skipped(self, item: SkippedEntry) -> None:
        self.skipped.append(item)

    def extend(self, other: "DiagnosticReport") -> None:
        """Merge another report into this one."""
        self.unresolved.extend(other.unresolved)
        self.skipped.extend(other.skipped)

    def has_issues(self) -> bool:
        return bool(self.unresolved or self.skipped)

    def most_common_missing(self, limit: int = 10) -> List[Tuple[str, int]]:
        """Return the dependency names that fail to resolve most often."""
        counts = Counter(item.dependency_name for item in self.unresolved)
        return counts.most_common(limit)

    def summary_lines(self) -> List[str]:
        """Return short summary lines for logging."""
        lines = [
            f"{len(self.unresolved)} unresolved dependenc"
            f"{'y' if len(self.unresolved) == 1 else 'ies'}",
            f"{len(self.skipped)} skipped index entr"
            f"{'y' if len(self.skipped) == 1 else 'ies'}",
        ]
        missing = self.most_common_missing(3)
        if missing:
            lines.append(
                "most frequent: "
                + ", ".join(f"{name} ({count})" for name, count in missing)
            )
        return lines

    def to_json(self) -> Dict[str, Any]:
        return {
            "unresolved": [item.to_json() for item in self.unresolved],
            "skipped": [item.to_json() for item in self.skipped],
        }

    def __iter__(self) -> Iterator[UnresolvedDependency]:
        return iter(self.unresolved)

    def __len__(self) -> int:
        return len(self.unresolved) + len(self.skipped)
