"""
Unified data model exports for crategraph.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``crategraph.models`` instead of individual submodules.

Example:
    >>> from crategraph.models import Dependency, Package, VersionRecord
"""

from __future__ import annotations

from crategraph.models.requirement import VersionRequirement
from crategraph.models.dependency import Dependency, DependencyKind
from crategraph.models.package import Identity, Package, VersionRecord
from crategraph.models.diagnostic import (
    DiagnosticReport,
    SkippedEntry,
    SkipPhase,
    UnresolvedDependency,
)

__all__ = [
    "VersionRequirement",
    "Dependency",
    "DependencyKind",
    "Identity",
    "Package",
    "VersionRecord",
    "DiagnosticReport",
    "SkippedEntry",
    "SkipPhase",
    "UnresolvedDependency",
]
