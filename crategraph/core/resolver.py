"""Dependency resolver for crategraph.

Projects each dependency requirement onto one concrete version: the
newest-declared version of the named package that satisfies the
requirement. This is deliberately not a package-manager resolver. It
ignores features, yanked status and whether the picks of different
dependencies agree with each other; it exists to give graph analysis one
deterministic candidate per requirement.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from crategraph.core.index import PackageIndex
from crategraph.models.dependency import Dependency
from crategraph.models.package import VersionRecord

__all__ = ["resolve", "DependencyResolver"]


def resolve(dep: Dependency, index: PackageIndex) -> Optional[VersionRecord]:
    """Return the first version of ``dep.name`` matching ``dep.requirement``.

    Versions are scanned newest-declared first, so the newest satisfying
    version wins.

    Args:
        dep: The dependency to resolve.
        index: Index to resolve against.

    Returns:
        The chosen :class:`VersionRecord`, or ``None`` when the package is
        absent or no version satisfies the requirement.

    Example::

        >>> resolve(dep_on_b_caret_1, index)     # b has 2.0.0, 1.5.0, 1.0.0
        VersionRecord(name='b', version=Version(major=1, minor=5, ...), ...)
    """
    package = index.get(dep.name)
    if package is None:
        return None

    requirement = dep.requirement
    for record in package.versions:
        if requirement.matches(record.version):
            return record
    return None


class DependencyResolver:
    """Resolver bound to one immutable :class:`PackageIndex`.

    Results are memoized per ``(name, requirement)`` pair: the same
    requirement string on the same package always projects to the same
    version, and large ecosystems repeat a few popular requirements many
    thousands of times.

    Args:
        index: Index to resolve against. Must not change afterwards.
    """

    def __init__(self, index: PackageIndex) -> None:
        self.index = index
        self._memo: Dict[Tuple[str, str], Optional[VersionRecord]] = {}
        self.lookups: int = 0

    def resolve(self, dep: Dependency) -> Optional[VersionRecord]:
        """Resolve ``dep``; see :func:`resolve`."""
        self.lookups += 1
        key = (dep.name, dep.requirement.raw)
        if key not in self._memo:
            self._memo[key] = resolve(dep, self.index)
        return self._memo[key]

    def resolve_record(
        self,
        record: VersionRecord,
        *,
        include_dev: bool = False,
    ) -> Iterator[Tuple[Dependency, Optional[VersionRecord]]]:
        """Yield ``(dependency, resolved record)`` for each dependency of ``record``.

        Dev dependencies are left out unless ``include_dev`` is set.
        """
        for dep in record.dependencies:
            if dep.is_dev and not include_dev:
                continue
            yield dep, self.resolve(dep)

    @property
    def memo_size(self) -> int:
        return len(self._memo)
