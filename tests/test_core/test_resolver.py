from __future__ import annotations

import pytest
import semver

from crategraph.core.index import PackageIndex
from crategraph.core.resolver import DependencyResolver, resolve
from crategraph.models.dependency import Dependency, DependencyKind
from crategraph.models.package import Package, VersionRecord
from crategraph.models.requirement import VersionRequirement


def dep(name: str, req: str, kind: DependencyKind = DependencyKind.NORMAL) -> Dependency:
    return Dependency(name=name, requirement=VersionRequirement.parse(req), kind=kind)


def make_index(declared: dict) -> PackageIndex:
    """Build an index from ``{name: [versions oldest first]}``."""
    return PackageIndex.from_packages(
        Package.from_declared(
            [VersionRecord(name=name, version=semver.Version.parse(v)) for v in versions]
        )
        for name, versions in declared.items()
    )


@pytest.fixture
def index() -> PackageIndex:
    return make_index(
        {
            "b": ["1.0.0", "1.5.0", "2.0.0"],
            "pre": ["1.0.0", "1.1.0-beta.1"],
            "backport": ["2.0.0", "1.0.1"],
        }
    )


@pytest.mark.unit
class TestResolve:
    """Tests for resolve."""

    def test_newest_matching_version_wins(self, index) -> None:
        """Test ``^1.0`` picks 1.5.0, not 2.0.0 or 1.0.0."""
        record = resolve(dep("b", "^1.0"), index)

        assert record is not None
        assert str(record) == "b@1.5.0"

    def test_any_requirement_picks_newest_declared(self, index) -> None:
        """Test ``*`` takes the first declared-newest version."""
        assert str(resolve(dep("b", "*"), index)) == "b@2.0.0"

    def test_declaration_order_decides(self, index) -> None:
        """Test the newest-declared match wins even if a higher version exists.

        Edge case: 1.0.1 was published after 2.0.0.
        """
        assert str(resolve(dep("backport", "*"), index)) == "backport@1.0.1"
        assert str(resolve(dep("backport", ">=2"), index)) == "backport@2.0.0"

    def test_prerelease_skipped_unless_requested(self, index) -> None:
        """Test pre-releases are only chosen when the requirement opts in."""
        assert str(resolve(dep("pre", "^1.0"), index)) == "pre@1.0.0"
        assert str(resolve(dep("pre", ">=1.1.0-beta"), index)) == "pre@1.1.0-beta.1"

    def test_missing_package(self, index) -> None:
        """Test an unknown package resolves to None."""
        assert resolve(dep("nope", "*"), index) is None

    def test_no_matching_version(self, index) -> None:
        """Test an unsatisfiable requirement resolves to None."""
        assert resolve(dep("b", "^3"), index) is None


@pytest.mark.unit
class TestDependencyResolver:
    """Tests for DependencyResolver."""

    def test_memoizes_by_name_and_requirement(self, index) -> None:
        """Test repeated requirements reuse the cached answer."""
        resolver = DependencyResolver(index)

        first = resolver.resolve(dep("b", "^1.0"))
        second = resolver.resolve(dep("b", "^1.0"))
        resolver.resolve(dep("b", "^2"))

        assert first is second
        assert resolver.lookups == 3
        assert resolver.memo_size == 2

    def test_memoizes_misses(self, index) -> None:
        """Test unresolvable requirements are cached too."""
        resolver = DependencyResolver(index)

        assert resolver.resolve(dep("nope", "1")) is None
        assert resolver.resolve(dep("nope", "1")) is None
        assert resolver.memo_size == 1

    def test_resolve_record_skips_dev(self, index) -> None:
        """Test resolve_record leaves out dev dependencies by default."""
        record = VersionRecord(
            name="a",
            version=semver.Version(1, 0, 0),
            dependencies=(dep("b", "^1"), dep("b", "^2", DependencyKind.DEV)),
        )
        resolver = DependencyResolver(index)

        pairs = list(resolver.resolve_record(record))
        with_dev = list(resolver.resolve_record(record, include_dev=True))

        assert [(d.requirement.raw, str(r)) for d, r in pairs] == [("^1", "b@1.5.0")]
        assert len(with_dev) == 2
