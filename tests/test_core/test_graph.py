"""Tests for crategraph.core.graph.

Covers incremental cycle rejection, graph queries, the graph builder
over small registry trees, and dependent lookups.
"""

from __future__ import annotations

import random

import pytest
import semver

from crategraph.core.graph import (
    DependencyGraph,
    GraphBuilder,
    build_graph,
    find_dependents,
)
from crategraph.core.index import PackageIndex, load_index
from crategraph.exceptions import CycleError, GraphError, IntegrityError
from crategraph.models.dependency import Dependency
from crategraph.models.package import Package, VersionRecord
from crategraph.models.requirement import VersionRequirement


def rec(name: str, vers: str = "1.0.0", *deps: str) -> VersionRecord:
    """Record depending on each ``"name req"`` in ``deps``."""
    return VersionRecord(
        name=name,
        version=semver.Version.parse(vers),
        dependencies=tuple(
            Dependency(name=d.split()[0], requirement=VersionRequirement.parse(d.split()[1]))
            for d in deps
        ),
    )


def any_dep(name: str) -> Dependency:
    return Dependency(name=name, requirement=VersionRequirement.parse("*"))


def graph_of(*names: str) -> DependencyGraph:
    graph = DependencyGraph()
    for name in names:
        graph.add_node(rec(name))
    return graph


def assert_topological(graph: DependencyGraph) -> None:
    position = {node: i for i, node in enumerate(graph.topological_order())}
    for edge in graph.edges():
        assert position[edge.source] < position[edge.target]


@pytest.mark.unit
class TestDependencyGraphEdges:
    """Tests for edge insertion and cycle rejection."""

    def test_add_nodes_and_edges(self) -> None:
        """Test basic construction and adjacency queries."""
        graph = graph_of("a", "b", "c")
        graph.add_edge(0, 1, any_dep("b"))
        graph.add_edge(1, 2, any_dep("c"))

        assert graph.node_count == 3
        assert graph.edge_count == 2
        assert graph.dependencies(0) == [1]
        assert graph.dependents(2) == [1]
        assert graph.has_path(0, 2) is True
        assert graph.has_path(2, 0) is False
        assert_topological(graph)

    def test_self_loop_rejected(self) -> None:
        """Test a record depending on itself is a cycle."""
        graph = graph_of("a")

        with pytest.raises(CycleError) as exc_info:
            graph.add_edge(0, 0, any_dep("a"))

        assert exc_info.value.dependent == "a@1.0.0"
        assert exc_info.value.target == "a@1.0.0"
        assert graph.edge_count == 0

    def test_two_cycle_rejected(self) -> None:
        """Test a → b then b → a is rejected and the graph is unchanged."""
        graph = graph_of("a", "b")
        graph.add_edge(0, 1, any_dep("b"))

        with pytest.raises(CycleError):
            graph.add_edge(1, 0, any_dep("a"))

        assert graph.edge_count == 1
        assert graph.dependencies(1) == []

    def test_long_cycle_rejected(self) -> None:
        """Test a cycle through several nodes is detected."""
        graph = graph_of("a", "b", "c", "d")
        graph.add_edge(0, 1, any_dep("b"))
        graph.add_edge(1, 2, any_dep("c"))
        graph.add_edge(2, 3, any_dep("d"))

        with pytest.raises(CycleError):
            graph.add_edge(3, 0, any_dep("a"))

    def test_backward_edge_reorders(self) -> None:
        """Test an edge against insertion order is accepted and reordered."""
        graph = graph_of("a", "b", "c")
        graph.add_edge(2, 1, any_dep("b"))
        graph.add_edge(1, 0, any_dep("a"))

        assert graph.topological_order() == [2, 1, 0]
        assert graph.has_path(2, 0) is True
        with pytest.raises(CycleError):
            graph.add_edge(0, 2, any_dep("c"))

    def test_parallel_edges_allowed(self) -> None:
        """Test two dependencies resolving to the same target both count."""
        graph = graph_of("a", "b")
        graph.add_edge(0, 1, any_dep("b"))
        graph.add_edge(0, 1, any_dep("b"))

        assert graph.edge_count == 2
        assert graph.dependencies(0) == [1]

    def test_random_dag_stays_acyclic(self) -> None:
        """Test random insertions keep a valid order and reject only real cycles."""
        rng = random.Random(1234)
        size = 40
        graph = graph_of(*(f"n{i}" for i in range(size)))
        rejected = 0

        for _ in range(300):
            source, target = rng.randrange(size), rng.randrange(size)
            would_cycle = graph.has_path(target, source)
            try:
                graph.add_edge(source, target, any_dep(f"n{target}"))
            except CycleError:
                rejected += 1
                assert would_cycle
            else:
                assert not would_cycle

        assert rejected > 0
        assert_topological(graph)

    def test_duplicate_node_rejected(self) -> None:
        """Test the same identity cannot be added twice."""
        graph = graph_of("a")

        with pytest.raises(IntegrityError):
            graph.add_node(rec("a"))

    def test_frozen_graph_is_immutable(self) -> None:
        """Test mutation after freeze raises GraphError."""
        graph = graph_of("a", "b")
        graph.freeze()

        assert graph.frozen is True
        with pytest.raises(GraphError):
            graph.add_node(rec("c"))
        with pytest.raises(GraphError):
            graph.add_edge(0, 1, any_dep("b"))


@pytest.mark.unit
class TestDependencyGraphQueries:
    """Tests for node lookups and traversal."""

    def test_node_lookup(self) -> None:
        """Test lookups by identity and by package name."""
        graph = DependencyGraph()
        first = graph.add_node(rec("b", "1.0.0"))
        second = graph.add_node(rec("b", "2.0.0"))

        assert graph.node_for("b", semver.Version(2, 0, 0)) == second
        assert graph.node_for("b", semver.Version(3, 0, 0)) is None
        assert graph.nodes_for_package("b") == [first, second]
        assert graph.nodes_for_package("zzz") == []
        assert str(graph.record(first)) == "b@1.0.0"

    def test_ancestors(self) -> None:
        """Test ancestors covers transitive dependents only."""
        graph = graph_of("a", "b", "c", "d")
        graph.add_edge(0, 1, any_dep("b"))
        graph.add_edge(1, 2, any_dep("c"))
        graph.add_edge(3, 2, any_dep("c"))

        assert graph.ancestors([2]) == {0, 1, 3}
        assert graph.ancestors([1]) == {0}
        assert graph.ancestors([0]) == set()


@pytest.mark.integration
class TestGraphBuilder:
    """Tests for GraphBuilder over registry trees."""

    def test_resolves_newest_matching_version(self, scenario_registry) -> None:
        """Test a@2.0.0 depends on b@1.5.0 through ``^1.0``."""
        index = load_index(scenario_registry.root).index
        graph = build_graph(index)

        a2 = graph.node_for("a", semver.Version(2, 0, 0))
        b15 = graph.node_for("b", semver.Version(1, 5, 0))
        assert graph.dependencies(a2) == [b15]

    def test_counts(self, scenario_registry) -> None:
        """Test every record is a node and only resolvable normal deps are edges."""
        index = load_index(scenario_registry.root).index
        builder = GraphBuilder(index)
        graph = builder.build()

        assert graph.node_count == index.record_count == 6
        assert graph.edge_count == 1
        assert graph.frozen is True
        assert builder.dev_dependencies_skipped == 1
        assert builder.resolver.lookups == 2
        assert builder.resolver.memo_size == 2
        assert_topological(graph)

    def test_missing_dependency_reported(self, scenario_registry) -> None:
        """Test the missing ``c`` gives no edge and one diagnostic."""
        index = load_index(scenario_registry.root).index
        builder = GraphBuilder(index)
        graph = builder.build()

        a1 = graph.node_for("a", semver.Version(1, 0, 0))
        assert graph.dependencies(a1) == []
        assert len(builder.report.unresolved) == 1
        item = builder.report.unresolved[0]
        assert (item.dependent, item.dependency_name, item.requirement) == (
            "a@1.0.0",
            "c",
            "^1.0",
        )
        assert item.package_missing is True

    def test_dev_dependency_ignored(self, scenario_registry) -> None:
        """Test the dev dependency on ``d`` adds neither an edge nor a diagnostic."""
        index = load_index(scenario_registry.root).index
        builder = GraphBuilder(index)
        graph = builder.build()

        d = graph.node_for("d", semver.Version(0, 1, 0))
        assert graph.dependents(d) == []
        assert all(item.dependency_name != "d" for item in builder.report.unresolved)

    def test_version_miss_reported(self) -> None:
        """Test an existing package with no matching version is reported as such."""
        index = PackageIndex.from_packages(
            [
                Package.from_declared([rec("a", "1.0.0", "b ^3")]),
                Package.from_declared([rec("b", "1.0.0")]),
            ]
        )
        builder = GraphBuilder(index)
        builder.build()

        assert builder.report.unresolved[0].package_missing is False

    def test_cycle_aborts_build(self) -> None:
        """Test a dependency cycle in the index aborts construction."""
        index = PackageIndex.from_packages(
            [
                Package.from_declared([rec("a", "1.0.0", "b ^1")]),
                Package.from_declared([rec("b", "1.0.0", "a ^1")]),
            ]
        )

        with pytest.raises(CycleError):
            build_graph(index)

    def test_same_package_other_version_is_not_a_cycle(self) -> None:
        """Test a@2 depending on a@1 is an ordinary edge."""
        index = PackageIndex.from_packages(
            [Package.from_declared([rec("a", "1.0.0"), rec("a", "2.0.0", "a ^1")])]
        )

        graph = build_graph(index)

        assert graph.edge_count == 1

    def test_renamed_dependency_resolves_real_package(self, registry) -> None:
        """Test an aliased dependency resolves against ``package``."""
        registry.add("serde", registry.record("serde", "1.0.0"))
        registry.add(
            "app",
            registry.record("app", "0.1.0", [registry.dep("serde1", "^1", package="serde")]),
        )

        graph = build_graph(load_index(registry.root).index)

        assert graph.edge_count == 1


@pytest.mark.integration
class TestFindDependents:
    """Tests for find_dependents."""

    @pytest.fixture
    def graph(self) -> DependencyGraph:
        index = PackageIndex.from_packages(
            [
                Package.from_declared([rec("libc", "0.2.0")]),
                Package.from_declared([rec("mio", "0.8.0", "libc ^0.2")]),
                Package.from_declared(
                    [rec("tokio", "1.0.0", "mio ^0.8"), rec("tokio", "1.1.0", "mio ^0.8")]
                ),
                Package.from_declared([rec("app", "0.1.0", "tokio ^1")]),
                Package.from_declared([rec("solo", "1.0.0")]),
            ]
        )
        return build_graph(index)

    def test_transitive(self, graph) -> None:
        """Test every record reaching the package is listed, sorted."""
        found = [str(r) for r in find_dependents(graph, "libc")]

        assert found == ["app@0.1.0", "mio@0.8.0", "tokio@1.1.0", "tokio@1.0.0"]

    def test_direct_only(self, graph) -> None:
        """Test direct dependents exclude indirect ones."""
        found = [str(r) for r in find_dependents(graph, "libc", transitive=False)]

        assert found == ["mio@0.8.0"]

    def test_unknown_or_leaf_package(self, graph) -> None:
        """Test packages nothing depends on give an empty list."""
        assert find_dependents(graph, "solo") == []
        assert find_dependents(graph, "missing") == []
