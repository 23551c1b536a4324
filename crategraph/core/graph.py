"""Dependency graph construction for crategraph.

The graph has one node per :class:`VersionRecord` and one edge per
resolvable, non-dev dependency, pointing from the dependent to the version
its requirement resolved to. Nodes are integer handles into an arena of
records owned by the :class:`PackageIndex`; the graph never copies them.

Acyclicity is enforced on every insertion with an incremental topological
order (Pearce–Kelly): each node carries a position such that every edge
runs from a lower to a higher position. Inserting ``u → v`` with
``pos[u] < pos[v]`` costs nothing; otherwise only nodes whose positions
lie between ``pos[v]`` and ``pos[u]`` are searched, a path back to ``u``
means a cycle, and the affected region is reordered.

Typical usage::

    from crategraph.core.graph import GraphBuilder, find_dependents

    builder = GraphBuilder(index)
    graph = builder.build()
    print(graph.node_count, graph.edge_count)
    for item in builder.report.unresolved:
        print(item)

    for record in find_dependents(graph, "cc"):
        print(record)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set

import semver

from crategraph.core.index import PackageIndex
from crategraph.core.resolver import DependencyResolver
from crategraph.exceptions import CycleError, GraphError, IntegrityError
from crategraph.models.dependency import Dependency
from crategraph.models.diagnostic import DiagnosticReport, UnresolvedDependency
from crategraph.models.package import Identity, VersionRecord
from crategraph.utils import Stopwatch, get_logger

logger = get_logger("graph")

__all__ = [
    "Edge",
    "NodeIndex",
    "DependencyGraph",
    "GraphBuilder",
    "build_graph",
    "find_dependents",
]

#: Handle of a node in a :class:`DependencyGraph`.
NodeIndex = int


@dataclass(frozen=True)
class Edge:
    """``source`` requires ``target`` because of ``dependency``."""

    source: NodeIndex
    target: NodeIndex
    dependency: Dependency


class DependencyGraph:
    """Directed acyclic graph of version records.

    Mutable only until :meth:`freeze` is called; after that any
    :meth:`add_node` or :meth:`add_edge` raises :class:`GraphError`.
    """

    def __init__(self) -> None:
        self._records: List[VersionRecord] = []
        self._node_by_identity: Dict[Identity, NodeIndex] = {}
        self._nodes_by_name: Dict[str, List[NodeIndex]] = {}
        self._successors: List[List[NodeIndex]] = []
        self._predecessors: List[List[NodeIndex]] = []
        self._edges: List[Edge] = []
        self._position: List[int] = []
        self._frozen: bool = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, record: VersionRecord) -> NodeIndex:
        """Add ``record`` as a new node and return its handle.

        Raises:
            IntegrityError: A record with the same identity is already a node.
            GraphError: The graph is frozen.
        """
        self._check_mutable()
        if record.identity in self._node_by_identity:
            raise IntegrityError(
                f"Version record {record} is already in the graph",
                package_name=record.name,
                version=str(record.version),
            )

        node = len(self._records)
        self._records.append(record)
        self._node_by_identity[record.identity] = node
        self._nodes_by_name.setdefault(record.name, []).append(node)
        self._successors.append([])
        self._predecessors.append([])
        self._position.append(node)
        return node

    def add_edge(self, source: NodeIndex, target: NodeIndex, dependency: Dependency) -> Edge:
        """Add the edge ``source → target``.

        Raises:
            CycleError: The edge would close a cycle (including a self-loop).
                The graph is left unchanged.
            GraphError: The graph is frozen.
        """
        self._check_mutable()
        if source == target or self._position[source] > self._position[target]:
            self._reorder(source, target, dependency)

        edge = Edge(source=source, target=target, dependency=dependency)
        self._edges.append(edge)
        self._successors[source].append(target)
        self._predecessors[target].append(source)
        return edge

    def freeze(self) -> None:
        """Make the graph immutable."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphError("Dependency graph is frozen and cannot be modified")

    def _reorder(self, source: NodeIndex, target: NodeIndex, dependency: Dependency) -> None:
        position = self._position
        lower, upper = position[target], position[source]

        forward = self._collect(
            target,
            self._successors,
            lambda node: position[node] <= upper,
            stop=source,
        )
        if forward is None:
            self._raise_cycle(source, target, dependency)

        backward = self._collect(
            source,
            self._predecessors,
            lambda node: position[node] >= lower,
        )

        backward.sort(key=position.__getitem__)
        forward.sort(key=position.__getitem__)
        affected = backward + forward
        slots = sorted(position[node] for node in affected)
        for node, slot in zip(affected, slots):
            position[node] = slot

    @staticmethod
    def _collect(
        start: NodeIndex,
        adjacency: Sequence[List[NodeIndex]],
        within: Callable[[NodeIndex], bool],
        stop: Optional[NodeIndex] = None,
    ) -> Optional[List[NodeIndex]]:
        """Return nodes reachable from ``start`` inside the window, or
        ``None`` if ``stop`` is reachable."""
        if start == stop:
            return None
        seen = {start}
        stack = [start]
        found: List[NodeIndex] = []
        while stack:
            node = stack.pop()
            found.append(node)
            for nxt in adjacency[node]:
                if nxt == stop:
                    return None
                if nxt not in seen and within(nxt):
                    seen.add(nxt)
                    stack.append(nxt)
        return found

    def _raise_cycle(self, source: NodeIndex, target: NodeIndex, dependency: Dependency) -> None:
        dependent = str(self._records[source])
        resolved = str(self._records[target])
        raise CycleError(
            f"Dependency {dependency} of {dependent} resolves to {resolved}, "
            f"which would close a cycle",
            dependent=dependent,
            dependency=str(dependency),
            target=resolved,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self._records)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._records)

    def nodes(self) -> range:
        return range(len(self._records))

    def edges(self) -> Iterator[Edge]:
        return iter(self._edges)

    def record(self, node: NodeIndex) -> VersionRecord:
        return self._records[node]

    def node_for(self, name: str, version: semver.Version) -> Optional[NodeIndex]:
        return self._node_by_identity.get((name, version))

    def node_for_record(self, record: VersionRecord) -> NodeIndex:
        """Return the node of a record already in the graph.

        Raises:
            KeyError: The record is not a node of this graph.
        """
        return self._node_by_identity[record.identity]

    def nodes_for_package(self, name: str) -> List[NodeIndex]:
        return list(self._nodes_by_name.get(name, ()))

    def dependencies(self, node: NodeIndex) -> List[NodeIndex]:
        """Distinct direct dependencies of ``node``, in insertion order."""
        return list(dict.fromkeys(self._successors[node]))

    def dependents(self, node: NodeIndex) -> List[NodeIndex]:
        """Distinct direct dependents of ``node``, in insertion order."""
        return list(dict.fromkeys(self._predecessors[node]))

    def ancestors(self, nodes: Iterable[NodeIndex]) -> Set[NodeIndex]:
        """Every node with a path to any of ``nodes`` (the starts excluded)."""
        starts = set(nodes)
        seen: Set[NodeIndex] = set()
        stack = list(starts)
        while stack:
            node = stack.pop()
            for parent in self._predecessors[node]:
                if parent not in seen:
                    seen.add(parent)
                    stack.append(parent)
        return seen - starts

    def has_path(self, start: NodeIndex, goal: NodeIndex) -> bool:
        """True when ``goal`` is reachable from ``start`` along edges."""
        if start == goal:
            return True
        if self._position[start] > self._position[goal]:
            return False
        return self._collect(start, self._successors, lambda node: True, stop=goal) is None

    def topological_order(self) -> List[NodeIndex]:
        """Nodes ordered so every dependent precedes its dependencies."""
        return sorted(self.nodes(), key=self._position.__getitem__)

    def __repr__(self) -> str:
        return f"DependencyGraph(nodes={self.node_count}, edges={self.edge_count})"


class GraphBuilder:
    """Builds a :class:`DependencyGraph` from a :class:`PackageIndex`.

    Unresolved dependencies are collected in :attr:`report` and do not
    stop the build; a cycle does.

    Args:
        index: Fully loaded, immutable package index.
        resolver: Resolver to use; defaults to one bound to ``index``.
    """

    def __init__(
        self,
        index: PackageIndex,
        resolver: Optional[DependencyResolver] = None,
    ) -> None:
        self.index = index
        self.resolver = resolver or DependencyResolver(index)
        self.report = DiagnosticReport()
        self.dev_dependencies_skipped: int = 0

    def build(self) -> DependencyGraph:
        """Build and freeze the graph.

        Raises:
            CycleError: An edge would close a cycle; construction aborts.
        """
        graph = DependencyGraph()
        watch = Stopwatch()

        for record in self.index.iter_records():
            graph.add_node(record)

        for node in graph.nodes():
            record = graph.record(node)
            self.dev_dependencies_skipped += sum(1 for dep in record.dependencies if dep.is_dev)
            for dep, target in self.resolver.resolve_record(record):
                if target is None:
                    self._unresolved(record, dep)
                    continue

                graph.add_edge(node, graph.node_for_record(target), dep)

        graph.freeze()
        watch.stop()
        logger.info(
            "Built graph with %d node(s) and %d edge(s) in %s",
            graph.node_count,
            graph.edge_count,
            watch,
        )
        logger.debug(
            "Resolver answered %d lookup(s) from %d distinct requirement(s)",
            self.resolver.lookups,
            self.resolver.memo_size,
        )
        if self.report.unresolved:
            logger.warning(
                "%d dependenc%s could not be resolved",
                len(self.report.unresolved),
                "y" if len(self.report.unresolved) == 1 else "ies",
            )
        return graph

    def _unresolved(self, record: VersionRecord, dep: Dependency) -> None:
        item = UnresolvedDependency(
            dependent=str(record),
            dependency_name=dep.name,
            requirement=dep.requirement.raw,
            package_missing=dep.name not in self.index,
        )
        logger.debug("Unresolved dependency: %s", item)
        self.report.add_unresolved(item)


def build_graph(index: PackageIndex) -> DependencyGraph:
    """Build a dependency graph for ``index`` with a default resolver."""
    return GraphBuilder(index).build()


def find_dependents(
    graph: DependencyGraph,
    package_name: str,
    *,
    transitive: bool = True,
) -> List[VersionRecord]:
    """Return the records that pull in any version of ``package_name``.

    Args:
        graph: A built dependency graph.
        package_name: Package to look for.
        transitive: Include indirect dependents; otherwise only records
            with a direct edge to the package.

    Returns:
        Matching records, sorted by name then newest version first. The
        package's own versions are excluded.
    """
    targets = graph.nodes_for_package(package_name)
    if transitive:
        found = graph.ancestors(targets)
    else:
        found = {parent for node in targets for parent in graph.dependents(node)}

    records = [graph.record(node) for node in found]
    records = [r for r in records if r.name != package_name]
    records.sort(key=lambda r: r.version, reverse=True)
    records.sort(key=lambda r: r.name)
    return records
