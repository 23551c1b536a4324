"""
Core functionality exports for crategraph.

This module provides convenient access to the core subsystems of crategraph.
Importing from here keeps user-facing imports clean and stable:

    from crategraph.core import load_index, build_graph
"""

from __future__ import annotations

from crategraph.core.walker import IndexWalker
from crategraph.core.parser import VersionRecordParser
from crategraph.core.index import (
    IndexLoader,
    IndexLoadResult,
    PackageIndex,
    PackageIndexBuilder,
    load_index,
)
from crategraph.core.resolver import DependencyResolver, resolve
from crategraph.core.graph import (
    DependencyGraph,
    Edge,
    GraphBuilder,
    build_graph,
    find_dependents,
)
from crategraph.core.cache import IndexCache, LoadPolicy, default_cache_path, get_package_index
from crategraph.core.locator import locate_registry_index

__all__ = [
    "IndexWalker",
    "VersionRecordParser",
    "PackageIndex",
    "PackageIndexBuilder",
    "IndexLoader",
    "IndexLoadResult",
    "load_index",
    "resolve",
    "DependencyResolver",
    "DependencyGraph",
    "Edge",
    "GraphBuilder",
    "build_graph",
    "find_dependents",
    "IndexCache",
    "LoadPolicy",
    "default_cache_path",
    "get_package_index",
    "locate_registry_index",
]
