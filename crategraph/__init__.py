"""
crategraph: offline dependency graphs for package registry indexes

crategraph walks the on-disk checkout of a package registry index (one
file per package, one JSON record per published version), resolves every
declared version requirement to a single concrete version, and builds an
acyclic graph of "version A requires version B" edges.

Typical uses:
    • Counting packages, versions and dependency edges of an ecosystem
    • Finding every published version that would pull in a given package
    • Spotting requirements that no published version satisfies

Library usage::

    from crategraph.core import GraphBuilder, load_index

    index = load_index("/path/to/registry-index").index
    graph = GraphBuilder(index).build()
"""

from __future__ import annotations

from crategraph.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "crategraph Contributors"
__license__ = "Apache-2.0"
__description__ = "Dependency graphs over a package registry index."

__all__ = [
    "__version__",
]
