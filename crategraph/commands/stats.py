"""Stats command implementation for crategraph.

Loads a registry index, builds its dependency graph and reports how big
it is together with everything that could not be loaded or resolved.

Typical usage::

    # Summarize the crates.io index found under ~/.cargo
    $ crategraph stats

    # Explicit checkout, tolerate broken files, parse with 8 threads
    $ crategraph -v stats ~/src/crates.io-index --skip-malformed -j 8

    # Machine-readable output
    $ crategraph stats --format json > stats.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from crategraph.commands.common import AnalysisResult, index_options, run_analysis
from crategraph.context import CrateGraphContext, pass_context
from crategraph.utils import (
    get_logger,
    get_raw_console,
    print_counts,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.stats")

#: Rows shown in the "most frequently unresolved" table.
TOP_MISSING = 10


@click.command()
@index_options
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--show-skipped",
    is_flag=True,
    help="List every skipped index entry.",
)
@pass_context
def stats(
    ctx: CrateGraphContext,
    index_dir: Optional[Path],
    skip_malformed: Optional[bool],
    jobs: Optional[int],
    no_cache: bool,
    refresh_cache: bool,
    cache_path: Optional[Path],
    format: str,
    show_skipped: bool,
) -> None:
    """Summarize the dependency graph of a registry index.

    INDEX_DIR defaults to ``registry_path`` from the configuration file,
    then to the crates.io checkout under Cargo home.
    """
    result = run_analysis(
        ctx,
        index_dir,
        skip_malformed=skip_malformed,
        jobs=jobs,
        no_cache=no_cache,
        refresh_cache=refresh_cache,
        cache_path=cache_path,
    )

    if format == "json":
        print(json.dumps(_to_json(result), indent=2))
        return

    _display_table(result, show_skipped=show_skipped)


def _counts(result: AnalysisResult) -> Dict[str, int]:
    return {
        "packages": len(result.load.index),
        "version_records": result.load.index.record_count,
        "nodes": result.graph.node_count,
        "edges": result.graph.edge_count,
        "unresolved": len(result.report.unresolved),
        "skipped": len(result.report.skipped),
    }


def _to_json(result: AnalysisResult) -> Dict[str, Any]:
    """Build the ``--format json`` document.

    Example::

        {
          "index": "/home/me/src/crates.io-index",
          "from_cache": false,
          "counts": {"packages": 2, "version_records": 3, "nodes": 3, ...},
          "most_common_missing": [{"name": "c", "count": 1}],
          "diagnostics": {"unresolved": [...], "skipped": [...]}
        }
    """
    return {
        "index": str(result.index_root),
        "from_cache": result.load.from_cache,
        "counts": _counts(result),
        "most_common_missing": [
            {"name": name, "count": count}
            for name, count in result.report.most_common_missing(TOP_MISSING)
        ],
        "diagnostics": result.report.to_json(),
    }


def _display_table(result: AnalysisResult, *, show_skipped: bool) -> None:
    counts = _counts(result)
    source = "cache" if result.load.from_cache else "index walk"
    print_counts(
        {
            "Packages": counts["packages"],
            "Version records": counts["version_records"],
            "Graph nodes": counts["nodes"],
            "Graph edges": counts["edges"],
        },
        title=f"{result.index_root.name} (from {source})",
    )

    report = result.report
    if not report.has_issues():
        print_success("Every dependency resolved")
        return

    missing = report.most_common_missing(TOP_MISSING)
    if missing:
        rows: List[Dict[str, Any]] = [
            {"Dependency": name, "Unresolved": count} for name, count in missing
        ]
        print_table(
            rows,
            title="Most frequently unresolved",
            column_styles={
                "Dependency": {"style": "bold cyan", "no_wrap": True},
                "Unresolved": {"justify": "right"},
            },
        )

    if show_skipped and report.skipped:
        print_table(
            [
                {"Phase": entry.phase.value, "Path": entry.path, "Reason": entry.reason}
                for entry in report.skipped
            ],
            title="Skipped index entries",
            column_styles={"Phase": {"no_wrap": True, "style": "dim"}},
        )

    console = get_raw_console()
    console.print("")
    if report.unresolved:
        print_warning(
            f"{counts['unresolved']} dependency requirement(s) could not be resolved"
        )
    if report.skipped:
        print_warning(f"{counts['skipped']} index entry(ies) skipped")
