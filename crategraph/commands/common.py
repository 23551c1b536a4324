"""Options and pipeline steps shared by the crategraph subcommands.

Every command that analyzes an index takes the same ``INDEX_DIR``
argument and loading options, merges them over the configuration file,
and runs the same load → build sequence. Keeping that here means each
command only decides what to display.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import click

from crategraph.context import CrateGraphContext
from crategraph.core import (
    DependencyGraph,
    GraphBuilder,
    IndexLoadResult,
    get_package_index,
    locate_registry_index,
)
from crategraph.models import DiagnosticReport
from crategraph.utils import get_logger

logger = get_logger("commands")

F = TypeVar("F", bound=Callable[..., Any])


def index_options(func: F) -> F:
    """Attach the ``INDEX_DIR`` argument and index loading options."""
    decorators = [
        click.argument(
            "index_dir",
            required=False,
            type=click.Path(exists=True, file_okay=False, path_type=Path),
        ),
        click.option(
            "--skip-malformed/--fail-on-malformed",
            default=None,
            help="Skip package files that fail to parse instead of aborting.",
        ),
        click.option(
            "--jobs",
            "-j",
            type=click.IntRange(min=1),
            default=None,
            help="Parser threads used while loading the index.",
        ),
        click.option(
            "--no-cache",
            is_flag=True,
            help="Neither read nor write the index cache.",
        ),
        click.option(
            "--refresh-cache",
            is_flag=True,
            help="Ignore an existing index cache and rebuild it.",
        ),
        click.option(
            "--cache-path",
            type=click.Path(dir_okay=False, path_type=Path),
            default=None,
            help="Index cache file (default: <INDEX_DIR>.cache).",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


@dataclass
class AnalysisResult:
    """Everything a command needs to render its report."""

    index_root: Path
    load: IndexLoadResult
    graph: DependencyGraph
    report: DiagnosticReport


def run_analysis(
    ctx: CrateGraphContext,
    index_dir: Optional[Path],
    *,
    skip_malformed: Optional[bool] = None,
    jobs: Optional[int] = None,
    no_cache: bool = False,
    refresh_cache: bool = False,
    cache_path: Optional[Path] = None,
) -> AnalysisResult:
    """Load the index and build its dependency graph.

    Command-line values take precedence over the configuration file;
    ``None`` means "not given on the command line".

    Raises:
        CrateGraphError: The index cannot be located or loaded, or the
            graph contains a cycle.
    """
    config = ctx.config

    root = locate_registry_index(index_dir or config.registry_path)
    logger.info("Using registry index %s", root)

    configured_cache = Path(config.cache_path).expanduser() if config.cache_path else None
    load = get_package_index(
        root,
        cache_path=cache_path or configured_cache,
        use_cache=config.use_cache and not no_cache,
        refresh=refresh_cache,
        skip_malformed=config.skip_malformed if skip_malformed is None else skip_malformed,
        jobs=jobs or config.jobs,
        exclude_dirs=config.exclude_dirs,
    )

    builder = GraphBuilder(load.index)
    graph = builder.build()

    report = DiagnosticReport()
    report.extend(load.report)
    report.extend(builder.report)
    for line in report.summary_lines():
        logger.info("Diagnostics: %s", line)

    return AnalysisResult(index_root=root, load=load, graph=graph, report=report)
