"""Dependents command implementation for crategraph.

Lists every version record whose dependencies resolve to some version of
a given package, either directly or through other records.

Typical usage::

    $ crategraph dependents libc
    $ crategraph dependents serde --direct-only --format json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from crategraph.commands.common import index_options, run_analysis
from crategraph.context import CrateGraphContext, pass_context
from crategraph.core import find_dependents
from crategraph.utils import get_logger, print_success, print_table

logger = get_logger("commands.dependents")


@click.command()
@click.argument("package")
@index_options
@click.option(
    "--direct-only",
    is_flag=True,
    help="Only list records that depend on PACKAGE directly.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def dependents(
    ctx: CrateGraphContext,
    package: str,
    index_dir: Optional[Path],
    skip_malformed: Optional[bool],
    jobs: Optional[int],
    no_cache: bool,
    refresh_cache: bool,
    cache_path: Optional[Path],
    direct_only: bool,
    format: str,
) -> None:
    """List the version records that depend on PACKAGE."""
    result = run_analysis(
        ctx,
        index_dir,
        skip_malformed=skip_malformed,
        jobs=jobs,
        no_cache=no_cache,
        refresh_cache=refresh_cache,
        cache_path=cache_path,
    )

    if package not in result.load.index:
        logger.warning("Package %r is not in the index", package)

    records = find_dependents(result.graph, package, transitive=not direct_only)
    logger.info("Found %d dependent record(s) of %s", len(records), package)

    if format == "json":
        print(
            json.dumps(
                {
                    "package": package,
                    "transitive": not direct_only,
                    "dependents": [
                        {"name": r.name, "version": str(r.version)} for r in records
                    ],
                },
                indent=2,
            )
        )
        return

    if not records:
        print_success(f"Nothing depends on {package}")
        return

    print_table(
        [
            {"Package": r.name, "Version": str(r.version), "Yanked": "yes" if r.yanked else ""}
            for r in records
        ],
        title=f"{'Direct' if direct_only else 'All'} dependents of {package}",
        caption=f"{len(records)} record(s)",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Version": {"justify": "right"},
        },
    )
