"""
Command-line interface for crategraph.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from crategraph.config import load_config
from crategraph.__version__ import __version__
from crategraph.context import CrateGraphContext
from crategraph.exceptions import ConfigError, CrateGraphError
from crategraph.utils.console import print_error, print_warning, reconfigure_console
from crategraph.utils.logger import get_logger, setup_logging, verbosity_to_level

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="CRATEGRAPH_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="CRATEGRAPH_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="crategraph",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """crategraph - dependency graph analysis for Cargo registry indexes.

    \b
    Available commands:
      crategraph stats              Load an index and summarize its graph
      crategraph dependents NAME    List records that depend on a package

    \b
    Examples:
      crategraph stats ~/src/crates.io-index
      crategraph -v stats --skip-malformed
      crategraph dependents serde --direct-only

    Use ``crategraph COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR before the console and log handlers are created
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    crategraph_ctx = CrateGraphContext()
    crategraph_ctx.config_path = config or loaded_config.source_path
    crategraph_ctx.config = loaded_config
    crategraph_ctx.color = color
    crategraph_ctx.verbose = verbose
    ctx.obj = crategraph_ctx

    logger.debug("crategraph v%s", __version__)
    logger.debug("Config path: %s", crategraph_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
try:
    from crategraph.commands.stats import stats
    from crategraph.commands.dependents import dependents

    cli.add_command(stats)
    cli.add_command(dependents)

except ImportError as exc:
    sys.stderr.write(f"FATAL: Failed to import CLI commands: {exc}\n")
    sys.exit(1)


def main() -> int:
    """Main entry point for the crategraph CLI.

    Returns:
        Exit code:
            0   Success
            1   Application error (invalid index, cycle, bad config, ...)
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except CrateGraphError as exc:
        print_error(str(exc))
        logger.debug(
            "CrateGraphError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
