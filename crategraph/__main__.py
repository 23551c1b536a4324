"""
Executable module for crategraph.

Running:
    python -m crategraph

is equivalent to:
    crategraph

This module simply forwards execution to the CLI entrypoint defined in
`crategraph.cli`.
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Main entrypoint when executing `python -m crategraph`.

    Returns:
        Exit code returned by the CLI, or 1 if the CLI cannot be imported.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from crategraph.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not start."""
    sys.stderr.write("crategraph failed to start: a dependency is missing.\n")
    sys.stderr.write(f"Python version    : {sys.version}\n")
    try:
        from crategraph.__version__ import __version__

        sys.stderr.write(f"crategraph version: {__version__}\n")
    except ImportError:
        sys.stderr.write("crategraph version: <unknown>\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


if __name__ == "__main__":
    sys.exit(main())
