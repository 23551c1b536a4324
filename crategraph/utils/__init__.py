"""
Utility helpers for crategraph.

This package provides reusable utilities used across crategraph, including:

- Console output helpers (Rich-based)
- Logging configuration, retrieval and phase timing
- Filesystem safety helpers
- Version parsing helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from crategraph.utils.logger import (
    Stopwatch,
    disable_logging,
    format_duration,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from crategraph.utils.filesystem import (
    safe_read_file,
    safe_write_file,
    validate_directory,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from crategraph.utils.console import (
    get_raw_console,
    print_counts,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from crategraph.utils.version_utils import (
    format_identity,
    parse_version,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_counts",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    # Logging
    "Stopwatch",
    "get_logger",
    "setup_logging",
    "disable_logging",
    "format_duration",
    "verbosity_to_level",
    "is_logging_configured",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "validate_directory",
    # Versions
    "parse_version",
    "format_identity",
]
