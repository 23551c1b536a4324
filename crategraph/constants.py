"""
Centralized constants for crategraph.

This module defines immutable configuration values used across crategraph,
including registry layout rules, file limits, cache settings, and logging
formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Registry index layout
# ---------------------------------------------------------------------------

#: Directory names never descended into while walking the index.
EXCLUDED_DIR_NAMES: Final[Sequence[str]] = (".git",)

#: Minimum depth (root = 0) at which package files live. Depth-1 entries are
#: shard directories (``1/``, ``2/``, ``ab/``) or root files (``config.json``).
MIN_PACKAGE_FILE_DEPTH: Final[int] = 2

#: Name of the file marking the root of a registry index checkout.
REGISTRY_CONFIG_FILE: Final[str] = "config.json"

#: Prefix of the crates.io index checkout under ``$CARGO_HOME/registry/index``.
CRATES_IO_INDEX_PREFIX: Final[str] = "github.com-"

#: Environment variable pointing at the Cargo home directory.
CARGO_HOME_ENV: Final[str] = "CARGO_HOME"

#: Default Cargo home, relative to the user's home directory.
DEFAULT_CARGO_HOME: Final[str] = ".cargo"

# ---------------------------------------------------------------------------
# Dependency kinds
# ---------------------------------------------------------------------------

#: Kind used when an index entry omits ``kind`` or sets it to null.
DEFAULT_DEPENDENCY_KIND: Final[str] = "normal"

# ---------------------------------------------------------------------------
# Index cache
# ---------------------------------------------------------------------------

#: Suffix appended to the index directory name to form the cache file name.
CACHE_SUFFIX: Final[str] = ".cache"

#: Version of the on-disk cache document layout.
CACHE_FORMAT_VERSION: Final[int] = 2

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Name of the standalone configuration file.
CONFIG_FILE_NAME: Final[str] = "crategraph.toml"

DEFAULT_SKIP_MALFORMED: Final[bool] = False
DEFAULT_USE_CACHE: Final[bool] = True
DEFAULT_JOBS: Final[int] = 1

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

#: Maximum allowed size (in bytes) of a single package metadata file.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

#: Maximum number of characters of a raw line echoed in error messages.
MAX_LINE_PREVIEW: Final[int] = 200

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
