"""Configuration file loader for crategraph.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``crategraph.toml``: settings under ``[crategraph]`` table
- ``pyproject.toml``: settings under ``[tool.crategraph]`` table

Discovery order:

1. Explicit path from ``--config`` or ``CRATEGRAPH_CONFIG``
2. ``crategraph.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.crategraph]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``crategraph.toml``)::

    [crategraph]
    registry_path = "~/src/crates.io-index"
    skip_malformed = true
    jobs = 8
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import tomli as tomllib

from crategraph.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_JOBS,
    DEFAULT_SKIP_MALFORMED,
    DEFAULT_USE_CACHE,
    EXCLUDED_DIR_NAMES,
)
from crategraph.exceptions import ConfigError
from crategraph.utils.logger import get_logger

logger = get_logger("config")

_SECTION = "crategraph"


@dataclass
class CrateGraphConfig:
    """Parsed and validated crategraph configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        registry_path: Index directory to analyze when none is given on the
            command line. ``None`` lets the locator search Cargo home.
        skip_malformed: Skip package files that fail to parse instead of
            aborting the run.
        use_cache: Read and write the index cache.
        cache_path: Cache file location. ``None`` means ``<index>.cache``.
        jobs: Parser threads used while loading the index.
        exclude_dirs: Directory names never descended into.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry_path: Optional[str] = None
    skip_malformed: bool = DEFAULT_SKIP_MALFORMED
    use_cache: bool = DEFAULT_USE_CACHE
    cache_path: Optional[str] = None
    jobs: int = DEFAULT_JOBS
    exclude_dirs: List[str] = field(default_factory=lambda: list(EXCLUDED_DIR_NAMES))

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "registry_path": self.registry_path,
            "skip_malformed": self.skip_malformed,
            "use_cache": self.use_cache,
            "cache_path": self.cache_path,
            "jobs": self.jobs,
            "exclude_dirs": list(self.exclude_dirs),
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    standalone = cwd / CONFIG_FILE_NAME
    if standalone.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, standalone)
        return standalone

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_section(pyproject_toml):
        logger.debug("Found [tool.crategraph] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check if pyproject.toml contains a ``[tool.crategraph]`` section.

    Unreadable files count as not having one; they are not ours to report.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return _SECTION in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> CrateGraphConfig:
    """Load and validate crategraph configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`CrateGraphConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return CrateGraphConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get(_SECTION, {})
    else:
        section = raw.get(_SECTION, {})

    if not section:
        logger.debug("Config file found but no crategraph section, using defaults")
        return CrateGraphConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


#: option name -> (expected types, human-readable type name)
_OPTION_TYPES: Dict[str, Tuple[Tuple[type, ...], str]] = {
    "registry_path": ((str,), "a string"),
    "skip_malformed": ((bool,), "a boolean"),
    "use_cache": ((bool,), "a boolean"),
    "cache_path": ((str,), "a string"),
    "jobs": ((int,), "an integer"),
    "exclude_dirs": ((list,), "a list of strings"),
}


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> CrateGraphConfig:
    """Parse and validate the ``[crategraph]`` or ``[tool.crategraph]`` table.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    unknown = set(section.keys()) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = CrateGraphConfig()

    for option, value in section.items():
        expected, type_name = _OPTION_TYPES[option]
        # bool is an int subclass; "jobs = true" must not pass
        if not isinstance(value, expected) or (
            option == "jobs" and isinstance(value, bool)
        ):
            raise ConfigError(
                f"{option} must be {type_name}, got {type(value).__name__}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, value)

    if config.jobs < 1:
        raise ConfigError(
            f"jobs must be at least 1, got {config.jobs}",
            config_path=config_path,
            option="jobs",
        )

    if not all(isinstance(name, str) and name for name in config.exclude_dirs):
        raise ConfigError(
            "exclude_dirs must be a list of non-empty strings",
            config_path=config_path,
            option="exclude_dirs",
        )

    return config
