"""Locates a registry index checkout on the local machine.

Cargo keeps one checkout per registry under
``$CARGO_HOME/registry/index/<host>-<hash>``; the crates.io one is named
``github.com-<hash>``. Each checkout carries a ``config.json`` at its
root, which is how a directory is recognized as an index.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Union

from crategraph.constants import (
    CARGO_HOME_ENV,
    CRATES_IO_INDEX_PREFIX,
    DEFAULT_CARGO_HOME,
    REGISTRY_CONFIG_FILE,
)
from crategraph.exceptions import RegistryNotFoundError
from crategraph.utils import get_logger, validate_directory

logger = get_logger("locator")

__all__ = ["resolve_cargo_home", "locate_registry_index"]


def resolve_cargo_home(explicit: Optional[Union[str, Path]] = None) -> Path:
    """Return the Cargo home directory: ``explicit``, ``$CARGO_HOME`` or ``~/.cargo``."""
    if explicit is not None:
        return Path(explicit).expanduser()
    env = os.environ.get(CARGO_HOME_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / DEFAULT_CARGO_HOME


def locate_registry_index(
    explicit: Optional[Union[str, Path]] = None,
    cargo_home: Optional[Union[str, Path]] = None,
) -> Path:
    """Find the registry index root to analyze.

    Args:
        explicit: Path given on the command line or in configuration. When
            set, it is used as-is (after checking it is a directory).
        cargo_home: Overrides the Cargo home directory to search.

    Returns:
        Resolved index root.

    Raises:
        FileOperationError: ``explicit`` is not an existing directory.
        RegistryNotFoundError: No checkout was found under Cargo home.
    """
    if explicit is not None:
        return validate_directory(explicit)

    index_dir = resolve_cargo_home(cargo_home) / "registry" / "index"
    candidates: List[Path] = []
    if index_dir.is_dir():
        candidates = sorted(
            child
            for child in index_dir.iterdir()
            if child.is_dir() and (child / REGISTRY_CONFIG_FILE).is_file()
        )

    if not candidates:
        raise RegistryNotFoundError(
            "No registry index found; pass the index directory explicitly",
            searched=[str(index_dir)],
        )

    preferred = [c for c in candidates if c.name.startswith(CRATES_IO_INDEX_PREFIX)]
    chosen = (preferred or candidates)[0]
    if len(candidates) > 1:
        logger.info(
            "Found %d registry indexes, using %s", len(candidates), chosen.name
        )
    logger.debug("Located registry index at %s", chosen)
    return chosen.resolve()
