"""Registry index walker for crategraph.

Enumerates package metadata files under a registry index checkout. The
index shards packages into prefix directories::

    index/
    ├── config.json          (depth 1: registry settings, not a package)
    ├── 1/a                  (depth 2)
    ├── 3/s/syn              (depth 3)
    └── se/rd/serde          (depth 3)

so only regular files at depth two or more are package files.
Version-control directories (``.git``) are pruned wherever they appear.

Traversal order is whatever the filesystem returns and is not stable
across runs; nothing downstream may depend on it for correctness.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from crategraph.constants import EXCLUDED_DIR_NAMES, MIN_PACKAGE_FILE_DEPTH
from crategraph.models.diagnostic import SkippedEntry, SkipPhase
from crategraph.utils import get_logger, validate_directory

logger = get_logger("walker")


class IndexWalker:
    """Lazily yields package metadata file paths below an index root.

    Entries that cannot be listed or stat'd do not stop the walk; they are
    logged and recorded in :attr:`skipped`.

    Args:
        root: Registry index root directory.
        exclude_dirs: Directory names never descended into.
        min_depth: Minimum file depth (root children are depth 1).

    Raises:
        FileOperationError: ``root`` is missing or not a directory.

    Example::

        >>> walker = IndexWalker("~/.cargo/registry/index/github.com-1ecc6299db9ec823")
        >>> paths = list(walker.walk())
        >>> walker.skipped
        []
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        exclude_dirs: Iterable[str] = EXCLUDED_DIR_NAMES,
        min_depth: int = MIN_PACKAGE_FILE_DEPTH,
    ) -> None:
        self.root: Path = validate_directory(root)
        self.exclude_dirs = frozenset(exclude_dirs)
        self.min_depth = min_depth
        self.skipped: List[SkippedEntry] = []
        self.files_yielded: int = 0

    def walk(self) -> Iterator[Path]:
        """Yield package file paths, depth-first."""
        pending: List[Tuple[str, int]] = [(str(self.root), 0)]

        while pending:
            directory, depth = pending.pop()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError as exc:
                self._skip(directory, exc)
                continue

            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name in self.exclude_dirs:
                            logger.debug("Pruned excluded directory %s", entry.path)
                        else:
                            pending.append((entry.path, depth + 1))
                        continue
                    is_file = entry.is_file()
                except OSError as exc:
                    self._skip(entry.path, exc)
                    continue

                if is_file and depth + 1 >= self.min_depth:
                    self.files_yielded += 1
                    yield Path(entry.path)

    def _skip(self, path: str, exc: OSError) -> None:
        logger.warning("Skipping unreadable index entry %s: %s", path, exc)
        self.skipped.append(
            SkippedEntry(path=path, reason=str(exc), phase=SkipPhase.WALK)
        )
