"""
Filesystem utilities for crategraph.

This module provides safe helpers for reading package metadata files,
atomically writing cache documents, and validating user-supplied paths.
All filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from crategraph.utils.logger import get_logger
from crategraph.exceptions import FileOperationError
from crategraph.constants import MAX_FILE_SIZE


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path, *, must_exist: bool = True) -> Path:
    """Validate and resolve a file path."""
    if must_exist:
        if not path.exists():
            raise FileOperationError(
                f"File not found: {path}",
                file_path=str(path),
                operation="read",
            )
        if not path.is_file():
            raise FileOperationError(
                f"Not a file: {path}",
                file_path=str(path),
                operation="read",
            )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Atomically write text to a file using a temporary file + replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except Exception as exc:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.

    Raises:
        FileOperationError: The file is missing, too large, or unreadable.
    """
    path = _validated_file(Path(file_path))

    try:
        size = path.stat().st_size
    except OSError as exc:
        raise FileOperationError(
            f"Cannot stat file: {exc}",
            file_path=str(path),
            operation="stat",
            original_error=exc,
        ) from exc

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(file_path: PathLike, content: str) -> Path:
    """Write text to a file using atomic replacement.

    Readers never observe a half-written file: the content goes to a
    temporary sibling that is renamed over the destination.

    Args:
        file_path: Destination path.
        content: Text content to write.

    Returns:
        The destination path.
    """
    path = Path(file_path)
    _atomic_write(path, content)
    logger.debug("Wrote %d byte(s) to %s", len(content.encode("utf-8")), path)
    return path


def validate_directory(path: PathLike) -> Path:
    """Resolve ``path`` and ensure it names an existing directory.

    Raises:
        FileOperationError: The path is missing or not a directory.
    """
    resolved = Path(path).expanduser().resolve(strict=False)

    if not resolved.exists():
        raise FileOperationError(
            f"Directory not found: {resolved}",
            file_path=str(path),
            operation="walk",
        )
    if not resolved.is_dir():
        raise FileOperationError(
            f"Not a directory: {resolved}",
            file_path=str(path),
            operation="walk",
        )

    return resolved
