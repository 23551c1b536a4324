"""
Version helpers for crategraph.

This module wraps ``semver`` parsing for registry versions. Registry
versions are always complete ``MAJOR.MINOR.PATCH`` strings, so parsing is
strict.
"""

from __future__ import annotations

import semver


def parse_version(value: str) -> semver.Version:
    """Parse a registry version string.

    Args:
        value: Version string, e.g. ``"1.2.3-beta.1+build.5"``.

    Returns:
        Parsed :class:`semver.Version`.

    Raises:
        ValueError: If ``value`` is not a valid SemVer 2.0 version.
        TypeError: If ``value`` is not a string.

    Examples:
        >>> parse_version("1.2.3").minor
        2
    """
    if not isinstance(value, str):
        raise TypeError(f"version must be a string, got {type(value).__name__}")
    return semver.Version.parse(value.strip())


def format_identity(name: str, version: semver.Version) -> str:
    """Render a ``name@version`` identity for diagnostics."""
    return f"{name}@{version}"
