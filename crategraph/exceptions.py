"""
Custom exception hierarchy for crategraph.

This module defines structured exception types used across crategraph.
All exceptions inherit from :class:`CrateGraphError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence

from crategraph.constants import MAX_LINE_PREVIEW


class CrateGraphError(Exception):
    """Base exception for all crategraph errors.

    All crategraph-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = MAX_LINE_PREVIEW) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ParseError(CrateGraphError):
    """Raised when a package metadata file cannot be parsed.

    Args:
        message: Error description.
        line_number: Line number where parsing failed.
        line_content: Raw content of the problematic line.
        file_path: Path to the file being parsed.
    """

    __slots__ = ("line_number", "line_content", "file_path")

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "line", line_number)
        if line_content is not None:
            details["content"] = _truncate(line_content)

        super().__init__(message, details)

        self.line_number = line_number
        self.line_content = line_content
        self.file_path = file_path


class InvalidRequirementError(CrateGraphError):
    """Raised when a version requirement string cannot be parsed.

    Args:
        message: Error description.
        requirement: The offending requirement string.
    """

    __slots__ = ("requirement",)

    def __init__(self, message: str, *, requirement: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "requirement", requirement)

        super().__init__(message, details)

        self.requirement = requirement


class FileOperationError(CrateGraphError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/walk).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ConfigError(CrateGraphError):
    """Raised when a configuration file is missing, malformed or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file involved.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class IntegrityError(CrateGraphError):
    """Raised when the registry index contradicts itself.

    Covers duplicate package names across files and duplicate
    ``(name, version)`` identities.

    Args:
        message: Error description.
        package_name: Package whose identity clashed.
        version: Clashing version, when the clash is per version.
        paths: Every file involved in the clash.
    """

    __slots__ = ("package_name", "version", "paths")

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        version: Optional[str] = None,
        paths: Sequence[str] = (),
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "package", package_name)
        _add_if(details, "version", version)
        if paths:
            details["paths"] = ", ".join(paths)

        super().__init__(message, details)

        self.package_name = package_name
        self.version = version
        self.paths = tuple(paths)


class GraphError(CrateGraphError):
    """Raised when the dependency graph cannot be built or mutated."""


class CycleError(GraphError):
    """Raised when adding an edge would close a dependency cycle.

    Args:
        message: Error description.
        dependent: ``name@version`` of the depending record.
        dependency: The dependency declaration being resolved.
        target: ``name@version`` the declaration resolved to.
    """

    __slots__ = ("dependent", "dependency", "target")

    def __init__(
        self,
        message: str,
        *,
        dependent: Optional[str] = None,
        dependency: Optional[str] = None,
        target: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "dependent", dependent)
        _add_if(details, "dependency", dependency)
        _add_if(details, "target", target)

        super().__init__(message, details)

        self.dependent = dependent
        self.dependency = dependency
        self.target = target


class RegistryNotFoundError(CrateGraphError):
    """Raised when no registry index checkout can be located.

    Args:
        message: Error description.
        searched: Locations that were inspected.
    """

    __slots__ = ("searched",)

    def __init__(self, message: str, *, searched: Sequence[str] = ()) -> None:
        details: MutableMapping[str, Any] = {}
        if searched:
            details["searched"] = ", ".join(searched)

        super().__init__(message, details)

        self.searched = tuple(searched)
