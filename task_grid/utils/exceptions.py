"""
Standardized Exception Hierarchy for the table editing engine

This module provides the exception hierarchy used across the grid, selection,
clipboard, history and generation modules.

Exception Categories:
- Configuration Errors: Issues with settings, environment, or missing packages
- Grid Errors: Structural mutations the caller must hear about
- Absorbed Errors: Raised internally and always handled with a fallback
- Resource Errors: Snapshot import/export problems
- Generation Errors: Failures talking to the text-generation collaborator

Usage:
    from task_grid.utils.exceptions import DuplicateColumnError

    try:
        store.add_column({"id": "name", "title": "Name"})
    except DuplicateColumnError as e:
        print(e.to_dict())
"""

from typing import Optional, Any, Dict


# ============================================================================
# Base Exception
# ============================================================================

class TaskGridError(Exception):
    """
    Base exception for all engine errors.

    All custom exceptions inherit from this class so callers can catch
    every engine failure in one place.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Configuration and Initialization Errors
# ============================================================================

class ConfigurationError(TaskGridError):
    """Raised when there's an issue with configuration or settings."""

    def __init__(
        self,
        setting_name: str,
        message: str,
        expected_value: Optional[Any] = None,
        actual_value: Optional[Any] = None
    ):
        details = {"setting_name": setting_name}
        if expected_value is not None:
            details["expected_value"] = str(expected_value)
        if actual_value is not None:
            details["actual_value"] = str(actual_value)

        super().__init__(
            message=f"Configuration error for '{setting_name}': {message}",
            error_code="CONFIG_ERROR",
            details=details
        )
        self.setting_name = setting_name


class MissingDependencyError(TaskGridError):
    """Raised when a required dependency is not installed."""

    def __init__(
        self,
        package_name: str,
        install_command: Optional[str] = None,
        purpose: Optional[str] = None
    ):
        message = f"Required package '{package_name}' is not installed"
        if purpose:
            message += f" (needed for {purpose})"
        if install_command:
            message += f"\nInstall with: {install_command}"

        super().__init__(
            message=message,
            error_code="MISSING_DEPENDENCY",
            details={
                "package_name": package_name,
                "install_command": install_command,
                "purpose": purpose
            }
        )
        self.package_name = package_name


# ============================================================================
# Grid Errors
# ============================================================================

class GridError(TaskGridError):
    """Base class for structural grid errors reported to the caller."""
    pass


class DuplicateColumnError(GridError):
    """Raised when a new column's id or field key is already in use."""

    def __init__(self, column_id: str, key: str, conflict: str):
        super().__init__(
            message=f"Duplicate column: {conflict} '{column_id if conflict == 'id' else key}' already exists",
            error_code="DUPLICATE_COLUMN",
            details={"column_id": column_id, "key": key, "conflict": conflict}
        )
        self.column_id = column_id
        self.key = key
        self.conflict = conflict


class InvalidRangeError(GridError):
    """Raised when a coordinate, range or cell reference is out of bounds."""

    def __init__(
        self,
        message: str,
        row_count: Optional[int] = None,
        column_count: Optional[int] = None,
        reference: Optional[Any] = None
    ):
        details: Dict[str, Any] = {}
        if row_count is not None:
            details["row_count"] = row_count
        if column_count is not None:
            details["column_count"] = column_count
        if reference is not None:
            details["reference"] = str(reference)

        super().__init__(
            message=f"Invalid range: {message}",
            error_code="INVALID_RANGE",
            details=details
        )


# ============================================================================
# Absorbed Errors (never surfaced past their module)
# ============================================================================

class MalformedClipboardError(TaskGridError):
    """Raised inside the clipboard parser when HTML cannot be used."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Malformed clipboard HTML: {reason}",
            error_code="MALFORMED_CLIPBOARD",
            details={"reason": reason}
        )
        self.reason = reason


class HistoryUnderflowError(TaskGridError):
    """Undo/redo past the stack bounds. History treats this as a no-op."""

    def __init__(self, direction: str):
        super().__init__(
            message=f"Nothing to {direction}",
            error_code="HISTORY_UNDERFLOW",
            details={"direction": direction}
        )
        self.direction = direction


# ============================================================================
# Resource Errors
# ============================================================================

class SnapshotError(TaskGridError):
    """Raised when a snapshot or import payload cannot be read."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {}
        if source:
            details["source"] = source
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Snapshot error: {message}",
            error_code="SNAPSHOT_ERROR",
            details=details
        )
        self.original_error = original_error


# ============================================================================
# Generation Errors
# ============================================================================

class LLMError(TaskGridError):
    """Raised when an LLM call fails."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"LLM error: {message}",
            error_code="LLM_ERROR",
            details=details
        )
        self.provider = provider
        self.model = model
        self.original_error = original_error


class GenerationError(LLMError):
    """Raised when a generation reply cannot be turned into rows/columns."""

    def __init__(
        self,
        message: str,
        response_excerpt: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message=message, original_error=original_error)
        self.error_code = "GENERATION_ERROR"
        if response_excerpt:
            self.details["response_excerpt"] = response_excerpt[:200]


# ============================================================================
# Utility Functions
# ============================================================================

def wrap_exception(
    original_error: Exception,
    operation: str,
    context: Optional[Dict[str, Any]] = None
) -> TaskGridError:
    """
    Wrap a generic exception in an appropriate engine exception.

    Args:
        original_error: The original exception to wrap
        operation: The operation that was being performed
        context: Additional context about the error

    Returns:
        An appropriate TaskGridError subclass
    """
    context = context or {}

    if isinstance(original_error, TaskGridError):
        return original_error

    if isinstance(original_error, ImportError):
        return MissingDependencyError(
            package_name=context.get("package_name", "unknown"),
            purpose=operation,
            install_command=context.get("install_command")
        )

    if isinstance(original_error, (IndexError, KeyError)):
        return InvalidRangeError(
            f"{operation} referenced a missing cell ({original_error})",
            reference=context.get("reference")
        )

    if isinstance(original_error, (ValueError, TypeError, OSError)):
        return SnapshotError(
            f"{operation} failed: {original_error}",
            source=context.get("source"),
            original_error=original_error
        )

    return TaskGridError(
        message=f"{operation} failed: {original_error}",
        error_code="UNEXPECTED_ERROR",
        details={"operation": operation, **context}
    )


__all__ = [
    "TaskGridError",
    "ConfigurationError",
    "MissingDependencyError",
    "GridError",
    "DuplicateColumnError",
    "InvalidRangeError",
    "MalformedClipboardError",
    "HistoryUnderflowError",
    "SnapshotError",
    "LLMError",
    "GenerationError",
    "wrap_exception",
]
