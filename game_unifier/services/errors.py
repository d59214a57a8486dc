"""Error handling for the game unifier.

This module provides:
- Custom exception classes for storage, classification, catalog and
  configuration failures
- User-friendly error representations with suggested actions
- An explicitly constructed error handling service with error history
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    STORAGE = "storage"
    TRAVERSAL = "traversal"
    CLASSIFICATION = "classification"
    CATALOG = "catalog"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


class AppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


def _describe(original_error: Exception | None) -> str | None:
    if original_error is None:
        return None
    return f"{type(original_error).__name__}: {original_error}"


class StorageError(AppError):
    """Exception for failures reported by a storage adapter."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        operation: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        recoverable: bool = True,
    ) -> None:
        suggested_actions = self._get_suggested_actions(original_error)

        technical_details = _describe(original_error)
        if operation:
            technical_details = f"Operation: {operation}" + (f"\n{technical_details}" if technical_details else "")
        if path is not None:
            technical_details = f"Path: {path}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=severity,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=recoverable,
        )
        self.original_error = original_error
        self.path = path
        self.operation = operation

    @staticmethod
    def _get_suggested_actions(original_error: Exception | None) -> list[str]:
        """Get suggested actions based on error type."""
        if isinstance(original_error, PermissionError):
            return [
                "Check file/directory permissions",
                "Exclude the path from the scan",
            ]
        if isinstance(original_error, FileNotFoundError):
            return [
                "Verify the repository path is correct",
                "Check if the folder was moved or deleted",
            ]
        if isinstance(original_error, httpx.HTTPStatusError):
            if original_error.response.status_code in (401, 403):
                return [
                    "Refresh the access token",
                    "Check that the folder is shared with the account",
                ]
            return ["The storage service is experiencing issues", "Try again later"]
        if isinstance(original_error, httpx.RequestError):
            return ["Check your internet connection", "Try again in a few moments"]
        return [
            "Check the storage location and permissions",
            "Try scanning again",
        ]


class ScanRootError(StorageError):
    """Fatal scan failure: the repository root itself could not be read."""

    def __init__(self, path: str, original_error: Exception | None = None) -> None:
        super().__init__(
            message=f"Unable to read repository root: {path}",
            original_error=original_error,
            path=path,
            operation="scan",
            severity=ErrorSeverity.CRITICAL,
            recoverable=False,
        )


class ClassificationError(AppError):
    """Exception for a file record that cannot be classified."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            message=message,
            category=ErrorCategory.CLASSIFICATION,
            severity=ErrorSeverity.WARNING,
            suggested_actions=["The file is skipped; the rest of the scan continues"],
            technical_details=f"Path: {path}" if path is not None else None,
            recoverable=True,
        )
        self.path = path


class CatalogUnavailableError(AppError):
    """Exception for identification attempted before the metadata catalog is populated."""

    def __init__(self, message: str = "The metadata catalog is not populated") -> None:
        super().__init__(
            message=message,
            category=ErrorCategory.CATALOG,
            severity=ErrorSeverity.ERROR,
            suggested_actions=[
                "Load or update the metadata catalog first",
                "Run the scan without identification",
            ],
            recoverable=True,
        )


class ValidationError(AppError):
    """Exception for validation-related errors."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        constraints: list[str] | None = None,
    ) -> None:
        suggested_actions = ["Review the input requirements"]
        if constraints:
            suggested_actions.extend([f"Ensure: {c}" for c in constraints])

        technical_details = None
        if field:
            technical_details = f"Field: {field}"
        if value is not None:
            value_str = str(value)[:100]
            technical_details = (technical_details or "") + f"\nValue: {value_str}"

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.field = field
        self.value = value
        self.constraints = constraints or []


class ConfigurationError(AppError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = [
            "Check the configuration settings",
            "Reset to default values if needed",
        ]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


class ErrorHandlingService:
    """Converts, logs and remembers errors.

    Owned by the caller; the CLI constructs one per process.
    """

    def __init__(self, max_history_size: int = 100) -> None:
        self._error_history: list[tuple[float, AppError]] = []
        self._max_history_size = max_history_size

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Handle an error and return a user-friendly representation.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            component: The component where the error occurred
            context: Additional context information

        Returns:
            User-friendly error representation
        """
        app_error = self._convert_to_app_error(error, operation, context)
        self._log_error(app_error, operation, component, context)

        self._error_history.append((time.time(), app_error))
        if len(self._error_history) > self._max_history_size:
            self._error_history.pop(0)

        return app_error.to_user_friendly()

    def _convert_to_app_error(
        self,
        error: Exception,
        operation: str,
        context: dict[str, Any] | None,
    ) -> AppError:
        """Convert a standard exception to an AppError."""
        if isinstance(error, AppError):
            return error

        path = context.get("path") if context else None

        if isinstance(error, (httpx.HTTPError, OSError)):
            return StorageError(
                message=self._storage_message(error),
                original_error=error,
                path=path,
                operation=operation,
            )
        if isinstance(error, json.JSONDecodeError):
            return ValidationError(
                message="Invalid JSON format. The data could not be parsed.",
                field="json_content",
            )
        if isinstance(error, ValueError):
            return ValidationError(
                message=str(error),
                field=context.get("field") if context else None,
                value=context.get("value") if context else None,
            )
        if isinstance(error, TypeError):
            return ValidationError(
                message=f"Invalid data type: {error}",
                field=context.get("field") if context else None,
            )

        return AppError(
            message="An unexpected error occurred. Please try again.",
            category=ErrorCategory.UNEXPECTED,
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(error).__name__}: {error}",
        )

    @staticmethod
    def _storage_message(error: Exception) -> str:
        if isinstance(error, PermissionError):
            return "Permission denied while reading the repository."
        if isinstance(error, FileNotFoundError):
            return "The file or directory was not found."
        if isinstance(error, httpx.HTTPStatusError):
            return f"The storage service returned HTTP {error.response.status_code}."
        if isinstance(error, httpx.HTTPError):
            return "A network error occurred while talking to the storage service."
        return f"A storage error occurred: {error}"

    def _log_error(
        self,
        error: AppError,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> None:
        """Log error with full technical details."""
        log_method = log.warning if error.severity == ErrorSeverity.WARNING else log.error

        log_method(
            "Error occurred",
            error_message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            operation=operation,
            component=component,
            technical_details=error.technical_details,
            recoverable=error.recoverable,
            context=context,
        )

    def get_recent_errors(self, count: int = 10) -> list[AppError]:
        """Get recent errors from history."""
        recent = self._error_history[-count:] if self._error_history else []
        return [error for _, error in recent]

    def get_error_count_by_category(self) -> dict[ErrorCategory, int]:
        """Get count of errors by category."""
        counts: dict[ErrorCategory, int] = {}
        for _, error in self._error_history:
            counts[error.category] = counts.get(error.category, 0) + 1
        return counts

    def create_user_message(
        self,
        error: UserFriendlyError,
        include_suggestions: bool = True,
    ) -> str:
        """Create a formatted user message from an error."""
        parts = [error.message]

        if include_suggestions and error.suggested_actions:
            parts.append("\nSuggested actions:")
            for action in error.suggested_actions[:3]:
                parts.append(f"  • {action}")

        return "\n".join(parts)
