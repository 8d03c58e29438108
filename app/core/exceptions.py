"""
Application exception hierarchy.

Services return ServiceResult for expected failures; these exceptions are
for code paths where raising is clearer (consumers, providers, helpers
called deep inside a request) and are rendered by
core.exception_handlers.api_exception_handler.

Exception Hierarchy:
    BaseApplicationError (base)
    └── ExternalServiceError - Completion API failures

Usage:
    from core.exceptions import ExternalServiceError

    raise ExternalServiceError("Completion API unreachable", details={"provider": "deepseek"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
        status_code: HTTP status used when rendered by the API
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the API error envelope.

        Example:
            {
                "success": False,
                "error": "Chat not found",
                "error_code": "NOT_FOUND",
                "details": {"chat_id": 12}
            }
        """
        result: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Note:
        Log the original error but don't expose it to clients in
        production.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 502
