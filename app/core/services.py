"""
Service layer primitives shared by every app.

This module provides:
- ServiceResult: Explicit success/failure wrapper returned by services
- BaseService: Base class with logging, transaction and error helpers

Service Layer Philosophy:
    Views deal with HTTP and websocket framing, models deal with storage,
    services own the rules in between. Services never raise for expected
    failures (missing chat, non-participant, blank title); they return a
    failed ServiceResult carrying an error code that the caller maps onto
    its own transport (HTTP status, websocket error event).

Usage:
    from core.services import BaseService, ServiceResult

    class ChatService(BaseService):
        @classmethod
        def rename_chat(cls, chat_id, user, title) -> ServiceResult[Chat]:
            if not title.strip():
                return ServiceResult.failure(
                    "Title is required", error_code="VALIDATION_ERROR"
                )
            ...
            return ServiceResult.success(chat)

    # In a DRF view
    result = ChatService.rename_chat(pk, request.user, title)
    if not result.success:
        return Response(result.to_response(), status=result.status_code())

Related:
    - core.exceptions: Exceptions for unexpected failures
    - core.exception_handlers: DRF exception handler using the same envelope
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.conf import settings
from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")

# Error code -> HTTP status used by views when rendering a failed result
ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "INTERNAL_ERROR": 500,
    "EXTERNAL_SERVICE_ERROR": 502,
}


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Human-readable error message if failed
        error_code: Machine-readable error code (see ERROR_CODE_STATUS)
        errors: Field-level or diagnostic details

    Usage:
        result = ChatService.get_chat(chat_id, user)
        if result:
            chat = result.data
        else:
            logger.info(f"{result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors or diagnostic details

        Example:
            return ServiceResult.failure("Chat not found", "NOT_FOUND")
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        The error code defaults to the upper-cased exception class name.
        """
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to the API response envelope.

        Returns:
            {"success": True, "data": ...} on success, otherwise
            {"success": False, "error": ..., "error_code": ..., "errors": ...}
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def status_code(self, default: int = 400) -> int:
        """
        HTTP status for a failed result.

        Unknown error codes fall back to ``default``.
        """
        if self.success:
            return 200
        return ERROR_CODE_STATUS.get(self.error_code or "", default)

    def __bool__(self) -> bool:
        """Truthy when the operation succeeded."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Services are stateless; use @classmethod
        - Use ServiceResult for expected failures
        - Let unexpected exceptions propagate, or convert them with
          handle_exception() at a persistence boundary
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around transaction.atomic() so transaction boundaries
        are explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
        error_code: str = "INTERNAL_ERROR",
    ) -> ServiceResult:
        """
        Convert an exception to a failed ServiceResult with logging.

        The returned error message is ``context`` (e.g. "Failed to add
        message"). The exception text is only attached under
        ``errors["detail"]`` when DEBUG is on.

        Example:
            try:
                chat.delete()
            except DatabaseError as e:
                return cls.handle_exception(e, "Failed to delete chat")
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=True)

        errors = {"detail": [str(exc)]} if settings.DEBUG else None
        return ServiceResult.failure(
            context or "Internal server error",
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def validate_required(cls, error_message: str | None = None, **kwargs) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        A value is missing when it is None or a blank string.

        Args:
            error_message: Error message to use instead of the generic one
            **kwargs: Field names and their values

        Returns:
            ServiceResult.failure if validation fails, None otherwise

        Example:
            validation = cls.validate_required(
                "Message and chat ID are required",
                chat_id=chat_id,
                message=text,
            )
            if validation:
                return validation
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                error_message or "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
