"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (chat, ai, uploads).
No chat-specific logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError and subclasses with error codes and HTTP statuses

Exception handling (import from core.exception_handlers):
    - api_exception_handler: DRF handler rendering the error envelope

Validators (import from core.validators):
    - validate_file_size: File size validation
    - validate_file_extension: File extension validation

Note:
    Models are NOT imported here to avoid AppRegistryNotReady errors.
"""

from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
)

__all__ = [
    "BaseApplicationError",
    "ExternalServiceError",
]
