"""
Base provider protocol definition.

Defines the interface that all AI providers must implement.
Uses Python Protocol for structural subtyping.

Messages use the chat-completions shape shared by OpenAI-compatible APIs:

    [{"role": "system" | "user" | "assistant", "content": str}, ...]

Usage:
    from ai.providers.base import BaseProvider

    class MyProvider(BaseProviderImpl):
        async def complete(self, messages, **kwargs):
            ...

        async def stream_complete(self, messages, **kwargs):
            ...
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Protocol, runtime_checkable

from core.exceptions import ExternalServiceError


class ProviderError(ExternalServiceError):
    """
    Raised when the upstream completion API fails.

    Providers wrap SDK and transport errors in this exception so callers
    only have to handle one type.
    """

    default_error_code = "PROVIDER_ERROR"


@runtime_checkable
class BaseProvider(Protocol):
    """
    Protocol for AI provider implementations.

    Required Methods:
        complete: Single completion
        stream_complete: Streaming completion

    Response Format:
        complete() should return:
        {
            "content": str,  # Response text
            "model": str,  # Model used
            "usage": {
                "prompt_tokens": int,
                "completion_tokens": int,
            },
            "finish_reason": str,  # "stop", "length", etc.
        }
    """

    async def complete(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict:
        """
        Generate a completion for a conversation.

        Raises:
            ProviderError: On any upstream failure
        """
        ...

    def stream_complete(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> AsyncGenerator[str, None]:
        """
        Stream completion fragments.

        Yields:
            Non-empty text fragments in order

        Raises:
            ProviderError: On any upstream failure, possibly mid-stream
        """
        ...


class BaseProviderImpl:
    """
    Base implementation with shared functionality.

    Attributes:
        api_key: API key for authentication
        base_url: Optional custom API endpoint
        default_model: Default model if not specified
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model

    def _get_model(self, model: str | None) -> str:
        """Get model, using default if not specified."""
        return model or self.default_model or ""
