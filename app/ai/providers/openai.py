"""
OpenAI provider implementation.

Implements the BaseProvider protocol on top of the official ``openai``
SDK (``AsyncOpenAI``). Any OpenAI-compatible endpoint works by setting
``base_url``; see deepseek.py.

Each request is a single attempt: the SDK's automatic retries are
disabled and callers bound the wait themselves.

Configuration:
    OPENAI_API_KEY, AI_BASE_URL and AI_MODEL settings, or constructor
    arguments.

Usage:
    from ai.providers.openai import OpenAIProvider

    provider = OpenAIProvider()
    response = await provider.complete(
        [{"role": "user", "content": "Explain quantum computing"}],
        model="gpt-4o-mini",
    )
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator

import httpx
import openai
from django.conf import settings

from .base import BaseProviderImpl, ProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProviderImpl):
    """
    OpenAI chat-completions provider.

    Attributes:
        api_key: API key
        base_url: Optional custom endpoint
        default_model: Model used when none is passed
        http_client: Optional httpx.AsyncClient handed to the SDK
    """

    name = "openai"
    default_base_url: str | None = None
    fallback_model = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            api_key=api_key or self._configured_api_key(),
            base_url=base_url or self.default_base_url,
            default_model=default_model or self.fallback_model,
        )
        self.http_client = http_client
        self._client: openai.AsyncOpenAI | None = None

    def _configured_api_key(self) -> str:
        return getattr(settings, "OPENAI_API_KEY", "")

    def _get_client(self) -> openai.AsyncOpenAI:
        """Get the configured SDK client, creating it on first use."""
        if self._client is None:
            if not self.api_key:
                raise ProviderError(f"No API key configured for {self.name}")

            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                max_retries=0,
                http_client=self.http_client,
            )
        return self._client

    async def complete(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict:
        """
        Generate a completion.

        Args:
            messages: Conversation in chat-completions format
            model: Model (defaults to default_model)
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum response tokens
            **kwargs: Additional API options (top_p, stop, ...)

        Returns:
            Response dict with content, model, usage, finish_reason
        """
        model = self._get_model(model)
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.warning(f"{self.name} completion failed: {e}")
            raise ProviderError(
                f"{self.name} completion failed",
                details={"reason": str(e)},
            ) from e

        if not response.choices:
            logger.warning(f"{self.name} returned no choices for model {model}")
            raise ProviderError(f"{self.name} returned no choices")

        choice = response.choices[0]
        usage = response.usage

        return {
            "content": choice.message.content or "",
            "model": response.model,
            "usage": {
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
            },
            "finish_reason": choice.finish_reason,
        }

    async def stream_complete(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> AsyncGenerator[str, None]:
        """
        Stream a completion.

        Yields:
            Non-empty content deltas in order
        """
        model = self._get_model(model)
        client = self._get_client()

        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
                **kwargs,
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    content = chunk.choices[0].delta.content
                    if content:
                        yield content
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.warning(f"{self.name} stream failed: {e}")
            raise ProviderError(
                f"{self.name} stream failed",
                details={"reason": str(e)},
            ) from e
