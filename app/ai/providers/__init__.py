"""
AI provider implementations.

This package contains provider-specific implementations:
- base.py: BaseProvider protocol and ProviderError
- openai.py: OpenAI implementation (AsyncOpenAI)
- deepseek.py: DeepSeek, OpenAI-compatible

Provider Selection:
    Providers are selected by type string ("deepseek", "openai"). The
    default comes from settings.AI_PROVIDER. Use the get_provider()
    factory function.

Usage:
    from ai.providers import get_provider

    provider = get_provider()
    response = await provider.complete(
        [{"role": "user", "content": "Hello"}],
    )

Adding New Providers:
    1. Create new file (e.g., mistral.py)
    2. Implement BaseProvider protocol
    3. Register in PROVIDERS dict below
"""

from __future__ import annotations

import logging

from django.conf import settings

from .base import BaseProvider, ProviderError
from .deepseek import DeepSeekProvider
from .openai import OpenAIProvider

logger = logging.getLogger(__name__)

# Provider registry
# Maps provider type string to provider class
PROVIDERS: dict[str, type] = {
    "deepseek": DeepSeekProvider,
    "openai": OpenAIProvider,
}

__all__ = [
    "BaseProvider",
    "DeepSeekProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "ProviderError",
    "get_provider",
    "list_providers",
]


def get_provider(provider_type: str | None = None, **kwargs) -> BaseProvider:
    """
    Get provider instance by type.

    Model and base URL default to settings.AI_MODEL and
    settings.AI_BASE_URL when not passed.

    Args:
        provider_type: Provider type string (default settings.AI_PROVIDER)
        **kwargs: Provider configuration options

    Returns:
        Configured provider instance

    Raises:
        ValueError: If provider type unknown
    """
    provider_type = provider_type or settings.AI_PROVIDER

    provider_class = PROVIDERS.get(provider_type)
    if not provider_class:
        raise ValueError(f"Unknown provider type: {provider_type}")

    kwargs.setdefault("default_model", settings.AI_MODEL or None)
    kwargs.setdefault("base_url", settings.AI_BASE_URL or None)

    logger.debug(f"Using AI provider {provider_type}")
    return provider_class(**kwargs)


def list_providers() -> list[str]:
    """Get list of available provider types."""
    return list(PROVIDERS.keys())
