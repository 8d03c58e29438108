"""
DeepSeek provider.

DeepSeek exposes an OpenAI-compatible chat-completions API, so this is
the OpenAI provider pointed at a different endpoint and key.

Configuration:
    DEEPSEEK_API_KEY setting (or api_key argument).
"""

from __future__ import annotations

from django.conf import settings

from .openai import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """OpenAI-compatible provider for api.deepseek.com."""

    name = "deepseek"
    default_base_url = "https://api.deepseek.com/v1"
    fallback_model = "deepseek-chat"

    def _configured_api_key(self) -> str:
        return getattr(settings, "DEEPSEEK_API_KEY", "")
