"""
Tests for the OpenAI-compatible providers.

The real ``openai`` SDK runs against an httpx.MockTransport, so these
tests exercise request building and response parsing without network.
"""

import json

import httpx
import pytest
from django.test import override_settings

from ai.providers import DeepSeekProvider, OpenAIProvider, ProviderError, get_provider

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Hi"},
]


def completion_body(content="Hello there", model="deepseek-chat"):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }


def stream_body(fragments, model="deepseek-chat"):
    lines = []
    for fragment in fragments:
        chunk = {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 1700000000,
            "model": model,
            "choices": [{"index": 0, "delta": {"content": fragment}, "finish_reason": None}],
        }
        lines.append(f"data: {json.dumps(chunk)}\n\n")
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


class RecordingTransport:
    """Builds a MockTransport that records requests and replays one response."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.response

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


# =============================================================================
# TestComplete
# =============================================================================


@pytest.mark.asyncio
class TestComplete:
    async def test_returns_content_and_usage(self):
        transport = RecordingTransport(httpx.Response(200, json=completion_body()))
        provider = DeepSeekProvider(api_key="test-key", http_client=transport.client())

        response = await provider.complete(MESSAGES, temperature=0.7, max_tokens=500)

        assert response == {
            "content": "Hello there",
            "model": "deepseek-chat",
            "usage": {"prompt_tokens": 12, "completion_tokens": 3},
            "finish_reason": "stop",
        }

        request = transport.requests[0]
        assert request.url.host == "api.deepseek.com"
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "deepseek-chat"
        assert body["messages"] == MESSAGES
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 500

    async def test_upstream_error_is_single_attempt(self):
        transport = RecordingTransport(
            httpx.Response(500, json={"error": {"message": "overloaded"}})
        )
        provider = OpenAIProvider(
            api_key="test-key",
            base_url="https://llm.internal/v1",
            http_client=transport.client(),
        )

        with pytest.raises(ProviderError):
            await provider.complete(MESSAGES)

        assert len(transport.requests) == 1

    async def test_transport_error_is_wrapped(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = OpenAIProvider(
            api_key="test-key",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
        )

        with pytest.raises(ProviderError):
            await provider.complete(MESSAGES)

    async def test_empty_choices_is_provider_error(self):
        body = completion_body()
        body["choices"] = []
        transport = RecordingTransport(httpx.Response(200, json=body))
        provider = DeepSeekProvider(api_key="test-key", http_client=transport.client())

        with pytest.raises(ProviderError, match="returned no choices"):
            await provider.complete(MESSAGES)

    @override_settings(OPENAI_API_KEY="")
    async def test_missing_api_key(self):
        provider = OpenAIProvider()

        with pytest.raises(ProviderError, match="No API key"):
            await provider.complete(MESSAGES)


# =============================================================================
# TestStreamComplete
# =============================================================================


@pytest.mark.asyncio
class TestStreamComplete:
    async def test_yields_fragments(self):
        transport = RecordingTransport(
            httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=stream_body(["Hel", "lo", "", "!"]),
            )
        )
        provider = DeepSeekProvider(api_key="test-key", http_client=transport.client())

        fragments = [f async for f in provider.stream_complete(MESSAGES, max_tokens=4096)]

        assert fragments == ["Hel", "lo", "!"]
        body = json.loads(transport.requests[0].content)
        assert body["stream"] is True
        assert body["max_tokens"] == 4096

    async def test_upstream_error_is_wrapped(self):
        transport = RecordingTransport(httpx.Response(401, json={"error": {"message": "bad key"}}))
        provider = DeepSeekProvider(api_key="wrong", http_client=transport.client())

        with pytest.raises(ProviderError):
            async for _ in provider.stream_complete(MESSAGES):
                pass


# =============================================================================
# TestGetProvider
# =============================================================================


class TestGetProvider:
    @override_settings(AI_PROVIDER="deepseek", AI_MODEL="deepseek-chat", AI_BASE_URL="")
    def test_default_from_settings(self):
        provider = get_provider()

        assert isinstance(provider, DeepSeekProvider)
        assert provider.base_url == "https://api.deepseek.com/v1"
        assert provider.default_model == "deepseek-chat"

    @override_settings(
        AI_MODEL="gpt-4o", AI_BASE_URL="https://proxy.example.com/v1", OPENAI_API_KEY="k"
    )
    def test_openai_with_overrides(self):
        provider = get_provider("openai")

        assert isinstance(provider, OpenAIProvider)
        assert provider.default_model == "gpt-4o"
        assert provider.base_url == "https://proxy.example.com/v1"
        assert provider.api_key == "k"

    @override_settings(DEEPSEEK_API_KEY="from-settings")
    def test_deepseek_reads_its_own_key(self):
        assert DeepSeekProvider().api_key == "from-settings"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider type"):
            get_provider("llama-on-a-toaster")
