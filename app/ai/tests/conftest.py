"""
Test configuration and fixtures for AI tests.

FakeProvider implements the BaseProvider protocol without network
access. The ``provider`` fixture patches the provider factory so every
ChatCompletionService call in a test talks to it.

Usage:
    def test_example(provider, chat, user):
        provider.reply = "Sure!"
        result = ChatCompletionService.reply(chat.id, user, "Hi")
"""

import asyncio
from unittest.mock import patch

import pytest

from ai.providers import ProviderError
from chat.tests.factories import AIMessageFactory, ChatFactory, MessageFactory


class FakeProvider:
    """
    In-memory provider.

    Attributes:
        reply: Content returned by complete()
        fragments: Fragments yielded by stream_complete()
        error: Exception raised by complete(), or by stream_complete()
            after ``fail_after`` fragments
        hang: complete() never returns
        calls: (messages, kwargs) per call
        stream_closed: stream_complete() generator was finalized
    """

    def __init__(self):
        self.reply = "Hello!"
        self.fragments = ["Hel", "lo", "!"]
        self.error = None
        self.fail_after = None
        self.hang = False
        self.calls = []
        self.stream_closed = False

    async def complete(self, messages, model=None, temperature=0.7, max_tokens=1000, **kwargs):
        self.calls.append((messages, {"temperature": temperature, "max_tokens": max_tokens}))
        if self.hang:
            await asyncio.Event().wait()
        if self.error:
            raise self.error
        return {
            "content": self.reply,
            "model": "fake-model",
            "usage": {"prompt_tokens": 1, "completion_tokens": 1},
            "finish_reason": "stop",
        }

    async def stream_complete(
        self, messages, model=None, temperature=0.7, max_tokens=1000, **kwargs
    ):
        self.calls.append((messages, {"temperature": temperature, "max_tokens": max_tokens}))
        try:
            for index, fragment in enumerate(self.fragments):
                if self.error and index == self.fail_after:
                    raise self.error
                yield fragment
            if self.error and self.fail_after is None:
                raise self.error
        finally:
            self.stream_closed = True


@pytest.fixture
def provider():
    """FakeProvider returned by every get_provider() call in ai.services."""
    fake = FakeProvider()
    with patch("ai.services.get_provider", return_value=fake):
        yield fake


@pytest.fixture
def failing_provider(provider):
    """Provider whose every call fails upstream."""
    provider.error = ProviderError("upstream exploded")
    provider.fail_after = 0
    return provider


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def chat(db, user):
    """A chat of ``user`` with a short exchange."""
    chat = ChatFactory(participants=[user], title="Trip planning")
    MessageFactory(chat=chat, sender=user, content="Where should we go?")
    AIMessageFactory(chat=chat, content="How about Lisbon?")
    return chat


@pytest.fixture
def foreign_chat(db, other_user):
    """A chat ``user`` is not part of."""
    return ChatFactory(participants=[other_user], title="Private")
