"""
Fixtures for client tests.

No server runs here: the API client talks to httpx.MockTransport handlers
and time comes from a FakeClock the tests advance by hand.
"""

import httpx
import pytest

from client.api import ChatAPIClient

from client.tests.fakes import CHAT_ID, ME, FakeClock, Recorder


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_message():
    """Factory for serialized server messages."""

    def _make(message_id, content, sender_id=ME, is_ai=False, chat_id=CHAT_ID):
        if is_ai:
            sender = {"id": None, "username": "AI"}
        else:
            sender = {"id": sender_id, "username": f"user{sender_id}"}
        return {
            "id": message_id,
            "chat_id": chat_id,
            "sender": sender,
            "content": content,
            "is_ai": is_ai,
            "attachments": [],
            "created_at": f"2026-01-01T10:00:{message_id:02d}Z",
        }

    return _make


@pytest.fixture
def make_api():
    """Build a ChatAPIClient served by a Recorder route table."""

    def _make(routes=None, token="access-token"):
        recorder = Recorder(routes)
        api = ChatAPIClient(
            "http://testserver",
            token=token,
            transport=httpx.MockTransport(recorder),
        )
        return api, recorder

    return _make
