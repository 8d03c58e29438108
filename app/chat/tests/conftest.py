"""
Test configuration and fixtures for chat tests.

Project-wide fixtures (user, other_user, api_client, authenticated_client,
authenticated_client_factory, access_token_for) come from app/conftest.py.

Usage:
    def test_example(chat, authenticated_client):
        response = authenticated_client.get(f"/api/chat/{chat.id}")
        assert response.status_code == 200
"""

import pytest

from chat.registry import ConnectionRegistry
from chat.tests.factories import AIMessageFactory, ChatFactory, MessageFactory


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def chat(db, user):
    """A chat whose only participant is ``user``."""
    return ChatFactory(participants=[user], title="Weekend plans")


@pytest.fixture
def shared_chat(db, user, other_user):
    """A chat between ``user`` and ``other_user``."""
    return ChatFactory(participants=[user, other_user], title="Shared")


@pytest.fixture
def foreign_chat(db, other_user):
    """A chat ``user`` is not part of."""
    return ChatFactory(participants=[other_user], title="Private")


@pytest.fixture
def chat_with_messages(db, chat, user):
    """``chat`` holding two user messages and one AI reply."""
    MessageFactory(chat=chat, sender=user, content="first")
    MessageFactory(chat=chat, sender=user, content="second")
    AIMessageFactory(chat=chat, content="third, from the assistant")
    return chat


# =============================================================================
# Real-time Fixtures
# =============================================================================


@pytest.fixture
def registry():
    """A fresh connection registry."""
    return ConnectionRegistry()
