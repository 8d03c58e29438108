"""
Tests for the AI endpoints.

Endpoints:
    POST /api/ai/message
    GET  /api/ai/message (SSE)
    POST /api/ai/analyze-file
"""

import json
from unittest.mock import patch

import pytest
from rest_framework import status

from ai.constants import FALLBACKS

MESSAGE_URL = "/api/ai/message"
ANALYZE_URL = "/api/ai/analyze-file"


def sse_payloads(response):
    """Decode a streamed SSE body into its data payloads."""
    body = b"".join(response).decode()
    payloads = []
    for line in body.splitlines():
        if not line.startswith("data: "):
            continue
        data = line[len("data: "):]
        payloads.append(data if data == "[DONE]" else json.loads(data))
    return payloads


@pytest.fixture
def mock_broadcast():
    with patch("ai.views.broadcast_new_message") as blocking, patch(
        "ai.services.broadcast_new_message"
    ) as streamed:
        yield blocking, streamed


# =============================================================================
# TestBlockingReply
# =============================================================================


class TestBlockingReply:
    """Tests for POST /api/ai/message."""

    def test_returns_stored_ai_message(
        self, authenticated_client, provider, chat, mock_broadcast
    ):
        provider.reply = "Lisbon, definitely."

        response = authenticated_client.post(
            MESSAGE_URL, {"chatId": chat.id, "message": "Where?"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert "warning" not in response.data
        data = response.data["data"]
        assert data["content"] == "Lisbon, definitely."
        assert data["is_ai"] is True
        assert data["sender"] == {"id": None, "username": "AI"}
        assert data["chat_id"] == chat.id

        blocking, _ = mock_broadcast
        blocking.assert_called_once()

    def test_fallback_is_200_with_warning(
        self, authenticated_client, failing_provider, chat, mock_broadcast
    ):
        response = authenticated_client.post(
            MESSAGE_URL, {"chatId": chat.id, "message": "Where?"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        assert response.data["warning"] == FALLBACKS.WARNING
        assert response.data["data"]["content"] == FALLBACKS.REPLY

    @pytest.mark.parametrize(
        "payload", [{}, {"chatId": 1}, {"message": "hi"}, {"chatId": 1, "message": ""}]
    )
    def test_missing_fields_is_400(self, authenticated_client, provider, payload):
        response = authenticated_client.post(MESSAGE_URL, payload, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Message and chat ID are required"

    def test_unknown_chat_is_404(self, authenticated_client, provider):
        response = authenticated_client.post(
            MESSAGE_URL, {"chatId": 999999, "message": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_non_participant_is_403(self, authenticated_client, provider, foreign_chat):
        response = authenticated_client.post(
            MESSAGE_URL, {"chatId": foreign_chat.id, "message": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert provider.calls == []

    def test_requires_authentication(self, api_client, db):
        response = api_client.post(MESSAGE_URL, {"chatId": 1, "message": "hi"}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# TestStreamingReply
# =============================================================================


class TestStreamingReply:
    """Tests for GET /api/ai/message."""

    def test_streams_fragments_then_done(
        self, authenticated_client, provider, chat, mock_broadcast
    ):
        response = authenticated_client.get(
            MESSAGE_URL, {"chatId": chat.id, "message": "Say hello"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"].startswith("text/event-stream")
        assert response["Cache-Control"] == "no-cache"
        assert response["X-Accel-Buffering"] == "no"

        assert sse_payloads(response) == [
            {"content": "Hel"},
            {"content": "lo"},
            {"content": "!"},
            "[DONE]",
        ]
        assert chat.messages.filter(is_ai=True, content="Hello!").count() == 1

    def test_token_in_query_string(
        self, api_client, user, access_token_for, provider, chat, mock_broadcast
    ):
        """EventSource clients cannot send headers; ?token= authenticates them."""
        response = api_client.get(
            MESSAGE_URL,
            {"chatId": chat.id, "message": "hi", "token": access_token_for(user)},
            HTTP_ACCEPT="text/event-stream",
        )

        assert response.status_code == status.HTTP_200_OK
        assert sse_payloads(response)[-1] == "[DONE]"

    def test_invalid_query_token_is_401(self, api_client, db):
        response = api_client.get(
            MESSAGE_URL, {"chatId": 1, "message": "hi", "token": "bogus"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_query_token_ignored_on_post(self, api_client, user, access_token_for):
        response = api_client.post(
            f"{MESSAGE_URL}?token={access_token_for(user)}",
            {"chatId": 1, "message": "hi"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_upstream_failure_streams_error(
        self, authenticated_client, failing_provider, chat, mock_broadcast
    ):
        response = authenticated_client.get(
            MESSAGE_URL, {"chatId": chat.id, "message": "hi"}
        )

        assert sse_payloads(response) == [
            {"error": FALLBACKS.STREAM_ERROR},
            "[DONE]",
        ]
        assert chat.messages.count() == 2

    def test_non_participant_is_403_before_streaming(
        self, authenticated_client, provider, foreign_chat
    ):
        response = authenticated_client.get(
            MESSAGE_URL, {"chatId": foreign_chat.id, "message": "hi"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "PERMISSION_DENIED"
        assert provider.calls == []

    def test_missing_fields_is_400(self, authenticated_client, provider):
        response = authenticated_client.get(MESSAGE_URL, {"chatId": 1})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Message and chat ID are required"


# =============================================================================
# TestAnalyzeFile
# =============================================================================


class TestAnalyzeFile:
    """Tests for POST /api/ai/analyze-file."""

    def test_returns_analysis(self, authenticated_client, provider):
        provider.reply = "Three columns of sales data."

        response = authenticated_client.post(
            ANALYZE_URL,
            {"fileContent": "a,b,c\n1,2,3", "fileName": "sales.csv", "fileType": "csv"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "success": True,
            "data": {
                "fileName": "sales.csv",
                "fileType": "csv",
                "analysis": "Three columns of sales data.",
            },
        }

    def test_missing_content_is_400(self, authenticated_client, provider):
        response = authenticated_client.post(
            ANALYZE_URL, {"fileName": "empty.txt"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "File content is required"

    def test_failure_is_200_with_fallback(self, authenticated_client, failing_provider):
        response = authenticated_client.post(
            ANALYZE_URL,
            {"fileContent": "text", "fileName": "a.txt", "fileType": "text"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["analysis"] == FALLBACKS.ANALYSIS
        assert response.data["warning"] == FALLBACKS.WARNING
