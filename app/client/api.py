"""
Async HTTP client for the chat REST API.

Wraps httpx.AsyncClient with the service's envelope handling: success
payloads are unwrapped to their ``data`` and failure envelopes raise
ChatAPIError carrying the server's error and error_code. Transport
failures surface as httpx.HTTPError.

Usage:
    async with ChatAPIClient("https://chat.example.com", token=access) as api:
        chat = await api.fetch_chat(12)
        message = await api.send_message(12, "hello")

        async for event in api.stream_ai_reply(12, "Summarize"):
            ...
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Iterable

import httpx

from .sse import DONE, StreamEvent, aparse_sse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # Seconds


class ChatAPIError(Exception):
    """
    Failure envelope returned by the server.

    Attributes:
        status_code: HTTP status
        error: Human-readable message
        error_code: Machine-readable code (e.g. NOT_FOUND)
        errors: Field errors, if any
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        error_code: str | None = None,
        errors: dict | None = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.error_code = error_code
        self.errors = errors or {}

    def __repr__(self) -> str:
        return f"ChatAPIError({self.status_code}, {self.error_code}: {self.error})"

    @classmethod
    def from_response(cls, response: httpx.Response) -> ChatAPIError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        # DRF authentication errors use "detail" instead of the envelope
        error = payload.get("error") or payload.get("detail") or response.reason_phrase
        return cls(
            response.status_code,
            str(error),
            payload.get("error_code"),
            payload.get("errors"),
        )


class ChatAPIClient:
    """
    Client for /api/chat, /api/ai and /api/upload.

    Attributes:
        base_url: Service root (without /api)
        token: JWT access token sent as a Bearer header
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ChatAPIClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        """Send a request and return the success envelope."""
        response = await self._get_http_client().request(method, path, **kwargs)

        if response.is_error:
            raise ChatAPIError.from_response(response)

        payload = response.json()
        if not payload.get("success", False):
            raise ChatAPIError.from_response(response)
        return payload

    # =========================================================================
    # Chats
    # =========================================================================

    async def list_chats(self) -> list[dict]:
        payload = await self._request("GET", "/api/chat")
        return payload["data"]

    async def create_chat(
        self,
        title: str | None = None,
        participant_ids: Iterable[int] = (),
    ) -> dict:
        body: dict[str, Any] = {"participant_ids": list(participant_ids)}
        if title is not None:
            body["title"] = title
        payload = await self._request("POST", "/api/chat", json=body)
        return payload["data"]

    async def fetch_chat(self, chat_id: int) -> dict:
        """Chat with its full message history."""
        payload = await self._request("GET", f"/api/chat/{chat_id}")
        return payload["data"]

    async def rename_chat(
        self,
        chat_id: int,
        title: str,
        expected_version: int | None = None,
    ) -> dict:
        body: dict[str, Any] = {"title": title}
        if expected_version is not None:
            body["expected_version"] = expected_version
        payload = await self._request("PATCH", f"/api/chat/{chat_id}", json=body)
        return payload["data"]

    async def delete_chat(self, chat_id: int) -> None:
        await self._request("DELETE", f"/api/chat/{chat_id}")

    # =========================================================================
    # Messages
    # =========================================================================

    async def send_message(
        self,
        chat_id: int,
        content: str,
        attachments: Iterable[dict] = (),
    ) -> dict:
        payload = await self._request(
            "POST",
            f"/api/chat/{chat_id}/messages",
            json={"content": content, "attachments": list(attachments)},
        )
        return payload["data"]

    async def messages_since(
        self,
        chat_id: int,
        last_message_id: int | None = None,
    ) -> list[dict]:
        """Messages after ``last_message_id`` in chronological order."""
        params = {}
        if last_message_id is not None:
            params["lastMessageId"] = last_message_id
        payload = await self._request(
            "GET", f"/api/chat/{chat_id}/messages", params=params
        )
        return payload["data"]

    # =========================================================================
    # AI
    # =========================================================================

    async def ai_reply(self, chat_id: int, message: str) -> tuple[dict, str | None]:
        """
        Blocking AI reply.

        Returns:
            (stored AI message, warning or None when a fallback was used)
        """
        payload = await self._request(
            "POST", "/api/ai/message", json={"chatId": chat_id, "message": message}
        )
        return payload["data"], payload.get("warning")

    async def stream_ai_reply(
        self,
        chat_id: int,
        message: str,
    ) -> AsyncIterator[StreamEvent]:
        """
        Streamed AI reply.

        Yields StreamEvents up to and including the done event.

        Raises:
            ChatAPIError: The request was rejected before streaming began
        """
        client = self._get_http_client()
        async with client.stream(
            "GET",
            "/api/ai/message",
            params={"chatId": chat_id, "message": message},
            headers={"Accept": "text/event-stream"},
        ) as response:
            if response.is_error:
                await response.aread()
                raise ChatAPIError.from_response(response)

            async for event in aparse_sse(response.aiter_lines()):
                yield event
                if event.kind == DONE:
                    return

        logger.warning(f"AI stream for chat {chat_id} ended without a terminator")

    async def analyze_file(
        self,
        file_content: str,
        file_name: str = "",
        file_type: str = "",
    ) -> tuple[dict, str | None]:
        payload = await self._request(
            "POST",
            "/api/ai/analyze-file",
            json={
                "fileContent": file_content,
                "fileName": file_name,
                "fileType": file_type,
            },
        )
        return payload["data"], payload.get("warning")

    # =========================================================================
    # Uploads
    # =========================================================================

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> dict:
        """
        Upload a file.

        Returns:
            Attachment descriptor {filename, path, mimetype}
        """
        payload = await self._request(
            "POST",
            "/api/upload",
            files={"file": (filename, content, content_type)},
        )
        return payload["data"]
