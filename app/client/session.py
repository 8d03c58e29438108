"""
Client session state: one open chat and the chat list.

ChatSession ties the pieces together for an open chat:
    - ChatTimeline for messages from REST, websocket and polling
    - TypingDebouncer for the local user's typing events
    - TypingIndicator for everyone else's
    - ChatAPIClient for sends and AI replies

Websocket I/O stays outside: incoming events are passed to
handle_event() and outgoing events are queued on ``outbox`` for the
socket writer to drain.
Typing events are only queued once the server has confirmed the room
join with joined_chat.

ChatList keeps the sidebar ordered by most recent activity.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Iterable

import httpx

from .api import ChatAPIClient, ChatAPIError
from .indicators import TYPING_IDLE_SECONDS, TypingDebouncer, TypingIndicator
from .sse import CONTENT, DONE, ERROR
from .timeline import ChatTimeline, TimelineEntry

logger = logging.getLogger(__name__)

STREAM_FAILED_MESSAGE = "AI reply failed"


class ChatSession:
    """
    State of one open chat for one user.

    Attributes:
        chat_id: Open chat
        user_id: Local user
        title: Chat title as last seen
        timeline: Messages shown
        typing: Other participants typing
        outbox: Websocket events waiting to be sent
        joined: The server confirmed the room join (joined_chat); typing
            events are only sent while this holds
    """

    def __init__(
        self,
        api: ChatAPIClient,
        chat_id: int,
        user_id: int,
        typing_idle: float = TYPING_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.chat_id = chat_id
        self.user_id = user_id
        self.title: str | None = None
        self.timeline = ChatTimeline(chat_id, clock=clock)
        self.typing = TypingIndicator(self_id=user_id, clock=clock)
        self.debouncer = TypingDebouncer(
            self._queue_typing, idle_timeout=typing_idle, clock=clock
        )
        self.outbox: deque[dict] = deque()
        self.joined = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def open(self) -> None:
        """Load the chat and queue the room join."""
        chat = await self.api.fetch_chat(self.chat_id)
        self.title = chat.get("title")
        self.timeline.load(chat.get("messages", []))
        self.outbox.append({"type": "join_chat", "chat_id": self.chat_id})

    def close(self) -> None:
        self.debouncer.submit()
        self.joined = False
        self.outbox.append({"type": "leave_chat", "chat_id": self.chat_id})

    def drain_outbox(self) -> list[dict]:
        events = list(self.outbox)
        self.outbox.clear()
        return events

    # =========================================================================
    # Websocket events
    # =========================================================================

    def handle_event(self, event: dict) -> bool:
        """
        Apply one server event.

        Returns:
            True if the session state changed
        """
        if event.get("chat_id") != self.chat_id:
            return False

        event_type = event.get("type")
        if event_type == "joined_chat":
            if self.joined:
                return False
            self.joined = True
            if self.debouncer.is_typing:
                # Typing started before the join was confirmed
                self._queue_typing(True)
            return True

        if event_type == "left_chat":
            changed = self.joined
            self.joined = False
            return changed

        if event_type == "new_message":
            message = event.get("message") or {}
            sender = message.get("sender") or {}
            if sender.get("id") is not None:
                self.typing.clear(self.chat_id, sender["id"])
            return self.timeline.apply(message)

        if event_type == "user_typing":
            return self.typing.update(event)

        if event_type == "chat_updated":
            title = event.get("title")
            if title is None or title == self.title:
                return False
            self.title = title
            return True

        if event_type == "error":
            logger.warning(f"Server error in chat {self.chat_id}: {event.get('message')}")
        return False

    # =========================================================================
    # Typing
    # =========================================================================

    def on_input(self) -> None:
        self.debouncer.keystroke()

    def tick(self) -> None:
        self.debouncer.tick()

    def typing_users(self) -> list[str]:
        return self.typing.typing_users(self.chat_id)

    def _queue_typing(self, is_typing: bool) -> None:
        if not self.joined:
            return
        self.outbox.append(
            {"type": "typing", "chat_id": self.chat_id, "is_typing": is_typing}
        )

    # =========================================================================
    # Sending
    # =========================================================================

    async def send(self, content: str, attachments: Iterable[dict] = ()) -> TimelineEntry:
        """
        Send a message optimistically.

        The entry is shown at once and replaced by the server copy when
        the request returns (or earlier, by a websocket push). On failure
        it stays visible, flagged as failed, and the error is re-raised.
        """
        self.debouncer.submit()
        entry = self.timeline.add_optimistic(content, self.user_id)

        try:
            message = await self.api.send_message(self.chat_id, content, attachments)
        except ChatAPIError as e:
            self.timeline.mark_failed(entry, e.error)
            raise
        except httpx.HTTPError:
            self.timeline.mark_failed(entry)
            raise

        self.timeline.apply(message)
        return self.timeline.entries_by_id(message["id"])

    async def ask_ai(self, prompt: str) -> tuple[TimelineEntry, str | None]:
        """Blocking AI reply. Returns the entry and the server's warning, if any."""
        message, warning = await self.api.ai_reply(self.chat_id, prompt)
        self.timeline.apply(message)
        return self.timeline.entries_by_id(message["id"]), warning

    async def ask_ai_streaming(self, prompt: str) -> TimelineEntry:
        """
        Streamed AI reply.

        A placeholder grows as fragments arrive. After the stream ends the
        stored copy is fetched and replaces the placeholder, unless a
        websocket push delivered it first.
        """
        placeholder = self.timeline.begin_stream()
        failure: str | None = None
        stream = self.api.stream_ai_reply(self.chat_id, prompt)

        try:
            async for event in stream:
                if event.kind == CONTENT:
                    self.timeline.append_fragment(event.text)
                elif event.kind == ERROR:
                    failure = event.text
                elif event.kind == DONE:
                    break
        except ChatAPIError as e:
            self.timeline.fail_stream(e.error)
            raise
        except httpx.HTTPError:
            self.timeline.fail_stream(STREAM_FAILED_MESSAGE)
            raise
        finally:
            await stream.aclose()

        if failure is not None:
            return self.timeline.fail_stream(failure)

        if (
            placeholder not in self.timeline.entries
            or self.timeline.stored_copy(placeholder) is not None
        ):
            # Already delivered by a websocket push
            return self.timeline.finish_stream()

        return self.timeline.finish_stream(await self._find_stored_reply(placeholder))

    async def _find_stored_reply(self, placeholder: TimelineEntry) -> dict | None:
        try:
            recent = await self.api.messages_since(
                self.chat_id, self.timeline.last_message_id
            )
        except (ChatAPIError, httpx.HTTPError) as e:
            logger.warning(f"Could not fetch stored AI reply for chat {self.chat_id}: {e!r}")
            return None

        text = placeholder.content.strip()
        for message in reversed(recent):
            if message.get("is_ai") and message.get("content", "").strip() == text:
                return message
        return None


class ChatList:
    """Chats ordered by most recent activity, newest first."""

    def __init__(self, chats: Iterable[dict] = ()):
        self.chats: list[dict] = []
        self.load(chats)

    def load(self, chats: Iterable[dict]) -> None:
        self.chats = sorted(
            (dict(chat) for chat in chats),
            key=lambda chat: chat.get("updated_at") or "",
            reverse=True,
        )

    @property
    def ids(self) -> list[int]:
        return [chat["id"] for chat in self.chats]

    def get(self, chat_id: int) -> dict | None:
        for chat in self.chats:
            if chat["id"] == chat_id:
                return chat
        return None

    def add(self, chat: dict) -> None:
        self.remove(chat["id"])
        self.chats.insert(0, dict(chat))

    def remove(self, chat_id: int) -> None:
        self.chats = [chat for chat in self.chats if chat["id"] != chat_id]

    def handle_event(self, event: dict) -> bool:
        """Apply a chat_updated event: refresh the chat and move it to the top."""
        if event.get("type") != "chat_updated":
            return False

        chat_id = event.get("chat_id")
        chat = self.get(chat_id) or {"id": chat_id}
        for field in ("title", "last_message", "updated_at"):
            if event.get(field) is not None:
                chat[field] = event[field]

        self.remove(chat_id)
        self.chats.insert(0, chat)
        return True
