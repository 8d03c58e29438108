"""
Client-side message timeline for one open chat.

Messages reach a client three ways: the initial REST fetch, websocket
pushes and polling. The timeline merges all of them into one ordered
list without duplicates, and reconciles local entries with the
server's copies:

    - Optimistic entries: the user's own message, shown before the
      server confirms it. Replaced in place by the authoritative copy.
    - Stream placeholder: the AI reply being streamed. Mutated as
      fragments arrive and replaced by the stored copy at the end.

Usage:
    timeline = ChatTimeline(chat_id=12)
    timeline.load(chat["messages"])

    entry = timeline.add_optimistic("hi", sender_id=user_id)
    timeline.apply(server_message)  # replaces ``entry``
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_MATCH_WINDOW = 5.0  # Seconds


@dataclass(eq=False)
class TimelineEntry:
    """
    One message as displayed by a client.

    Attributes:
        content: Message text
        sender_id: Author user id (None for AI messages)
        id: Server id; None until the server has confirmed the message
        is_ai: Authored by the assistant
        pending: Optimistic entry awaiting its server copy
        streaming: AI placeholder still receiving fragments
        failed: Sending or streaming failed
        error: Failure text shown to the user
        created_at: Server timestamp (ISO 8601)
        local_time: Clock reading when a local entry was created
        attachments: Attachment descriptors
    """

    content: str
    sender_id: int | None = None
    id: int | None = None
    is_ai: bool = False
    pending: bool = False
    streaming: bool = False
    failed: bool = False
    error: str | None = None
    created_at: str | None = None
    local_time: float = 0.0
    attachments: list[dict] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> TimelineEntry:
        """Build an entry from a serialized server message."""
        sender = message.get("sender") or {}
        return cls(
            id=message.get("id"),
            content=message.get("content", ""),
            sender_id=sender.get("id") if isinstance(sender, dict) else sender,
            is_ai=bool(message.get("is_ai", False)),
            created_at=message.get("created_at"),
            attachments=list(message.get("attachments") or []),
        )

    @property
    def is_local(self) -> bool:
        return self.id is None


class ChatTimeline:
    """
    Ordered, de-duplicated messages of one chat.

    Attributes:
        chat_id: Chat shown by this timeline
        match_window: Max age in seconds of an optimistic entry that a
            server copy may replace
        entries: Displayed entries in order
    """

    def __init__(
        self,
        chat_id: int,
        match_window: float = DEFAULT_MATCH_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.chat_id = chat_id
        self.match_window = match_window
        self.clock = clock
        self.entries: list[TimelineEntry] = []
        self._ids: set[int] = set()
        self._stream_entry: TimelineEntry | None = None

    # =========================================================================
    # Views
    # =========================================================================

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def contents(self) -> list[str]:
        return [entry.content for entry in self.entries]

    @property
    def pending(self) -> list[TimelineEntry]:
        return [entry for entry in self.entries if entry.pending]

    @property
    def last_message_id(self) -> int | None:
        """Id of the newest confirmed message (cursor for messages_since)."""
        for entry in reversed(self.entries):
            if entry.id is not None:
                return entry.id
        return None

    def has_message(self, message_id: int) -> bool:
        return message_id in self._ids

    # =========================================================================
    # Server messages
    # =========================================================================

    def load(self, messages: Iterable[dict]) -> None:
        """
        Apply a full REST fetch.

        Confirmed entries are rebuilt from ``messages``; local entries the
        fetch does not confirm stay at the end.
        """
        local = [entry for entry in self.entries if entry.is_local]
        self.entries = local
        self._ids = set()

        confirmed: list[TimelineEntry] = []
        for message in messages:
            entry = TimelineEntry.from_message(message)
            if entry.id in self._ids:
                continue
            match = self._find_local_match(entry)
            if match is not None:
                self.entries.remove(match)
            confirmed.append(entry)
            self._ids.add(entry.id)

        self.entries = confirmed + self.entries

    def apply(self, message: dict) -> bool:
        """
        Apply one pushed message.

        Known ids are ignored. A matching local entry is replaced in
        place; otherwise the message is appended.

        Returns:
            True if the timeline changed
        """
        entry = TimelineEntry.from_message(message)
        if entry.id is None:
            logger.warning(f"Ignoring message without id in chat {self.chat_id}")
            return False
        if entry.id in self._ids:
            return False

        match = self._find_local_match(entry)
        if match is not None:
            self.entries[self.entries.index(match)] = entry
            if match is self._stream_entry:
                self._stream_entry = entry
        else:
            self.entries.append(entry)

        self._ids.add(entry.id)
        return True

    def apply_many(self, messages: Iterable[dict]) -> list[TimelineEntry]:
        """
        Apply a poll result.

        Only unseen ids are applied, in the order given.

        Returns:
            The entries that were added or replaced
        """
        applied = []
        for message in messages:
            if self.apply(message):
                applied.append(self.entries_by_id(message["id"]))
        return applied

    def entries_by_id(self, message_id: int) -> TimelineEntry | None:
        for entry in self.entries:
            if entry.id == message_id:
                return entry
        return None

    def _find_local_match(self, confirmed: TimelineEntry) -> TimelineEntry | None:
        """First local entry the server copy stands for, if any."""
        now = self.clock()
        for entry in self.entries:
            if not entry.is_local:
                continue

            if confirmed.is_ai:
                # The stored AI reply is trimmed; the placeholder is not
                if (
                    entry.is_ai
                    and not entry.failed
                    and entry.content.strip() == confirmed.content.strip()
                ):
                    return entry
                continue

            # Content is stored trimmed
            if (
                entry.pending
                and not entry.is_ai
                and entry.sender_id == confirmed.sender_id
                and entry.content.strip() == confirmed.content.strip()
                and now - entry.local_time <= self.match_window
            ):
                return entry
        return None

    # =========================================================================
    # Optimistic sends
    # =========================================================================

    def add_optimistic(self, content: str, sender_id: int) -> TimelineEntry:
        """Show the user's message before the server confirms it."""
        entry = TimelineEntry(
            content=content,
            sender_id=sender_id,
            pending=True,
            local_time=self.clock(),
        )
        self.entries.append(entry)
        return entry

    def mark_failed(self, entry: TimelineEntry, error: str = "Failed to send message") -> None:
        """Keep an unconfirmed entry visible, flagged as failed."""
        entry.pending = False
        entry.failed = True
        entry.error = error

    # =========================================================================
    # Streaming AI reply
    # =========================================================================

    def begin_stream(self) -> TimelineEntry:
        """Add the placeholder that fragments will fill."""
        entry = TimelineEntry(
            content="",
            is_ai=True,
            streaming=True,
            local_time=self.clock(),
        )
        self.entries.append(entry)
        self._stream_entry = entry
        return entry

    def append_fragment(self, text: str) -> None:
        if self._stream_entry is None or not self._stream_entry.streaming:
            logger.warning(f"Fragment without an open stream in chat {self.chat_id}")
            return
        self._stream_entry.content += text

    def finish_stream(self, persisted: dict | None = None) -> TimelineEntry | None:
        """
        Close the placeholder.

        With the stored copy, the placeholder is replaced by it (unless a
        push already did). Without one, the placeholder stays as final
        local text unless a pushed copy of the reply follows it.

        Returns:
            The entry now standing for the reply
        """
        placeholder = self._stream_entry
        self._stream_entry = None
        if placeholder is None:
            return None

        placeholder.streaming = False

        if persisted is None:
            stored = self.stored_copy(placeholder)
            if stored is None:
                return placeholder
            self.entries.remove(placeholder)
            return stored

        confirmed = TimelineEntry.from_message(persisted)
        if confirmed.id in self._ids:
            # Already delivered by a push; drop the placeholder if it is still here
            if placeholder.is_local and placeholder in self.entries:
                self.entries.remove(placeholder)
            return self.entries_by_id(confirmed.id)

        if placeholder in self.entries:
            self.entries[self.entries.index(placeholder)] = confirmed
        else:
            self.entries.append(confirmed)
        self._ids.add(confirmed.id)
        return confirmed

    def stored_copy(self, placeholder: TimelineEntry) -> TimelineEntry | None:
        """
        Confirmed AI entry after ``placeholder`` with the same text.

        Covers a push of the stored reply that arrived before the last
        fragments did.
        """
        if placeholder not in self.entries:
            return None

        text = placeholder.content.strip()
        start = self.entries.index(placeholder) + 1
        for entry in self.entries[start:]:
            if entry.is_ai and not entry.is_local and entry.content.strip() == text:
                return entry
        return None

    def fail_stream(self, error: str) -> TimelineEntry | None:
        """Mark the placeholder as failed, keeping whatever text arrived."""
        placeholder = self._stream_entry
        self._stream_entry = None
        if placeholder is None:
            return None

        placeholder.streaming = False
        placeholder.failed = True
        placeholder.error = error
        if not placeholder.content:
            placeholder.content = error
        return placeholder
