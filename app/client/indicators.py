"""
Typing indicators.

TypingDebouncer turns keystrokes into typing on/off events for the
websocket: one "typing" event when input starts, one "stopped" event
after TYPING_IDLE_SECONDS without input or when the message is sent.

TypingIndicator tracks who else is typing in each chat from the
user_typing events the server pushes. Entries expire on their own so a
lost "stopped" event does not leave a stale indicator.

Both take an injectable clock; nothing here sleeps.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)

TYPING_IDLE_SECONDS = 2.0
TYPING_EXPIRY_SECONDS = 5.0


class TypingDebouncer:
    """
    Debounced typing state for the local user.

    Call keystroke() on input, tick() periodically and submit() when the
    message is sent. ``emit`` receives True or False on each transition.
    """

    def __init__(
        self,
        emit: Callable[[bool], None],
        idle_timeout: float = TYPING_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.emit = emit
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.is_typing = False
        self._last_input: float | None = None

    def keystroke(self) -> None:
        self._last_input = self.clock()
        if not self.is_typing:
            self._set(True)

    def tick(self) -> None:
        if not self.is_typing or self._last_input is None:
            return
        if self.clock() - self._last_input >= self.idle_timeout:
            self._set(False)

    def submit(self) -> None:
        if self.is_typing:
            self._set(False)
        self._last_input = None

    def _set(self, is_typing: bool) -> None:
        self.is_typing = is_typing
        self.emit(is_typing)


class TypingIndicator:
    """Other participants currently typing, per chat."""

    def __init__(
        self,
        self_id: int | None = None,
        expiry: float = TYPING_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.self_id = self_id
        self.expiry = expiry
        self.clock = clock
        # chat_id -> user_id -> (username, seen_at)
        self._typing: dict[int, dict[int, tuple[str, float]]] = {}

    def update(self, event: dict) -> bool:
        """
        Apply a user_typing event.

        Returns:
            False if the event was ignored (own events, missing ids)
        """
        chat_id = event.get("chat_id")
        user_id = event.get("user_id")
        if chat_id is None or user_id is None:
            logger.debug(f"Ignoring malformed typing event: {event}")
            return False
        if user_id == self.self_id:
            return False

        typers = self._typing.setdefault(chat_id, {})
        if event.get("is_typing"):
            typers[user_id] = (event.get("username") or "", self.clock())
        else:
            typers.pop(user_id, None)
        return True

    def clear(self, chat_id: int, user_id: int) -> None:
        """Forget a typer, e.g. once their message arrives."""
        self._typing.get(chat_id, {}).pop(user_id, None)

    def typing_users(self, chat_id: int) -> list[str]:
        """Usernames typing in a chat, oldest first, dropping expired ones."""
        typers = self._typing.get(chat_id, {})
        now = self.clock()
        for user_id in [
            uid for uid, (_, seen_at) in typers.items() if now - seen_at >= self.expiry
        ]:
            del typers[user_id]

        return [
            username
            for username, _ in sorted(typers.values(), key=lambda item: item[1])
        ]
