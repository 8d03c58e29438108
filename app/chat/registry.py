"""
In-process directory of live websocket connections.

The registry is an explicit object created by chat.routing and handed to
every ChatConsumer through ``as_asgi(registry=...)``. The ASGI lifespan
handler in config.asgi clears it on shutdown.

Structure:
    user_id -> {channel_name -> set of joined chat ids}

A user can hold several connections (tabs, devices); each tracks its own
joined chats.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Thread-safe map of connected users, their channels and joined chats.

    Usage:
        registry = ConnectionRegistry()
        registry.register(user.id, channel_name)
        registry.join(user.id, channel_name, chat_id)
        registry.rooms_for(user.id)  # {chat_id}
        registry.unregister(user.id, channel_name)
    """

    def __init__(self):
        self._connections: dict[int, dict[str, set[int]]] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, channel_name: str) -> None:
        with self._lock:
            self._connections.setdefault(user_id, {}).setdefault(channel_name, set())

    def unregister(self, user_id: int, channel_name: str) -> set[int]:
        """
        Remove a connection.

        Returns:
            The chat ids the connection had joined
        """
        with self._lock:
            channels = self._connections.get(user_id)
            if not channels:
                return set()
            rooms = channels.pop(channel_name, set())
            if not channels:
                del self._connections[user_id]
            return rooms

    def join(self, user_id: int, channel_name: str, chat_id: int) -> None:
        with self._lock:
            channels = self._connections.setdefault(user_id, {})
            channels.setdefault(channel_name, set()).add(chat_id)

    def leave(self, user_id: int, channel_name: str, chat_id: int) -> None:
        with self._lock:
            rooms = self._connections.get(user_id, {}).get(channel_name)
            if rooms is not None:
                rooms.discard(chat_id)

    def rooms_for(self, user_id: int, channel_name: str | None = None) -> set[int]:
        """Chats joined by one connection, or by all of the user's connections."""
        with self._lock:
            channels = self._connections.get(user_id, {})
            if channel_name is not None:
                return set(channels.get(channel_name, set()))
            rooms: set[int] = set()
            for joined in channels.values():
                rooms |= joined
            return rooms

    def has_joined(self, user_id: int, channel_name: str, chat_id: int) -> bool:
        with self._lock:
            return chat_id in self._connections.get(user_id, {}).get(channel_name, set())

    def is_connected(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def connection_count(self, user_id: int | None = None) -> int:
        """Open connections of one user, or of everyone."""
        with self._lock:
            if user_id is not None:
                return len(self._connections.get(user_id, {}))
            return sum(len(channels) for channels in self._connections.values())

    def clear(self) -> None:
        with self._lock:
            count = sum(len(channels) for channels in self._connections.values())
            self._connections.clear()
        logger.info(f"Connection registry cleared ({count} connections)")
