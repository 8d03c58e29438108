"""
WebSocket consumer for real-time chat delivery.

One connection per client serves every chat the user has open. The
connection joins its private group on connect and chat groups on demand.

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"]. Anonymous
    connections are closed with code 4001 before the handshake completes.

Channel Groups:
    user_<id>: Private room, receives chat_updated for every chat
    chat_<id>: Joined chats, receive new_message and user_typing

Event Types (from client):
    - join_chat {chat_id}
    - leave_chat {chat_id}
    - send_message {chat_id, content, attachments?}
    - typing {chat_id, is_typing}

Event Types (to client):
    - joined_chat {chat_id}
    - left_chat {chat_id}
    - new_message {chat_id, message}
    - chat_updated {chat_id, title, last_message, updated_at}
    - user_typing {chat_id, user_id, username, is_typing}
    - error {message}
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from core.services import ServiceResult

from chat.broadcast import USER_TYPING_EVENT, message_events, send_events
from chat.constants import REALTIME_CONFIG, chat_group, user_group
from chat.registry import ConnectionRegistry
from chat.serializers import MessageAttachmentSerializer
from chat.services import ChatService

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for chats.

    Attributes:
        registry: Shared ConnectionRegistry (passed via as_asgi)
        user: Authenticated user (after connect)
    """

    def __init__(self, *args, registry: ConnectionRegistry | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.user = None

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self):
        user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated websocket connection")
            await self.close(code=REALTIME_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        self.user = user
        await self.channel_layer.group_add(user_group(user.id), self.channel_name)
        self.registry.register(user.id, self.channel_name)

        # Browsers require the chosen subprotocol to be echoed back
        subprotocols = self.scope.get("subprotocols") or []
        await self.accept(subprotocol="jwt" if subprotocols[:1] == ["jwt"] else None)

        logger.info(f"User {user.id} connected ({self.channel_name})")

    async def disconnect(self, close_code):
        if self.user is None:
            return

        rooms = self.registry.unregister(self.user.id, self.channel_name)
        for chat_id in rooms:
            await self.channel_layer.group_discard(chat_group(chat_id), self.channel_name)
        await self.channel_layer.group_discard(user_group(self.user.id), self.channel_name)

        logger.info(
            f"User {self.user.id} disconnected with code {close_code} "
            f"(left {len(rooms)} chats)"
        )

    # =========================================================================
    # Client events
    # =========================================================================

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self.send_error("Invalid event payload")
            return

        event_type = content.get("type")
        handlers = {
            "join_chat": self.handle_join_chat,
            "leave_chat": self.handle_leave_chat,
            "send_message": self.handle_send_message,
            "typing": self.handle_typing,
        }

        handler = handlers.get(event_type)
        if handler is None:
            await self.send_error(f"Unknown event type: {event_type}")
            return

        chat_id = self._chat_id(content)
        if chat_id is None:
            await self.send_error("Chat ID is required")
            return

        await handler(chat_id, content)

    async def handle_join_chat(self, chat_id: int, content: dict):
        result = await database_sync_to_async(ChatService.resolve_chat)(
            chat_id, self.user, action="join"
        )
        if not result.success:
            await self.send_error(result.error)
            return

        await self.channel_layer.group_add(chat_group(chat_id), self.channel_name)
        self.registry.join(self.user.id, self.channel_name, chat_id)

        logger.info(f"User {self.user.id} joined chat {chat_id}")
        await self.send_json({"type": "joined_chat", "chat_id": chat_id})

    async def handle_leave_chat(self, chat_id: int, content: dict):
        await self.channel_layer.group_discard(chat_group(chat_id), self.channel_name)
        self.registry.leave(self.user.id, self.channel_name, chat_id)

        logger.info(f"User {self.user.id} left chat {chat_id}")
        await self.send_json({"type": "left_chat", "chat_id": chat_id})

    async def handle_send_message(self, chat_id: int, content: dict):
        result, events = await self._append_message(
            chat_id,
            content.get("content") or "",
            content.get("attachments") or [],
        )
        if not result.success:
            await self.send_error(result.error)
            return

        await send_events(events)

    async def handle_typing(self, chat_id: int, content: dict):
        if not self.registry.has_joined(self.user.id, self.channel_name, chat_id):
            await self.send_error("Join the chat before sending typing events")
            return

        await self.channel_layer.group_send(
            chat_group(chat_id),
            {
                "type": USER_TYPING_EVENT,
                "chat_id": chat_id,
                "user_id": self.user.id,
                "username": self.user.username,
                "is_typing": bool(content.get("is_typing", False)),
                "sender_channel": self.channel_name,
            },
        )

    # =========================================================================
    # Channel layer events
    # =========================================================================

    async def chat_new_message(self, event):
        await self.send_json(
            {
                "type": "new_message",
                "chat_id": event["chat_id"],
                "message": event["message"],
            }
        )

    async def chat_updated(self, event):
        await self.send_json(
            {
                "type": "chat_updated",
                "chat_id": event["chat_id"],
                "title": event.get("title"),
                "last_message": event.get("last_message"),
                "updated_at": event.get("updated_at"),
            }
        )

    async def chat_user_typing(self, event):
        # Not echoed to the connection that is typing
        if event.get("sender_channel") == self.channel_name:
            return

        await self.send_json(
            {
                "type": "user_typing",
                "chat_id": event["chat_id"],
                "user_id": event["user_id"],
                "username": event["username"],
                "is_typing": event["is_typing"],
            }
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})

    @staticmethod
    def _chat_id(content: dict) -> int | None:
        try:
            return int(content.get("chat_id"))
        except (TypeError, ValueError):
            return None

    @database_sync_to_async
    def _append_message(self, chat_id: int, text: str, attachments):
        """
        Append through ChatService and build the broadcast events.

        Returns:
            (ServiceResult, events); events is empty on failure
        """
        serializer = MessageAttachmentSerializer(data=attachments, many=True)
        if not serializer.is_valid():
            return ServiceResult.failure("Invalid attachments", "VALIDATION_ERROR"), []

        result = ChatService.append_message(
            chat_id,
            self.user,
            text,
            attachments=serializer.validated_data,
        )
        if not result.success:
            return result, []

        message = result.data
        return result, message_events(message.chat, message)
