"""
Chat application configuration.

This app provides:
- Chats with participants and append-only messages
- REST CRUD and incremental message fetch for polling clients
- WebSocket delivery of new messages, chat updates and typing indicators
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
