"""
Chat app for real-time messaging.

This app handles:
- Chats (conversation threads) and their participants
- Message append and history, for people and the AI assistant
- WebSocket real-time updates and typing indicators

Related apps:
    - authentication: User model for participants
    - ai: AI replies appended through ChatService.append_ai_message
    - uploads: Storage for message attachments

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ChatService

    result = ChatService.create_chat(user, title="Trip planning")
    chat = result.data

    result = ChatService.append_message(chat.id, user, "Hello!")
"""
