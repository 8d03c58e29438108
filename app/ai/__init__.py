"""
AI app: the completion bridge between chats and an LLM provider.

This app handles:
- Provider abstraction over OpenAI-compatible APIs (DeepSeek, OpenAI)
- Blocking replies stored as AI messages, with a fallback on failure
- Server-sent-event streaming of replies
- File analysis

The app has no models; replies are stored through chat.services.

Usage:
    from ai.services import ChatCompletionService

    result = ChatCompletionService.reply(chat_id, user, "What did we decide?")
"""
