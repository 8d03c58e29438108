"""
Client-side reconciliation for the chat service.

Framework-free helpers a Python client (or a test harness) uses to keep
its view of a chat consistent across REST fetches, websocket pushes,
polling and streamed AI replies.
"""

from .api import ChatAPIClient, ChatAPIError
from .indicators import TypingDebouncer, TypingIndicator
from .poller import ChatPoller
from .session import ChatList, ChatSession
from .sse import StreamEvent, parse_sse
from .timeline import ChatTimeline, TimelineEntry

__all__ = [
    "ChatAPIClient",
    "ChatAPIError",
    "ChatList",
    "ChatPoller",
    "ChatSession",
    "ChatTimeline",
    "StreamEvent",
    "TimelineEntry",
    "TypingDebouncer",
    "TypingIndicator",
    "parse_sse",
]
