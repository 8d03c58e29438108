"""
Constants and configuration for the chat module.

Import example:
    from chat.constants import CHAT_CONFIG, MESSAGE_CONFIG, REALTIME_CONFIG
"""

from typing import Final


# =============================================================================
# Chat Configuration
# =============================================================================


class CHAT_CONFIG:
    """Configuration for chat threads."""

    DEFAULT_TITLE: Final[str] = "New Conversation"
    MAX_TITLE_LENGTH: Final[int] = 200


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_ATTACHMENTS_PER_MESSAGE: Final[int] = 10

    # Sender rendered for AI-authored messages
    AI_SENDER_NAME: Final[str] = "AI"


# =============================================================================
# Real-time Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Configuration for websocket delivery."""

    # Close code for connections without a valid token
    CLOSE_UNAUTHENTICATED: Final[int] = 4001

    CHAT_GROUP_PREFIX: Final[str] = "chat_"
    USER_GROUP_PREFIX: Final[str] = "user_"


def chat_group(chat_id) -> str:
    """Channel layer group for everyone who joined a chat."""
    return f"{REALTIME_CONFIG.CHAT_GROUP_PREFIX}{chat_id}"


def user_group(user_id) -> str:
    """Private channel layer group of a single user."""
    return f"{REALTIME_CONFIG.USER_GROUP_PREFIX}{user_id}"
