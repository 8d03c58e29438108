"""
Constants and configuration for the AI bridge.

Import example:
    from ai.constants import COMPLETION_CONFIG, FILE_ANALYSIS_CONFIG, FALLBACKS
"""

from typing import Final


# =============================================================================
# Chat Completion
# =============================================================================


class COMPLETION_CONFIG:
    """Parameters for replies inside a chat."""

    SYSTEM_PROMPT: Final[str] = (
        "You are a helpful assistant that provides concise, accurate information."
    )

    TEMPERATURE: Final[float] = 0.7
    MAX_TOKENS: Final[int] = 500
    STREAM_MAX_TOKENS: Final[int] = 4096


# =============================================================================
# File Analysis
# =============================================================================


class FILE_ANALYSIS_CONFIG:
    """Parameters for one-shot file summaries."""

    SYSTEM_PROMPT: Final[str] = (
        "You are an AI assistant that analyzes files and provides helpful insights."
    )
    PROMPT_TEMPLATE: Final[str] = (
        'Analyze this {file_type} file named "{file_name}". '
        "Provide a concise summary and any key insights:\n\n{content}"
    )

    MAX_CONTENT_LENGTH: Final[int] = 4000  # Characters
    TRUNCATION_MARKER: Final[str] = "... (content truncated)"

    TEMPERATURE: Final[float] = 0.5
    MAX_TOKENS: Final[int] = 500


# =============================================================================
# Fallbacks
# =============================================================================


class FALLBACKS:
    """Text used in place of a completion when the provider fails."""

    REPLY: Final[str] = (
        "I apologize, but I'm having trouble processing your request right now. "
        "Please try again in a moment."
    )
    STREAM_ERROR: Final[str] = (
        "I apologize, but I'm having trouble processing your request right now."
    )
    ANALYSIS: Final[str] = (
        "I apologize, but I'm having trouble analyzing this file right now. "
        "Please try again in a moment."
    )

    WARNING: Final[str] = "Used fallback response due to AI service error"
