"""
AI completion bridge for chats.

This module provides ChatCompletionService for:
- Context assembly from a chat's recent history
- Blocking replies bounded by a wall-clock timeout
- Server-sent-event streaming of replies
- One-shot file analysis

Every path degrades instead of failing: when the provider errors or
times out, a fixed fallback text takes the place of the completion.

Related files:
    - providers/: Provider implementations
    - constants.py: Prompts, parameters and fallback texts
    - views.py: REST and SSE endpoints

Configuration:
    - AI_PROVIDER: Provider type (default "deepseek")
    - AI_TIMEOUT_SECONDS: Bound on blocking completions (default 30)
    - AI_CONTEXT_WINDOW: Stored messages sent as context (default 10)

Usage:
    from ai.services import ChatCompletionService

    # Blocking
    result = ChatCompletionService.reply(chat_id, user, "Summarize this chat")
    if result:
        message = result.data.message

    # Streaming (inside an async view or generator)
    prepared = ChatCompletionService.prepare(chat_id, user, "Hi")
    chat, context = prepared.data
    async for event in ChatCompletionService.stream_reply(chat, context):
        ...
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncGenerator

from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings

from chat.broadcast import broadcast_new_message
from chat.services import ChatService
from core.services import BaseService, ServiceResult

from .constants import COMPLETION_CONFIG, FALLBACKS, FILE_ANALYSIS_CONFIG
from .providers import BaseProvider, ProviderError, get_provider

if TYPE_CHECKING:
    from authentication.models import User
    from chat.models import Chat, Message

__all__ = [
    "AnalysisOutcome",
    "ChatCompletionService",
    "ProviderError",
    "ReplyOutcome",
    "SSE_DONE",
    "sse_event",
]

SSE_DONE = "data: [DONE]\n\n"


def sse_event(payload: dict) -> str:
    """Format a JSON payload as one server-sent event."""
    return f"data: {json.dumps(payload)}\n\n"


@dataclass
class ReplyOutcome:
    """Result of a blocking reply: the stored AI message."""

    message: Message
    used_fallback: bool = False


@dataclass
class AnalysisOutcome:
    """Result of a file analysis."""

    file_name: str
    file_type: str
    analysis: str
    used_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "fileName": self.file_name,
            "fileType": self.file_type,
            "analysis": self.analysis,
        }


class ChatCompletionService(BaseService):
    """
    Completions for chats and files.

    Methods:
        build_context: Chat history to provider messages
        prepare: Validate a request and build its context
        reply: Blocking reply, persisted as an AI message
        stream_reply: SSE stream, persisted once at the end
        analyze_file: Summary of a file's text
    """

    # =========================================================================
    # Context
    # =========================================================================

    @classmethod
    def build_context(cls, chat: Chat, message: str) -> list[dict]:
        """
        Assemble provider messages for a new user message.

        The last AI_CONTEXT_WINDOW stored messages go in chronological
        order between the system instruction and the new message.
        """
        window = settings.AI_CONTEXT_WINDOW
        recent = list(chat.messages.order_by("-created_at", "-id")[:window])
        recent.reverse()

        context = [{"role": "system", "content": COMPLETION_CONFIG.SYSTEM_PROMPT}]
        context.extend(
            {"role": "assistant" if stored.is_ai else "user", "content": stored.content}
            for stored in recent
        )
        context.append({"role": "user", "content": message})
        return context

    @classmethod
    def prepare(
        cls,
        chat_id,
        user: User,
        message: str | None,
    ) -> ServiceResult[tuple[Chat, list[dict]]]:
        """
        Validate a reply request and build its context.

        Error codes:
            VALIDATION_ERROR: Missing chat id or message
            NOT_FOUND, PERMISSION_DENIED: From ChatService.resolve_chat
        """
        validation = cls.validate_required(
            "Message and chat ID are required",
            chatId=chat_id,
            message=message,
        )
        if validation:
            return validation

        result = ChatService.resolve_chat(chat_id, user)
        if not result.success:
            return result

        chat = result.data
        return ServiceResult.success((chat, cls.build_context(chat, message)))

    # =========================================================================
    # Completion
    # =========================================================================

    @classmethod
    async def _complete(
        cls,
        messages: list[dict],
        provider: BaseProvider | None,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        One provider call bounded by AI_TIMEOUT_SECONDS.

        Raises:
            ProviderError: Upstream failure or empty completion
            asyncio.TimeoutError: The bound elapsed
        """
        provider = provider or get_provider()
        response = await asyncio.wait_for(
            provider.complete(messages, temperature=temperature, max_tokens=max_tokens),
            timeout=settings.AI_TIMEOUT_SECONDS,
        )

        content = (response.get("content") or "").strip()
        if not content:
            raise ProviderError("Provider returned an empty completion")
        return content

    @classmethod
    def reply(
        cls,
        chat_id,
        user: User,
        message: str | None,
        provider: BaseProvider | None = None,
    ) -> ServiceResult[ReplyOutcome]:
        """
        Produce and store an AI reply.

        The conversation always gains a message: on timeout or provider
        failure the fallback text is stored instead and the outcome is
        flagged with used_fallback.

        Error codes:
            VALIDATION_ERROR, NOT_FOUND, PERMISSION_DENIED: From prepare()
            INTERNAL_ERROR: The AI message could not be stored
        """
        prepared = cls.prepare(chat_id, user, message)
        if not prepared.success:
            return prepared

        chat, context = prepared.data
        used_fallback = False

        try:
            content = async_to_sync(cls._complete)(
                context,
                provider,
                COMPLETION_CONFIG.TEMPERATURE,
                COMPLETION_CONFIG.MAX_TOKENS,
            )
        except asyncio.TimeoutError:
            cls.get_logger().warning(
                f"AI reply for chat {chat.pk} timed out after "
                f"{settings.AI_TIMEOUT_SECONDS}s; using fallback"
            )
            content = FALLBACKS.REPLY
            used_fallback = True
        except ProviderError as e:
            cls.get_logger().warning(f"AI reply for chat {chat.pk} failed ({e}); using fallback")
            content = FALLBACKS.REPLY
            used_fallback = True

        result = ChatService.append_ai_message(chat, content)
        if not result.success:
            return result

        return ServiceResult.success(ReplyOutcome(result.data, used_fallback))

    @classmethod
    async def stream_reply(
        cls,
        chat: Chat,
        context: list[dict],
        provider: BaseProvider | None = None,
    ) -> AsyncGenerator[str, None]:
        """
        Relay a streamed completion as server-sent events.

        Yields:
            data: {"content": <fragment>} per fragment, then data: [DONE].
            On provider failure a single data: {"error": ...} precedes
            [DONE] and nothing is stored.

        The accumulated text is stored once, after the provider finishes.
        If the consumer closes the generator early (client disconnect)
        relaying stops and nothing is stored.
        """
        provider = provider or get_provider()
        fragments: list[str] = []
        stream = provider.stream_complete(
            context,
            temperature=COMPLETION_CONFIG.TEMPERATURE,
            max_tokens=COMPLETION_CONFIG.STREAM_MAX_TOKENS,
        )

        try:
            async for fragment in stream:
                if not fragment:
                    continue
                fragments.append(fragment)
                yield sse_event({"content": fragment})
        except ProviderError as e:
            cls.get_logger().warning(f"AI stream for chat {chat.pk} failed: {e}")
            yield sse_event({"error": FALLBACKS.STREAM_ERROR})
            yield SSE_DONE
            return
        except (asyncio.CancelledError, GeneratorExit):
            cls.get_logger().info(
                f"AI stream for chat {chat.pk} closed by client after "
                f"{len(fragments)} fragments; nothing stored"
            )
            raise
        finally:
            await stream.aclose()

        content = "".join(fragments)
        if content.strip():
            await sync_to_async(cls._store_streamed_reply)(chat, content)

        yield SSE_DONE

    @classmethod
    def _store_streamed_reply(cls, chat: Chat, content: str) -> Message | None:
        result = ChatService.append_ai_message(chat, content)
        if not result.success:
            # ChatService already logged the failure
            return None

        message = result.data
        broadcast_new_message(message.chat, message)
        return message

    # =========================================================================
    # File analysis
    # =========================================================================

    @classmethod
    def analyze_file(
        cls,
        file_content: str | None,
        file_name: str = "",
        file_type: str = "",
        provider: BaseProvider | None = None,
    ) -> ServiceResult[AnalysisOutcome]:
        """
        Summarize a file's text.

        Content longer than FILE_ANALYSIS_CONFIG.MAX_CONTENT_LENGTH is cut
        and marked as truncated. Provider failures produce the fallback
        analysis with used_fallback set.

        Error codes:
            VALIDATION_ERROR: No file content
        """
        if not file_content:
            return ServiceResult.failure(
                "File content is required",
                error_code="VALIDATION_ERROR",
                errors={"fileContent": ["This field is required."]},
            )

        limit = FILE_ANALYSIS_CONFIG.MAX_CONTENT_LENGTH
        if len(file_content) > limit:
            file_content = file_content[:limit] + FILE_ANALYSIS_CONFIG.TRUNCATION_MARKER

        prompt = FILE_ANALYSIS_CONFIG.PROMPT_TEMPLATE.format(
            file_type=file_type,
            file_name=file_name,
            content=file_content,
        )
        messages = [
            {"role": "system", "content": FILE_ANALYSIS_CONFIG.SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            analysis = async_to_sync(cls._complete)(
                messages,
                provider,
                FILE_ANALYSIS_CONFIG.TEMPERATURE,
                FILE_ANALYSIS_CONFIG.MAX_TOKENS,
            )
            used_fallback = False
        except (ProviderError, asyncio.TimeoutError) as e:
            cls.get_logger().warning(
                f"File analysis of {file_name!r} failed ({e!r}); using fallback"
            )
            analysis = FALLBACKS.ANALYSIS
            used_fallback = True

        return ServiceResult.success(
            AnalysisOutcome(file_name, file_type, analysis, used_fallback)
        )
