"""
Chat system service layer.

This module owns the rules for chats and messages. REST views, the
websocket consumer and the AI bridge all go through it, so validation and
access checks are identical on every transport.

Services:
    ChatService: Chat lifecycle and message append/fetch

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an error code
      from core.services.ERROR_CODE_STATUS
    - "Not found" is checked before "not a participant"
    - Appends and renames lock the chat row and bump version/updated_at in
      the same transaction, so updated_at is strictly increasing per chat
    - Broadcasting is left to the caller, after the transaction commits

Usage:
    from chat.services import ChatService

    result = ChatService.create_chat(user, title="Trip planning")
    if result.success:
        chat = result.data

    result = ChatService.append_message(chat.id, user, "Hello!")
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Count, F, OuterRef, Prefetch, Q, Subquery
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import CHAT_CONFIG, MESSAGE_CONFIG
from chat.models import Chat, Message, MessageAttachment

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import User

# Smallest step that keeps updated_at strictly increasing under a frozen clock
TIMESTAMP_STEP = timedelta(microseconds=1)


class ChatService(BaseService):
    """
    Service for chat and message operations.

    Methods:
        list_chats: Chats the user participates in, most recent first
        get_chat: Chat with its messages in chronological order
        create_chat: Create a chat with the creator as participant
        append_message: Append a user (or AI) message
        append_ai_message: Append an AI message without access checks
        rename_chat: Change the title, optionally checking the version
        delete_chat: Delete the chat and its messages
        messages_since: Messages after a given message id (polling)
    """

    # =========================================================================
    # Lookup helpers
    # =========================================================================

    @classmethod
    def resolve_chat(
        cls,
        chat_id,
        user: User,
        action: str = "access",
        queryset=None,
    ) -> ServiceResult[Chat]:
        """
        Load a chat and check that ``user`` participates in it.

        Error codes:
            NOT_FOUND: No chat with this id
            PERMISSION_DENIED: User is not a participant
        """
        queryset = queryset if queryset is not None else Chat.objects.all()

        try:
            chat = queryset.get(pk=chat_id)
        except (Chat.DoesNotExist, ValueError, TypeError):
            return ServiceResult.failure("Chat not found", error_code="NOT_FOUND")

        if not chat.has_participant(user):
            cls.get_logger().info(
                f"User {getattr(user, 'pk', None)} denied {action} on chat {chat.pk}"
            )
            return ServiceResult.failure(
                f"Not authorized to {action} this chat",
                error_code="PERMISSION_DENIED",
            )

        return ServiceResult.success(chat)

    @staticmethod
    def _message_queryset():
        return Message.objects.select_related("sender").prefetch_related("attachments")

    @classmethod
    def _bump(cls, chat: Chat) -> Chat:
        """
        Advance chat.version and chat.updated_at.

        Must run inside a transaction holding the row lock. updated_at
        becomes max(now, previous + 1µs).
        """
        now = timezone.now()
        previous = chat.updated_at
        updated_at = now if previous is None or now > previous else previous + TIMESTAMP_STEP

        Chat.objects.filter(pk=chat.pk).update(
            updated_at=updated_at,
            version=F("version") + 1,
        )
        chat.refresh_from_db(fields=["updated_at", "version", "title"])
        return chat

    # =========================================================================
    # Read operations
    # =========================================================================

    @classmethod
    def list_chats(cls, user: User) -> ServiceResult[list[Chat]]:
        """
        List the user's chats, most recently updated first.

        Message histories are not loaded; each chat carries a ``num_messages``
        annotation backing Chat.message_count, and its newest message is
        fetched in one query for all chats and attached for
        Chat.last_message.
        """
        newest = (
            Message.objects.filter(chat=OuterRef("pk"))
            .order_by("-created_at", "-id")
            .values("pk")[:1]
        )
        chats = list(
            Chat.objects.filter(participants=user)
            .annotate(
                num_messages=Count("messages", distinct=True),
                last_message_pk=Subquery(newest),
            )
            .prefetch_related("participants")
            .order_by("-updated_at", "-id")
        )

        last_messages = (
            Message.objects.select_related("sender")
            .prefetch_related("attachments")
            .in_bulk([chat.last_message_pk for chat in chats if chat.last_message_pk])
        )
        for chat in chats:
            chat.attach_last_message(last_messages.get(chat.last_message_pk))

        return ServiceResult.success(chats)

    @classmethod
    def get_chat(cls, chat_id, user: User) -> ServiceResult[Chat]:
        """
        Get a chat with participants and messages prefetched.

        Messages are ordered by (created_at, id).

        Error codes:
            NOT_FOUND, PERMISSION_DENIED
        """
        queryset = Chat.objects.annotate(
            num_messages=Count("messages", distinct=True)
        ).prefetch_related(
            "participants",
            Prefetch(
                "messages",
                queryset=cls._message_queryset().order_by("created_at", "id"),
            ),
        )
        return cls.resolve_chat(chat_id, user, queryset=queryset)

    @classmethod
    def messages_since(
        cls,
        chat_id,
        user: User,
        last_message_id=None,
    ) -> ServiceResult[list[Message]]:
        """
        Messages strictly after ``last_message_id`` in chronological order.

        Without an id the whole history is returned. An id that does not
        belong to this chat yields an empty list, so a client with a stale
        or foreign cursor never receives another chat's messages.
        """
        result = cls.resolve_chat(chat_id, user)
        if not result.success:
            return result
        chat = result.data

        messages = cls._message_queryset().filter(chat=chat).order_by("created_at", "id")

        if last_message_id in (None, ""):
            return ServiceResult.success(list(messages))

        try:
            anchor = Message.objects.filter(chat=chat, pk=last_message_id).first()
        except (ValueError, TypeError):
            anchor = None

        if anchor is None:
            return ServiceResult.success([])

        newer = messages.filter(
            Q(created_at__gt=anchor.created_at)
            | Q(created_at=anchor.created_at, id__gt=anchor.id)
        )
        return ServiceResult.success(list(newer))

    # =========================================================================
    # Write operations
    # =========================================================================

    @classmethod
    def create_chat(
        cls,
        user: User,
        title: str | None = None,
        participant_ids: Iterable[int] = (),
    ) -> ServiceResult[Chat]:
        """
        Create a chat.

        The creator is always a participant. A missing or blank title
        becomes "New Conversation".

        Error codes:
            VALIDATION_ERROR: Title too long or unknown participant ids
            INTERNAL_ERROR: Database failure
        """
        title = (title or "").strip() or CHAT_CONFIG.DEFAULT_TITLE
        if len(title) > CHAT_CONFIG.MAX_TITLE_LENGTH:
            return ServiceResult.failure(
                f"Title cannot exceed {CHAT_CONFIG.MAX_TITLE_LENGTH} characters",
                error_code="VALIDATION_ERROR",
            )

        requested_ids = {int(pk) for pk in participant_ids if pk != user.pk}
        User = get_user_model()
        others = list(User.objects.filter(pk__in=requested_ids, is_active=True))
        missing = requested_ids - {other.pk for other in others}
        if missing:
            return ServiceResult.failure(
                "Unknown participant ids",
                error_code="VALIDATION_ERROR",
                errors={"participant_ids": [str(pk) for pk in sorted(missing)]},
            )

        try:
            with cls.atomic():
                chat = Chat.objects.create(title=title)
                chat.participants.add(user, *others)
        except DatabaseError as e:
            return cls.handle_exception(e, "Failed to create chat")

        cls.get_logger().info(
            f"User {user.pk} created chat {chat.pk} with {len(others) + 1} participants"
        )
        return ServiceResult.success(chat)

    @classmethod
    def append_message(
        cls,
        chat_id,
        sender: User | None,
        content: str,
        attachments: Iterable[dict] = (),
        is_ai: bool = False,
    ) -> ServiceResult[Message]:
        """
        Append a message to a chat.

        The message timestamp is assigned here. The chat row is locked while
        the message is written and version/updated_at are advanced.

        Args:
            chat_id: Target chat
            sender: Authoring participant (None for AI messages)
            content: Message text, trimmed before storing
            attachments: Descriptors with filename, path and mimetype
            is_ai: Append as the AI assistant

        Error codes:
            NOT_FOUND, PERMISSION_DENIED
            VALIDATION_ERROR: Blank or non-text content, too many attachments
                or an AI message with a sender
            INTERNAL_ERROR: Database failure
        """
        if is_ai:
            if sender is not None:
                return ServiceResult.failure(
                    "AI messages cannot have a sender",
                    error_code="VALIDATION_ERROR",
                )
            try:
                Chat.objects.only("pk").get(pk=chat_id)
            except (Chat.DoesNotExist, ValueError, TypeError):
                return ServiceResult.failure("Chat not found", error_code="NOT_FOUND")
        else:
            result = cls.resolve_chat(chat_id, sender, action="add messages to")
            if not result.success:
                return result

        if content is not None and not isinstance(content, str):
            return ServiceResult.failure(
                "Message content must be text",
                error_code="VALIDATION_ERROR",
            )

        content = content.strip() if content else ""
        if not content:
            return ServiceResult.failure(
                "Message content is required",
                error_code="VALIDATION_ERROR",
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="VALIDATION_ERROR",
            )

        attachments = list(attachments or [])
        if len(attachments) > MESSAGE_CONFIG.MAX_ATTACHMENTS_PER_MESSAGE:
            return ServiceResult.failure(
                f"A message can have at most "
                f"{MESSAGE_CONFIG.MAX_ATTACHMENTS_PER_MESSAGE} attachments",
                error_code="VALIDATION_ERROR",
            )

        try:
            with cls.atomic():
                chat = Chat.objects.select_for_update().get(pk=chat_id)
                message = Message.objects.create(
                    chat=chat,
                    sender=sender,
                    content=content,
                    is_ai=is_ai,
                )
                MessageAttachment.objects.bulk_create(
                    [
                        MessageAttachment(
                            message=message,
                            filename=attachment.get("filename", ""),
                            path=attachment.get("path", ""),
                            mimetype=attachment.get("mimetype") or "",
                        )
                        for attachment in attachments
                    ]
                )
                cls._bump(chat)
        except Chat.DoesNotExist:
            # Deleted between the access check and the lock
            return ServiceResult.failure("Chat not found", error_code="NOT_FOUND")
        except DatabaseError as e:
            return cls.handle_exception(e, "Failed to add message")

        message = cls._message_queryset().get(pk=message.pk)
        message.chat = chat

        author = "AI" if is_ai else f"user {sender.pk}"
        cls.get_logger().debug(f"Appended message {message.pk} from {author} to chat {chat.pk}")
        return ServiceResult.success(message)

    @classmethod
    def append_ai_message(cls, chat: Chat | int, content: str) -> ServiceResult[Message]:
        """
        Append a message authored by the AI assistant.

        Access was already checked by the caller (the AI bridge validates
        the requesting user against the chat before completing).
        """
        chat_id = chat.pk if isinstance(chat, Chat) else chat
        return cls.append_message(chat_id, None, content, is_ai=True)

    @classmethod
    def rename_chat(
        cls,
        chat_id,
        user: User,
        title: str | None,
        expected_version: int | None = None,
    ) -> ServiceResult[Chat]:
        """
        Rename a chat.

        Args:
            chat_id: Chat to rename
            user: Participant making the change
            title: New title (trimmed, cannot be blank)
            expected_version: When given, the rename only applies if the
                chat is still at this version

        Error codes:
            VALIDATION_ERROR: Blank or too long title
            NOT_FOUND, PERMISSION_DENIED
            CONFLICT: Chat changed since expected_version
            INTERNAL_ERROR: Database failure
        """
        title = title.strip() if title else ""
        if not title:
            return ServiceResult.failure("Title is required", error_code="VALIDATION_ERROR")
        if len(title) > CHAT_CONFIG.MAX_TITLE_LENGTH:
            return ServiceResult.failure(
                f"Title cannot exceed {CHAT_CONFIG.MAX_TITLE_LENGTH} characters",
                error_code="VALIDATION_ERROR",
            )

        result = cls.resolve_chat(chat_id, user, action="update")
        if not result.success:
            return result

        try:
            with cls.atomic():
                chat = Chat.objects.select_for_update().get(pk=chat_id)

                if expected_version is not None and chat.version != expected_version:
                    return ServiceResult.failure(
                        "Chat was modified by someone else",
                        error_code="CONFLICT",
                        errors={"version": [str(chat.version)]},
                    )

                old_title = chat.title
                Chat.objects.filter(pk=chat.pk).update(title=title)
                cls._bump(chat)
        except Chat.DoesNotExist:
            return ServiceResult.failure("Chat not found", error_code="NOT_FOUND")
        except DatabaseError as e:
            return cls.handle_exception(e, "Failed to update chat")

        cls.get_logger().info(
            f"Renamed chat {chat.pk} from '{old_title}' to '{title}' by user {user.pk}"
        )
        return ServiceResult.success(chat)

    @classmethod
    def delete_chat(cls, chat_id, user: User) -> ServiceResult[None]:
        """
        Delete a chat with its messages and attachments.

        Error codes:
            NOT_FOUND, PERMISSION_DENIED
            INTERNAL_ERROR: Database failure
        """
        result = cls.resolve_chat(chat_id, user, action="delete")
        if not result.success:
            return result
        chat = result.data

        try:
            with cls.atomic():
                chat.delete()
        except DatabaseError as e:
            return cls.handle_exception(e, "Failed to delete chat")

        cls.get_logger().info(f"Deleted chat {chat_id} by user {user.pk}")
        return ServiceResult.success(None)

    @classmethod
    def participant_ids(cls, chat: Chat) -> list[int]:
        """Ids of every participant, used to address private rooms."""
        return list(chat.participants.values_list("pk", flat=True))
