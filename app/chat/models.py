"""
Chat system models.

Models:
    Chat: Conversation thread between participants (and the AI assistant)
    Message: Individual message within a chat, authored by a user or the AI
    MessageAttachment: File descriptor attached to a message

Design Decisions:
    - Messages are append-only; there is no edit or soft delete
    - Chronological order is (created_at, id) so equal timestamps stay stable
    - Chat.version and Chat.updated_at are bumped together on every append or
      rename, through QuerySet.update() so the service controls the value
    - message_count is always computed from the messages table, never cached
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from core.models import BaseModel

from chat.constants import CHAT_CONFIG


class Chat(BaseModel):
    """
    A conversation thread.

    Fields:
        title: Display title, stored trimmed
        participants: Users allowed to read and write this chat
        version: Incremented on every append or rename; used for
            optimistic concurrency on rename

    Relationships:
        messages: All Message records for this chat
    """

    title = models.CharField(
        max_length=CHAT_CONFIG.MAX_TITLE_LENGTH,
        default=CHAT_CONFIG.DEFAULT_TITLE,
        help_text="Chat title",
    )

    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="chats",
        help_text="Users who can access this chat",
    )

    version = models.PositiveIntegerField(
        default=0,
        help_text="Incremented on every append or rename",
    )

    class Meta:
        db_table = "chat_chat"
        ordering = ["-updated_at", "-id"]
        indexes = [
            models.Index(fields=["-updated_at"], name="chat_chat_updated_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.pk})"

    def save(self, *args, **kwargs):
        if self.title:
            self.title = self.title.strip()
        super().save(*args, **kwargs)

    @property
    def message_count(self) -> int:
        """
        Number of persisted messages.

        Uses the ``num_messages`` annotation when the queryset provides it.
        """
        annotated = getattr(self, "num_messages", None)
        if annotated is not None:
            return annotated
        return self.messages.count()

    @property
    def last_message(self) -> Message | None:
        """
        Most recent message, or None for an empty chat.

        Uses the message set by attach_last_message() when there is one.
        """
        if hasattr(self, "_last_message"):
            return self._last_message
        return (
            self.messages.select_related("sender")
            .prefetch_related("attachments")
            .order_by("-created_at", "-id")
            .first()
        )

    def attach_last_message(self, message: Message | None) -> None:
        """Cache the newest message loaded in bulk by a list query."""
        self._last_message = message

    def has_participant(self, user) -> bool:
        """Check whether the user is a participant of this chat."""
        if user is None or not getattr(user, "is_authenticated", False):
            return False
        return self.participants.filter(pk=user.pk).exists()


class Message(BaseModel):
    """
    A message within a chat.

    AI messages have no sender; every other message is authored by a
    participant of the chat.

    Fields:
        chat: Parent chat (messages are deleted with it)
        sender: Authoring user, null for AI messages
        content: Message text, never blank
        is_ai: Whether the AI assistant authored the message
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Chat this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="chat_messages",
        help_text="User who sent this message (null for AI messages)",
    )

    content = models.TextField(
        help_text="Message text",
    )

    is_ai = models.BooleanField(
        default=False,
        help_text="Whether the AI assistant authored this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["chat", "created_at", "id"],
                name="chat_msg_chat_created_idx",
            ),
        ]

    def __str__(self) -> str:
        author = "AI" if self.is_ai else f"user {self.sender_id}"
        preview = self.content[:50]
        return f"Message {self.pk} from {author}: {preview}"

    def clean(self):
        """
        Enforce authorship rules.

        Raises:
            ValidationError: Blank content, an AI message with a sender, or a
                user message whose sender is not a chat participant
        """
        super().clean()

        if not (self.content or "").strip():
            raise ValidationError({"content": "Message content is required"})

        if self.is_ai:
            if self.sender_id is not None:
                raise ValidationError({"sender": "AI messages cannot have a sender"})
            return

        if self.sender_id is None:
            raise ValidationError({"sender": "User messages require a sender"})

        if not self.chat.participants.filter(pk=self.sender_id).exists():
            raise ValidationError(
                {"sender": "Sender must be a participant of the chat"}
            )


class MessageAttachment(models.Model):
    """
    File descriptor attached to a message.

    The file itself lives in the uploads storage; ``path`` is the public
    URL returned by POST /api/upload.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="attachments",
        help_text="Message this attachment belongs to",
    )

    filename = models.CharField(
        max_length=255,
        help_text="Original file name",
    )

    path = models.CharField(
        max_length=500,
        help_text="Public URL of the stored file",
    )

    mimetype = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="MIME type of the file",
    )

    class Meta:
        db_table = "chat_message_attachment"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.filename} ({self.mimetype or 'unknown'})"
