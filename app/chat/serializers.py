"""
Serializers for chat API.

Serializer Hierarchy:
    ParticipantSerializer: Public identity of a chat member or sender
    MessageAttachmentSerializer: File descriptor (read and write)
    MessageSerializer: Message with resolved sender and attachments
    ChatSerializer: Chat summary for lists (no messages)
    ChatDetailSerializer: Chat with messages in chronological order

    ChatCreateSerializer: POST /api/chat
    ChatUpdateSerializer: PATCH /api/chat/<id>
    MessageCreateSerializer: POST /api/chat/<id>/messages
    MessagesSinceSerializer: GET /api/chat/<id>/messages query

Design Decisions:
    - Read and write serializers are separate
    - Blank titles and contents pass input validation so the service can
      answer with its own error message
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.models import User
from chat.constants import CHAT_CONFIG, MESSAGE_CONFIG
from chat.models import Chat, Message, MessageAttachment


# =============================================================================
# Read Serializers
# =============================================================================


class ParticipantSerializer(serializers.ModelSerializer):
    """Identity shown for participants and message senders."""

    class Meta:
        model = User
        fields = ["id", "username", "email", "avatar"]
        read_only_fields = fields


class MessageAttachmentSerializer(serializers.ModelSerializer):
    """Attachment descriptor as returned by POST /api/upload."""

    mimetype = serializers.CharField(max_length=100, required=False, allow_blank=True)

    class Meta:
        model = MessageAttachment
        fields = ["filename", "path", "mimetype"]


class MessageSerializer(serializers.ModelSerializer):
    """
    Message with resolved sender.

    AI messages render the sender as {"id": null, "username": "AI"}.
    """

    chat_id = serializers.IntegerField(read_only=True)
    sender = serializers.SerializerMethodField()
    attachments = MessageAttachmentSerializer(many=True, read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "chat_id",
            "sender",
            "content",
            "is_ai",
            "attachments",
            "created_at",
        ]
        read_only_fields = fields

    def get_sender(self, obj: Message) -> dict | None:
        if obj.is_ai:
            return {"id": None, "username": MESSAGE_CONFIG.AI_SENDER_NAME}
        if obj.sender is None:
            return None
        return ParticipantSerializer(obj.sender).data


class ChatSerializer(serializers.ModelSerializer):
    """Chat summary used by list, create and rename responses."""

    participants = ParticipantSerializer(many=True, read_only=True)
    message_count = serializers.IntegerField(read_only=True)
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = [
            "id",
            "title",
            "participants",
            "version",
            "message_count",
            "last_message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_last_message(self, obj: Chat) -> dict | None:
        message = obj.last_message
        return MessageSerializer(message).data if message else None


class ChatDetailSerializer(ChatSerializer):
    """Chat with its full message history."""

    messages = MessageSerializer(many=True, read_only=True)

    class Meta(ChatSerializer.Meta):
        fields = ChatSerializer.Meta.fields + ["messages"]
        read_only_fields = fields


# =============================================================================
# Write Serializers
# =============================================================================


class ChatCreateSerializer(serializers.Serializer):
    """Input for creating a chat."""

    title = serializers.CharField(
        max_length=CHAT_CONFIG.MAX_TITLE_LENGTH,
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text='Chat title (defaults to "New Conversation")',
    )
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
        help_text="Other users to add; the creator is always a participant",
    )


class ChatUpdateSerializer(serializers.Serializer):
    """Input for renaming a chat."""

    title = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="New title",
    )
    expected_version = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=0,
        help_text="Only rename if the chat is still at this version",
    )


class MessageCreateSerializer(serializers.Serializer):
    """Input for appending a message."""

    content = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        help_text="Message text",
    )
    attachments = MessageAttachmentSerializer(many=True, required=False, default=list)


class MessagesSinceSerializer(serializers.Serializer):
    """Query parameters for incremental message fetch."""

    lastMessageId = serializers.IntegerField(required=False, allow_null=True)
