"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat management
- Message moderation with attachments inline
"""

from django.contrib import admin

from chat.models import Chat, Message, MessageAttachment


class MessageAttachmentInline(admin.TabularInline):
    """Inline display of attachments in message admin."""

    model = MessageAttachment
    extra = 0


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    """Admin interface for Chat model."""

    list_display = [
        "id",
        "title",
        "version",
        "created_at",
        "updated_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["title", "id"]
    readonly_fields = ["created_at", "updated_at", "version"]
    filter_horizontal = ["participants"]
    ordering = ["-updated_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "chat",
        "sender",
        "is_ai",
        "content_preview",
        "created_at",
    ]
    list_filter = ["is_ai", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["chat", "sender"]
    inlines = [MessageAttachmentInline]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
