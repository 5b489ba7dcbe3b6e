"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Group management (rosters, moderation sets)
- Message moderation
"""

from django.contrib import admin

from chat.models import Group, Message


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Group model."""

    list_display = [
        "code",
        "name",
        "member_count",
        "join_disabled",
        "is_global",
        "created_at",
    ]
    list_filter = ["join_disabled", "is_global", "created_at"]
    search_fields = ["code", "name"]
    readonly_fields = ["code", "created_at", "updated_at"]
    filter_horizontal = ["members", "admins", "muted", "banned"]
    ordering = ["-created_at"]

    @admin.display(description="Members")
    def member_count(self, obj: Group) -> int:
        return len(obj.recipient_codes())


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "sender",
        "receiver",
        "group",
        "message_type",
        "content_preview",
        "is_deleted",
        "created_at",
    ]
    list_filter = ["message_type", "is_deleted", "created_at"]
    search_fields = ["content", "sender__code", "receiver__code", "group__code"]
    readonly_fields = ["created_at", "updated_at", "deleted_at", "edited_at"]
    raw_id_fields = ["sender", "receiver", "group", "reply_to"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
