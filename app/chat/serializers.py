"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message serializers (read, edit)
- Group serializers (read, create, update, moderation input)

The read serializer for messages is also the payload of the live
new-message / new-group-message / message-updated events, so REST
history and live delivery share one shape.

Design Decisions:
    - Read and write serializers are separate for clarity
    - Profiles and groups are referenced by code
    - Deleted messages already carry the tombstone as content
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG
from chat.models import Group, Message


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Message as seen by clients.

    sender, receiver, group and reply_to render as codes / ids.
    """

    class Meta:
        model = Message
        fields = [
            "id",
            "sender",
            "receiver",
            "group",
            "content",
            "message_type",
            "file_name",
            "caption",
            "reply_to",
            "created_at",
            "edited_at",
            "is_deleted",
        ]
        read_only_fields = fields


class MessageEditSerializer(serializers.Serializer):
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
    )


def serialize_message(message: Message) -> dict:
    """Plain-dict message payload, safe for the channel layer."""
    return dict(MessageSerializer(message).data)


# =============================================================================
# Group Serializers
# =============================================================================


class GroupSerializer(serializers.ModelSerializer):
    """Group with its rosters as code lists."""

    members = serializers.SlugRelatedField(many=True, read_only=True, slug_field="code")
    admins = serializers.SlugRelatedField(many=True, read_only=True, slug_field="code")
    muted = serializers.SlugRelatedField(many=True, read_only=True, slug_field="code")

    class Meta:
        model = Group
        fields = [
            "code",
            "name",
            "icon",
            "members",
            "admins",
            "muted",
            "join_disabled",
            "is_global",
            "created_at",
        ]
        read_only_fields = fields


class GroupAdminSerializer(GroupSerializer):
    """Group view for platform admins (adds the banned set)."""

    banned = serializers.SlugRelatedField(many=True, read_only=True, slug_field="code")

    class Meta(GroupSerializer.Meta):
        fields = [*GroupSerializer.Meta.fields, "banned"]
        read_only_fields = fields


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH)
    icon = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_ICON_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    invite = serializers.ListField(
        child=serializers.CharField(max_length=8),
        required=False,
        default=list,
        help_text="Codes of profiles to invite by direct message",
    )


class GroupUpdateSerializer(serializers.Serializer):
    """All fields optional; only the keys present are changed."""

    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH, required=False)
    icon = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_ICON_LENGTH,
        required=False,
        allow_blank=True,
    )
    join_disabled = serializers.BooleanField(required=False)


class GroupTargetSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=8, help_text="Code of the target profile")


class GroupMuteSerializer(GroupTargetSerializer):
    muted = serializers.BooleanField(default=True)
