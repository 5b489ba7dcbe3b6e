"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct (1:1) messages between two profiles
- Groups with admins, members, a muted set and a banned set

Models:
    Group: Named room identified by a short code
    Message: A direct or group message

Design Decisions:
    - A message belongs to exactly one of receiver / group (check constraint)
    - Admins are kept apart from plain members; the recipients of a group
      message are members plus admins
    - Deleting a message replaces its content with a tombstone and freezes it
    - Deleting a profile or a group removes its messages through cascades
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.model_mixins import ShortCodeMixin, SoftDeleteMixin
from core.models import BaseModel

from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT carries the text itself; every other type carries a file
    reference in `content` with an optional file name and caption.
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    VIDEO = "video", "Video"
    AUDIO = "audio", "Audio"
    DOCUMENT = "document", "Document"
    ARCHIVE = "archive", "Archive"
    OTHER = "other", "Other"


class Group(ShortCodeMixin, BaseModel):
    """
    A group chat.

    Roles:
        admins: Manage settings, kick and mute; never also in members
        members: Plain members
        muted: Members who may read but not send
        banned: Removed by a platform admin; may not rejoin

    Fields:
        code: Public identifier and primary key
        name: Display name
        icon: Opaque icon reference
        join_disabled: Whether joining by code is closed
        is_global: The room every new profile joins automatically
    """

    name = models.CharField(
        max_length=GROUP_CONFIG.MAX_NAME_LENGTH,
        help_text="Group display name",
    )
    icon = models.CharField(
        max_length=GROUP_CONFIG.MAX_ICON_LENGTH,
        blank=True,
        default="",
        help_text="Icon reference (URL or storage key)",
    )

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="member_groups",
        blank=True,
    )
    admins = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="admin_groups",
        blank=True,
    )
    muted = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="muted_in_groups",
        blank=True,
    )
    banned = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="banned_from_groups",
        blank=True,
    )

    join_disabled = models.BooleanField(
        default=False,
        help_text="Whether new members may join by code",
    )
    is_global = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Room every new profile joins automatically",
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["is_global"],
                condition=Q(is_global=True),
                name="unique_global_group",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"

    def is_admin(self, user) -> bool:
        return self.admins.filter(pk=user.pk).exists()

    def is_participant(self, user) -> bool:
        """Whether the user is a member or an admin."""
        return (
            self.members.filter(pk=user.pk).exists()
            or self.admins.filter(pk=user.pk).exists()
        )

    def is_muted(self, user) -> bool:
        return self.muted.filter(pk=user.pk).exists()

    def is_banned(self, user) -> bool:
        return self.banned.filter(pk=user.pk).exists()

    def recipient_codes(self) -> set[str]:
        """Codes of everyone who receives this group's messages."""
        codes = set(self.members.values_list("code", flat=True))
        codes.update(self.admins.values_list("code", flat=True))
        return codes


class Message(SoftDeleteMixin, BaseModel):
    """
    A direct or group message.

    Soft Delete Behavior:
        When deleted the content becomes MESSAGE_CONFIG.TOMBSTONE, file
        metadata is cleared and the message can no longer be edited.

    Fields:
        sender: Profile that sent the message
        receiver: Recipient of a direct message (null for group messages)
        group: Group of a group message (null for direct messages)
        content: Text, or a file reference for non-text types
        message_type: See MessageType
        file_name / caption: Optional file metadata
        reply_to: Message this one replies to (nulled if it disappears)
        edited_at: Last edit time (null if never edited)
    """

    TOMBSTONE = MESSAGE_CONFIG.TOMBSTONE

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="received_messages",
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
    )

    content = models.TextField()
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    file_name = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_FILE_NAME_LENGTH,
        null=True,
        blank=True,
    )
    caption = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_CAPTION_LENGTH,
        null=True,
        blank=True,
    )
    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
    )
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            # Direct conversation history, either direction
            models.Index(
                fields=["sender", "receiver", "created_at"],
                name="chat_msg_direct_idx",
            ),
            models.Index(
                fields=["group", "created_at"],
                name="chat_msg_group_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(receiver__isnull=False, group__isnull=True)
                    | Q(receiver__isnull=True, group__isnull=False)
                ),
                name="message_has_one_destination",
            ),
        ]

    def __str__(self) -> str:
        target = f"group {self.group_id}" if self.group_id else self.receiver_id
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"{self.sender_id} -> {target}: {preview}"

    @property
    def is_direct(self) -> bool:
        return self.group_id is None

    def soft_delete(self) -> None:
        """Replace the content with the tombstone and mark as deleted."""
        self.content = self.TOMBSTONE
        self.file_name = None
        self.caption = None
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(
            update_fields=[
                "content",
                "file_name",
                "caption",
                "is_deleted",
                "deleted_at",
                "updated_at",
            ]
        )
