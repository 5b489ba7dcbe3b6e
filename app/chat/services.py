"""
Chat system service layer.

This module provides the business logic for groups and messages.

Services:
    GroupService: Group lifecycle, membership and moderation
    MessageService: Direct and group messages (send, history, edit, delete)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - All multi-row changes run inside cls.atomic()
    - Live delivery is not done here: the realtime fan-out persists through
      MessageService and delivers afterwards, and views push notifications
      through chat.realtime.notify after a successful result

Usage:
    from chat.services import GroupService, MessageService

    result = GroupService.create_group(creator=user, name="Climbing")
    if result.success:
        group = result.data.group

    result = MessageService.send_direct(sender=user, receiver_code="4821", content="Hi!")
    if not result.success:
        print(result.error_code)  # "USER_NOT_FOUND", "EMPTY_CONTENT", ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG
from chat.models import Group, Message, MessageType

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from accounts.models import User

logger = logging.getLogger(__name__)


@dataclass
class GroupCreation:
    """Result of GroupService.create_group."""

    group: Group
    invitations: list[Message] = field(default_factory=list)


@dataclass
class GroupRemoval:
    """Result of a kick or a group deletion: who to tell about it."""

    group_code: str
    group_name: str
    notify: set[str] = field(default_factory=set)
    target: str | None = None


class GroupService(BaseService):
    """
    Service for group operations.

    Methods:
        create_group: Create a group, optionally inviting profiles by DM
        get_group / groups_for: Lookups
        update_settings: Change name, icon or join policy (group admin)
        join / leave: Self-service membership
        kick / set_muted: Moderation (group admin)
        ban / delete_group: Moderation (platform admin)
        ensure_global_group / add_to_global_group: The auto-join room
        recipient_codes: Who receives the group's messages
    """

    @classmethod
    def create_group(
        cls,
        creator: User,
        name: str,
        icon: str = "",
        invite_codes: list[str] | None = None,
    ) -> ServiceResult[GroupCreation]:
        """
        Create a group with the creator as its only admin.

        Invitees are not added to the group; each one receives a direct
        message from the creator containing the group code.

        Error codes:
            VALIDATION_ERROR: Name missing
        """
        validation = cls.validate_required(name=name)
        if validation is not None:
            return validation

        from accounts.models import User

        invitees = list(
            User.objects.filter(code__in=set(invite_codes or []), is_active=True).exclude(
                code=creator.code
            )
        )

        with cls.atomic():
            group = Group.objects.create(name=name.strip(), icon=icon or "")
            group.admins.add(creator)

            invitations = []
            text = GROUP_CONFIG.INVITATION_TEMPLATE.format(
                name=group.name,
                inviter=creator.display_name,
                code=group.code,
            )
            for invitee in invitees:
                invitations.append(
                    Message.objects.create(sender=creator, receiver=invitee, content=text)
                )

        cls.get_logger().info(
            f"{creator.code} created group {group.code} with {len(invitations)} invitations"
        )
        return ServiceResult.success(GroupCreation(group=group, invitations=invitations))

    @classmethod
    def get_group(cls, code: str) -> ServiceResult[Group]:
        try:
            return ServiceResult.success(Group.objects.get(code=code))
        except Group.DoesNotExist:
            return cls._group_not_found(code)

    @classmethod
    def groups_for(cls, user: User) -> QuerySet[Group]:
        """Groups the user belongs to, as member or admin."""
        return user.group_memberships().order_by("created_at")

    @classmethod
    def update_settings(cls, group: Group, actor: User, **changes) -> ServiceResult[Group]:
        """
        Update name, icon or join_disabled.

        Error codes:
            NOT_GROUP_ADMIN: Actor is not an admin of the group
            VALIDATION_ERROR: Name set to an empty value
        """
        if not group.is_admin(actor):
            return cls._not_group_admin()

        updates = {
            k: v for k, v in changes.items() if k in ("name", "icon", "join_disabled")
        }
        if "name" in updates:
            validation = cls.validate_required(name=updates["name"])
            if validation is not None:
                return validation
            updates["name"] = updates["name"].strip()

        if updates:
            for key, value in updates.items():
                setattr(group, key, value)
            group.save(update_fields=[*updates, "updated_at"])
            cls.get_logger().info(
                f"{actor.code} updated group {group.code}: {', '.join(sorted(updates))}"
            )

        return ServiceResult.success(group)

    @classmethod
    def join(cls, group: Group, user: User) -> ServiceResult[Group]:
        """
        Join a group by code.

        Joining a group you already belong to succeeds without changes.

        Error codes:
            JOIN_DISABLED: The group is closed to new members
            BANNED_FROM_GROUP: The user was banned
        """
        if group.is_banned(user):
            return ServiceResult.failure(
                "You are banned from this group",
                error_code="BANNED_FROM_GROUP",
            )
        if group.join_disabled:
            return ServiceResult.failure(
                "Joining this group is disabled",
                error_code="JOIN_DISABLED",
            )
        if group.is_participant(user):
            return ServiceResult.success(group)

        group.members.add(user)

        cls.get_logger().info(f"{user.code} joined group {group.code}")
        return ServiceResult.success(group)

    @classmethod
    def leave(cls, group: Group, user: User) -> ServiceResult[Group]:
        """
        Leave a group, dropping any admin or muted status.

        Error codes:
            NOT_A_MEMBER: The user does not belong to the group
        """
        if not group.is_participant(user):
            return cls._not_a_member()

        with cls.atomic():
            group.members.remove(user)
            group.admins.remove(user)
            group.muted.remove(user)

        cls.get_logger().info(f"{user.code} left group {group.code}")
        return ServiceResult.success(group)

    @classmethod
    def kick(cls, group: Group, actor: User, target_code: str) -> ServiceResult[GroupRemoval]:
        """
        Remove a member from the group.

        Returns:
            GroupRemoval whose `notify` holds the remaining recipients

        Error codes:
            NOT_GROUP_ADMIN: Actor is not an admin of the group
            CANNOT_KICK_ADMIN: Target is a group admin
            NOT_A_MEMBER: Target is not a member
        """
        if not group.is_admin(actor):
            return cls._not_group_admin()
        if group.admins.filter(code=target_code).exists():
            return ServiceResult.failure(
                "Admins cannot be kicked",
                error_code="CANNOT_KICK_ADMIN",
            )

        target = group.members.filter(code=target_code).first()
        if target is None:
            return cls._not_a_member()

        with cls.atomic():
            group.members.remove(target)
            group.muted.remove(target)

        cls.get_logger().info(f"{actor.code} kicked {target_code} from group {group.code}")
        return ServiceResult.success(
            GroupRemoval(
                group_code=group.code,
                group_name=group.name,
                notify=group.recipient_codes(),
                target=target_code,
            )
        )

    @classmethod
    def set_muted(
        cls, group: Group, actor: User, target_code: str, muted: bool = True
    ) -> ServiceResult[Group]:
        """
        Mute or unmute a member.

        Error codes:
            NOT_GROUP_ADMIN: Actor is not an admin of the group
            NOT_A_MEMBER: Target does not belong to the group
        """
        if not group.is_admin(actor):
            return cls._not_group_admin()

        from accounts.models import User

        target = User.objects.filter(code=target_code).first()
        if target is None or not group.is_participant(target):
            return cls._not_a_member()

        if muted:
            group.muted.add(target)
        else:
            group.muted.remove(target)

        cls.get_logger().info(
            f"{actor.code} {'muted' if muted else 'unmuted'} {target_code} in group {group.code}"
        )
        return ServiceResult.success(group)

    @classmethod
    def ban(cls, group: Group, actor: User, target_code: str) -> ServiceResult[GroupRemoval]:
        """
        Ban a profile from a group (platform admin).

        The target is removed from members, admins and muted in the same
        transaction so that a banned profile never appears in them.

        Error codes:
            NOT_AUTHORIZED: Actor is not a platform admin
            USER_NOT_FOUND: Target does not exist
        """
        if not actor.can_administer():
            return cls._not_authorized()

        from accounts.models import User

        target = User.objects.filter(code=target_code).first()
        if target is None:
            return ServiceResult.failure(
                f"User {target_code} not found",
                error_code="USER_NOT_FOUND",
            )

        with cls.atomic():
            group.members.remove(target)
            group.admins.remove(target)
            group.muted.remove(target)
            group.banned.add(target)

        cls.get_logger().info(f"Admin {actor.code} banned {target_code} from group {group.code}")
        return ServiceResult.success(
            GroupRemoval(
                group_code=group.code,
                group_name=group.name,
                notify=group.recipient_codes(),
                target=target_code,
            )
        )

    @classmethod
    def delete_group(cls, actor: User, code: str) -> ServiceResult[GroupRemoval]:
        """
        Delete a group and all of its messages (platform admin).

        Error codes:
            NOT_AUTHORIZED: Actor is not a platform admin
            GROUP_NOT_FOUND: No group with this code
        """
        if not actor.can_administer():
            return cls._not_authorized()

        result = cls.get_group(code)
        if not result.success:
            return result
        group = result.data

        removal = GroupRemoval(
            group_code=group.code,
            group_name=group.name,
            notify=group.recipient_codes(),
        )
        with cls.atomic():
            group.delete()

        cls.get_logger().info(f"Admin {actor.code} deleted group {code}")
        return ServiceResult.success(removal)

    @classmethod
    def ensure_global_group(cls) -> Group:
        """Return the global group, creating it on first use."""
        group = Group.objects.filter(is_global=True).first()
        if group is None:
            group = Group.objects.create(
                name=settings.CHAT_GLOBAL_GROUP_NAME,
                is_global=True,
            )
            cls.get_logger().info(f"Created global group {group.code}")
        return group

    @classmethod
    def add_to_global_group(cls, user: User) -> Group:
        """Add a profile to the global group unless banned from it."""
        group = cls.ensure_global_group()
        if not group.is_banned(user) and not group.is_participant(user):
            group.members.add(user)
        return group

    @classmethod
    def backfill_global_group(cls) -> int:
        """
        Add every profile missing from the global group.

        Returns:
            Number of profiles added
        """
        from accounts.models import User

        group = cls.ensure_global_group()
        missing = list(
            User.objects.filter(is_active=True)
            .exclude(member_groups=group)
            .exclude(admin_groups=group)
            .exclude(banned_from_groups=group)
        )
        if missing:
            group.members.add(*missing)
            cls.get_logger().info(f"Backfilled {len(missing)} profiles into group {group.code}")
        return len(missing)

    @classmethod
    def recipient_codes(cls, group_code: str) -> set[str]:
        """Codes of members and admins; empty for an unknown group."""
        group = Group.objects.filter(code=group_code).first()
        return group.recipient_codes() if group else set()

    # =========================================================================
    # Failure helpers
    # =========================================================================

    @staticmethod
    def _group_not_found(code: str) -> ServiceResult:
        return ServiceResult.failure(
            f"Group {code} not found",
            error_code="GROUP_NOT_FOUND",
        )

    @staticmethod
    def _not_group_admin() -> ServiceResult:
        return ServiceResult.failure(
            "Only group admins can do this",
            error_code="NOT_GROUP_ADMIN",
        )

    @staticmethod
    def _not_a_member() -> ServiceResult:
        return ServiceResult.failure(
            "Not a member of this group",
            error_code="NOT_A_MEMBER",
        )

    @staticmethod
    def _not_authorized() -> ServiceResult:
        return ServiceResult.failure(
            "Platform admin role required",
            error_code="NOT_AUTHORIZED",
        )


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_direct: Persist a direct message
        send_group: Persist a group message (membership and mute enforced)
        get_message: Lookup by id
        conversation: Direct history between two profiles
        group_conversation: Group history
        edit: Change the content of an own message
        delete: Replace an own message with the tombstone
    """

    @classmethod
    def send_direct(
        cls,
        sender: User,
        receiver_code: str,
        content: str,
        message_type: str = MessageType.TEXT,
        file_name: str | None = None,
        caption: str | None = None,
        reply_to: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Persist a direct message.

        Error codes:
            EMPTY_CONTENT: Content is blank
            USER_NOT_FOUND: Receiver does not exist
            REPLY_TARGET_NOT_FOUND: reply_to names no message
        """
        invalid = cls._validate_content(content)
        if invalid is not None:
            return invalid

        from accounts.models import User

        receiver = User.objects.filter(code=receiver_code, is_active=True).first()
        if receiver is None:
            return ServiceResult.failure(
                f"User {receiver_code} not found",
                error_code="USER_NOT_FOUND",
            )

        reply_result = cls._resolve_reply(reply_to)
        if not reply_result.success:
            return reply_result

        message = Message.objects.create(
            sender=sender,
            receiver=receiver,
            content=content,
            message_type=message_type or MessageType.TEXT,
            file_name=file_name or None,
            caption=caption or None,
            reply_to=reply_result.data,
        )

        cls.get_logger().debug(f"Message {message.id}: {sender.code} -> {receiver.code}")
        return ServiceResult.success(message)

    @classmethod
    def send_group(
        cls,
        sender: User,
        group_code: str,
        content: str,
        message_type: str = MessageType.TEXT,
        file_name: str | None = None,
        caption: str | None = None,
        reply_to: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Persist a group message.

        Nothing is written when the group does not exist or the sender may
        not post in it.

        Error codes:
            EMPTY_CONTENT: Content is blank
            GROUP_NOT_FOUND: No group with this code
            NOT_A_MEMBER: Sender is neither member nor admin
            SENDER_MUTED: Sender is muted in the group
            REPLY_TARGET_NOT_FOUND: reply_to names no message
        """
        invalid = cls._validate_content(content)
        if invalid is not None:
            return invalid

        group = Group.objects.filter(code=group_code).first()
        if group is None:
            return GroupService._group_not_found(group_code)
        if not group.is_participant(sender):
            return GroupService._not_a_member()
        if group.is_muted(sender):
            return ServiceResult.failure(
                "You are muted in this group",
                error_code="SENDER_MUTED",
            )

        reply_result = cls._resolve_reply(reply_to)
        if not reply_result.success:
            return reply_result

        message = Message.objects.create(
            sender=sender,
            group=group,
            content=content,
            message_type=message_type or MessageType.TEXT,
            file_name=file_name or None,
            caption=caption or None,
            reply_to=reply_result.data,
        )

        cls.get_logger().debug(f"Message {message.id}: {sender.code} -> group {group.code}")
        return ServiceResult.success(message)

    @classmethod
    def get_message(cls, message_id: int) -> ServiceResult[Message]:
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return ServiceResult.failure(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
            )
        return ServiceResult.success(message)

    @classmethod
    def conversation(cls, user: User, other_code: str) -> QuerySet[Message]:
        """Direct messages between two profiles, oldest first."""
        return (
            Message.objects.filter(
                Q(sender=user, receiver_id=other_code)
                | Q(sender_id=other_code, receiver=user)
            )
            .select_related("reply_to")
            .order_by("created_at", "id")
        )

    @classmethod
    def group_conversation(cls, group: Group, user: User) -> ServiceResult[QuerySet[Message]]:
        """
        Group history, oldest first.

        Error codes:
            NOT_A_MEMBER: User does not belong to the group and is not a
                platform admin
        """
        if not group.is_participant(user) and not user.can_administer():
            return GroupService._not_a_member()

        return ServiceResult.success(
            group.messages.select_related("reply_to").order_by("created_at", "id")
        )

    @classmethod
    def edit(cls, message_id: int, editor: User, content: str) -> ServiceResult[Message]:
        """
        Edit the content of an own message.

        Error codes:
            MESSAGE_NOT_FOUND: No message with this id
            NOT_AUTHOR: Editor did not send the message
            MESSAGE_DELETED: Message was deleted and is immutable
            EMPTY_CONTENT: New content is blank
        """
        result = cls.get_message(message_id)
        if not result.success:
            return result
        message = result.data

        if message.sender_id != editor.pk:
            return cls._not_author()
        if message.is_deleted:
            return ServiceResult.failure(
                "Deleted messages cannot be edited",
                error_code="MESSAGE_DELETED",
            )
        invalid = cls._validate_content(content)
        if invalid is not None:
            return invalid

        message.content = content
        message.edited_at = timezone.now()
        message.save(update_fields=["content", "edited_at", "updated_at"])

        cls.get_logger().info(f"{editor.code} edited message {message.id}")
        return ServiceResult.success(message)

    @classmethod
    def delete(cls, message_id: int, user: User) -> ServiceResult[Message]:
        """
        Delete an own message, leaving the tombstone in its place.

        Error codes:
            MESSAGE_NOT_FOUND: No message with this id
            NOT_AUTHOR: User did not send the message
            ALREADY_DELETED: Message was already deleted
        """
        result = cls.get_message(message_id)
        if not result.success:
            return result
        message = result.data

        if message.sender_id != user.pk:
            return cls._not_author()
        if message.is_deleted:
            return ServiceResult.failure(
                "Message already deleted",
                error_code="ALREADY_DELETED",
            )

        message.soft_delete()

        cls.get_logger().info(f"{user.code} deleted message {message.id}")
        return ServiceResult.success(message)

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _resolve_reply(cls, reply_to: int | None) -> ServiceResult[Message | None]:
        if reply_to is None:
            return ServiceResult.success(None)
        target = Message.objects.filter(id=reply_to).first()
        if target is None:
            return ServiceResult.failure(
                f"Reply target {reply_to} not found",
                error_code="REPLY_TARGET_NOT_FOUND",
            )
        return ServiceResult.success(target)

    @classmethod
    def _validate_content(cls, content: str) -> ServiceResult | None:
        if not content or not content.strip():
            return cls._empty_content()
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="VALIDATION_ERROR",
            )
        return None

    @staticmethod
    def _empty_content() -> ServiceResult:
        return ServiceResult.failure(
            "Message content cannot be empty",
            error_code="EMPTY_CONTENT",
        )

    @staticmethod
    def _not_author() -> ServiceResult:
        return ServiceResult.failure(
            "You can only change your own messages",
            error_code="NOT_AUTHOR",
        )
