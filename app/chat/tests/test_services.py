"""
Tests for GroupService and MessageService.
"""

import pytest

from accounts.tests.factories import UserFactory
from chat.constants import MESSAGE_CONFIG
from chat.models import Group, Message, MessageType
from chat.services import GroupService, MessageService
from chat.tests.factories import DirectMessageFactory, GroupFactory, GroupMessageFactory

pytestmark = pytest.mark.django_db


# =============================================================================
# GroupService
# =============================================================================


class TestCreateGroup:
    def test_creator_becomes_only_admin(self, alice):
        result = GroupService.create_group(creator=alice, name="  Climbing  ")

        assert result.success
        group = result.data.group
        assert group.name == "Climbing"
        assert list(group.admins.all()) == [alice]
        assert group.members.count() == 0
        assert group.code.isdigit()

    def test_invitees_get_direct_message_not_membership(self, alice, bob, carol):
        result = GroupService.create_group(
            creator=alice,
            name="Climbing",
            invite_codes=[bob.code, carol.code, alice.code, "0000000"],
        )

        group = result.data.group
        invitations = result.data.invitations
        assert {m.receiver_id for m in invitations} == {bob.code, carol.code}
        assert all(group.code in m.content and m.sender_id == alice.code for m in invitations)
        assert not group.is_participant(bob)

    def test_name_required(self, alice):
        result = GroupService.create_group(creator=alice, name="")

        assert not result.success
        assert result.error_code == "VALIDATION_ERROR"
        assert not Group.objects.exists()


class TestUpdateSettings:
    def test_admin_updates_settings(self, group, alice):
        result = GroupService.update_settings(group, alice, name="Bouldering", join_disabled=True)

        assert result.success
        group.refresh_from_db()
        assert group.name == "Bouldering"
        assert group.join_disabled

    def test_member_cannot_update(self, group, bob):
        result = GroupService.update_settings(group, bob, name="Mine")

        assert result.error_code == "NOT_GROUP_ADMIN"

    def test_blank_name_rejected(self, group, alice):
        result = GroupService.update_settings(group, alice, name="   ")

        assert result.error_code == "VALIDATION_ERROR"

    def test_unknown_fields_ignored(self, group, alice):
        result = GroupService.update_settings(group, alice, is_global=True)

        assert result.success
        group.refresh_from_db()
        assert not group.is_global


class TestMembership:
    def test_join(self, group, outsider):
        result = GroupService.join(group, outsider)

        assert result.success
        assert group.is_participant(outsider)

    def test_join_is_idempotent(self, group, bob):
        assert GroupService.join(group, bob).success
        assert group.members.filter(pk=bob.pk).count() == 1

    def test_join_disabled(self, group, outsider):
        group.join_disabled = True
        group.save()

        result = GroupService.join(group, outsider)

        assert result.error_code == "JOIN_DISABLED"

    def test_join_disabled_refuses_existing_member(self, group, bob):
        group.join_disabled = True
        group.save()

        result = GroupService.join(group, bob)

        assert result.error_code == "JOIN_DISABLED"
        assert group.is_participant(bob)

    def test_banned_cannot_join(self, group, outsider):
        group.banned.add(outsider)

        result = GroupService.join(group, outsider)

        assert result.error_code == "BANNED_FROM_GROUP"
        assert not group.is_participant(outsider)

    def test_leave_drops_every_role(self, group, bob):
        group.muted.add(bob)
        group.admins.add(bob)

        result = GroupService.leave(group, bob)

        assert result.success
        assert not group.is_participant(bob)
        assert not group.is_muted(bob)

    def test_leave_when_not_member(self, group, outsider):
        assert GroupService.leave(group, outsider).error_code == "NOT_A_MEMBER"


class TestModeration:
    def test_kick_returns_remaining_recipients(self, group, alice, bob, carol):
        result = GroupService.kick(group, alice, bob.code)

        assert result.success
        removal = result.data
        assert removal.target == bob.code
        assert removal.notify == {alice.code, carol.code}
        assert not group.is_participant(bob)

    def test_kick_requires_group_admin(self, group, bob, carol):
        assert GroupService.kick(group, bob, carol.code).error_code == "NOT_GROUP_ADMIN"

    def test_cannot_kick_admin(self, group, alice, bob):
        group.admins.add(bob)

        assert GroupService.kick(group, alice, bob.code).error_code == "CANNOT_KICK_ADMIN"

    def test_kick_non_member(self, group, alice, outsider):
        assert GroupService.kick(group, alice, outsider.code).error_code == "NOT_A_MEMBER"

    def test_mute_and_unmute(self, group, alice, bob):
        assert GroupService.set_muted(group, alice, bob.code, muted=True).success
        assert group.is_muted(bob)

        assert GroupService.set_muted(group, alice, bob.code, muted=False).success
        assert not group.is_muted(bob)

    def test_mute_outsider(self, group, alice, outsider):
        assert GroupService.set_muted(group, alice, outsider.code).error_code == "NOT_A_MEMBER"

    def test_ban_removes_from_every_role(self, group, platform_admin, alice, bob, carol):
        group.muted.add(bob)

        result = GroupService.ban(group, platform_admin, bob.code)

        assert result.success
        assert result.data.notify == {alice.code, carol.code}
        assert group.is_banned(bob)
        assert not group.is_participant(bob)
        assert not group.is_muted(bob)

    def test_ban_requires_platform_admin(self, group, alice, bob):
        assert GroupService.ban(group, alice, bob.code).error_code == "NOT_AUTHORIZED"

    def test_ban_unknown_user(self, group, platform_admin):
        assert GroupService.ban(group, platform_admin, "0000000").error_code == "USER_NOT_FOUND"

    def test_delete_group_cascades_messages(self, group, platform_admin, alice, bob, carol):
        GroupMessageFactory(group=group, sender=bob)

        result = GroupService.delete_group(platform_admin, group.code)

        assert result.success
        assert result.data.notify == {alice.code, bob.code, carol.code}
        assert not Group.objects.filter(code=group.code).exists()
        assert not Message.objects.exists()

    def test_delete_group_requires_platform_admin(self, group, alice):
        assert GroupService.delete_group(alice, group.code).error_code == "NOT_AUTHORIZED"

    def test_delete_unknown_group(self, platform_admin):
        assert GroupService.delete_group(platform_admin, "000000").error_code == "GROUP_NOT_FOUND"


class TestGlobalGroup:
    def test_ensure_creates_once(self, settings):
        settings.CHAT_GLOBAL_GROUP_NAME = "Everyone"

        first = GroupService.ensure_global_group()
        second = GroupService.ensure_global_group()

        assert first.pk == second.pk
        assert first.name == "Everyone"
        assert first.is_global

    def test_add_skips_banned(self, alice, bob):
        group = GroupService.ensure_global_group()
        group.banned.add(bob)

        GroupService.add_to_global_group(alice)
        GroupService.add_to_global_group(bob)

        assert group.is_participant(alice)
        assert not group.is_participant(bob)

    def test_backfill_adds_missing_profiles(self, alice, bob, carol):
        group = GroupService.ensure_global_group()
        group.members.add(alice)
        group.banned.add(carol)

        assert GroupService.backfill_global_group() == 1
        assert group.is_participant(bob)
        assert not group.is_participant(carol)
        assert GroupService.backfill_global_group() == 0

    def test_recipient_codes_for_unknown_group(self):
        assert GroupService.recipient_codes("000000") == set()


# =============================================================================
# MessageService
# =============================================================================


class TestSendDirect:
    def test_persists_message(self, alice, bob):
        result = MessageService.send_direct(sender=alice, receiver_code=bob.code, content="Hi!")

        assert result.success
        message = result.data
        assert message.receiver == bob
        assert message.group is None
        assert message.message_type == MessageType.TEXT

    def test_file_message_keeps_metadata(self, alice, bob):
        result = MessageService.send_direct(
            sender=alice,
            receiver_code=bob.code,
            content="uploads/route.jpg",
            message_type=MessageType.IMAGE,
            file_name="route.jpg",
            caption="New line",
        )

        assert result.data.file_name == "route.jpg"
        assert result.data.caption == "New line"

    @pytest.mark.parametrize("content", ["", "   ", "\n"])
    def test_blank_content_rejected(self, alice, bob, content):
        result = MessageService.send_direct(sender=alice, receiver_code=bob.code, content=content)

        assert result.error_code == "EMPTY_CONTENT"
        assert not Message.objects.exists()

    def test_overlong_content_rejected(self, alice, bob):
        content = "x" * (MESSAGE_CONFIG.MAX_CONTENT_LENGTH + 1)

        result = MessageService.send_direct(sender=alice, receiver_code=bob.code, content=content)

        assert result.error_code == "VALIDATION_ERROR"
        assert not Message.objects.exists()

    def test_unknown_receiver(self, alice):
        result = MessageService.send_direct(sender=alice, receiver_code="0000000", content="Hi")

        assert result.error_code == "USER_NOT_FOUND"

    def test_reply_to(self, alice, bob):
        original = DirectMessageFactory(sender=bob, receiver=alice)

        result = MessageService.send_direct(
            sender=alice, receiver_code=bob.code, content="Re", reply_to=original.id
        )

        assert result.data.reply_to == original

    def test_unknown_reply_target(self, alice, bob):
        result = MessageService.send_direct(
            sender=alice, receiver_code=bob.code, content="Re", reply_to=999999
        )

        assert result.error_code == "REPLY_TARGET_NOT_FOUND"


class TestSendGroup:
    def test_member_sends(self, group, bob):
        result = MessageService.send_group(sender=bob, group_code=group.code, content="Hi all")

        assert result.success
        assert result.data.group == group
        assert result.data.receiver is None

    def test_admin_sends(self, group, alice):
        assert MessageService.send_group(sender=alice, group_code=group.code, content="Rules").success

    def test_non_member_writes_nothing(self, group, outsider):
        result = MessageService.send_group(sender=outsider, group_code=group.code, content="Hi")

        assert result.error_code == "NOT_A_MEMBER"
        assert not Message.objects.exists()

    def test_muted_member_writes_nothing(self, group, bob):
        group.muted.add(bob)

        result = MessageService.send_group(sender=bob, group_code=group.code, content="Hi")

        assert result.error_code == "SENDER_MUTED"
        assert not Message.objects.exists()

    def test_unknown_group(self, bob):
        result = MessageService.send_group(sender=bob, group_code="000000", content="Hi")

        assert result.error_code == "GROUP_NOT_FOUND"


class TestHistory:
    def test_conversation_both_directions_in_order(self, alice, bob, carol):
        first = DirectMessageFactory(sender=alice, receiver=bob)
        second = DirectMessageFactory(sender=bob, receiver=alice)
        DirectMessageFactory(sender=alice, receiver=carol)

        history = list(MessageService.conversation(alice, bob.code))

        assert history == [first, second]

    def test_group_conversation_for_member(self, group, bob):
        message = GroupMessageFactory(group=group, sender=bob)

        result = MessageService.group_conversation(group, bob)

        assert list(result.data) == [message]

    def test_group_conversation_for_platform_admin(self, group, platform_admin):
        assert MessageService.group_conversation(group, platform_admin).success

    def test_group_conversation_for_outsider(self, group, outsider):
        assert MessageService.group_conversation(group, outsider).error_code == "NOT_A_MEMBER"


class TestEditAndDelete:
    def test_edit_sets_edited_at(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)

        result = MessageService.edit(message.id, alice, "Fixed typo")

        assert result.success
        message.refresh_from_db()
        assert message.content == "Fixed typo"
        assert message.edited_at is not None

    def test_only_author_edits(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)

        assert MessageService.edit(message.id, bob, "Mine now").error_code == "NOT_AUTHOR"

    def test_edit_blank_rejected(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)

        assert MessageService.edit(message.id, alice, " ").error_code == "EMPTY_CONTENT"

    def test_edit_unknown_message(self, alice):
        assert MessageService.edit(999999, alice, "x").error_code == "MESSAGE_NOT_FOUND"

    def test_delete_leaves_tombstone(self, alice, bob):
        message = DirectMessageFactory(
            sender=alice, receiver=bob, message_type=MessageType.IMAGE, file_name="a.png"
        )

        result = MessageService.delete(message.id, alice)

        assert result.success
        message.refresh_from_db()
        assert message.is_deleted
        assert message.content == Message.TOMBSTONE
        assert message.file_name is None

    def test_edit_after_delete_rejected_and_tombstone_preserved(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)
        MessageService.delete(message.id, alice)

        result = MessageService.edit(message.id, alice, "Back from the dead")

        assert result.error_code == "MESSAGE_DELETED"
        message.refresh_from_db()
        assert message.content == Message.TOMBSTONE
        assert message.edited_at is None

    def test_delete_twice(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)
        MessageService.delete(message.id, alice)

        assert MessageService.delete(message.id, alice).error_code == "ALREADY_DELETED"

    def test_only_author_deletes(self, alice, bob):
        message = DirectMessageFactory(sender=alice, receiver=bob)

        assert MessageService.delete(message.id, bob).error_code == "NOT_AUTHOR"
