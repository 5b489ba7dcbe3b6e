"""
Tests for chat models.
"""

import pytest
from django.db import IntegrityError

from accounts.tests.factories import UserFactory
from chat.models import Group, Message
from chat.tests.factories import DirectMessageFactory, GroupFactory, GroupMessageFactory

pytestmark = pytest.mark.django_db


class TestGroup:
    def test_roles(self, group, alice, bob, outsider):
        group.muted.add(bob)

        assert group.is_admin(alice)
        assert not group.is_admin(bob)
        assert group.is_participant(alice) and group.is_participant(bob)
        assert not group.is_participant(outsider)
        assert group.is_muted(bob)

    def test_recipient_codes_cover_members_and_admins(self, group, alice, bob, carol):
        assert group.recipient_codes() == {alice.code, bob.code, carol.code}

    def test_only_one_global_group(self):
        Group.objects.create(name="Everyone", is_global=True)

        with pytest.raises(IntegrityError):
            Group.objects.create(name="Everyone again", is_global=True)

    def test_group_memberships_from_user_side(self, group, alice, bob, outsider):
        assert list(alice.group_memberships()) == [group]
        assert list(bob.group_memberships()) == [group]
        assert not outsider.group_memberships().exists()

    def test_str(self):
        group = GroupFactory(name="Climbing", admin=False)

        assert str(group) == f"Climbing ({group.code})"


class TestMessage:
    def test_needs_exactly_one_destination(self, alice, bob, group):
        with pytest.raises(IntegrityError):
            Message.objects.create(sender=alice, receiver=bob, group=group, content="both")

    def test_needs_a_destination(self, alice):
        with pytest.raises(IntegrityError):
            Message.objects.create(sender=alice, content="nowhere")

    def test_is_direct(self):
        assert DirectMessageFactory().is_direct
        assert not GroupMessageFactory().is_direct

    def test_reply_survives_deleted_target(self, alice, bob):
        original = DirectMessageFactory(sender=alice, receiver=bob)
        reply = DirectMessageFactory(sender=bob, receiver=alice, reply_to=original)

        original.delete()
        reply.refresh_from_db()

        assert reply.reply_to is None

    def test_deleting_profile_removes_its_messages(self, alice, bob):
        DirectMessageFactory(sender=alice, receiver=bob)
        DirectMessageFactory(sender=bob, receiver=alice)

        alice.delete()

        assert not Message.objects.exists()

    def test_str_truncates(self):
        receiver = UserFactory()
        message = DirectMessageFactory(content="x" * 80, receiver=receiver)

        assert str(message).endswith("x" * 50 + "...")
        assert f"-> {receiver.code}:" in str(message)
