"""
Tests for the User model and UserManager.

Covers:
- Code allocation (format, uniqueness, primary key)
- Optional passwords
- Roles (platform admin)
- Social graph edges (symmetric contacts, asymmetric requests)
"""

import pytest

from accounts.models import User
from accounts.tests.factories import UserFactory
from chat.models import Group
from core.helpers import get_code_length


class TestUserCodeAllocation:
    """Profiles get a short numeric code on first save."""

    def test_code_is_allocated_on_create(self, db):
        user = User.objects.create_user(display_name="Ada")

        assert len(user.code) == get_code_length()
        assert user.code.isdigit() and user.code[0] != "0"
        assert User.objects.get(pk=user.code) == user

    def test_codes_are_unique(self, db):
        codes = {UserFactory().code for _ in range(20)}

        assert len(codes) == 20

    def test_explicit_code_is_kept(self, db):
        user = User.objects.create_user(code="4821", display_name="Ada")

        assert user.code == "4821"

    def test_saving_again_does_not_change_code(self, user):
        code = user.code
        user.display_name = "Renamed"
        user.save()

        user.refresh_from_db()
        assert user.code == code
        assert user.display_name == "Renamed"

    def test_display_name_is_required(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(display_name="")


class TestUserPassword:
    def test_profile_without_password_has_unusable_password(self, user):
        assert user.has_password is False

    def test_profile_with_password_checks_it(self, protected_user):
        assert protected_user.has_password is True
        assert protected_user.check_password("s3cret")
        assert not protected_user.check_password("wrong")

    def test_superuser_requires_password(self, db):
        with pytest.raises(ValueError):
            User.objects.create_superuser(display_name="Ops")


class TestUserRoles:
    def test_admin_can_administer(self, admin_user):
        assert admin_user.can_administer()
        assert admin_user.is_staff

    def test_regular_user_cannot_administer(self, user):
        assert not user.can_administer()
        assert not user.is_staff

    def test_inactive_admin_cannot_administer(self, admin_user):
        admin_user.is_active = False

        assert not admin_user.can_administer()


class TestUserSocialGraph:
    def test_contacts_are_symmetric(self, user, other_user):
        user.contacts.add(other_user)

        assert other_user.contacts.filter(code=user.code).exists()
        assert other_user.contact_codes() == [user.code]

    def test_pending_is_mirrored_by_requests(self, user, other_user):
        user.pending.add(other_user)

        assert list(other_user.requests.all()) == [user]
        assert not other_user.pending.exists()

    def test_group_memberships_include_admin_and_member_roles(self, user, other_user):
        member_of = Group.objects.create(name="Members")
        member_of.members.add(user)
        admin_of = Group.objects.create(name="Admins")
        admin_of.admins.add(user)
        Group.objects.create(name="Elsewhere").members.add(other_user)

        assert set(user.group_memberships()) == {member_of, admin_of}

    def test_str_shows_name_and_code(self, user):
        assert str(user) == f"Ada ({user.code})"
