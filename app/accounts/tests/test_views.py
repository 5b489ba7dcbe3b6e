"""
Tests for account API views.

This module tests:
- Profile creation and restore (anonymous endpoints returning JWTs)
- Own profile, password and last-used endpoints
- Contact request flow and the live notifications it pushes
- Platform admin endpoints

Testing Philosophy:
    Tests focus on observable HTTP behavior:
    - Response status codes and {"error", "error_code"} bodies
    - Database state changes
    - Events delivered to reachable live sessions
"""

from datetime import timedelta

from django.utils import timezone
from rest_framework import status

from accounts.models import User
from accounts.tests.factories import UserFactory
from chat.models import Group


# =============================================================================
# URL Constants
# =============================================================================


USERS_URL = "/api/v1/users/"
ME_URL = "/api/v1/users/me/"
PASSWORD_URL = "/api/v1/users/me/password/"
LAST_USED_URL = "/api/v1/users/me/last-used/"
MY_GROUPS_URL = "/api/v1/users/me/groups/"
CONTACTS_URL = "/api/v1/users/me/contacts/"
REQUESTS_URL = "/api/v1/users/me/requests/"
PENDING_URL = "/api/v1/users/me/pending/"
ADMIN_USERS_URL = "/api/v1/admin/users/"
ADMIN_CLEANUP_URL = "/api/v1/admin/users/cleanup/"


def user_url(code):
    return f"{USERS_URL}{code}/"


# =============================================================================
# Profile creation and restore
# =============================================================================


class TestProfileCreateView:
    def test_anonymous_client_creates_profile(self, api_client, db):
        response = api_client.post(USERS_URL, {"display_name": "Ada"}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["user"]["display_name"] == "Ada"
        assert response.data["access"]
        assert response.data["refresh"]
        assert User.objects.filter(code=response.data["user"]["code"]).exists()

    def test_returned_token_authenticates(self, api_client, db):
        response = api_client.post(USERS_URL, {"display_name": "Ada"}, format="json")

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = api_client.get(ME_URL)

        assert me.status_code == status.HTTP_200_OK
        assert me.data["code"] == response.data["user"]["code"]

    def test_missing_display_name_is_rejected(self, api_client, db):
        response = api_client.post(USERS_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_short_password_is_rejected(self, api_client, db):
        response = api_client.post(
            USERS_URL, {"display_name": "Ada", "password": "abc"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PASSWORD_TOO_SHORT"


class TestRestoreViews:
    def test_restore_by_code_without_password(self, api_client, user):
        response = api_client.post(f"{user_url(user.code)}restore/", {}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["user"]["code"] == user.code

    def test_restore_requires_password_when_set(self, api_client, protected_user):
        response = api_client.post(
            f"{user_url(protected_user.code)}restore/", {}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["error_code"] == "PASSWORD_REQUIRED"

    def test_restore_with_wrong_password(self, api_client, protected_user):
        response = api_client.post(
            f"{user_url(protected_user.code)}restore/", {"password": "nope"}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["error_code"] == "INCORRECT_PASSWORD"

    def test_restore_unknown_code(self, api_client, db):
        response = api_client.post(f"{user_url('9999')}restore/", {}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_restore_by_device(self, api_client, db):
        user = UserFactory(device_id="device-1", is_device_locked=True)

        response = api_client.get(f"{USERS_URL}by-device/device-1/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["user"]["code"] == user.code

    def test_restore_by_unbound_device(self, api_client, db):
        response = api_client.get(f"{USERS_URL}by-device/unknown/")

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Own profile
# =============================================================================


class TestMeView:
    def test_requires_authentication(self, api_client, db):
        assert api_client.get(ME_URL).status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_returns_full_profile(self, authenticated_client, contacts):
        user, other_user = contacts

        response = authenticated_client.get(ME_URL)

        assert response.data["code"] == user.code
        assert response.data["contacts"] == [other_user.code]
        assert response.data["pending"] == []
        assert response.data["has_password"] is False

    def test_patch_updates_profile(self, authenticated_client, user):
        response = authenticated_client.patch(ME_URL, {"display_name": "Ada L."}, format="json")

        user.refresh_from_db()
        assert response.status_code == status.HTTP_200_OK
        assert user.display_name == "Ada L."

    def test_name_change_notifies_reachable_contacts(self, authenticated_client, contacts, transport):
        """
        Contacts see a renamed profile without refreshing.

        Why it matters: contact lists show display names; a live session
        must be told to reload them.
        """
        user, other_user = contacts
        transport.hub.registry.bind(other_user.code, "handle-other")

        authenticated_client.patch(ME_URL, {"display_name": "Ada L."}, format="json")

        assert transport.types_for("handle-other") == ["contacts-updated"]

    def test_device_change_does_not_notify(self, authenticated_client, contacts, transport):
        user, other_user = contacts
        transport.hub.registry.bind(other_user.code, "handle-other")

        authenticated_client.patch(ME_URL, {"device_id": "device-9"}, format="json")

        assert transport.sent == []


class TestPasswordAndLastUsed:
    def test_set_password(self, authenticated_client, user):
        response = authenticated_client.post(PASSWORD_URL, {"password": "s3cret"}, format="json")

        user.refresh_from_db()
        assert response.status_code == status.HTTP_200_OK
        assert user.check_password("s3cret")

    def test_short_password(self, authenticated_client):
        response = authenticated_client.post(PASSWORD_URL, {"password": "abc"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PASSWORD_TOO_SHORT"

    def test_touch_last_used(self, authenticated_client, user):
        User.objects.filter(pk=user.pk).update(last_used_at=timezone.now() - timedelta(days=10))

        response = authenticated_client.post(LAST_USED_URL)

        user.refresh_from_db()
        assert response.status_code == status.HTTP_200_OK
        assert timezone.now() - user.last_used_at < timedelta(minutes=1)


class TestUserDetailAndGroups:
    def test_public_profile(self, authenticated_client, other_user):
        response = authenticated_client.get(user_url(other_user.code))

        assert response.status_code == status.HTTP_200_OK
        assert set(response.data) == {"code", "display_name", "avatar", "is_online", "last_seen"}

    def test_unknown_profile(self, authenticated_client):
        response = authenticated_client.get(user_url("0999"))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "USER_NOT_FOUND"

    def test_my_groups(self, authenticated_client, user, other_user):
        mine = Group.objects.create(name="Mine")
        mine.members.add(user)
        Group.objects.create(name="Theirs").members.add(other_user)

        response = authenticated_client.get(MY_GROUPS_URL)

        assert [g["code"] for g in response.data] == [mine.code]


# =============================================================================
# Contact flow
# =============================================================================


class TestContactRequestFlow:
    def test_send_request(self, authenticated_client, user, other_user, transport):
        transport.hub.registry.bind(user.code, "handle-me")
        transport.hub.registry.bind(other_user.code, "handle-other")

        response = authenticated_client.post(REQUESTS_URL, {"code": other_user.code}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert transport.types_for("handle-other") == ["requests-updated"]
        assert transport.types_for("handle-me") == ["pending-updated"]

    def test_send_request_to_self(self, authenticated_client, user):
        response = authenticated_client.post(REQUESTS_URL, {"code": user.code}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "CANNOT_ADD_SELF"

    def test_send_duplicate_request(self, authenticated_client, pending_request):
        user, other_user = pending_request

        response = authenticated_client.post(REQUESTS_URL, {"code": other_user.code}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ALREADY_PENDING"

    def test_list_pending_and_requests(self, authenticated_client, other_client, pending_request):
        user, other_user = pending_request

        pending = authenticated_client.get(PENDING_URL)
        requests = other_client.get(REQUESTS_URL)

        assert [u["code"] for u in pending.data] == [other_user.code]
        assert [u["code"] for u in requests.data] == [user.code]

    def test_accept_request(self, other_client, pending_request, transport):
        user, other_user = pending_request
        transport.hub.registry.bind(user.code, "handle-requester")
        transport.hub.registry.bind(other_user.code, "handle-me")

        response = other_client.post(f"{REQUESTS_URL}{user.code}/accept/")

        assert response.status_code == status.HTTP_200_OK
        assert other_user.contacts.filter(code=user.code).exists()
        assert transport.types_for("handle-me") == ["requests-updated", "contacts-updated"]
        assert transport.types_for("handle-requester") == ["pending-updated", "contacts-updated"]

    def test_accept_twice_conflicts(self, other_client, pending_request):
        user, _ = pending_request
        other_client.post(f"{REQUESTS_URL}{user.code}/accept/")

        response = other_client.post(f"{REQUESTS_URL}{user.code}/accept/")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "NO_PENDING_REQUEST"

    def test_decline_request(self, other_client, pending_request):
        user, other_user = pending_request

        response = other_client.post(f"{REQUESTS_URL}{user.code}/decline/")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not other_user.requests.exists()
        assert not other_user.contacts.exists()

    def test_cancel_pending(self, authenticated_client, pending_request, transport):
        user, other_user = pending_request
        transport.hub.registry.bind(other_user.code, "handle-other")

        response = authenticated_client.delete(f"{PENDING_URL}{other_user.code}/")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not user.pending.exists()
        assert transport.types_for("handle-other") == ["requests-updated"]

    def test_remove_contact(self, authenticated_client, contacts, transport):
        user, other_user = contacts
        transport.hub.registry.bind(other_user.code, "handle-other")

        response = authenticated_client.delete(f"{CONTACTS_URL}{other_user.code}/")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not user.contacts.exists()
        assert transport.types_for("handle-other") == ["contacts-updated"]

    def test_list_contacts(self, authenticated_client, contacts):
        _, other_user = contacts

        response = authenticated_client.get(CONTACTS_URL)

        assert [u["code"] for u in response.data] == [other_user.code]


# =============================================================================
# Admin
# =============================================================================


class TestAdminUserViews:
    def test_list_requires_admin(self, authenticated_client):
        response = authenticated_client.get(ADMIN_USERS_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_AUTHORIZED"

    def test_admin_lists_users(self, admin_client, admin_user, user):
        response = admin_client.get(ADMIN_USERS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert {u["code"] for u in response.data} == {admin_user.code, user.code}

    def test_admin_deletes_user_and_broadcasts(self, admin_client, user, other_user, transport):
        """
        Every live session learns about a deleted profile.

        Why it matters: clients drop the profile from chats and contact
        lists even if they were not its contact.
        """
        transport.hub.registry.bind(other_user.code, "handle-other")

        response = admin_client.delete(f"{ADMIN_USERS_URL}{user.code}/")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not User.objects.filter(pk=user.pk).exists()
        assert transport.payloads_for("handle-other") == [{"type": "user-deleted", "user": user.code}]

    def test_admin_cannot_delete_admin(self, admin_client, db):
        other_admin = UserFactory(is_admin=True, password="pass1234")

        response = admin_client.delete(f"{ADMIN_USERS_URL}{other_admin.code}/")

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_non_admin_cannot_delete(self, authenticated_client, other_user):
        response = authenticated_client.delete(f"{ADMIN_USERS_URL}{other_user.code}/")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cleanup(self, admin_client, user):
        User.objects.filter(pk=user.pk).update(last_used_at=timezone.now() - timedelta(days=60))

        response = admin_client.post(ADMIN_CLEANUP_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"deleted": 1}

    def test_cleanup_requires_admin(self, authenticated_client):
        response = authenticated_client.post(ADMIN_CLEANUP_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN
