"""
Views for profiles and contacts.

This module provides REST API endpoints for:
- Profile creation and restore (anonymous, returns a JWT pair)
- Own profile, password and last-used bookkeeping
- Contacts, incoming requests and outgoing (pending) requests
- Admin user listing, deletion and stale profile cleanup

URL Structure (under /api/v1/):
    users/                                   POST (anonymous)
    users/by-device/<device_id>/             GET (anonymous)
    users/<code>/restore/                    POST (anonymous)
    users/me/                                GET, PATCH
    users/me/password/                       POST
    users/me/last-used/                      POST
    users/me/contacts/                       GET
    users/me/contacts/<code>/                DELETE
    users/me/requests/                       GET, POST
    users/me/requests/<code>/accept/         POST
    users/me/requests/<code>/decline/        POST
    users/me/pending/                        GET
    users/me/pending/<code>/                 DELETE
    users/me/groups/                         GET
    users/<code>/                            GET
    admin/users/                             GET
    admin/users/<code>/                      DELETE
    admin/users/cleanup/                     POST

Design Decisions:
    - All business rules live in accounts.services
    - Failures return {"error", "error_code"} via core.views.error_response
    - After a successful change, affected live sessions get a notification
      event through chat.realtime.notify
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import error_response

from accounts.serializers import (
    AdminUserSerializer,
    AuthenticatedProfileSerializer,
    ContactRequestSerializer,
    PasswordSerializer,
    ProfileCreateSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    RestoreSerializer,
    UserSerializer,
)
from accounts.services import ContactService, UserService, issue_tokens
from chat.realtime import events, notify
from chat.serializers import GroupSerializer
from chat.services import GroupService

logger = logging.getLogger(__name__)

# error_code -> HTTP status for account endpoints
ERROR_STATUS = {
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_AUTHORIZED": status.HTTP_403_FORBIDDEN,
    "PASSWORD_REQUIRED": status.HTTP_401_UNAUTHORIZED,
    "INCORRECT_PASSWORD": status.HTTP_401_UNAUTHORIZED,
    "ALREADY_CONTACT": status.HTTP_409_CONFLICT,
    "ALREADY_PENDING": status.HTTP_409_CONFLICT,
    "INCOMING_REQUEST_EXISTS": status.HTTP_409_CONFLICT,
    "NO_PENDING_REQUEST": status.HTTP_409_CONFLICT,
    "CANNOT_DELETE_ADMIN": status.HTTP_409_CONFLICT,
    "CODE_SPACE_EXHAUSTED": status.HTTP_409_CONFLICT,
}


def authenticated_response(user, status_code=status.HTTP_200_OK) -> Response:
    """Profile plus a fresh JWT pair."""
    return Response(
        {"user": ProfileSerializer(user).data, **issue_tokens(user)},
        status=status_code,
    )


# =============================================================================
# Profile creation and restore
# =============================================================================


class ProfileCreateView(APIView):
    """
    Create a profile.

    POST /api/v1/users/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_profile",
        summary="Create profile",
        description=(
            "Creates a profile identified by a new short code and returns it "
            "with a JWT pair. The profile joins the global group in the background."
        ),
        request=ProfileCreateSerializer,
        responses={201: AuthenticatedProfileSerializer},
        tags=["Accounts"],
    )
    def post(self, request):
        serializer = ProfileCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = UserService.create_user(
            display_name=data["display_name"],
            avatar=data.get("avatar", ""),
            password=data.get("password") or None,
            device_id=data.get("device_id") or None,
            is_device_locked=data.get("is_device_locked", False),
        )
        if not result.success:
            return error_response(result, ERROR_STATUS)

        return authenticated_response(result.data, status.HTTP_201_CREATED)


class DeviceRestoreView(APIView):
    """
    Restore the profile bound to a device.

    GET /api/v1/users/by-device/<device_id>/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="restore_profile_by_device",
        summary="Restore profile by device",
        responses={
            200: AuthenticatedProfileSerializer,
            404: OpenApiResponse(description="No profile bound to this device"),
        },
        tags=["Accounts"],
    )
    def get(self, request, device_id):
        result = UserService.get_by_device(device_id)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        UserService.touch_last_used(result.data)
        return authenticated_response(result.data)


class RestoreView(APIView):
    """
    Restore a profile by code.

    POST /api/v1/users/<code>/restore/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="restore_profile",
        summary="Restore profile by code",
        description="A password is required when the profile has one.",
        request=RestoreSerializer,
        responses={
            200: AuthenticatedProfileSerializer,
            401: OpenApiResponse(description="Password required or incorrect"),
            404: OpenApiResponse(description="Profile not found"),
        },
        tags=["Accounts"],
    )
    def post(self, request, code):
        serializer = RestoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UserService.restore(code, serializer.validated_data.get("password") or None)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        return authenticated_response(result.data)


# =============================================================================
# Own profile
# =============================================================================


class MeView(APIView):
    """
    Own profile.

    GET/PATCH /api/v1/users/me/
    """

    @extend_schema(
        operation_id="get_own_profile",
        summary="Get own profile",
        responses={200: ProfileSerializer},
        tags=["Accounts"],
    )
    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    @extend_schema(
        operation_id="update_own_profile",
        summary="Update own profile",
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
        tags=["Accounts"],
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = UserService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        if {"display_name", "avatar"} & set(serializer.validated_data):
            notify.users(result.data.contact_codes(), events.contacts_updated())

        return Response(ProfileSerializer(result.data).data)


class PasswordView(APIView):
    """
    Set the profile password.

    POST /api/v1/users/me/password/
    """

    @extend_schema(
        operation_id="set_password",
        summary="Set profile password",
        request=PasswordSerializer,
        responses={
            200: OpenApiResponse(description="Password set"),
            400: OpenApiResponse(description="Password too short"),
        },
        tags=["Accounts"],
    )
    def post(self, request):
        serializer = PasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UserService.set_password(request.user, serializer.validated_data["password"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        return Response({"status": "password_set"})


class LastUsedView(APIView):
    """
    Record that the profile was opened.

    POST /api/v1/users/me/last-used/
    """

    @extend_schema(
        operation_id="touch_last_used",
        summary="Update last used time",
        request=None,
        responses={200: ProfileSerializer},
        tags=["Accounts"],
    )
    def post(self, request):
        result = UserService.touch_last_used(request.user)
        return Response(ProfileSerializer(result.data).data)


class UserDetailView(APIView):
    """
    Public view of another profile.

    GET /api/v1/users/<code>/
    """

    @extend_schema(
        operation_id="get_user",
        summary="Get user by code",
        responses={200: UserSerializer, 404: OpenApiResponse(description="Not found")},
        tags=["Accounts"],
    )
    def get(self, request, code):
        result = UserService.get_by_code(code)
        if not result.success:
            return error_response(result, ERROR_STATUS)
        return Response(UserSerializer(result.data).data)


class MyGroupsView(APIView):
    """
    Groups the profile belongs to.

    GET /api/v1/users/me/groups/
    """

    @extend_schema(
        operation_id="list_own_groups",
        summary="List own groups",
        responses={200: GroupSerializer(many=True)},
        tags=["Accounts"],
    )
    def get(self, request):
        groups = GroupService.groups_for(request.user).prefetch_related(
            "members", "admins", "muted"
        )
        return Response(GroupSerializer(groups, many=True).data)


# =============================================================================
# Contacts and requests
# =============================================================================


class ContactListView(APIView):
    """
    GET /api/v1/users/me/contacts/
    """

    @extend_schema(
        operation_id="list_contacts",
        summary="List contacts",
        responses={200: UserSerializer(many=True)},
        tags=["Contacts"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user.contacts.all(), many=True).data)


class ContactDetailView(APIView):
    """
    DELETE /api/v1/users/me/contacts/<code>/
    """

    @extend_schema(
        operation_id="remove_contact",
        summary="Remove contact",
        responses={204: None},
        tags=["Contacts"],
    )
    def delete(self, request, code):
        ContactService.remove_contact(request.user, code)
        notify.users([request.user.code, code], events.contacts_updated())
        return Response(status=status.HTTP_204_NO_CONTENT)


class RequestListView(APIView):
    """
    Incoming contact requests, and sending a new request.

    GET/POST /api/v1/users/me/requests/
    """

    @extend_schema(
        operation_id="list_contact_requests",
        summary="List incoming contact requests",
        responses={200: UserSerializer(many=True)},
        tags=["Contacts"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user.requests.all(), many=True).data)

    @extend_schema(
        operation_id="send_contact_request",
        summary="Send contact request",
        request=ContactRequestSerializer,
        responses={
            201: UserSerializer,
            400: OpenApiResponse(description="Cannot add yourself"),
            404: OpenApiResponse(description="User not found"),
            409: OpenApiResponse(description="Already a contact or request pending"),
        },
        tags=["Contacts"],
    )
    def post(self, request):
        serializer = ContactRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ContactService.send_request(request.user, serializer.validated_data["code"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        target = result.data
        notify.users([target.code], events.requests_updated())
        notify.users([request.user.code], events.pending_updated())
        return Response(UserSerializer(target).data, status=status.HTTP_201_CREATED)


class RequestAcceptView(APIView):
    """
    POST /api/v1/users/me/requests/<code>/accept/
    """

    @extend_schema(
        operation_id="accept_contact_request",
        summary="Accept contact request",
        request=None,
        responses={200: UserSerializer, 409: OpenApiResponse(description="No pending request")},
        tags=["Contacts"],
    )
    def post(self, request, code):
        result = ContactService.accept_request(request.user, code)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users([request.user.code], events.requests_updated())
        notify.users([code], events.pending_updated())
        notify.users([request.user.code, code], events.contacts_updated())
        return Response(UserSerializer(result.data).data)


class RequestDeclineView(APIView):
    """
    POST /api/v1/users/me/requests/<code>/decline/
    """

    @extend_schema(
        operation_id="decline_contact_request",
        summary="Decline contact request",
        request=None,
        responses={204: None, 409: OpenApiResponse(description="No pending request")},
        tags=["Contacts"],
    )
    def post(self, request, code):
        result = ContactService.decline_request(request.user, code)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users([request.user.code], events.requests_updated())
        notify.users([code], events.pending_updated())
        return Response(status=status.HTTP_204_NO_CONTENT)


class PendingListView(APIView):
    """
    Outgoing contact requests.

    GET /api/v1/users/me/pending/
    """

    @extend_schema(
        operation_id="list_pending_requests",
        summary="List outgoing contact requests",
        responses={200: UserSerializer(many=True)},
        tags=["Contacts"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user.pending.all(), many=True).data)


class PendingDetailView(APIView):
    """
    DELETE /api/v1/users/me/pending/<code>/
    """

    @extend_schema(
        operation_id="cancel_contact_request",
        summary="Cancel outgoing contact request",
        responses={204: None, 409: OpenApiResponse(description="No pending request")},
        tags=["Contacts"],
    )
    def delete(self, request, code):
        result = ContactService.cancel_request(request.user, code)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users([request.user.code], events.pending_updated())
        notify.users([code], events.requests_updated())
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Admin
# =============================================================================


class AdminUserListView(APIView):
    """
    GET /api/v1/admin/users/
    """

    @extend_schema(
        operation_id="admin_list_users",
        summary="List all users (platform admin)",
        responses={200: AdminUserSerializer(many=True)},
        tags=["Admin"],
    )
    def get(self, request):
        result = UserService.list_users(request.user)
        if not result.success:
            return error_response(result, ERROR_STATUS)
        return Response(AdminUserSerializer(result.data, many=True).data)


class AdminUserDeleteView(APIView):
    """
    DELETE /api/v1/admin/users/<code>/
    """

    @extend_schema(
        operation_id="admin_delete_user",
        summary="Delete user and all its data (platform admin)",
        responses={
            204: None,
            403: OpenApiResponse(description="Not a platform admin"),
            404: OpenApiResponse(description="User not found"),
            409: OpenApiResponse(description="Target is a platform admin"),
        },
        tags=["Admin"],
    )
    def delete(self, request, code):
        result = UserService.delete_user(request.user, code)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.everyone(events.user_deleted(code))
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminCleanupView(APIView):
    """
    POST /api/v1/admin/users/cleanup/
    """

    @extend_schema(
        operation_id="admin_cleanup_profiles",
        summary="Delete stale profiles now (platform admin)",
        request=None,
        responses={200: OpenApiResponse(description="Number of profiles deleted")},
        tags=["Admin"],
    )
    def post(self, request):
        if not request.user.can_administer():
            return Response(
                {"error": "Platform admin role required", "error_code": "NOT_AUTHORIZED"},
                status=status.HTTP_403_FORBIDDEN,
            )

        deleted = UserService.cleanup_stale_profiles()
        logger.info(f"Admin {request.user.code} ran stale profile cleanup: {deleted}")
        return Response({"deleted": deleted})
