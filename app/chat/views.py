"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- GroupViewSet: Group creation, settings and membership actions
- DirectHistoryView: Direct history with another profile
- MessageDetailView: Edit or delete an own message
- Admin views: Delete a group, ban a profile from a group

URL Structure (under /api/v1/chat/):
    groups/                          POST
    groups/{code}/                   GET, PATCH
    groups/{code}/join/              POST
    groups/{code}/leave/             POST
    groups/{code}/kick/              POST
    groups/{code}/mute/              POST
    groups/{code}/messages/          GET
    messages/direct/{code}/          GET
    messages/{id}/                   PATCH, DELETE
    admin/groups/{code}/             DELETE
    admin/groups/{code}/ban/         POST

Design Decisions:
    - All rules are enforced in chat.services; views only translate
    - Failures return {"error", "error_code"} via core.views.error_response
    - Successful changes are pushed to live sessions via chat.realtime.notify
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import error_response

from chat.models import Group
from chat.pagination import MessageCursorPagination
from chat.realtime import events, notify
from chat.serializers import (
    GroupAdminSerializer,
    GroupCreateSerializer,
    GroupMuteSerializer,
    GroupSerializer,
    GroupTargetSerializer,
    GroupUpdateSerializer,
    MessageEditSerializer,
    MessageSerializer,
)
from chat.services import GroupService, MessageService

logger = logging.getLogger(__name__)

# error_code -> HTTP status for chat endpoints
ERROR_STATUS = {
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "GROUP_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MESSAGE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "REPLY_TARGET_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_AUTHORIZED": status.HTTP_403_FORBIDDEN,
    "NOT_GROUP_ADMIN": status.HTTP_403_FORBIDDEN,
    "NOT_AUTHOR": status.HTTP_403_FORBIDDEN,
    "NOT_A_MEMBER": status.HTTP_403_FORBIDDEN,
    "SENDER_MUTED": status.HTTP_403_FORBIDDEN,
    # Join refusals are authorization failures for the caller
    "JOIN_DISABLED": status.HTTP_403_FORBIDDEN,
    "BANNED_FROM_GROUP": status.HTTP_403_FORBIDDEN,
    "CANNOT_KICK_ADMIN": status.HTTP_409_CONFLICT,
    "MESSAGE_DELETED": status.HTTP_409_CONFLICT,
    "ALREADY_DELETED": status.HTTP_409_CONFLICT,
    "CODE_SPACE_EXHAUSTED": status.HTTP_409_CONFLICT,
}


def group_response(group: Group, status_code=status.HTTP_200_OK) -> Response:
    return Response(GroupSerializer(group).data, status=status_code)


@extend_schema_view(
    create=extend_schema(
        operation_id="create_group",
        summary="Create group",
        description=(
            "Creates a group with the caller as its admin. Profiles listed in "
            "`invite` receive a direct message with the group code."
        ),
        request=GroupCreateSerializer,
        responses={201: GroupSerializer},
        tags=["Chat - Groups"],
    ),
    retrieve=extend_schema(
        operation_id="get_group",
        summary="Get group",
        responses={200: GroupSerializer, 404: OpenApiResponse(description="Not found")},
        tags=["Chat - Groups"],
    ),
    partial_update=extend_schema(
        operation_id="update_group",
        summary="Update group settings (group admin)",
        request=GroupUpdateSerializer,
        responses={200: GroupSerializer, 403: OpenApiResponse(description="Not a group admin")},
        tags=["Chat - Groups"],
    ),
)
class GroupViewSet(viewsets.ViewSet):
    """
    ViewSet for groups, addressed by code.

    create:
        Create a group; the creator becomes its admin.

    retrieve:
        Group details with rosters.

    partial_update:
        Change name, icon or join policy (group admins only).
    """

    lookup_field = "code"

    def get_group(self, code):
        """Return (group, None) or (None, error response)."""
        result = GroupService.get_group(code)
        if not result.success:
            return None, error_response(result, ERROR_STATUS)
        return result.data, None

    def create(self, request):
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = GroupService.create_group(
            creator=request.user,
            name=data["name"],
            icon=data.get("icon", ""),
            invite_codes=data.get("invite", []),
        )
        if not result.success:
            return error_response(result, ERROR_STATUS)

        for invitation in result.data.invitations:
            notify.direct_message(invitation)

        return group_response(result.data.group, status.HTTP_201_CREATED)

    def retrieve(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error
        return group_response(group)

    def partial_update(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        serializer = GroupUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = GroupService.update_settings(group, request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users(group.recipient_codes(), events.group_updated(group.code, "settings-updated"))
        return group_response(result.data)

    @extend_schema(
        operation_id="join_group",
        summary="Join group",
        request=None,
        responses={
            200: GroupSerializer,
            403: OpenApiResponse(description="Joining disabled or banned"),
        },
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"])
    def join(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        result = GroupService.join(group, request.user)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users(
            group.recipient_codes(),
            events.group_updated(group.code, "member-joined", request.user.code),
        )
        return group_response(result.data)

    @extend_schema(
        operation_id="leave_group",
        summary="Leave group",
        request=None,
        responses={204: None, 403: OpenApiResponse(description="Not a member")},
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        result = GroupService.leave(group, request.user)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.users(
            group.recipient_codes(),
            events.group_updated(group.code, "member-left", request.user.code),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="kick_group_member",
        summary="Kick member (group admin)",
        request=GroupTargetSerializer,
        responses={
            200: GroupSerializer,
            403: OpenApiResponse(description="Not a group admin"),
            409: OpenApiResponse(description="Target is a group admin"),
        },
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"])
    def kick(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        serializer = GroupTargetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.kick(group, request.user, serializer.validated_data["code"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        removal = result.data
        notify.users(
            removal.notify,
            events.group_updated(removal.group_code, "member-kicked", removal.target),
        )
        notify.users([removal.target], events.group_kicked(removal.group_code, removal.group_name))
        return group_response(group)

    @extend_schema(
        operation_id="mute_group_member",
        summary="Mute or unmute member (group admin)",
        request=GroupMuteSerializer,
        responses={200: GroupSerializer, 403: OpenApiResponse(description="Not a group admin")},
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"])
    def mute(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        serializer = GroupMuteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = GroupService.set_muted(group, request.user, data["code"], data["muted"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        action_name = "member-muted" if data["muted"] else "member-unmuted"
        notify.users(
            group.recipient_codes(),
            events.group_updated(group.code, action_name, data["code"]),
        )
        return group_response(result.data)

    @extend_schema(
        operation_id="group_history",
        summary="Group message history",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, code=None):
        group, error = self.get_group(code)
        if error:
            return error

        result = MessageService.group_conversation(group, request.user)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        paginator = MessageCursorPagination()
        page = paginator.paginate_queryset(result.data, request, view=self)
        return paginator.get_paginated_response(MessageSerializer(page, many=True).data)


class DirectHistoryView(APIView):
    """
    Direct history with another profile.

    GET /api/v1/chat/messages/direct/<code>/
    """

    @extend_schema(
        operation_id="direct_history",
        summary="Direct message history",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def get(self, request, code):
        queryset = MessageService.conversation(request.user, code)
        paginator = MessageCursorPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(MessageSerializer(page, many=True).data)


class MessageDetailView(APIView):
    """
    Edit or delete an own message.

    PATCH/DELETE /api/v1/chat/messages/<id>/
    """

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageEditSerializer,
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender"),
            409: OpenApiResponse(description="Message was deleted"),
        },
        tags=["Chat - Messages"],
    )
    def patch(self, request, message_id):
        serializer = MessageEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit(message_id, request.user, serializer.validated_data["content"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.message_updated(result.data)
        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender"),
            409: OpenApiResponse(description="Already deleted"),
        },
        tags=["Chat - Messages"],
    )
    def delete(self, request, message_id):
        result = MessageService.delete(message_id, request.user)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        notify.message_updated(result.data)
        return Response(MessageSerializer(result.data).data)


# =============================================================================
# Admin
# =============================================================================


class AdminGroupDeleteView(APIView):
    """
    DELETE /api/v1/chat/admin/groups/<code>/
    """

    @extend_schema(
        operation_id="admin_delete_group",
        summary="Delete group and its messages (platform admin)",
        responses={
            204: None,
            403: OpenApiResponse(description="Not a platform admin"),
            404: OpenApiResponse(description="Group not found"),
        },
        tags=["Admin"],
    )
    def delete(self, request, code):
        result = GroupService.delete_group(request.user, code)
        if not result.success:
            return error_response(result, ERROR_STATUS)

        removal = result.data
        notify.users(removal.notify, events.group_deleted(removal.group_code, removal.group_name))
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminGroupBanView(APIView):
    """
    POST /api/v1/chat/admin/groups/<code>/ban/
    """

    @extend_schema(
        operation_id="admin_ban_from_group",
        summary="Ban profile from group (platform admin)",
        request=GroupTargetSerializer,
        responses={
            200: GroupAdminSerializer,
            403: OpenApiResponse(description="Not a platform admin"),
            404: OpenApiResponse(description="Group or user not found"),
        },
        tags=["Admin"],
    )
    def post(self, request, code):
        serializer = GroupTargetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.get_group(code)
        if not result.success:
            return error_response(result, ERROR_STATUS)
        group = result.data

        result = GroupService.ban(group, request.user, serializer.validated_data["code"])
        if not result.success:
            return error_response(result, ERROR_STATUS)

        removal = result.data
        notify.users(
            removal.notify,
            events.group_updated(removal.group_code, "member-banned", removal.target),
        )
        notify.users([removal.target], events.group_kicked(removal.group_code, removal.group_name))
        return Response(GroupAdminSerializer(group).data)
