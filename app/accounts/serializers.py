"""
Serializers for account models.

This module provides DRF serializers for:
- User model (public and own-profile read operations)
- Profile creation, update, restore and password input
- Contact request input

Related files:
    - models.py: User model
    - views.py: Views that use these serializers
    - services.py: UserService, ContactService

Security:
    - Password fields are write-only
    - The own-profile serializer is the only one exposing the device binding
"""

from rest_framework import serializers

from accounts.constants import PROFILE_CONFIG
from accounts.models import User


class UserSerializer(serializers.ModelSerializer):
    """
    Public view of a profile.

    Used for contact lists, requests, search results and group rosters.
    """

    class Meta:
        model = User
        fields = [
            "code",
            "display_name",
            "avatar",
            "is_online",
            "last_seen",
        ]
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    """
    Own-profile view, including the social graph as code lists.
    """

    contacts = serializers.SerializerMethodField()
    pending = serializers.SerializerMethodField()
    requests = serializers.SerializerMethodField()
    groups = serializers.SerializerMethodField()
    has_password = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "code",
            "display_name",
            "avatar",
            "contacts",
            "pending",
            "requests",
            "groups",
            "is_online",
            "last_seen",
            "last_used_at",
            "device_id",
            "is_device_locked",
            "has_password",
            "is_admin",
            "created_at",
        ]
        read_only_fields = fields

    def get_contacts(self, obj):
        return obj.contact_codes()

    def get_pending(self, obj):
        return list(obj.pending.values_list("code", flat=True))

    def get_requests(self, obj):
        return list(obj.requests.values_list("code", flat=True))

    def get_groups(self, obj):
        return list(obj.group_memberships().values_list("code", flat=True))


class AdminUserSerializer(ProfileSerializer):
    """Profile view for the admin console (adds activity flags)."""

    class Meta(ProfileSerializer.Meta):
        fields = [*ProfileSerializer.Meta.fields, "is_active", "updated_at"]
        read_only_fields = fields


class ProfileCreateSerializer(serializers.Serializer):
    """Input for creating a profile."""

    display_name = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_DISPLAY_NAME_LENGTH,
        trim_whitespace=True,
    )
    avatar = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_AVATAR_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    password = serializers.CharField(
        required=False,
        allow_blank=True,
        write_only=True,
        style={"input_type": "password"},
    )
    device_id = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_DEVICE_ID_LENGTH,
        required=False,
        allow_blank=True,
    )
    is_device_locked = serializers.BooleanField(required=False, default=False)


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Input for updating the own profile.

    All fields are optional; only the keys present are changed.
    """

    display_name = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_DISPLAY_NAME_LENGTH,
        required=False,
    )
    avatar = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_AVATAR_LENGTH,
        required=False,
        allow_blank=True,
    )
    device_id = serializers.CharField(
        max_length=PROFILE_CONFIG.MAX_DEVICE_ID_LENGTH,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    is_device_locked = serializers.BooleanField(required=False)


class PasswordSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, style={"input_type": "password"})


class RestoreSerializer(serializers.Serializer):
    password = serializers.CharField(
        required=False,
        allow_blank=True,
        write_only=True,
        style={"input_type": "password"},
    )


class ContactRequestSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=8, help_text="Code of the profile to add")


class AuthenticatedProfileSerializer(serializers.Serializer):
    """Response shape for endpoints that hand out a JWT pair."""

    user = ProfileSerializer()
    access = serializers.CharField()
    refresh = serializers.CharField()
