"""
Account service layer.

This module provides the business logic for profiles and the contact graph.

Services:
    UserService: Profile lifecycle (create, restore, update, presence, admin)
    ContactService: Contact requests and contact edges

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Multi-row changes run inside cls.atomic()
    - Live notifications are the caller's concern (views push events
      through chat.realtime.notify after a successful result)

Usage:
    from accounts.services import ContactService, UserService

    result = UserService.create_user(display_name="Ada")
    if result.success:
        user = result.data

    result = ContactService.send_request(user, "4821")
    if not result.success:
        print(result.error_code)  # "ALREADY_CONTACT", ...
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from core.services import BaseService, ServiceResult

from accounts.constants import PROFILE_CONFIG
from accounts.models import User

if TYPE_CHECKING:
    from django.db.models import QuerySet

logger = logging.getLogger(__name__)

# Profile fields a user may change on their own profile
EDITABLE_PROFILE_FIELDS = ("display_name", "avatar", "device_id", "is_device_locked")


def issue_tokens(user: User) -> dict[str, str]:
    """
    Issue a JWT pair for a profile.

    The access token carries the profile code in the `user_code` claim,
    which is what the realtime middleware resolves on connect.
    """
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
    }


class UserService(BaseService):
    """
    Service for profile operations.

    Methods:
        create_user: Create a profile (joins the global group in the background)
        get_by_code / get_by_device: Lookups
        update_profile: Change own display name, avatar or device binding
        set_password: Set or replace the profile password
        restore: Restore a profile by code, checking the password if set
        touch_last_used: Record that the profile was opened
        set_presence / reset_presence: Durable presence mirror
        list_users / delete_user: Platform admin operations
        cleanup_stale_profiles: Remove abandoned profiles
    """

    @classmethod
    def create_user(
        cls,
        display_name: str,
        avatar: str = "",
        password: str | None = None,
        device_id: str | None = None,
        is_device_locked: bool = False,
    ) -> ServiceResult[User]:
        """
        Create a new profile.

        A device already bound to another profile is moved to the new one.
        After commit the profile is added to the global group by a Celery
        task, so a slow backfill never delays the response.

        Error codes:
            VALIDATION_ERROR: Display name missing
            PASSWORD_TOO_SHORT: Password given but shorter than the minimum
        """
        validation = cls.validate_required(display_name=display_name)
        if validation is not None:
            return validation

        if password and len(password) < PROFILE_CONFIG.PASSWORD_MIN_LENGTH:
            return cls._password_too_short()

        with cls.atomic():
            if device_id:
                User.objects.filter(device_id=device_id).update(device_id=None)

            user = User.objects.create_user(
                password=password,
                display_name=display_name.strip(),
                avatar=avatar or "",
                device_id=device_id or None,
                is_device_locked=is_device_locked,
            )

            from accounts.tasks import add_user_to_global_group

            transaction.on_commit(lambda: add_user_to_global_group.delay(user.code))

        cls.get_logger().info(f"Created profile {user.code}")
        return ServiceResult.success(user)

    @classmethod
    def get_by_code(cls, code: str) -> ServiceResult[User]:
        try:
            return ServiceResult.success(User.objects.get(code=code, is_active=True))
        except User.DoesNotExist:
            return cls._user_not_found(code)

    @classmethod
    def get_by_device(cls, device_id: str) -> ServiceResult[User]:
        """Find the profile bound to a device."""
        if not device_id or not device_id.strip():
            return ServiceResult.failure(
                "device_id is required",
                error_code="VALIDATION_ERROR",
            )

        user = User.objects.filter(device_id=device_id, is_active=True).first()
        if user is None:
            return ServiceResult.failure(
                "No profile is bound to this device",
                error_code="USER_NOT_FOUND",
            )
        return ServiceResult.success(user)

    @classmethod
    def update_profile(cls, user: User, **changes) -> ServiceResult[User]:
        """
        Update editable profile fields.

        Unknown keys are ignored. Binding a device moves the binding away
        from whichever profile held it before.

        Error codes:
            VALIDATION_ERROR: Display name set to an empty value
        """
        updates = {k: v for k, v in changes.items() if k in EDITABLE_PROFILE_FIELDS}

        if "display_name" in updates:
            validation = cls.validate_required(display_name=updates["display_name"])
            if validation is not None:
                return validation
            updates["display_name"] = updates["display_name"].strip()

        if "device_id" in updates:
            updates["device_id"] = updates["device_id"] or None

        if not updates:
            return ServiceResult.success(user)

        with cls.atomic():
            if updates.get("device_id"):
                User.objects.filter(device_id=updates["device_id"]).exclude(
                    code=user.code
                ).update(device_id=None)

            for field, value in updates.items():
                setattr(user, field, value)
            user.save(update_fields=[*updates, "updated_at"])

        cls.get_logger().info(
            f"Updated profile {user.code}: {', '.join(sorted(updates))}"
        )
        return ServiceResult.success(user)

    @classmethod
    def set_password(cls, user: User, password: str) -> ServiceResult[User]:
        """
        Set the profile password.

        Error codes:
            PASSWORD_TOO_SHORT: Shorter than PROFILE_CONFIG.PASSWORD_MIN_LENGTH
        """
        if not password or len(password) < PROFILE_CONFIG.PASSWORD_MIN_LENGTH:
            return cls._password_too_short()

        user.set_password(password)
        user.save(update_fields=["password", "updated_at"])

        cls.get_logger().info(f"Password set for profile {user.code}")
        return ServiceResult.success(user)

    @classmethod
    def restore(cls, code: str, password: str | None = None) -> ServiceResult[User]:
        """
        Restore a profile on a new client.

        Profiles without a password are restored by code alone.

        Error codes:
            USER_NOT_FOUND: No active profile with this code
            PASSWORD_REQUIRED: Profile has a password and none was given
            INCORRECT_PASSWORD: Password does not match
        """
        result = cls.get_by_code(code)
        if not result.success:
            return result
        user = result.data

        if user.has_password:
            if not password:
                return ServiceResult.failure(
                    "This profile is protected by a password",
                    error_code="PASSWORD_REQUIRED",
                )
            if not user.check_password(password):
                cls.get_logger().warning(f"Incorrect password for profile {code}")
                return ServiceResult.failure(
                    "Incorrect password",
                    error_code="INCORRECT_PASSWORD",
                )

        cls.touch_last_used(user)
        return ServiceResult.success(user)

    @classmethod
    def touch_last_used(cls, user: User) -> ServiceResult[User]:
        user.last_used_at = timezone.now()
        user.save(update_fields=["last_used_at"])
        return ServiceResult.success(user)

    @classmethod
    def set_presence(cls, code: str, is_online: bool, last_seen=None) -> int:
        """
        Write the durable presence mirror for one profile.

        Returns:
            Number of rows updated (0 when the profile no longer exists)
        """
        return User.objects.filter(code=code).update(
            is_online=is_online,
            last_seen=last_seen or timezone.now(),
        )

    @classmethod
    def reset_presence(cls) -> int:
        """
        Mark every profile offline.

        Run when a process starts: its in-memory registry is empty, so any
        online flag left behind belongs to a session that no longer exists.
        """
        count = User.objects.filter(is_online=True).update(is_online=False)
        if count:
            cls.get_logger().info(f"Reset presence for {count} profiles")
        return count

    @classmethod
    def list_users(cls, actor: User) -> ServiceResult[QuerySet[User]]:
        """
        List all profiles for the admin console.

        Error codes:
            NOT_AUTHORIZED: Actor is not a platform admin
        """
        if not actor.can_administer():
            return cls._not_authorized()
        return ServiceResult.success(User.objects.all())

    @classmethod
    def delete_user(cls, actor: User, code: str) -> ServiceResult[dict]:
        """
        Delete a profile and everything that references it.

        Group memberships, contact and request edges, and every message the
        profile sent or received are removed through cascades.

        Returns:
            ServiceResult with the deleted code and the codes of its former
            contacts, so the caller can notify them.

        Error codes:
            NOT_AUTHORIZED: Actor is not a platform admin
            USER_NOT_FOUND: No profile with this code
            CANNOT_DELETE_ADMIN: Target is a platform admin
        """
        if not actor.can_administer():
            return cls._not_authorized()

        try:
            user = User.objects.get(code=code)
        except User.DoesNotExist:
            return cls._user_not_found(code)

        if user.is_admin:
            return ServiceResult.failure(
                "Platform admins cannot be deleted",
                error_code="CANNOT_DELETE_ADMIN",
            )

        with cls.atomic():
            contact_codes = user.contact_codes()
            user.delete()

        cls.get_logger().info(f"Admin {actor.code} deleted profile {code}")
        return ServiceResult.success({"code": code, "contacts": contact_codes})

    @classmethod
    def stale_profiles(cls) -> QuerySet[User]:
        """Profiles unused for CHAT_STALE_PROFILE_DAYS with no contacts and no groups."""
        cutoff = timezone.now() - timedelta(days=settings.CHAT_STALE_PROFILE_DAYS)
        return User.objects.filter(
            last_used_at__lt=cutoff,
            is_admin=False,
            contacts__isnull=True,
            member_groups__isnull=True,
            admin_groups__isnull=True,
        ).distinct()

    @classmethod
    def cleanup_stale_profiles(cls) -> int:
        """
        Delete abandoned profiles.

        Returns:
            Number of profiles deleted
        """
        codes = list(cls.stale_profiles().values_list("code", flat=True))
        if not codes:
            return 0

        with cls.atomic():
            User.objects.filter(code__in=codes).delete()

        cls.get_logger().info(f"Cleaned up {len(codes)} stale profiles")
        return len(codes)

    # =========================================================================
    # Failure helpers
    # =========================================================================

    @staticmethod
    def _user_not_found(code: str) -> ServiceResult:
        return ServiceResult.failure(
            f"User {code} not found",
            error_code="USER_NOT_FOUND",
        )

    @staticmethod
    def _not_authorized() -> ServiceResult:
        return ServiceResult.failure(
            "Platform admin role required",
            error_code="NOT_AUTHORIZED",
        )

    @staticmethod
    def _password_too_short() -> ServiceResult:
        return ServiceResult.failure(
            f"Password must be at least {PROFILE_CONFIG.PASSWORD_MIN_LENGTH} characters",
            error_code="PASSWORD_TOO_SHORT",
        )


class ContactService(BaseService):
    """
    Service for the contact graph.

    A pair of profiles is always in exactly one state: contacts, one
    request in flight, or unrelated. Every method keeps that invariant
    and leaves the graph untouched on failure.

    Methods:
        send_request: Ask another profile to become a contact
        accept_request: Accept an incoming request
        decline_request: Decline an incoming request
        cancel_request: Withdraw an outgoing request
        remove_contact: Drop a contact on both sides
    """

    @classmethod
    def send_request(cls, user: User, target_code: str) -> ServiceResult[User]:
        """
        Send a contact request.

        Error codes:
            CANNOT_ADD_SELF: Target is the sender
            USER_NOT_FOUND: Target does not exist
            ALREADY_CONTACT: Already contacts
            ALREADY_PENDING: Request already sent
            INCOMING_REQUEST_EXISTS: Target already sent a request to the sender
        """
        if target_code == user.code:
            return ServiceResult.failure(
                "You cannot add yourself",
                error_code="CANNOT_ADD_SELF",
            )

        result = UserService.get_by_code(target_code)
        if not result.success:
            return result
        target = result.data

        if user.contacts.filter(code=target.code).exists():
            return ServiceResult.failure(
                f"{target.code} is already a contact",
                error_code="ALREADY_CONTACT",
            )
        if user.pending.filter(code=target.code).exists():
            return ServiceResult.failure(
                f"A request to {target.code} is already pending",
                error_code="ALREADY_PENDING",
            )
        if user.requests.filter(code=target.code).exists():
            return ServiceResult.failure(
                f"{target.code} already sent you a request",
                error_code="INCOMING_REQUEST_EXISTS",
            )

        user.pending.add(target)

        cls.get_logger().info(f"{user.code} sent a contact request to {target.code}")
        return ServiceResult.success(target)

    @classmethod
    def accept_request(cls, user: User, requester_code: str) -> ServiceResult[User]:
        """
        Accept a request from `requester_code`.

        The request edge and the new contact edge change in one
        transaction. A second accept of the same request fails.

        Error codes:
            NO_PENDING_REQUEST: No request from this profile
        """
        requester = user.requests.filter(code=requester_code).first()
        if requester is None:
            return cls._no_pending_request(requester_code)

        with cls.atomic():
            user.requests.remove(requester)
            user.contacts.add(requester)

        cls.get_logger().info(f"{user.code} accepted contact request from {requester_code}")
        return ServiceResult.success(requester)

    @classmethod
    def decline_request(cls, user: User, requester_code: str) -> ServiceResult[User]:
        requester = user.requests.filter(code=requester_code).first()
        if requester is None:
            return cls._no_pending_request(requester_code)

        user.requests.remove(requester)

        cls.get_logger().info(f"{user.code} declined contact request from {requester_code}")
        return ServiceResult.success(requester)

    @classmethod
    def cancel_request(cls, user: User, target_code: str) -> ServiceResult[User]:
        """Withdraw a request this user sent."""
        target = user.pending.filter(code=target_code).first()
        if target is None:
            return cls._no_pending_request(target_code)

        user.pending.remove(target)

        cls.get_logger().info(f"{user.code} cancelled contact request to {target_code}")
        return ServiceResult.success(target)

    @classmethod
    def remove_contact(cls, user: User, contact_code: str) -> ServiceResult[str]:
        """
        Remove a contact on both sides.

        Removing someone who is not a contact is a no-op success.
        """
        removed = user.contacts.filter(code=contact_code).first()
        if removed is not None:
            user.contacts.remove(removed)
            cls.get_logger().info(f"{user.code} removed contact {contact_code}")
        return ServiceResult.success(contact_code)

    @staticmethod
    def _no_pending_request(code: str) -> ServiceResult:
        return ServiceResult.failure(
            f"No pending request with {code}",
            error_code="NO_PENDING_REQUEST",
        )
