"""
Account models.

This module defines the User model: a chat profile identified by a short
numeric code. Profiles are lightweight (no email, optional password) and
carry the social graph used by the realtime core:

- contacts: symmetric friendship edges
- pending / requests: in-flight friend requests (asymmetric)
- is_online / last_seen: best-effort mirror of the in-memory presence registry

Group membership lives on chat.Group (members/admins); a user's groups are
derived from it rather than stored twice.

Related files:
    - managers.py: UserManager (code allocation, optional password)
    - services.py: UserService, ContactService
"""

from django.contrib.auth.models import AbstractBaseUser
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounts.constants import PROFILE_CONFIG
from accounts.managers import UserManager
from core.model_mixins import ShortCodeMixin
from core.models import BaseModel


class User(ShortCodeMixin, AbstractBaseUser, BaseModel):
    """
    Chat profile identified by its short code.

    Fields:
        code: Public identifier and primary key ("4821")
        display_name: Name shown to other users
        avatar: Opaque avatar reference (URL or storage key)
        contacts: Symmetric contact edges
        pending: Users this user has sent a contact request to
            (reverse accessor `requests`: users who sent one to this user)
        is_online / last_seen: Durable presence mirror
        last_used_at: Last time the profile was opened on a client
        device_id / is_device_locked: Device binding for automatic restore
        is_admin: Platform administrator role

    Invariant:
        For any ordered pair, the users are either contacts, have one
        request in flight, or are unrelated; never contacts and pending.
    """

    display_name = models.CharField(
        max_length=PROFILE_CONFIG.MAX_DISPLAY_NAME_LENGTH,
        help_text="Name shown to other users",
    )
    avatar = models.CharField(
        max_length=PROFILE_CONFIG.MAX_AVATAR_LENGTH,
        blank=True,
        default="",
        help_text="Avatar reference (URL or storage key)",
    )

    # Social graph
    contacts = models.ManyToManyField(
        "self",
        symmetrical=True,
        blank=True,
        help_text="Accepted contacts (stored on both sides)",
    )
    pending = models.ManyToManyField(
        "self",
        symmetrical=False,
        related_name="requests",
        blank=True,
        help_text="Users this user has sent a contact request to",
    )

    # Presence mirror
    is_online = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether a live session is currently registered",
    )
    last_seen = models.DateTimeField(
        default=timezone.now,
        help_text="Last connect or disconnect",
    )
    last_used_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Last time the profile was opened on a client",
    )

    # Device binding
    device_id = models.CharField(
        max_length=PROFILE_CONFIG.MAX_DEVICE_ID_LENGTH,
        null=True,
        blank=True,
        unique=True,
        help_text="Device the profile is bound to",
    )
    is_device_locked = models.BooleanField(
        default=False,
        help_text="Whether the profile is restored automatically on its device",
    )

    # Roles
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this profile can authenticate",
    )
    is_admin = models.BooleanField(
        default=False,
        help_text="Platform administrator (user/group moderation)",
    )

    USERNAME_FIELD = "code"
    REQUIRED_FIELDS = ["display_name"]

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.display_name} ({self.code})"

    # =========================================================================
    # Roles
    # =========================================================================

    def can_administer(self) -> bool:
        """Whether this user may run platform admin operations."""
        return self.is_active and self.is_admin

    @property
    def is_staff(self) -> bool:
        """Django admin access follows the platform admin role."""
        return self.can_administer()

    @property
    def is_superuser(self) -> bool:
        return self.can_administer()

    def has_perm(self, perm, obj=None) -> bool:
        return self.can_administer()

    def has_module_perms(self, app_label) -> bool:
        return self.can_administer()

    # =========================================================================
    # Social graph helpers
    # =========================================================================

    @property
    def has_password(self) -> bool:
        return self.has_usable_password()

    def group_memberships(self):
        """Groups this user belongs to, as member or admin."""
        from chat.models import Group

        return Group.objects.filter(Q(members=self) | Q(admins=self)).distinct()

    def contact_codes(self) -> list[str]:
        return list(self.contacts.values_list("code", flat=True))
