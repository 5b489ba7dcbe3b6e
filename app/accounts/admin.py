"""
Django admin configuration for account models.

Profiles are created by clients and by `createsuperuser`; the admin is for
inspection, moderation and toggling the platform admin role.

Related files:
    - models.py: User model
"""

from django.contrib import admin

from accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin configuration for User model."""

    list_display = (
        "code",
        "display_name",
        "is_online",
        "last_seen",
        "last_used_at",
        "is_device_locked",
        "is_admin",
        "is_active",
    )
    list_filter = ("is_online", "is_admin", "is_active", "is_device_locked")
    search_fields = ("code", "display_name", "device_id")
    ordering = ("-last_used_at",)

    fieldsets = (
        (None, {"fields": ("code", "display_name", "avatar")}),
        ("Device", {"fields": ("device_id", "is_device_locked")}),
        ("Presence", {"fields": ("is_online", "last_seen", "last_used_at")}),
        ("Roles", {"fields": ("is_active", "is_admin")}),
        ("Contacts", {"fields": ("contacts", "pending")}),
        ("Important dates", {"fields": ("created_at", "last_login")}),
    )
    readonly_fields = ("code", "created_at", "last_login", "is_online", "last_seen")
    filter_horizontal = ("contacts", "pending")
