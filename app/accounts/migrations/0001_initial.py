import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import accounts.managers


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("password", models.CharField(max_length=128, verbose_name="password")),
                (
                    "last_login",
                    models.DateTimeField(blank=True, null=True, verbose_name="last login"),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        editable=False,
                        help_text="Short numeric code identifying this record",
                        max_length=8,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "display_name",
                    models.CharField(help_text="Name shown to other users", max_length=50),
                ),
                (
                    "avatar",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Avatar reference (URL or storage key)",
                        max_length=500,
                    ),
                ),
                (
                    "is_online",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether a live session is currently registered",
                    ),
                ),
                (
                    "last_seen",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Last connect or disconnect",
                    ),
                ),
                (
                    "last_used_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="Last time the profile was opened on a client",
                    ),
                ),
                (
                    "device_id",
                    models.CharField(
                        blank=True,
                        help_text="Device the profile is bound to",
                        max_length=128,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "is_device_locked",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the profile is restored automatically on its device",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this profile can authenticate",
                    ),
                ),
                (
                    "is_admin",
                    models.BooleanField(
                        default=False,
                        help_text="Platform administrator (user/group moderation)",
                    ),
                ),
                (
                    "contacts",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Accepted contacts (stored on both sides)",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "pending",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Users this user has sent a contact request to",
                        related_name="requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "ordering": ["created_at"],
            },
            managers=[
                ("objects", accounts.managers.UserManager()),
            ],
        ),
    ]
