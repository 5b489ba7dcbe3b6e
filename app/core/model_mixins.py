"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    ShortCodeMixin: Short numeric code as primary key, allocated on first save
    SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Usage:
    from core.models import BaseModel
    from core.model_mixins import ShortCodeMixin, SoftDeleteMixin

    class Group(ShortCodeMixin, BaseModel):
        name = models.CharField(max_length=100)

    group = Group.objects.create(name="Friends")
    group.code  # "5120"

    class Message(SoftDeleteMixin, BaseModel):
        content = models.TextField()

    message.soft_delete()
    message.is_deleted  # True
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.helpers import generate_unique_code


class ShortCodeMixin(models.Model):
    """
    Short numeric code used as the primary key.

    Codes are what users type and share ("add me: 4821"), so they double
    as the public identifier. A code is allocated on first save when none
    was given; see core.helpers.generate_unique_code for the collision
    check.

    Fields:
        code: Fixed-width decimal string, primary key
    """

    code = models.CharField(
        primary_key=True,
        max_length=8,
        editable=False,
        help_text="Short numeric code identifying this record",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self.code:
            self.code = generate_unique_code(type(self))
            # A fresh code means a fresh row, never an UPDATE of an old one
            kwargs["force_insert"] = True
        super().save(*args, **kwargs)


class SoftDeleteMixin(models.Model):
    """
    Soft delete support for models.

    Instead of removing records, marks them as deleted. Subclasses may
    extend soft_delete() to scrub content at the same time.

    Fields:
        is_deleted: Boolean flag indicating soft delete status
        deleted_at: Timestamp when the record was soft deleted
    """

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this record has been soft deleted",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was soft deleted",
    )

    class Meta:
        abstract = True

    def soft_delete(self) -> None:
        """Mark this record as deleted and persist the flag."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])
