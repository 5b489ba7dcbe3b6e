"""
Custom user manager for code-based profiles.

Profiles are identified by a short numeric code that is allocated on save
(see core.model_mixins.ShortCodeMixin). A password is optional: profiles
without one get an unusable password and can be restored by code alone.

Related files:
    - models.py: User model that uses this manager
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for the code-identified User model.

    Usage:
        # Anonymous-style profile, code allocated automatically
        user = User.objects.create_user(display_name="Ada")

        # Platform administrator with a password
        admin = User.objects.create_superuser(display_name="Ops", password="s3cret")
    """

    def create_user(self, code=None, password=None, **extra_fields):
        """
        Create and save a profile.

        Args:
            code: Explicit code (optional; allocated when omitted)
            password: Profile password (optional)
            **extra_fields: Additional fields to set on the user

        Returns:
            User: The created user instance

        Raises:
            ValueError: If display_name is missing
        """
        if not extra_fields.get("display_name"):
            raise ValueError("The display_name field must be set")

        extra_fields.setdefault("is_admin", False)

        user = self.model(code=code or "", **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, code=None, password=None, **extra_fields):
        """
        Create and save a platform administrator.

        Raises:
            ValueError: If is_admin is explicitly False or no password is given
        """
        extra_fields.setdefault("is_admin", True)

        if extra_fields.get("is_admin") is not True:
            raise ValueError("Superuser must have is_admin=True.")
        if not password:
            raise ValueError("Superuser must have a password.")

        return self.create_user(code, password, **extra_fields)
