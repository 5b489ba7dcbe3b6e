"""
Constants for profile and contact management.

Import example:
    from accounts.constants import PROFILE_CONFIG
"""

from typing import Final


class PROFILE_CONFIG:
    """Configuration for profiles."""

    MAX_DISPLAY_NAME_LENGTH: Final[int] = 50
    MAX_AVATAR_LENGTH: Final[int] = 500
    MAX_DEVICE_ID_LENGTH: Final[int] = 128

    # Profile passwords are a light lock, not an account credential
    PASSWORD_MIN_LENGTH: Final[int] = 4
