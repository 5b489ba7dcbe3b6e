"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, tombstone text)
- Group settings (name and icon limits, invitation text)
- Call signaling (call kinds, default end reason)

Import example:
    from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_FILE_NAME_LENGTH: Final[int] = 255
    MAX_CAPTION_LENGTH: Final[int] = 1000

    # Content of a deleted message; deleted messages are immutable
    TOMBSTONE: Final[str] = "This message was deleted"

    # Conversation history
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


# =============================================================================
# Group Configuration
# =============================================================================


class GROUP_CONFIG:
    """Configuration for groups."""

    MAX_NAME_LENGTH: Final[int] = 100
    MAX_ICON_LENGTH: Final[int] = 500

    # Direct message sent to each invitee when a group is created
    INVITATION_TEMPLATE: Final[str] = (
        'You have been invited to join "{name}" by {inviter}. Group code: {code}'
    )


# =============================================================================
# Call Configuration
# =============================================================================


class CALL_CONFIG:
    """Configuration for call signaling."""

    KINDS: Final[tuple] = ("audio", "video")
    DEFAULT_KIND: Final[str] = "audio"
    DEFAULT_END_REASON: Final[str] = "ended"
