"""
Sync entry points into the realtime hub for views and tasks.

REST handlers change state through the service layer and then push a
notification to the affected live sessions. Delivery is best effort: a
failure is logged and never turns a successful request into an error.

Usage:
    from chat.realtime import notify

    notify.users([user.code, contact.code], events.contacts_updated())
    notify.message_updated(message)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from asgiref.sync import async_to_sync

from chat.realtime.hub import get_hub

logger = logging.getLogger(__name__)


def users(codes: Iterable[str], payload: dict) -> int:
    """Send `payload` to each reachable identity in `codes`."""
    codes = list(codes)
    try:
        return async_to_sync(get_hub().fanout.notify)(codes, payload)
    except Exception:
        logger.warning(f"Notification {payload.get('type')} to {codes} failed", exc_info=True)
        return 0


def everyone(payload: dict) -> int:
    """Send `payload` to every live session of this process."""
    try:
        return async_to_sync(get_hub().fanout.broadcast)(payload)
    except Exception:
        logger.warning(f"Broadcast of {payload.get('type')} failed", exc_info=True)
        return 0


def message_updated(message) -> int:
    """Announce an edited or deleted message to its sender and receiver."""
    from chat.serializers import serialize_message

    try:
        return async_to_sync(get_hub().fanout.deliver_update)(serialize_message(message))
    except Exception:
        logger.warning(f"message-updated for {message.pk} failed", exc_info=True)
        return 0


def direct_message(message) -> int:
    """Deliver a direct message created outside the live path."""
    from chat.serializers import serialize_message

    try:
        return async_to_sync(get_hub().fanout.deliver_direct)(serialize_message(message))
    except Exception:
        logger.warning(f"new-message for {message.pk} failed", exc_info=True)
        return 0
