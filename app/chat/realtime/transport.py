"""
Delivery transport for live events.

A handle is a Channels channel name; delivering an event means sending a
`realtime.event` message on the channel layer, which the owning
RealtimeConsumer forwards to its WebSocket.

Delivery is best effort: a failure is logged and reported as False, never
raised, so one broken recipient cannot stop a fan-out.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

# Channel layer message type handled by RealtimeConsumer.realtime_event
REALTIME_EVENT = "realtime.event"


class Transport(Protocol):
    """Anything that can push a JSON payload to a live connection."""

    async def send(self, handle: str, payload: dict[str, Any]) -> bool: ...


class ChannelLayerTransport:
    """
    Transport backed by the configured Channels layer.

    The layer is resolved lazily so that test settings overriding
    CHANNEL_LAYERS take effect.
    """

    def __init__(self, alias: str = "default"):
        self.alias = alias

    @property
    def layer(self):
        return get_channel_layer(self.alias)

    async def send(self, handle: str, payload: dict[str, Any]) -> bool:
        layer = self.layer
        if layer is None:
            logger.warning(f"No channel layer; dropped {payload.get('type')} for {handle}")
            return False

        try:
            await layer.send(handle, {"type": REALTIME_EVENT, "payload": payload})
        except Exception:
            logger.warning(
                f"Delivery of {payload.get('type')} to {handle} failed",
                exc_info=True,
            )
            return False
        return True
