"""
Process-wide realtime hub.

The hub owns the presence registry and hands it to the lifecycle, fan-out
and signaling components. Consumers and views share the hub of their
process through get_hub(); tests swap in a fresh one with reset_hub().
"""

from __future__ import annotations

import logging
import threading

from chat.realtime.background import BackgroundTasks
from chat.realtime.fanout import MessageFanout
from chat.realtime.lifecycle import ConnectionLifecycle
from chat.realtime.registry import PresenceRegistry
from chat.realtime.signaling import CallSignaling
from chat.realtime.store import ChatStore, DatabaseChatStore
from chat.realtime.transport import ChannelLayerTransport, Transport

logger = logging.getLogger(__name__)


class RealtimeHub:
    """
    Wiring of the realtime components around one registry.

    Attributes:
        registry: PresenceRegistry shared by every component
        lifecycle: ConnectionLifecycle
        fanout: MessageFanout
        signaling: CallSignaling
        tasks: BackgroundTasks for fire-and-forget writes
    """

    def __init__(
        self,
        registry: PresenceRegistry | None = None,
        transport: Transport | None = None,
        store: ChatStore | None = None,
        tasks: BackgroundTasks | None = None,
    ):
        self.registry = registry or PresenceRegistry()
        self.transport = transport or ChannelLayerTransport()
        self.store = store or DatabaseChatStore()
        self.tasks = tasks or BackgroundTasks()

        self.lifecycle = ConnectionLifecycle(self.registry, self.transport, self.store, self.tasks)
        self.fanout = MessageFanout(self.registry, self.transport, self.store)
        self.signaling = CallSignaling(self.registry, self.transport)


_hub: RealtimeHub | None = None
_hub_lock = threading.Lock()


def get_hub() -> RealtimeHub:
    """Return the hub of this process, creating it on first use."""
    global _hub
    with _hub_lock:
        if _hub is None:
            _hub = RealtimeHub()
        return _hub


def reset_hub(**components) -> RealtimeHub:
    """
    Replace the process hub.

    Example:
        hub = reset_hub(transport=RecordingTransport(), store=InMemoryChatStore())
    """
    global _hub
    with _hub_lock:
        _hub = RealtimeHub(**components)
        logger.debug("Realtime hub reset")
        return _hub
