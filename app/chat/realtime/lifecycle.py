"""
Connection lifecycle: register, disconnect and presence fan-out.

Registering binds the identity in the registry first, so the session is
reachable before anything touches the database. The durable presence
write then runs in the background while contacts are notified.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.utils import timezone

from chat.realtime import events

if TYPE_CHECKING:
    from chat.realtime.background import BackgroundTasks
    from chat.realtime.registry import PresenceRegistry
    from chat.realtime.store import ChatStore
    from chat.realtime.transport import Transport

logger = logging.getLogger(__name__)


class ConnectionLifecycle:
    """
    Tracks live sessions and tells contacts when someone comes or goes.

    Usage:
        lifecycle = ConnectionLifecycle(registry, transport, store, tasks)
        await lifecycle.register("4821", channel_name)
        await lifecycle.disconnect(channel_name)
    """

    def __init__(
        self,
        registry: PresenceRegistry,
        transport: Transport,
        store: ChatStore,
        tasks: BackgroundTasks,
    ):
        self.registry = registry
        self.transport = transport
        self.store = store
        self.tasks = tasks

    async def register(self, identity: str, handle: str) -> str | None:
        """
        Bind `identity` to `handle` and announce it to reachable contacts.

        Returns:
            The superseded handle, if the identity was already live elsewhere
        """
        previous = self.registry.bind(identity, handle)
        if previous == handle:
            logger.debug(f"{identity} already registered on {handle}")
            return previous

        now = timezone.now()

        self.tasks.schedule(
            self._write_presence(identity, True, now),
            name=f"presence-online:{identity}",
        )
        await self._announce(identity, True, now)

        logger.info(f"Registered {identity} on {handle}")
        return previous

    async def disconnect(self, handle: str) -> str | None:
        """
        Release `handle`.

        An unknown or superseded handle is ignored: the identity may
        already be live on a newer connection.

        Returns:
            The identity that went offline, or None
        """
        identity = self.registry.unbind(handle)
        if identity is None:
            logger.debug(f"Disconnect of unbound handle {handle}")
            return None

        now = timezone.now()
        self.tasks.schedule(
            self._write_presence(identity, False, now),
            name=f"presence-offline:{identity}",
        )
        await self._announce(identity, False, now)

        logger.info(f"Disconnected {identity} from {handle}")
        return identity

    async def shutdown(self) -> int:
        """
        Mark every still-bound identity offline.

        Returns:
            Number of identities released
        """
        identities = self.registry.identities()
        now = timezone.now()
        for identity in identities:
            handle = self.registry.lookup(identity)
            if handle is not None:
                self.registry.unbind(handle)
            await self._write_presence(identity, False, now)

        if identities:
            logger.info(f"Shutdown released {len(identities)} live sessions")
        return len(identities)

    async def _write_presence(self, identity: str, is_online: bool, now) -> None:
        result = await self.store.set_presence(identity, is_online, now)
        if not result.success:
            logger.warning(
                f"Presence write for {identity} failed: {result.error_code}"
            )

    async def _announce(self, identity: str, is_online: bool, now) -> int:
        """Send presence-changed to each reachable contact, once each."""
        result = await self.store.contact_codes(identity)
        if not result.success:
            logger.warning(f"Could not load contacts of {identity}: {result.error_code}")
            return 0

        payload = events.presence_changed(identity, is_online, now)
        delivered = 0
        for contact in dict.fromkeys(result.data):
            handle = self.registry.lookup(contact)
            if handle is None:
                continue
            if await self.transport.send(handle, payload):
                delivered += 1
        return delivered
