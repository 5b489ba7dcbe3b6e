"""
Message fan-out: persist first, then deliver to whoever is reachable.

There is no offline queue. A receiver without a live session finds the
message in its history later; a failed write delivers nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from core.services import ServiceResult

from chat.realtime import events

if TYPE_CHECKING:
    from chat.realtime.events import SendDirect, SendGroup
    from chat.realtime.registry import PresenceRegistry
    from chat.realtime.store import ChatStore
    from chat.realtime.transport import Transport

logger = logging.getLogger(__name__)


class MessageFanout:
    """
    Delivers persisted messages and notifications to live sessions.

    Usage:
        fanout = MessageFanout(registry, transport, store)
        result = await fanout.send_direct(event)
        if not result.success:
            # tell the originating session only
            ...
    """

    def __init__(self, registry: PresenceRegistry, transport: Transport, store: ChatStore):
        self.registry = registry
        self.transport = transport
        self.store = store

    async def send_direct(self, event: SendDirect) -> ServiceResult[dict]:
        """
        Persist a direct message and deliver it to sender and receiver.

        Returns:
            The store result; on failure nothing was delivered
        """
        result = await self.store.create_direct_message(event)
        if not result.success:
            logger.info(
                f"Direct message {event.sender} -> {event.receiver} refused: {result.error_code}"
            )
            return result

        message = result.data
        await self.deliver(event.sender, events.new_message(message, True))
        if event.receiver != event.sender:
            await self.deliver(event.receiver, events.new_message(message, False))
        return result

    async def send_group(self, event: SendGroup) -> ServiceResult[dict]:
        """
        Persist a group message and deliver it to every reachable member.

        Recipients are members plus admins; `self` is true only for the
        sender's copy.
        """
        result = await self.store.create_group_message(event)
        if not result.success:
            logger.info(
                f"Group message {event.sender} -> {event.group} refused: {result.error_code}"
            )
            return result

        record = result.data
        for identity in record.recipients:
            payload = events.new_group_message(record.message, identity == event.sender)
            await self.deliver(identity, payload)
        return ServiceResult.success(record.message)

    async def deliver_update(self, message: dict) -> int:
        """
        Announce an edited or deleted message.

        Goes to the sender and, for direct messages, the receiver.
        """
        codes = [message["sender"]]
        if message.get("receiver"):
            codes.append(message["receiver"])
        return await self.notify(codes, events.message_updated(message))

    async def deliver_direct(self, message: dict) -> int:
        """Deliver a message persisted outside the live path (invitations)."""
        delivered = await self.deliver(message["sender"], events.new_message(message, True))
        delivered += await self.deliver(message["receiver"], events.new_message(message, False))
        return delivered

    async def notify(self, codes: Iterable[str], payload: dict) -> int:
        """
        Send `payload` to each reachable identity in `codes`, once each.

        Returns:
            Number of sessions reached
        """
        delivered = 0
        for code in dict.fromkeys(codes):
            delivered += await self.deliver(code, payload)
        return delivered

    async def broadcast(self, payload: dict) -> int:
        """Send `payload` to every live session in this process."""
        return await self.notify(self.registry.identities(), payload)

    async def deliver(self, identity: str, payload: dict) -> int:
        handle = self.registry.lookup(identity)
        if handle is None:
            logger.debug(f"{payload.get('type')} for {identity} not delivered: offline")
            return 0
        return 1 if await self.transport.send(handle, payload) else 0
