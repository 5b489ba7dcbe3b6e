"""
Call signaling relay.

The server keeps no call state. Each event is forwarded to the session of
its addressee if one is live; clients decide for themselves whether they
are busy (see chat.realtime.calls for the client-side state machine).

Every operation returns a RelayOutcome so callers and tests can tell a
relayed event from an unreachable or dropped one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import models

from chat.constants import CALL_CONFIG
from chat.realtime import events

if TYPE_CHECKING:
    from chat.realtime.events import (
        AnswerCall,
        CallBusy,
        CallUser,
        EndCall,
        IceCandidate,
        RejectCall,
    )
    from chat.realtime.registry import PresenceRegistry
    from chat.realtime.transport import Transport

logger = logging.getLogger(__name__)


class RelayOutcome(models.TextChoices):
    """
    What happened to a signaling event.

    RELAYED: Delivered to the addressee
    UNAVAILABLE: Addressee offline, the origin was told (call-user only)
    DROPPED: Addressee offline, silently dropped
    """

    RELAYED = "relayed", "Relayed"
    UNAVAILABLE = "unavailable", "Unavailable"
    DROPPED = "dropped", "Dropped"


class CallSignaling:
    """
    Stateless relay keyed by reachability.

    `origin` is the handle of the session that sent the event; it receives
    call-unavailable and the echo of end-call.
    """

    def __init__(self, registry: PresenceRegistry, transport: Transport):
        self.registry = registry
        self.transport = transport

    async def call_user(self, event: CallUser, origin: str) -> RelayOutcome:
        handle = self.registry.lookup(event.target)
        if handle is None:
            logger.info(f"Call {event.caller} -> {event.target}: target unavailable")
            await self.transport.send(origin, events.call_unavailable(event.target))
            return RelayOutcome.UNAVAILABLE

        await self.transport.send(handle, events.incoming_call(event.caller, event.kind, event.offer))
        logger.info(f"Call {event.caller} -> {event.target} ({event.kind}) offered")
        return RelayOutcome.RELAYED

    async def answer_call(self, event: AnswerCall) -> RelayOutcome:
        return await self._relay(event.caller, events.call_accepted(event.callee, event.answer))

    async def reject_call(self, event: RejectCall) -> RelayOutcome:
        return await self._relay(event.caller, events.call_rejected(event.callee))

    async def call_busy(self, event: CallBusy) -> RelayOutcome:
        return await self._relay(event.caller, events.call_busy(event.callee))

    async def ice_candidate(self, event: IceCandidate) -> RelayOutcome:
        return await self._relay(event.target, events.ice_candidate(event.sender, event.candidate))

    async def end_call(self, event: EndCall, origin: str) -> RelayOutcome:
        """
        Tell the other party the call ended, and always echo to the origin
        so it can tear down even when the other side is gone.
        """
        reason = event.reason or CALL_CONFIG.DEFAULT_END_REASON
        payload = events.call_ended(event.sender, reason)
        outcome = await self._relay(event.target, payload)
        await self.transport.send(origin, payload)
        return outcome

    async def _relay(self, identity: str, payload: dict) -> RelayOutcome:
        handle = self.registry.lookup(identity)
        if handle is None:
            logger.debug(f"{payload['type']} for {identity} dropped: offline")
            return RelayOutcome.DROPPED
        await self.transport.send(handle, payload)
        return RelayOutcome.RELAYED
