"""
Client-side call session state machine.

The server relays signaling without tracking calls, so each client keeps
its own CallSession. This model is what clients implement and what tests
use to drive realistic call flows against the relay.

States:
    idle -> dialing -> connected -> idle    (outgoing)
    idle -> ringing -> connected -> idle    (incoming)

A session that is not idle answers any new offer with call-busy and stays
in its current call.
"""

from __future__ import annotations

from typing import Any

from django.db import models

from core.exceptions import ConflictError

from chat.constants import CALL_CONFIG
from chat.realtime.events import EventType


class CallState(models.TextChoices):
    IDLE = "idle", "Idle"
    DIALING = "dialing", "Dialing"
    RINGING = "ringing", "Ringing"
    CONNECTED = "connected", "Connected"


class CallOutcome(models.TextChoices):
    """How the last call ended."""

    REJECTED = "rejected", "Rejected"
    BUSY = "busy", "Busy"
    UNAVAILABLE = "unavailable", "Unavailable"
    ENDED = "ended", "Ended"
    FAILED = "failed", "Failed"


class CallSession:
    """
    One client's view of its current call.

    Methods that the local user triggers return the inbound event the
    client must send; methods reacting to server events return None unless
    a reply is required.

    Usage:
        alice = CallSession("1111")
        payload = alice.dial("2222", offer={"sdp": "..."}, kind="video")
        # send payload, later:
        alice.on_accepted("2222")
        alice.state  # CallState.CONNECTED
    """

    def __init__(self, identity: str):
        self.identity = identity
        self.state = CallState.IDLE
        self.peer: str | None = None
        self.kind: str | None = None
        self.outcome: CallOutcome | None = None

    @property
    def is_idle(self) -> bool:
        return self.state == CallState.IDLE

    # =========================================================================
    # Outgoing
    # =========================================================================

    def dial(self, target: str, offer: Any, kind: str = CALL_CONFIG.DEFAULT_KIND) -> dict:
        self._require(CallState.IDLE, "dial")
        self.state = CallState.DIALING
        self.peer = target
        self.kind = kind
        self.outcome = None
        return {
            "type": EventType.CALL_USER,
            "caller": self.identity,
            "target": target,
            "offer": offer,
            "kind": kind,
        }

    def on_accepted(self, callee: str) -> None:
        self._require(CallState.DIALING, "accept", peer=callee)
        self.state = CallState.CONNECTED

    def on_rejected(self, callee: str) -> None:
        self._require(CallState.DIALING, "reject", peer=callee)
        self._finish(CallOutcome.REJECTED)

    def on_busy(self, callee: str) -> None:
        self._require(CallState.DIALING, "busy", peer=callee)
        self._finish(CallOutcome.BUSY)

    def on_unavailable(self, target: str) -> None:
        self._require(CallState.DIALING, "unavailable", peer=target)
        self._finish(CallOutcome.UNAVAILABLE)

    # =========================================================================
    # Incoming
    # =========================================================================

    def on_offer(self, caller: str, kind: str = CALL_CONFIG.DEFAULT_KIND) -> dict | None:
        """
        React to incoming-call.

        Returns:
            A call-busy event when already in a call, else None (ringing)
        """
        if not self.is_idle:
            return {"type": EventType.CALL_BUSY, "callee": self.identity, "caller": caller}

        self.state = CallState.RINGING
        self.peer = caller
        self.kind = kind
        self.outcome = None
        return None

    def accept(self, answer: Any) -> dict:
        self._require(CallState.RINGING, "answer")
        self.state = CallState.CONNECTED
        return {
            "type": EventType.ANSWER_CALL,
            "callee": self.identity,
            "caller": self.peer,
            "answer": answer,
        }

    def reject(self) -> dict:
        self._require(CallState.RINGING, "reject")
        caller = self.peer
        self._finish(CallOutcome.REJECTED)
        return {"type": EventType.REJECT_CALL, "callee": self.identity, "caller": caller}

    # =========================================================================
    # Either side
    # =========================================================================

    def hang_up(self, reason: str = CALL_CONFIG.DEFAULT_END_REASON) -> dict:
        if self.is_idle:
            raise self._invalid("hang up")
        peer = self.peer
        self._finish(CallOutcome.ENDED)
        return {
            "type": EventType.END_CALL,
            "sender": self.identity,
            "target": peer,
            "reason": reason,
        }

    def on_ended(self, sender: str) -> None:
        """
        React to call-ended.

        The echo of our own end-call arrives after we are already idle and
        is ignored.
        """
        if self.is_idle:
            return
        if sender not in (self.peer, self.identity):
            raise self._invalid("end", peer=sender)
        self._finish(CallOutcome.ENDED)

    def fail(self) -> None:
        """Media negotiation failed locally."""
        if self.is_idle:
            raise self._invalid("fail")
        self._finish(CallOutcome.FAILED)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _finish(self, outcome: CallOutcome) -> None:
        self.state = CallState.IDLE
        self.peer = None
        self.kind = None
        self.outcome = outcome

    def _require(self, state: CallState, move: str, peer: str | None = None) -> None:
        if self.state != state or (peer is not None and peer != self.peer):
            raise self._invalid(move, peer=peer)

    def _invalid(self, move: str, peer: str | None = None) -> ConflictError:
        return ConflictError(
            f"Cannot {move} while {self.state}",
            error_code="INVALID_CALL_TRANSITION",
            details={"state": str(self.state), "peer": peer},
        )
