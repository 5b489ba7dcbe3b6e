"""
WebSocket consumer for the live event surface.

This module implements the one WebSocket endpoint of the chat: a client
connects, registers the identity it speaks for, and then exchanges typed
JSON events (messages, call signaling) with the realtime hub.

Consumers:
    RealtimeConsumer: Handles one client connection

Authentication:
    Users are authenticated via JWT token passed as query parameter or
    subprotocol. JWTAuthMiddleware attaches the user to self.scope["user"].
    With REALTIME_REQUIRE_AUTH the connection is refused without a valid
    token and the registered identity must be the token's user.

Message Types (from client):
    register, send-message, send-group-message, call-user, answer-call,
    reject-call, call-busy, end-call, ice-candidate

Message Types (to client):
    registered, error, and every event built in chat.realtime.events

Errors:
    Any refused event produces an `error` event for this connection only;
    nothing is relayed and the connection stays open.
    Malformed JSON is refused the same way.
"""

from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from core.exceptions import BaseApplicationError, NotFoundError, PermissionDeniedError

from chat.realtime import events
from chat.realtime.events import (
    AnswerCall,
    CallBusy,
    CallUser,
    EndCall,
    IceCandidate,
    Register,
    RejectCall,
    SendDirect,
    SendGroup,
    claimed_identity,
    parse_inbound,
)
from chat.realtime.hub import get_hub

logger = logging.getLogger(__name__)


class RealtimeConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for live chat and call signaling.

    The consumer's channel name is the handle the presence registry binds
    the identity to; hub components reach this connection by sending a
    `realtime.event` message to it on the channel layer.

    Attributes:
        identity: Code registered on this connection (None until register)
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.identity: str | None = None

    @property
    def hub(self):
        return get_hub()

    @property
    def user(self):
        return self.scope.get("user")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user and self.user.is_authenticated)

    async def connect(self):
        """
        Accept the connection, or close with 4001 when authentication is
        required and the token was missing or invalid.
        """
        if settings.REALTIME_REQUIRE_AUTH and not self.is_authenticated:
            logger.warning("Rejected unauthenticated realtime connection")
            await self.close(code=4001)
            return

        subprotocols = self.scope.get("subprotocols") or []
        await self.accept(subprotocol="jwt" if subprotocols[:1] == ["jwt"] else None)

    async def disconnect(self, close_code):
        """Release this connection's binding, if it still holds one."""
        await self.hub.lifecycle.disconnect(self.channel_name)
        logger.debug(f"Connection {self.channel_name} closed ({close_code})")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode a text frame, answering malformed JSON with an error event."""
        if text_data is None:
            await self.send_json(events.error("Expected a JSON text frame", "VALIDATION_ERROR"))
            return

        try:
            content = await self.decode_json(text_data)
        except ValueError:
            logger.info(f"Malformed JSON from {self.identity or self.channel_name}")
            await self.send_json(events.error("Malformed JSON", "VALIDATION_ERROR"))
            return

        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Validate and dispatch an inbound event.

        Expected message format:
            {"type": "register", "identity": "4821"}
            {"type": "send-message", "sender": "4821", "receiver": "1234", "content": "Hi"}
        """
        try:
            event = parse_inbound(content)
            await self.dispatch_event(event)
        except BaseApplicationError as e:
            logger.info(f"Refused event from {self.identity or self.channel_name}: {e}")
            await self.send_json(events.error(e))
        except Exception:
            logger.exception(f"Error handling event from {self.identity or self.channel_name}")
            await self.send_json(events.error("Internal error", "INTERNAL_ERROR"))

    async def dispatch_event(self, event):
        if isinstance(event, Register):
            await self._register(event.identity)
            return

        self._authorize(claimed_identity(event))
        hub = self.hub

        if isinstance(event, SendDirect):
            result = await hub.fanout.send_direct(event)
        elif isinstance(event, SendGroup):
            result = await hub.fanout.send_group(event)
        else:
            await self._signal(event)
            return

        if not result.success:
            await self.send_json(events.error(result.error, result.error_code))

    async def _signal(self, event):
        signaling = self.hub.signaling
        if isinstance(event, CallUser):
            await signaling.call_user(event, origin=self.channel_name)
        elif isinstance(event, AnswerCall):
            await signaling.answer_call(event)
        elif isinstance(event, RejectCall):
            await signaling.reject_call(event)
        elif isinstance(event, CallBusy):
            await signaling.call_busy(event)
        elif isinstance(event, EndCall):
            await signaling.end_call(event, origin=self.channel_name)
        elif isinstance(event, IceCandidate):
            await signaling.ice_candidate(event)

    async def _register(self, identity: str):
        """
        Bind `identity` to this connection.

        Registering a different identity on the same connection releases
        the old one first.
        """
        if self.is_authenticated and self.user.code != identity:
            raise PermissionDeniedError(
                "Identity does not match the authenticated user",
                error_code="IDENTITY_MISMATCH",
            )
        if not self.is_authenticated and not await self.hub.store.user_exists(identity):
            raise NotFoundError(
                f"User {identity} not found",
                error_code="USER_NOT_FOUND",
            )

        if self.identity is not None and self.identity != identity:
            await self.hub.lifecycle.disconnect(self.channel_name)

        await self.hub.lifecycle.register(identity, self.channel_name)
        self.identity = identity
        await self.send_json(events.registered(identity))

    def _authorize(self, claimed: str):
        if self.identity is None:
            raise PermissionDeniedError(
                "Register before sending events",
                error_code="NOT_REGISTERED",
            )
        if claimed != self.identity:
            raise PermissionDeniedError(
                "Event sender does not match the registered identity",
                error_code="IDENTITY_MISMATCH",
            )

    async def realtime_event(self, message):
        """
        Handle realtime.event messages from the channel layer.

        Forwards the payload to the WebSocket client as is.
        """
        await self.send_json(message["payload"])
