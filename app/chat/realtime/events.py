"""
Live event vocabulary.

Inbound events arrive as JSON objects with a `type` discriminator. They are
validated at the boundary by DRF serializers and turned into frozen
dataclasses, so the rest of the realtime core never handles raw dicts.

Outbound events are built by the functions at the bottom of this module.

Usage:
    event = parse_inbound({"type": "register", "identity": "4821"})
    isinstance(event, Register)  # True

    payload = presence_changed("4821", True, timezone.now())
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from rest_framework import serializers

from core.exceptions import ValidationError

from chat.constants import CALL_CONFIG, MESSAGE_CONFIG
from chat.models import MessageType


class EventType:
    """Wire names of live events."""

    # Inbound
    REGISTER = "register"
    SEND_MESSAGE = "send-message"
    SEND_GROUP_MESSAGE = "send-group-message"
    CALL_USER = "call-user"
    ANSWER_CALL = "answer-call"
    REJECT_CALL = "reject-call"
    CALL_BUSY = "call-busy"
    END_CALL = "end-call"
    ICE_CANDIDATE = "ice-candidate"

    # Outbound
    REGISTERED = "registered"
    ERROR = "error"
    NEW_MESSAGE = "new-message"
    NEW_GROUP_MESSAGE = "new-group-message"
    MESSAGE_UPDATED = "message-updated"
    PRESENCE_CHANGED = "presence-changed"
    INCOMING_CALL = "incoming-call"
    CALL_ACCEPTED = "call-accepted"
    CALL_REJECTED = "call-rejected"
    CALL_UNAVAILABLE = "call-unavailable"
    CALL_ENDED = "call-ended"
    CONTACTS_UPDATED = "contacts-updated"
    REQUESTS_UPDATED = "requests-updated"
    PENDING_UPDATED = "pending-updated"
    GROUP_UPDATED = "group-updated"
    GROUP_KICKED = "group-kicked"
    GROUP_DELETED = "group-deleted"
    USER_DELETED = "user-deleted"


# =============================================================================
# Inbound events
# =============================================================================


@dataclass(frozen=True)
class Register:
    identity: str


@dataclass(frozen=True)
class SendDirect:
    sender: str
    receiver: str
    content: str
    message_type: str = MessageType.TEXT
    file_name: str | None = None
    caption: str | None = None
    reply_to: int | None = None


@dataclass(frozen=True)
class SendGroup:
    sender: str
    group: str
    content: str
    message_type: str = MessageType.TEXT
    file_name: str | None = None
    caption: str | None = None
    reply_to: int | None = None


@dataclass(frozen=True)
class CallUser:
    caller: str
    target: str
    offer: Any
    kind: str = CALL_CONFIG.DEFAULT_KIND


@dataclass(frozen=True)
class AnswerCall:
    callee: str
    caller: str
    answer: Any


@dataclass(frozen=True)
class RejectCall:
    callee: str
    caller: str


@dataclass(frozen=True)
class CallBusy:
    callee: str
    caller: str


@dataclass(frozen=True)
class EndCall:
    sender: str
    target: str
    reason: str = CALL_CONFIG.DEFAULT_END_REASON


@dataclass(frozen=True)
class IceCandidate:
    sender: str
    target: str
    candidate: Any


InboundEvent = (
    Register
    | SendDirect
    | SendGroup
    | CallUser
    | AnswerCall
    | RejectCall
    | CallBusy
    | EndCall
    | IceCandidate
)


class CodeField(serializers.CharField):
    def __init__(self, **kwargs):
        kwargs.setdefault("max_length", 8)
        super().__init__(**kwargs)


class RegisterSerializer(serializers.Serializer):
    identity = CodeField()


class MessageFieldsSerializer(serializers.Serializer):
    sender = CodeField()
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        allow_blank=True,
        trim_whitespace=False,
    )
    message_type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    file_name = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_FILE_NAME_LENGTH,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    caption = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CAPTION_LENGTH,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    reply_to = serializers.IntegerField(required=False, allow_null=True)


class SendDirectSerializer(MessageFieldsSerializer):
    receiver = CodeField()


class SendGroupSerializer(MessageFieldsSerializer):
    group = CodeField()


class CallUserSerializer(serializers.Serializer):
    caller = CodeField()
    target = CodeField()
    offer = serializers.JSONField()
    kind = serializers.ChoiceField(choices=CALL_CONFIG.KINDS, default=CALL_CONFIG.DEFAULT_KIND)


class AnswerCallSerializer(serializers.Serializer):
    callee = CodeField()
    caller = CodeField()
    answer = serializers.JSONField()


class CallResponseSerializer(serializers.Serializer):
    """reject-call and call-busy carry the same fields."""

    callee = CodeField()
    caller = CodeField()


class EndCallSerializer(serializers.Serializer):
    sender = CodeField()
    target = CodeField()
    reason = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        default=CALL_CONFIG.DEFAULT_END_REASON,
    )


class IceCandidateSerializer(serializers.Serializer):
    sender = CodeField()
    target = CodeField()
    candidate = serializers.JSONField()


# type -> (serializer, dataclass)
INBOUND_EVENTS: dict[str, tuple[type[serializers.Serializer], type]] = {
    EventType.REGISTER: (RegisterSerializer, Register),
    EventType.SEND_MESSAGE: (SendDirectSerializer, SendDirect),
    EventType.SEND_GROUP_MESSAGE: (SendGroupSerializer, SendGroup),
    EventType.CALL_USER: (CallUserSerializer, CallUser),
    EventType.ANSWER_CALL: (AnswerCallSerializer, AnswerCall),
    EventType.REJECT_CALL: (CallResponseSerializer, RejectCall),
    EventType.CALL_BUSY: (CallResponseSerializer, CallBusy),
    EventType.END_CALL: (EndCallSerializer, EndCall),
    EventType.ICE_CANDIDATE: (IceCandidateSerializer, IceCandidate),
}


def parse_inbound(content: Any) -> InboundEvent:
    """
    Validate a raw inbound payload into its event dataclass.

    Raises:
        ValidationError: UNKNOWN_EVENT for a missing or unknown type,
            VALIDATION_ERROR (with field errors in details) otherwise
    """
    event_type = content.get("type") if isinstance(content, dict) else None
    if not isinstance(event_type, str) or event_type not in INBOUND_EVENTS:
        raise ValidationError(
            f"Unknown event type: {event_type}",
            error_code="UNKNOWN_EVENT",
            details={"type": event_type if isinstance(event_type, str) else None},
        )

    serializer_class, event_class = INBOUND_EVENTS[event_type]
    serializer = serializer_class(data=content)
    if not serializer.is_valid():
        raise ValidationError(
            f"Invalid {event_type} event",
            details={"errors": serializer.errors},
        )
    return event_class(**serializer.validated_data)


def claimed_identity(event: InboundEvent) -> str:
    """The identity an inbound event claims to speak for."""
    if isinstance(event, Register):
        return event.identity
    if isinstance(event, CallUser):
        return event.caller
    if isinstance(event, (AnswerCall, RejectCall, CallBusy)):
        return event.callee
    return event.sender


# =============================================================================
# Outbound events
# =============================================================================


def registered(identity: str) -> dict:
    return {"type": EventType.REGISTERED, "identity": identity}


def error(exc_or_message, error_code: str | None = None, details: dict | None = None) -> dict:
    """
    Build an error event from an application error or a plain message.

    Example:
        error(ValidationError("Bad payload"))
        error("Not registered", "NOT_REGISTERED")
    """
    if hasattr(exc_or_message, "to_dict"):
        body = exc_or_message.to_dict()
        payload = {"type": EventType.ERROR, "error": body["error"], "error_code": body["error_code"]}
        if body.get("details"):
            payload["details"] = body["details"]
        return payload

    payload = {"type": EventType.ERROR, "error": str(exc_or_message), "error_code": error_code}
    if details:
        payload["details"] = details
    return payload


def new_message(message: dict, is_self: bool) -> dict:
    return {"type": EventType.NEW_MESSAGE, **message, "self": is_self}


def new_group_message(message: dict, is_self: bool) -> dict:
    return {"type": EventType.NEW_GROUP_MESSAGE, **message, "self": is_self}


def message_updated(message: dict) -> dict:
    return {"type": EventType.MESSAGE_UPDATED, **message}


def presence_changed(identity: str, is_online: bool, last_seen: datetime) -> dict:
    return {
        "type": EventType.PRESENCE_CHANGED,
        "identity": identity,
        "is_online": is_online,
        "last_seen": last_seen.isoformat(),
    }


def incoming_call(caller: str, kind: str, offer: Any) -> dict:
    return {"type": EventType.INCOMING_CALL, "caller": caller, "kind": kind, "offer": offer}


def call_accepted(callee: str, answer: Any) -> dict:
    return {"type": EventType.CALL_ACCEPTED, "callee": callee, "answer": answer}


def call_rejected(callee: str) -> dict:
    return {"type": EventType.CALL_REJECTED, "callee": callee}


def call_busy(callee: str) -> dict:
    return {"type": EventType.CALL_BUSY, "callee": callee}


def call_unavailable(target: str) -> dict:
    return {"type": EventType.CALL_UNAVAILABLE, "target": target}


def call_ended(sender: str, reason: str) -> dict:
    return {"type": EventType.CALL_ENDED, "sender": sender, "reason": reason}


def ice_candidate(sender: str, candidate: Any) -> dict:
    return {"type": EventType.ICE_CANDIDATE, "sender": sender, "candidate": candidate}


def contacts_updated() -> dict:
    return {"type": EventType.CONTACTS_UPDATED}


def requests_updated() -> dict:
    return {"type": EventType.REQUESTS_UPDATED}


def pending_updated() -> dict:
    return {"type": EventType.PENDING_UPDATED}


def group_updated(group: str, action: str, target: str | None = None) -> dict:
    payload = {"type": EventType.GROUP_UPDATED, "group": group, "action": action}
    if target is not None:
        payload["target"] = target
    return payload


def group_kicked(group: str, group_name: str) -> dict:
    return {"type": EventType.GROUP_KICKED, "group": group, "group_name": group_name}


def group_deleted(group: str, group_name: str) -> dict:
    return {"type": EventType.GROUP_DELETED, "group": group, "group_name": group_name}


def user_deleted(user: str) -> dict:
    return {"type": EventType.USER_DELETED, "user": user}
