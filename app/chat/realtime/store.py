"""
Durable store gateway for the realtime core.

The realtime components run on the event loop; the ORM does not. This
gateway wraps the service layer in database_sync_to_async and turns
database failures into STORE_UNAVAILABLE results, so a flaky database
produces an error event instead of a crashed consumer.

Every method returns a ServiceResult; message payloads come back already
serialized (see chat.serializers.serialize_message) so they can go on the
channel layer as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from channels.db import database_sync_to_async
from django.db import DatabaseError

from core.services import BaseService, ServiceResult

from chat.realtime.events import SendDirect, SendGroup

STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(frozen=True)
class GroupMessageRecord:
    """A persisted group message and the identities that receive it."""

    message: dict
    recipients: tuple[str, ...]


class ChatStore(Protocol):
    async def user_exists(self, identity: str) -> bool: ...

    async def set_presence(
        self, identity: str, is_online: bool, last_seen: datetime
    ) -> ServiceResult[int]: ...

    async def contact_codes(self, identity: str) -> ServiceResult[list[str]]: ...

    async def create_direct_message(self, event: SendDirect) -> ServiceResult[dict]: ...

    async def create_group_message(
        self, event: SendGroup
    ) -> ServiceResult[GroupMessageRecord]: ...


class DatabaseChatStore(BaseService):
    """ChatStore backed by the Django ORM and the service layer."""

    async def user_exists(self, identity: str) -> bool:
        return await database_sync_to_async(self._user_exists)(identity)

    async def set_presence(
        self, identity: str, is_online: bool, last_seen: datetime
    ) -> ServiceResult[int]:
        return await database_sync_to_async(self._set_presence)(identity, is_online, last_seen)

    async def contact_codes(self, identity: str) -> ServiceResult[list[str]]:
        return await database_sync_to_async(self._contact_codes)(identity)

    async def create_direct_message(self, event: SendDirect) -> ServiceResult[dict]:
        return await database_sync_to_async(self._create_direct_message)(event)

    async def create_group_message(self, event: SendGroup) -> ServiceResult[GroupMessageRecord]:
        return await database_sync_to_async(self._create_group_message)(event)

    # =========================================================================
    # Sync implementations (run in the database thread)
    # =========================================================================

    def _user_exists(self, identity: str) -> bool:
        from accounts.models import User

        try:
            return User.objects.filter(code=identity, is_active=True).exists()
        except DatabaseError as e:
            self.handle_exception(e, f"user lookup {identity}", error_code=STORE_UNAVAILABLE)
            return False

    def _set_presence(self, identity: str, is_online: bool, last_seen: datetime) -> ServiceResult[int]:
        from accounts.services import UserService

        try:
            return ServiceResult.success(UserService.set_presence(identity, is_online, last_seen))
        except DatabaseError as e:
            return self.handle_exception(
                e, f"presence write {identity}", error_code=STORE_UNAVAILABLE
            )

    def _contact_codes(self, identity: str) -> ServiceResult[list[str]]:
        from accounts.models import User

        try:
            user = User.objects.filter(code=identity).first()
            return ServiceResult.success(user.contact_codes() if user else [])
        except DatabaseError as e:
            return self.handle_exception(
                e, f"contact lookup {identity}", error_code=STORE_UNAVAILABLE
            )

    def _create_direct_message(self, event: SendDirect) -> ServiceResult[dict]:
        from chat.serializers import serialize_message
        from chat.services import MessageService

        try:
            sender = self._get_sender(event.sender)
            if sender is None:
                return self._sender_not_found(event.sender)

            result = MessageService.send_direct(
                sender=sender,
                receiver_code=event.receiver,
                content=event.content,
                message_type=event.message_type,
                file_name=event.file_name,
                caption=event.caption,
                reply_to=event.reply_to,
            )
            return result.map(serialize_message)
        except DatabaseError as e:
            return self.handle_exception(
                e, f"direct message write {event.sender}", error_code=STORE_UNAVAILABLE
            )

    def _create_group_message(self, event: SendGroup) -> ServiceResult[GroupMessageRecord]:
        from chat.serializers import serialize_message
        from chat.services import MessageService

        try:
            sender = self._get_sender(event.sender)
            if sender is None:
                return self._sender_not_found(event.sender)

            result = MessageService.send_group(
                sender=sender,
                group_code=event.group,
                content=event.content,
                message_type=event.message_type,
                file_name=event.file_name,
                caption=event.caption,
                reply_to=event.reply_to,
            )
            if not result.success:
                return result

            message = result.data
            return ServiceResult.success(
                GroupMessageRecord(
                    message=serialize_message(message),
                    recipients=tuple(sorted(message.group.recipient_codes())),
                )
            )
        except DatabaseError as e:
            return self.handle_exception(
                e, f"group message write {event.sender}", error_code=STORE_UNAVAILABLE
            )

    @staticmethod
    def _get_sender(code: str):
        from accounts.models import User

        return User.objects.filter(code=code, is_active=True).first()

    @staticmethod
    def _sender_not_found(code: str) -> ServiceResult:
        return ServiceResult.failure(
            f"User {code} not found",
            error_code="USER_NOT_FOUND",
        )
