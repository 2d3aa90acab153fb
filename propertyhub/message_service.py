"""Business rules for messages on properties."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from bson import ObjectId

from propertyhub.errors import ApiError, bad_request, internal_server_error
from propertyhub.messages_store import Message, MessageStore

CREATED_AT_FORMAT = "%Y/%m/%d %H:%M:%S"
CLOCK_OFFSET = timedelta(hours=-3)


class MessageService:
    """Reads, creates and deletes messages, returning their JSON form."""

    def __init__(
        self,
        store: MessageStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now

    def get_message_by_id(self, message_id: str) -> dict[str, Any]:
        message = self._store.get_by_id(message_id)
        if message is None or message.id is None:
            raise bad_request("message not found")
        return message.to_dto()

    def insert_message(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Store a new message stamped with the current time shifted by three hours back."""
        incoming = Message.from_dto(data)
        message = Message(
            user_id=incoming.user_id,
            property_id=incoming.property_id,
            user_name=incoming.user_name,
            body=incoming.body,
            created_at=(self._clock() + CLOCK_OFFSET).strftime(CREATED_AT_FORMAT),
        )
        stored = self._store.insert(message)
        if stored is None or stored.id is None:
            raise bad_request("error in insert")
        return stored.to_dto()

    def get_messages_by_property_id(self, property_id: str) -> list[dict[str, Any]]:
        messages = self._store.get_by_property_id(property_id)
        if any(message.id is None for message in messages):
            raise bad_request("error in insert")
        return [message.to_dto() for message in messages]

    def delete_message(self, object_id: ObjectId) -> None:
        try:
            self._store.delete(object_id)
        except ApiError as err:
            raise internal_server_error("Error deleting message", err) from err

    def delete_messages(self, user_id: int) -> None:
        try:
            self._store.delete_by_user(user_id)
        except ApiError as err:
            raise internal_server_error("Error deleting message", err) from err