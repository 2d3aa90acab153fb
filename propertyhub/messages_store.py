"""Message records and their MongoDB-backed store."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from bson import ObjectId
from pymongo.errors import PyMongoError

from propertyhub.errors import internal_server_error, not_found

log = logging.getLogger(__name__)

COLLECTION = "messages"


def _typed(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise TypeError(f"field {key!r} must be {kind.__name__}")
    return value


@dataclass
class Message:
    """A message left by a user on a property."""

    id: ObjectId | None = None
    user_id: int = 0
    property_id: str = ""
    user_name: str = ""
    body: str = ""
    created_at: str = ""

    def to_dto(self) -> dict[str, Any]:
        """Return the JSON form used by the HTTP API."""
        return {
            "id": str(self.id) if self.id is not None else "",
            "userid": self.user_id,
            "propertyid": self.property_id,
            "username": self.user_name,
            "body": self.body,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dto(cls, data: Mapping[str, Any]) -> "Message":
        """Build a message from its JSON form; raises ``TypeError`` on bad fields."""
        if not isinstance(data, Mapping):
            raise TypeError("message must be a JSON object")
        raw_id = _typed(data, "id", str, "")
        return cls(
            id=ObjectId(raw_id) if ObjectId.is_valid(raw_id) else None,
            user_id=_typed(data, "userid", int, 0),
            property_id=_typed(data, "propertyid", str, ""),
            user_name=_typed(data, "username", str, ""),
            body=_typed(data, "body", str, ""),
            created_at=_typed(data, "created_at", str, ""),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the document stored in MongoDB."""
        return {
            "_id": self.id,
            "userid": self.user_id,
            "propertyid": self.property_id,
            "username": self.user_name,
            "body": self.body,
            "createdat": self.created_at,
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Message":
        """Build a message from a stored document; raises ``TypeError`` on bad fields."""
        object_id = document.get("_id")
        if object_id is not None and not isinstance(object_id, ObjectId):
            raise TypeError("field '_id' must be an ObjectId")
        return cls(
            id=object_id,
            user_id=_typed(document, "userid", int, 0),
            property_id=_typed(document, "propertyid", str, ""),
            user_name=_typed(document, "username", str, ""),
            body=_typed(document, "body", str, ""),
            created_at=_typed(document, "createdat", str, ""),
        )


class MessageStore:
    """Reads and writes messages in the ``messages`` collection."""

    def __init__(self, database: Any) -> None:
        self._collection = database[COLLECTION]

    def get_by_id(self, message_id: str) -> Message | None:
        """Return the message with this hex id, or ``None`` if it cannot be found."""
        if not ObjectId.is_valid(message_id):
            log.warning("invalid message id %r", message_id)
            return None
        try:
            document = self._collection.find_one({"_id": ObjectId(message_id)})
        except PyMongoError as exc:
            log.error("error reading message %s: %s", message_id, exc)
            return None
        if document is None:
            log.info("message %s not found", message_id)
            return None
        try:
            return Message.from_document(document)
        except TypeError as exc:
            log.error("error decoding message %s: %s", message_id, exc)
            return None

    def insert(self, message: Message) -> Message | None:
        """Store a copy of the message under a fresh id and return it, or ``None`` on failure."""
        stored = dataclasses.replace(message, id=ObjectId())
        try:
            self._collection.insert_one(stored.to_document())
        except PyMongoError as exc:
            log.error("error inserting message: %s", exc)
            return None
        log.info("inserted message %s", stored.id)
        return stored

    def get_by_property_id(self, property_id: str) -> list[Message]:
        """Return every message left on a property.

        A document that cannot be decoded yields an empty ``Message``.
        """
        try:
            documents = list(self._collection.find({"propertyid": property_id}))
        except PyMongoError as exc:
            log.error("error listing messages of %s: %s", property_id, exc)
            return []
        messages = []
        for document in documents:
            try:
                messages.append(Message.from_document(document))
            except TypeError as exc:
                log.error("error decoding message: %s", exc)
                messages.append(Message())
        return messages

    def delete(self, object_id: ObjectId) -> None:
        """Delete one message; raises ``ApiError`` if it fails or nothing matched."""
        try:
            result = self._collection.delete_one({"_id": object_id})
        except PyMongoError as exc:
            raise internal_server_error("Error deleting", exc) from exc
        if result.deleted_count == 0:
            raise not_found("Message not found")

    def delete_by_user(self, user_id: int) -> None:
        """Delete every message of a user; raises ``ApiError`` if none were deleted."""
        try:
            result = self._collection.delete_many({"userid": user_id})
        except PyMongoError as exc:
            raise internal_server_error("Error deleting messages", exc) from exc
        if result.deleted_count == 0:
            raise not_found("Messages not found")