"""Property records and their MongoDB-backed store."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from bson import ObjectId
from pymongo.errors import PyMongoError

from propertyhub.errors import internal_server_error, not_found

log = logging.getLogger(__name__)

COLLECTION = "properties"

# (attribute, key in both the JSON and stored forms, type, default)
_FIELDS: tuple[tuple[str, str, type, Any], ...] = (
    ("tittle", "tittle", str, ""),
    ("description", "description", str, ""),
    ("size", "size", int, 0),
    ("rooms", "rooms", int, 0),
    ("bathrooms", "bathrooms", int, 0),
    ("price", "price", int, 0),
    ("image", "image", str, ""),
    ("user_id", "userid", int, 0),
    ("street", "street", str, ""),
    ("city", "city", str, ""),
)


def _typed(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise TypeError(f"field {key!r} must be {kind.__name__}")
    return value


def _fields_from(data: Mapping[str, Any]) -> dict[str, Any]:
    return {attr: _typed(data, key, kind, default) for attr, key, kind, default in _FIELDS}


@dataclass
class Property:
    """A property listed for sale or rent."""

    id: ObjectId | None = None
    tittle: str = ""
    description: str = ""
    size: int = 0
    rooms: int = 0
    bathrooms: int = 0
    price: int = 0
    image: str = ""
    user_id: int = 0
    street: str = ""
    city: str = ""

    def _field_values(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key, _, _ in _FIELDS}

    def to_dto(self) -> dict[str, Any]:
        """Return the JSON form used by the HTTP API."""
        return {"id": str(self.id) if self.id is not None else "", **self._field_values()}

    @classmethod
    def from_dto(cls, data: Mapping[str, Any]) -> "Property":
        """Build a property from its JSON form; raises ``TypeError`` on bad fields."""
        if not isinstance(data, Mapping):
            raise TypeError("property must be a JSON object")
        raw_id = _typed(data, "id", str, "")
        object_id = ObjectId(raw_id) if ObjectId.is_valid(raw_id) else None
        return cls(id=object_id, **_fields_from(data))

    def to_document(self) -> dict[str, Any]:
        """Return the document stored in MongoDB."""
        return {"_id": self.id, **self._field_values()}

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Property":
        """Build a property from a stored document; raises ``TypeError`` on bad fields."""
        object_id = document.get("_id")
        if object_id is not None and not isinstance(object_id, ObjectId):
            raise TypeError("field '_id' must be an ObjectId")
        return cls(id=object_id, **_fields_from(document))


class PropertyStore:
    """Reads and writes properties in the ``properties`` collection."""

    def __init__(self, database: Any) -> None:
        self._collection = database[COLLECTION]

    def get_by_id(self, property_id: str) -> Property | None:
        """Return the property with this hex id, or ``None`` if it cannot be found."""
        if not ObjectId.is_valid(property_id):
            log.warning("invalid property id %r", property_id)
            return None
        try:
            document = self._collection.find_one({"_id": ObjectId(property_id)})
        except PyMongoError as exc:
            log.error("error reading property %s: %s", property_id, exc)
            return None
        if document is None:
            log.info("property %s not found", property_id)
            return None
        try:
            return Property.from_document(document)
        except TypeError as exc:
            log.error("error decoding property %s: %s", property_id, exc)
            return None

    def get_all(self) -> list[Property]:
        """Return every property.

        Database errors (``PyMongoError``) and undecodable documents
        (``TypeError``) propagate.
        """
        return [Property.from_document(document) for document in self._collection.find({})]

    def insert(self, prop: Property) -> Property | None:
        """Store a copy of the property under a fresh id and return it, or ``None`` on failure."""
        stored = dataclasses.replace(prop, id=ObjectId())
        try:
            self._collection.insert_one(stored.to_document())
        except PyMongoError as exc:
            log.error("error inserting property: %s", exc)
            return None
        log.info("inserted property %s", stored.id)
        return stored

    def delete_by_user(self, user_id: int) -> None:
        """Delete every property of a user; raises ``ApiError`` if none were deleted."""
        try:
            result = self._collection.delete_many({"userid": user_id})
        except PyMongoError as exc:
            raise internal_server_error("Error deleting properties", exc) from exc
        if result.deleted_count == 0:
            raise not_found("Properties not found")

    def delete(self, object_id: ObjectId) -> None:
        """Delete one property; raises ``ApiError`` if it fails or nothing matched."""
        try:
            result = self._collection.delete_one({"_id": object_id})
        except PyMongoError as exc:
            raise internal_server_error("Error deleting", exc) from exc
        if result.deleted_count == 0:
            raise not_found("Property not found")