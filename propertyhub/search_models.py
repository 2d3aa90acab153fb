"""Documents indexed in Solr and the JSON shapes exchanged with it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


def _typed(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise TypeError(f"field {key!r} must be {kind.__name__}")
    return value


def _typed_list(data: Mapping[str, Any], key: str, kind: type) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"field {key!r} must be a list")
    for item in value:
        if (kind is int and isinstance(item, bool)) or not isinstance(item, kind):
            raise TypeError(f"items of {key!r} must be {kind.__name__}")
    return list(value)


@dataclass
class PropertyDocument:
    """A property as it is sent to Solr for indexing."""

    id: str = ""
    tittle: str = ""
    description: str = ""
    size: int = 0
    image: str = ""
    user_id: int = 0
    street: str = ""
    city: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tittle": self.tittle,
            "description": self.description,
            "size": self.size,
            "image": self.image,
            "userid": self.user_id,
            "street": self.street,
            "city": self.city,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertyDocument":
        """Build a document from JSON; unknown keys are ignored, bad types raise ``TypeError``."""
        if not isinstance(data, Mapping):
            raise TypeError("property must be a JSON object")
        return cls(
            id=_typed(data, "id", str, ""),
            tittle=_typed(data, "tittle", str, ""),
            description=_typed(data, "description", str, ""),
            size=_typed(data, "size", int, 0),
            image=_typed(data, "image", str, ""),
            user_id=_typed(data, "userid", int, 0),
            street=_typed(data, "street", str, ""),
            city=_typed(data, "city", str, ""),
        )


@dataclass
class SearchHit:
    """A document returned by a Solr query, with multi-valued fields."""

    id: str = ""
    tittle: list[str] = field(default_factory=list)
    description: list[str] = field(default_factory=list)
    size: list[int] = field(default_factory=list)
    image: list[str] = field(default_factory=list)
    user_id: list[int] = field(default_factory=list)
    street: list[str] = field(default_factory=list)
    city: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tittle": list(self.tittle),
            "description": list(self.description),
            "size": list(self.size),
            "image": list(self.image),
            "userid": list(self.user_id),
            "street": list(self.street),
            "city": list(self.city),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchHit":
        """Build a hit from a Solr document; bad types raise ``TypeError``."""
        if not isinstance(data, Mapping):
            raise TypeError("document must be a JSON object")
        return cls(
            id=_typed(data, "id", str, ""),
            tittle=_typed_list(data, "tittle", str),
            description=_typed_list(data, "description", str),
            size=_typed_list(data, "size", int),
            image=_typed_list(data, "image", str),
            user_id=_typed_list(data, "userid", int),
            street=_typed_list(data, "street", str),
            city=_typed_list(data, "city", str),
        )


def add_command(document: PropertyDocument) -> dict[str, Any]:
    """Return the Solr JSON update command that adds ``document``."""
    return {"add": {"doc": document.to_dict()}}


def delete_command(query: str) -> dict[str, Any]:
    """Return the Solr JSON update command that deletes by ``query``."""
    return {"delete": {"query": query}}


def parse_select_response(payload: Any) -> list[SearchHit]:
    """Return the hits of a Solr select response; raises ``ValueError`` on a bad shape."""
    if not isinstance(payload, Mapping):
        raise ValueError("response must be a JSON object")
    response = payload.get("response") or {}
    if not isinstance(response, Mapping):
        raise ValueError("'response' must be a JSON object")
    docs = response.get("docs") or []
    if not isinstance(docs, list):
        raise ValueError("'docs' must be a list")
    try:
        return [SearchHit.from_dict(doc) for doc in docs]
    except TypeError as exc:
        raise ValueError(str(exc)) from exc