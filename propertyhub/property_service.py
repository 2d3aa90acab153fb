"""Business rules for property listings."""

from __future__ import annotations

import dataclasses
import logging
import random
import string
import threading
from typing import Any, Callable, Hashable, Iterable, Mapping, Sequence, TypeVar

import requests
from bson import ObjectId

from propertyhub.errors import ApiError, bad_request, internal_server_error
from propertyhub.properties_store import Property, PropertyStore
from propertyhub.property_queue import QueuePublisher

log = logging.getLogger(__name__)

LETTERS = string.ascii_lowercase + string.ascii_uppercase
CREATE_ACTION = "create"
DOWNLOAD_TIMEOUT = 30.0
_CHUNK_SIZE = 64 * 1024

T = TypeVar("T", bound=Hashable)


def unique(items: Iterable[T]) -> list[T]:
    """Return the items without repeats, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def random_string(length: int = 10) -> str:
    """Return a string of random ASCII letters."""
    return "".join(random.choice(LETTERS) for _ in range(length))


def download_image(url: str, destination: str) -> None:
    """Save the body fetched from ``url`` into the file ``destination``.

    Network errors (``requests.RequestException``) and file errors
    (``OSError``) propagate.
    """
    with open(destination, "wb") as output:
        response = requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT)
        try:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                output.write(chunk)
        finally:
            response.close()


def _fetch(url: str, file_name: str) -> None:
    log.info("Downloading %s to %s", url, file_name)
    try:
        download_image(url, file_name)
    except (requests.RequestException, OSError) as exc:
        log.error("Error while downloading %s - %s", url, exc)
        return
    log.info("Downloaded %s", file_name)


def _download_in_background(url: str, item_id: str) -> None:
    """Fetch the image of a new property into ``<id>.jpg`` on a worker thread."""
    worker = threading.Thread(
        target=_fetch, args=(url, f"{item_id}.jpg"), daemon=True
    )
    worker.start()


class PropertyService:
    """Reads, creates and deletes properties, returning their JSON form."""

    def __init__(
        self,
        store: PropertyStore,
        publisher: QueuePublisher | None = None,
        downloader: Callable[[str, str], None] | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher if publisher is not None else QueuePublisher()
        self._downloader = downloader or _download_in_background

    def get_property(self, property_id: str) -> dict[str, Any]:
        prop = self._store.get_by_id(property_id)
        if prop is None or prop.id is None:
            raise bad_request("property not found")
        return prop.to_dto()

    def get_properties(self) -> list[dict[str, Any]]:
        properties = self._store.get_all()
        if any(prop.id is None for prop in properties):
            raise bad_request("error in insert")
        return [prop.to_dto() for prop in properties]

    def _store_new(self, incoming: Property) -> dict[str, Any]:
        stored = self._store.insert(dataclasses.replace(incoming, id=None))
        if stored is None or stored.id is None:
            raise bad_request("error in insert")
        item_id = str(stored.id)
        self._downloader(stored.image, item_id)
        try:
            self._publisher.send_message(item_id, CREATE_ACTION, item_id)
        except ApiError as err:
            log.debug("could not announce property %s: %s", item_id, err)
        return stored.to_dto()

    def insert_property(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Store a new property; raises ``TypeError`` on malformed input."""
        return self._store_new(Property.from_dto(data))

    def insert_many(
        self, items: Sequence[Mapping[str, Any] | None]
    ) -> list[dict[str, Any]]:
        """Store several properties in order.

        Every item is checked before anything is stored; a failed insert
        stops the batch with ``ApiError``, leaving earlier ones stored.
        """
        incoming = [Property.from_dto({} if item is None else item) for item in items]
        return [self._store_new(prop) for prop in incoming]

    def get_by_param(self, param: str) -> list[Any]:
        """Return the distinct values of a property attribute; only ``city`` is known."""
        properties = self._store.get_all()
        if any(prop.id is None for prop in properties):
            raise bad_request("error in get")
        values = [prop.city for prop in properties] if param == "city" else []
        return unique(values)

    def delete_properties_by_user(self, user_id: int) -> None:
        try:
            self._store.delete_by_user(user_id)
        except ApiError as err:
            raise internal_server_error("Error deleting properties", err) from err

    def delete_property(self, object_id: ObjectId) -> None:
        try:
            self._store.delete(object_id)
        except ApiError as err:
            raise internal_server_error("Error deleting property", err) from err