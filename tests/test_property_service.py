import dataclasses
from unittest import mock

import pytest
from bson import ObjectId

from propertyhub.errors import ApiError, bad_request, not_found
from propertyhub.properties_store import Property
from propertyhub.property_service import (
    LETTERS,
    PropertyService,
    download_image,
    random_string,
    unique,
)


class FakeStore:
    def __init__(self, fail_insert=False):
        self.items = {}
        self.fail_insert = fail_insert

    def get_by_id(self, property_id):
        if not ObjectId.is_valid(property_id):
            return None
        return self.items.get(ObjectId(property_id))

    def get_all(self):
        return list(self.items.values())

    def insert(self, prop):
        if self.fail_insert:
            return None
        stored = dataclasses.replace(prop, id=ObjectId())
        self.items[stored.id] = stored
        return stored

    def delete_by_user(self, user_id):
        doomed = [key for key, prop in self.items.items() if prop.user_id == user_id]
        if not doomed:
            raise not_found("Properties not found")
        for key in doomed:
            del self.items[key]

    def delete(self, object_id):
        if object_id not in self.items:
            raise not_found("Property not found")
        del self.items[object_id]


class ListStore:
    def __init__(self, properties):
        self.properties = properties

    def get_all(self):
        return list(self.properties)


class FakePublisher:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_message(self, item_id, action, message):
        self.sent.append((item_id, action, message))
        if self.error is not None:
            raise self.error


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, url, item_id):
        self.calls.append((url, item_id))


def make_service(store=None, publisher=None):
    downloads = Recorder()
    service = PropertyService(
        store if store is not None else FakeStore(),
        publisher if publisher is not None else FakePublisher(),
        downloads,
    )
    return service, downloads


SAMPLE = {
    "tittle": "House",
    "description": "Nice",
    "size": 120,
    "rooms": 3,
    "bathrooms": 2,
    "price": 1000,
    "image": "http://localhost/house.jpg",
    "userid": 7,
    "street": "Main",
    "city": "Cordoba",
}


def test_unique_keeps_first_occurrence_order():
    assert unique(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]
    assert unique([]) == []


def test_random_string_uses_letters_only():
    value = random_string()
    assert len(value) == 10
    assert set(value) <= set(LETTERS)
    assert len(random_string(4)) == 4


def test_download_image_writes_body(tmp_path):
    destination = tmp_path / "image.jpg"
    response = mock.Mock()
    response.iter_content.return_value = [b"ab", b"cd"]
    with mock.patch("propertyhub.property_service.requests.get", return_value=response) as get:
        download_image("http://localhost/a.jpg", str(destination))
    assert destination.read_bytes() == b"abcd"
    assert get.call_args.args[0] == "http://localhost/a.jpg"
    response.close.assert_called_once()


def test_insert_property_stores_downloads_and_publishes():
    store = FakeStore()
    publisher = FakePublisher()
    service, downloads = make_service(store, publisher)
    created = service.insert_property(SAMPLE)
    assert ObjectId.is_valid(created["id"])
    assert {k: v for k, v in created.items() if k != "id"} == SAMPLE
    assert ObjectId(created["id"]) in store.items
    assert downloads.calls == [(SAMPLE["image"], created["id"])]
    assert publisher.sent == [(created["id"], "create", created["id"])]


def test_insert_property_ignores_client_id():
    service, _ = make_service()
    given = str(ObjectId())
    created = service.insert_property({**SAMPLE, "id": given})
    assert created["id"] != given
    assert ObjectId.is_valid(created["id"])


def test_insert_property_survives_publish_failure():
    publisher = FakePublisher(error=bad_request("Failed to publish a message"))
    service, _ = make_service(publisher=publisher)
    created = service.insert_property(SAMPLE)
    assert created["city"] == SAMPLE["city"]
    assert len(publisher.sent) == 1


def test_insert_property_failure_raises_bad_request():
    publisher = FakePublisher()
    service, downloads = make_service(FakeStore(fail_insert=True), publisher)
    with pytest.raises(ApiError) as info:
        service.insert_property(SAMPLE)
    assert info.value.status == 400
    assert info.value.message == "error in insert"
    assert publisher.sent == []
    assert downloads.calls == []


def test_insert_property_rejects_bad_field():
    service, _ = make_service()
    with pytest.raises(TypeError):
        service.insert_property({**SAMPLE, "size": "big"})


def test_insert_many_keeps_order():
    store = FakeStore()
    service, downloads = make_service(store)
    created = service.insert_many([SAMPLE, {**SAMPLE, "city": "Salta"}, None])
    assert [item["city"] for item in created] == ["Cordoba", "Salta", ""]
    assert len(store.items) == 3
    assert [call[1] for call in downloads.calls] == [item["id"] for item in created]


def test_insert_many_validates_before_storing():
    store = FakeStore()
    service, _ = make_service(store)
    with pytest.raises(TypeError):
        service.insert_many([SAMPLE, {"rooms": "many"}])
    assert store.items == {}


def test_get_property_round_trip_and_missing():
    service, _ = make_service()
    created = service.insert_property(SAMPLE)
    assert service.get_property(created["id"]) == created
    with pytest.raises(ApiError) as info:
        service.get_property(str(ObjectId()))
    assert info.value.message == "property not found"
    assert info.value.code == "bad_request"


def test_get_properties_lists_all():
    service, _ = make_service()
    first = service.insert_property(SAMPLE)
    second = service.insert_property({**SAMPLE, "city": "Salta"})
    assert service.get_properties() == [first, second]


def test_get_properties_rejects_record_without_id():
    service, _ = make_service(ListStore([Property(id=ObjectId()), Property()]))
    with pytest.raises(ApiError) as info:
        service.get_properties()
    assert info.value.message == "error in insert"


def test_get_by_param_city_is_unique():
    service, _ = make_service()
    for city in ("Cordoba", "Salta", "Cordoba"):
        service.insert_property({**SAMPLE, "city": city})
    assert service.get_by_param("city") == ["Cordoba", "Salta"]
    assert service.get_by_param("rooms") == []


def test_get_by_param_rejects_record_without_id():
    service, _ = make_service(ListStore([Property()]))
    with pytest.raises(ApiError) as info:
        service.get_by_param("city")
    assert info.value.message == "error in get"


def test_delete_property_removes_and_wraps_errors():
    store = FakeStore()
    service, _ = make_service(store)
    created = service.insert_property(SAMPLE)
    service.delete_property(ObjectId(created["id"]))
    assert store.items == {}
    with pytest.raises(ApiError) as info:
        service.delete_property(ObjectId(created["id"]))
    assert info.value.status == 500
    assert info.value.message == "Error deleting property"
    assert "Property not found" in info.value.cause[0]


def test_delete_properties_by_user():
    store = FakeStore()
    service, _ = make_service(store)
    service.insert_property(SAMPLE)
    kept = service.insert_property({**SAMPLE, "userid": 8})
    service.delete_properties_by_user(7)
    assert list(store.items) == [ObjectId(kept["id"])]
    with pytest.raises(ApiError) as info:
        service.delete_properties_by_user(7)
    assert info.value.code == "internal_server_error"
    assert info.value.message == "Error deleting properties"