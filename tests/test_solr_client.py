import json

import pytest
import requests

from propertyhub.errors import ApiError
from propertyhub.search_models import PropertyDocument
from propertyhub.solr_client import SolrClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, posts=None, get=None):
        self.posts = list(posts or [])
        self.get_response = get
        self.posted = []
        self.got = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.posted.append((url, json.loads(data)))
        item = self.posts.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, timeout=None):
        self.got.append(url)
        if isinstance(self.get_response, Exception):
            raise self.get_response
        return self.get_response


def test_add_posts_document_then_commit():
    session = FakeSession(posts=[FakeResponse(), FakeResponse()])
    client = SolrClient("http://solr:8983/", "property", session)
    doc = PropertyDocument(id="p1", city="Cordoba")
    client.add(doc)
    assert session.posted[0] == (
        "http://solr:8983/solr/property/update",
        {"add": {"doc": doc.to_dict()}},
    )
    assert session.posted[1][1] == {"commit": {}}


def test_add_update_failure_is_bad_request():
    session = FakeSession(posts=[requests.ConnectionError("down")])
    with pytest.raises(ApiError) as info:
        SolrClient("http://solr:8983", "property", session).add(PropertyDocument())
    assert info.value.status == 400 and info.value.message == "Error in solr"


def test_add_commit_failure_is_internal():
    session = FakeSession(posts=[FakeResponse(), FakeResponse(status_code=500)])
    with pytest.raises(ApiError) as info:
        SolrClient("http://solr:8983", "property", session).add(PropertyDocument())
    assert info.value.status == 500


def test_query_encodes_spaces_and_parses():
    payload = {"response": {"docs": [{"id": "a", "city": ["Cordoba"]}]}}
    session = FakeSession(get=FakeResponse(payload=payload))
    hits = SolrClient("http://solr:8983", "property", session).query("city:big house")
    assert session.got == ["http://solr:8983/solr/property/select?q=city:big%20house&df=text"]
    assert [hit.id for hit in hits] == ["a"]


def test_query_errors():
    bad = FakeSession(get=FakeResponse(bad_json=True))
    with pytest.raises(ApiError) as info:
        SolrClient("http://s", "c", bad).query("x")
    assert info.value.message == "error in unmarshal"
    down = FakeSession(get=requests.ConnectionError("x"))
    with pytest.raises(ApiError) as info:
        SolrClient("http://s", "c", down).query("x")
    assert info.value.message == "error getting from solr"