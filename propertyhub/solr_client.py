"""Thin client for a Solr collection's JSON API."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from propertyhub.errors import bad_request, internal_server_error
from propertyhub.search_models import (
    PropertyDocument,
    SearchHit,
    add_command,
    parse_select_response,
)

log = logging.getLogger(__name__)

TIMEOUT = 10.0


class SolrClient:
    """Indexes and queries documents of one Solr collection."""

    def __init__(self, base_url: str, collection: str, session: Any = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._collection = collection
        self._session = session if session is not None else requests.Session()

    @property
    def _update_url(self) -> str:
        return f"{self._base_url}/solr/{self._collection}/update"

    def _post(self, payload: dict[str, Any]) -> Any:
        response = self._session.post(
            self._update_url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            timeout=TIMEOUT,
        )
        if response.status_code >= 400:
            raise requests.HTTPError(f"solr answered {response.status_code}")
        return response

    def add(self, document: PropertyDocument) -> None:
        """Index ``document`` and commit; raises ``ApiError`` on failure."""
        try:
            self._post(add_command(document))
        except requests.RequestException as exc:
            log.debug("solr update failed: %s", exc)
            raise bad_request("Error in solr") from exc
        try:
            self._post({"commit": {}})
        except requests.RequestException as exc:
            log.debug("Error committing load")
            raise internal_server_error("Error committing to solr", exc) from exc

    def query(self, query: str) -> list[SearchHit]:
        """Run ``query`` against the default ``text`` field; raises ``ApiError`` on failure."""
        encoded = query.replace(" ", "%20")
        url = f"{self._base_url}/solr/{self._collection}/select?q={encoded}&df=text"
        try:
            response = self._session.get(url, timeout=TIMEOUT)
        except requests.RequestException as exc:
            raise bad_request("error getting from solr") from exc
        try:
            return parse_select_response(response.json())
        except ValueError as exc:
            log.debug("error: %s", exc)
            raise bad_request("error in unmarshal") from exc