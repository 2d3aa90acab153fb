"""Keeps the search index in step with the properties service."""

from __future__ import annotations

import logging
from typing import Any

import requests

from propertyhub.errors import ApiError, bad_request, internal_server_error
from propertyhub.search_models import PropertyDocument, SearchHit
from propertyhub.solr_client import SolrClient

log = logging.getLogger(__name__)

DEFAULT_PROPERTIES_URL = "http://host.docker.internal:8090"
TIMEOUT = 10.0


class SearchService:
    """Indexes properties fetched by id and runs search queries."""

    def __init__(
        self,
        solr: SolrClient,
        properties_url: str = DEFAULT_PROPERTIES_URL,
        session: Any = None,
    ) -> None:
        self._solr = solr
        self._properties_url = properties_url.rstrip("/")
        self._session = session if session is not None else requests.Session()

    def add(self, property_id: str) -> None:
        """Fetch a property from the properties service and index it; raises ``ApiError``."""
        url = f"{self._properties_url}/properties/{property_id}/id"
        try:
            response = self._session.get(url, timeout=TIMEOUT)
        except requests.RequestException as exc:
            log.debug("error getting property %s: %s", property_id, exc)
            raise bad_request("error getting property " + property_id) from exc
        if response.status_code != 200:
            log.debug("bad status code %d", response.status_code)
            raise bad_request(f"bad status code {response.status_code}")
        try:
            document = PropertyDocument.from_dict(response.json())
        except (ValueError, TypeError) as exc:
            log.debug("error in unmarshal of property %s: %s", property_id, exc)
            raise bad_request("error in unmarshal of property") from exc
        try:
            self._solr.add(document)
        except ApiError as err:
            log.debug("error adding to solr: %s", err)
            raise internal_server_error("Adding to Solr error", err) from err

    def get_query(self, query: str) -> list[SearchHit]:
        try:
            return self._solr.query(query)
        except ApiError as err:
            raise bad_request("Solr failed") from err