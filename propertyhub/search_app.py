"""HTTP API of the search service."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from flask import Flask, Response, jsonify, request

from propertyhub.errors import ApiError
from propertyhub.search_service import DEFAULT_PROPERTIES_URL, SearchService
from propertyhub.solr_client import SolrClient

log = logging.getLogger(__name__)

DEFAULT_PORT = 8000
_ALLOW_METHODS = "GET,POST,PUT,PATCH,DELETE,HEAD,OPTIONS"
_ALLOW_HEADERS = "Origin,Content-Length,Content-Type"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "level": record.levelname.lower(),
                "msg": record.getMessage(),
                "time": self.formatTime(record),
            }
        )


def _apply_cors(app: Flask) -> None:
    @app.before_request
    def _preflight() -> Response | None:
        if request.method != "OPTIONS" or not request.headers.get("Origin"):
            return None
        response = app.make_response(("", 204))
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = _ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = _ALLOW_HEADERS
        response.headers["Access-Control-Max-Age"] = str(12 * 3600)
        return response

    @app.after_request
    def _headers(response: Response) -> Response:
        if request.method != "OPTIONS" and request.headers.get("Origin"):
            response.headers["Access-Control-Allow-Origin"] = "*"
        return response


def create_app(service: SearchService) -> Flask:
    """Build the Flask application serving the search API."""
    app = Flask(__name__)
    _apply_cors(app)

    @app.get("/search/<solr_query>")
    def get_query(solr_query: str) -> Any:
        try:
            hits = service.get_query(solr_query)
        except ApiError as err:
            log.debug("query failed: %s", err)
            return jsonify(None), 400
        return jsonify([hit.to_dict() for hit in hits] or None), 200

    @app.get("/properties/<property_id>")
    def add(property_id: str) -> Any:
        try:
            service.add(property_id)
        except ApiError as err:
            return jsonify({"error": str(err)}), 400
        return jsonify({}), 201

    log.info("Finishing mappings configurations")
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Serve the search API."""
    parser = argparse.ArgumentParser(
        prog="propertyhub-search", description="Serve the search API."
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--solr-url", default="http://solr:8983")
    parser.add_argument("--collection", default="property")
    parser.add_argument("--properties-url", default=DEFAULT_PROPERTIES_URL)
    args = parser.parse_args(argv)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter())
    logging.basicConfig(level=logging.DEBUG, handlers=[handler])
    log.info("Starting logger system")

    service = SearchService(SolrClient(args.solr_url, args.collection), args.properties_url)
    app = create_app(service)
    log.info("Starting server")
    try:
        app.run(host=args.host, port=args.port)
    except OSError as exc:
        log.error("Error starting router: %s", exc)
        return 1
    return 0