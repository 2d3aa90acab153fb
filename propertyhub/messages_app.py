"""HTTP API of the messages service."""

from __future__ import annotations

import argparse
import json
import logging
import re
from datetime import timedelta
from typing import Any, Sequence

from bson import ObjectId
from flask import Flask, Response, jsonify, request
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from propertyhub.errors import ApiError
from propertyhub.message_service import MessageService
from propertyhub.messages_store import MessageStore

log = logging.getLogger(__name__)

DEFAULT_PORT = 8070

_ALLOW_METHODS = ("PUT", "PATCH", "GET", "POST", "DELETE")
_ALLOW_HEADERS = ("Origin", "Content-Type")
_EXPOSE_HEADERS = ("Content-Length",)
_MAX_AGE = timedelta(hours=12)
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


def _parse_int(text: str) -> int:
    """Parse a decimal integer the strict way; raises ``ValueError`` otherwise."""
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer {text!r}")
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range {text!r}")
    return value


def _apply_cors(app: Flask) -> None:
    """Allow any origin, with credentials, for the usual methods."""

    @app.before_request
    def _preflight() -> Response | None:
        if request.method != "OPTIONS" or not request.headers.get("Origin"):
            return None
        response = app.make_response(("", 204))
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = ",".join(_ALLOW_METHODS)
        response.headers["Access-Control-Allow-Headers"] = ",".join(_ALLOW_HEADERS)
        response.headers["Access-Control-Max-Age"] = str(
            int(_MAX_AGE.total_seconds())
        )
        return response

    @app.after_request
    def _headers(response: Response) -> Response:
        if request.method != "OPTIONS" and request.headers.get("Origin"):
            response.headers["Access-Control-Allow-Origin"] = "*"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Expose-Headers"] = ",".join(
                _EXPOSE_HEADERS
            )
        return response


def _error_response(err: ApiError) -> tuple[Response, int]:
    return jsonify(err.to_dict()), err.status


def create_app(service: MessageService) -> Flask:
    """Build the Flask application serving the messages API."""
    app = Flask(__name__)
    _apply_cors(app)

    @app.get("/messages/<message_id>")
    def get_message_by_id(message_id: str) -> Any:
        try:
            return jsonify(service.get_message_by_id(message_id)), 200
        except ApiError as err:
            return _error_response(err)

    @app.get("/properties/<property_id>/messages")
    def get_messages_by_property_id(property_id: str) -> Any:
        try:
            messages = service.get_messages_by_property_id(property_id)
        except ApiError as err:
            return _error_response(err)
        return jsonify(messages or None), 200

    @app.delete("/messages/<message_id>")
    def delete_message(message_id: str) -> Any:
        if not ObjectId.is_valid(message_id):
            return jsonify({"error": "Invalid ID"}), 400
        try:
            service.delete_message(ObjectId(message_id))
        except ApiError as err:
            return jsonify({"error": str(err)}), 400
        return "", 200

    @app.delete("/messages2/<userid>")
    def delete_messages(userid: str) -> Any:
        try:
            user_id = _parse_int(userid)
        except ValueError:
            return (
                jsonify({"error": "El ID de usuario debe ser un número entero"}),
                400,
            )
        try:
            service.delete_messages(user_id)
        except ApiError as err:
            return jsonify({"error": str(err)}), 400
        return "", 200

    @app.post("/message")
    def insert_message() -> Any:
        try:
            data = json.loads(request.get_data(as_text=True) or "")
        except ValueError as exc:
            log.info("invalid message body: %s", exc)
            return jsonify(str(exc)), 400
        if data is None:
            data = {}
        try:
            created = service.insert_message(data)
        except TypeError as exc:
            log.info("invalid message body: %s", exc)
            return jsonify(str(exc)), 400
        except ApiError as err:
            return _error_response(err)
        return jsonify(created), 201

    log.info("Finishing mappings configurations")
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to MongoDB and serve the messages API."""
    parser = argparse.ArgumentParser(
        prog="propertyhub-messages", description="Serve the messages API."
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--mongo-uri", default="mongodb://localhost:27017")
    parser.add_argument("--database", default="messages")
    args = parser.parse_args(argv)

    client: MongoClient = MongoClient(args.mongo_uri)
    try:
        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            print("Cannot init db")
            print(exc)
            return 1
        app = create_app(MessageService(MessageStore(client[args.database])))
        print("Starting server")
        app.run(host=args.host, port=args.port)
    finally:
        client.close()
    return 0