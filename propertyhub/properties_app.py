"""HTTP API of the properties service."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Sequence

from bson import ObjectId
from flask import Flask, Response, jsonify, request
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from propertyhub.errors import ApiError
from propertyhub.messages_app import _apply_cors, _parse_int
from propertyhub.properties_store import Property, PropertyStore
from propertyhub.property_cache import DEFAULT_HOST, DEFAULT_PORT as CACHE_PORT
from propertyhub.property_cache import MemcacheClient
from propertyhub.property_service import PropertyService

log = logging.getLogger(__name__)

DEFAULT_PORT = 8090


def _error_response(err: ApiError) -> tuple[Response, int]:
    return jsonify(err.to_dict()), err.status


def _decode_cached(text: str) -> dict[str, Any]:
    try:
        return Property.from_dto(json.loads(text)).to_dto()
    except (ValueError, TypeError):
        return Property().to_dto()


def _read_json() -> Any:
    """Parse the request body; raises ``ValueError`` when it is not JSON."""
    return json.loads(request.get_data(as_text=True) or "")


def create_app(service: PropertyService, cache: Any) -> Flask:
    """Build the Flask application serving the properties API."""
    app = Flask(__name__)
    _apply_cors(app)

    @app.get("/properties/<parameters>/id")
    def get_property(parameters: str) -> Any:
        cached = cache.get(parameters)
        if cached:
            log.info("from cache: %s", parameters)
            return jsonify(_decode_cached(cached)), 200
        try:
            return jsonify(service.get_property(parameters)), 200
        except ApiError as err:
            return _error_response(err)

    @app.get("/properties/all")
    def get_all() -> Any:
        try:
            properties = service.get_properties()
        except ApiError as err:
            return _error_response(err)
        return jsonify(properties or None), 200

    @app.get("/properties/<parameters>")
    def get_by_param(parameters: str) -> Any:
        try:
            return jsonify(service.get_by_param(parameters)), 200
        except ApiError as err:
            return _error_response(err)

    @app.post("/properties/load")
    def insert() -> Any:
        try:
            data = _read_json()
        except ValueError as exc:
            log.info("invalid property body: %s", exc)
            return jsonify(str(exc)), 400
        try:
            created = service.insert_property({} if data is None else data)
        except TypeError as exc:
            log.info("invalid property body: %s", exc)
            return jsonify(str(exc)), 400
        except ApiError as err:
            return _error_response(err)
        cache.set(created["id"], json.dumps(created, separators=(",", ":")))
        log.info("save cache: %s", created["id"])
        return jsonify(created), 201

    @app.post("/properties/import")
    def insert_many() -> Any:
        try:
            data = _read_json()
        except ValueError as exc:
            log.info("invalid properties body: %s", exc)
            return jsonify(str(exc)), 400
        if data is None:
            data = []
        if not isinstance(data, list):
            return jsonify("request body must be a JSON array"), 400
        try:
            created = service.insert_many(data)
        except TypeError as exc:
            log.info("invalid properties body: %s", exc)
            return jsonify(str(exc)), 400
        except ApiError as err:
            return _error_response(err)
        return jsonify(created or None), 201

    @app.delete("/propertiesdelete/<userid>")
    def delete_properties(userid: str) -> Any:
        try:
            user_id = _parse_int(userid)
        except ValueError:
            return (
                jsonify({"error": "El ID de usuario debe ser un número entero"}),
                400,
            )
        try:
            service.delete_properties_by_user(user_id)
        except ApiError as err:
            return jsonify({"error": str(err)}), 400
        return "", 200

    @app.delete("/propertydelete/<property_id>")
    def delete_property(property_id: str) -> Any:
        if not ObjectId.is_valid(property_id):
            return jsonify({"error": "Invalid ID"}), 400
        try:
            service.delete_property(ObjectId(property_id))
        except ApiError as err:
            return jsonify({"error": str(err)}), 400
        return "", 200

    log.info("Finishing mappings configurations")
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to MongoDB and memcached and serve the properties API."""
    parser = argparse.ArgumentParser(
        prog="propertyhub-properties", description="Serve the properties API."
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--mongo-uri", default="mongodb://localhost:27017")
    parser.add_argument("--database", default="properties")
    parser.add_argument("--cache-host", default=DEFAULT_HOST)
    parser.add_argument("--cache-port", type=int, default=CACHE_PORT)
    args = parser.parse_args(argv)

    client: MongoClient = MongoClient(args.mongo_uri)
    cache = MemcacheClient(args.cache_host, args.cache_port)
    try:
        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            print("Cannot init db")
            print(exc)
            return 1
        service = PropertyService(PropertyStore(client[args.database]))
        app = create_app(service, cache)
        print("Starting server")
        app.run(host=args.host, port=args.port)
    finally:
        cache.close()
        client.close()
    return 0