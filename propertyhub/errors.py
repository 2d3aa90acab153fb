"""API error type shared by the services, with the standard error factories."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Iterable


def _format_cause(cause: Iterable[Any]) -> str:
    return "[" + " ".join(str(item) for item in cause) + "]"


class ApiError(Exception):
    """An error that carries an HTTP status and a machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str,
        status: int,
        cause: Iterable[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = int(status)
        self.cause: list[Any] = list(cause) if cause is not None else []

    def __str__(self) -> str:
        return (
            f"Message: {self.message};Error Code: {self.code};"
            f"Status: {self.status};Cause: {_format_cause(self.cause)}"
        )

    def __repr__(self) -> str:
        return (
            f"ApiError(message={self.message!r}, code={self.code!r}, "
            f"status={self.status!r}, cause={self.cause!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body sent to clients."""
        return {
            "message": self.message,
            "error": self.code,
            "status": self.status,
            "cause": list(self.cause),
        }


def _expect(payload: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = payload.get(key)
    if value is None:
        return default
    if kind is int and isinstance(value, bool):
        raise ValueError(f"field {key!r} must be {kind.__name__}")
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} must be {kind.__name__}")
    return value


def api_error_from_bytes(data: bytes | str) -> ApiError:
    """Decode an error previously serialised with ``ApiError.to_dict``.

    Raises ``ValueError`` when the data is not a JSON object of the right shape.
    """
    payload = json.loads(data)
    if not isinstance(payload, dict):
        raise ValueError("error payload must be a JSON object")
    return ApiError(
        _expect(payload, "message", str, ""),
        _expect(payload, "error", str, ""),
        _expect(payload, "status", int, 0),
        _expect(payload, "cause", list, []),
    )


def not_found(message: str) -> ApiError:
    return ApiError(message, "not_found", HTTPStatus.NOT_FOUND)


def too_many_requests(message: str) -> ApiError:
    return ApiError(message, "too_many_requests", HTTPStatus.TOO_MANY_REQUESTS)


def bad_request(message: str) -> ApiError:
    return ApiError(message, "bad_request", HTTPStatus.BAD_REQUEST)


def validation_error(message: str, code: str, cause: Iterable[Any]) -> ApiError:
    return ApiError(message, code, HTTPStatus.BAD_REQUEST, cause)


def method_not_allowed() -> ApiError:
    return ApiError(
        "Method not allowed", "method_not_allowed", HTTPStatus.METHOD_NOT_ALLOWED
    )


def internal_server_error(message: str, err: BaseException | None) -> ApiError:
    cause = [str(err)] if err is not None else []
    return ApiError(
        message, "internal_server_error", HTTPStatus.INTERNAL_SERVER_ERROR, cause
    )


def forbidden(message: str) -> ApiError:
    return ApiError(message, "forbidden", HTTPStatus.FORBIDDEN)


def unauthorized(message: str) -> ApiError:
    return ApiError(message, "unauthorized_scopes", HTTPStatus.UNAUTHORIZED)


def conflict(item_id: str) -> ApiError:
    return ApiError(
        f"Can't update {item_id} due to a conflict error",
        "conflict_error",
        HTTPStatus.CONFLICT,
    )