import json
from http import HTTPStatus

import pytest

from propertyhub.errors import (
    ApiError,
    api_error_from_bytes,
    bad_request,
    conflict,
    forbidden,
    internal_server_error,
    method_not_allowed,
    not_found,
    too_many_requests,
    unauthorized,
    validation_error,
)


@pytest.mark.parametrize(
    "factory, code, status",
    [
        (not_found, "not_found", HTTPStatus.NOT_FOUND),
        (too_many_requests, "too_many_requests", HTTPStatus.TOO_MANY_REQUESTS),
        (bad_request, "bad_request", HTTPStatus.BAD_REQUEST),
        (forbidden, "forbidden", HTTPStatus.FORBIDDEN),
        (unauthorized, "unauthorized_scopes", HTTPStatus.UNAUTHORIZED),
    ],
)
def test_simple_factories(factory, code, status):
    err = factory("something failed")
    assert err.message == "something failed"
    assert err.code == code
    assert err.status == status
    assert err.cause == []


def test_method_not_allowed():
    err = method_not_allowed()
    assert err.message == "Method not allowed"
    assert err.code == "method_not_allowed"
    assert err.status == HTTPStatus.METHOD_NOT_ALLOWED


def test_conflict_message_names_the_item():
    err = conflict("abc")
    assert err.message == "Can't update abc due to a conflict error"
    assert err.code == "conflict_error"
    assert err.status == HTTPStatus.CONFLICT


def test_validation_error_keeps_code_and_cause():
    err = validation_error("invalid", "invalid_field", ["name"])
    assert err.code == "invalid_field"
    assert err.status == HTTPStatus.BAD_REQUEST
    assert err.cause == ["name"]


def test_internal_server_error_records_cause():
    err = internal_server_error("Error deleting", RuntimeError("disk full"))
    assert err.code == "internal_server_error"
    assert err.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert err.cause == ["disk full"]


def test_internal_server_error_without_cause():
    assert internal_server_error("oops", None).cause == []


def test_str_format():
    assert str(bad_request("boom")) == (
        "Message: boom;Error Code: bad_request;Status: 400;Cause: []"
    )


def test_str_includes_cause_items():
    text = str(internal_server_error("x", ValueError("why")))
    assert text.endswith("Cause: [why]")


def test_to_dict_keys():
    body = not_found("missing").to_dict()
    assert body == {
        "message": "missing",
        "error": "not_found",
        "status": HTTPStatus.NOT_FOUND,
        "cause": [],
    }


def test_error_is_raisable():
    err = forbidden("no")
    with pytest.raises(ApiError) as info:
        raise err
    assert info.value is err
    assert info.value.to_dict() == {
        "message": "no",
        "error": "forbidden",
        "status": HTTPStatus.FORBIDDEN,
        "cause": [],
    }


def test_round_trip_through_bytes():
    original = internal_server_error("failed", KeyError("k"))
    decoded = api_error_from_bytes(json.dumps(original.to_dict()).encode())
    assert decoded.to_dict() == original.to_dict()


def test_from_bytes_missing_fields_take_zero_values():
    decoded = api_error_from_bytes(b"{}")
    assert decoded.to_dict() == {"message": "", "error": "", "status": 0, "cause": []}


@pytest.mark.parametrize(
    "data",
    [b"not json", b"[1, 2]", b'{"status": "four hundred"}', b'{"message": 5}'],
)
def test_from_bytes_rejects_bad_payloads(data):
    with pytest.raises(ValueError):
        api_error_from_bytes(data)