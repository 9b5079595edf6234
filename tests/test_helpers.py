import base64
import json
from decimal import Decimal

import pytest

from taxonomy_errors import DeletionBlocked, NotFound, OperationFailed
from utils.helpers import (
    convert_decimals,
    convert_floats_to_decimals,
    create_response,
    error_response,
    get_path,
    parse_data_uri,
    parse_json_body,
    slugify,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Mobile Phones", "mobile-phones"),
        ("Real  Estate", "real-estate"),
        ("Cars & Trucks!", "cars--trucks"),
        ("Zamalek", "zamalek"),
        ("6th of October", "6th-of-october"),
        ("snake_case-name", "snake_case-name"),
        ("القاهرة", ""),
        ("Café", "caf"),
        ("", ""),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_slugify_keeps_edge_whitespace_as_hyphens():
    assert slugify(" Cairo ") == "-cairo-"


def test_slugify_is_idempotent():
    once = slugify("Home & Garden Tools")
    assert slugify(once) == once


def test_parse_data_uri():
    payload = base64.b64encode(b"\x89PNG data").decode()

    mime_type, data = parse_data_uri(f"data:image/png;base64,{payload}")

    assert mime_type == "image/png"
    assert data == b"\x89PNG data"


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "image/png;base64,AAAA",
        "data:image/png,AAAA",
        "data:;base64,AAAA",
        "data:image/png;base64,not base64!",
    ],
)
def test_parse_data_uri_rejects_malformed(uri):
    with pytest.raises(ValueError):
        parse_data_uri(uri)


def test_convert_decimals_round_trip_types():
    stored = convert_floats_to_decimals({"order": 2, "price": 9.5, "tags": [1.25]})
    assert stored["price"] == Decimal("9.5")

    restored = convert_decimals({"order": Decimal("2"), "price": Decimal("9.5"), "tags": [Decimal("1.25")]})
    assert restored == {"order": 2, "price": 9.5, "tags": [1.25]}
    assert isinstance(restored["order"], int)


def test_get_path():
    document = {"category": {"id": "electronics"}, "title": "Phone"}

    assert get_path(document, "category.id") == "electronics"
    assert get_path(document, "subcategory.id") is None
    assert get_path(document, "title.id") is None


def test_parse_json_body():
    assert parse_json_body({}) == {}
    assert parse_json_body({"body": '{"name": "Egypt"}'}) == {"name": "Egypt"}

    encoded = base64.b64encode(b'{"name": "Egypt"}').decode()
    assert parse_json_body({"body": encoded, "isBase64Encoded": True}) == {"name": "Egypt"}


@pytest.mark.parametrize("body", ["[1, 2]", "not json"])
def test_parse_json_body_rejects_non_objects(body):
    with pytest.raises(ValueError):
        parse_json_body({"body": body})


def test_create_response_keeps_unicode():
    response = create_response(200, {"name": "القاهرة"})

    assert response["statusCode"] == 200
    assert "القاهرة" in response["body"]


@pytest.mark.parametrize(
    "error, status_code",
    [
        (NotFound("Country not found"), 404),
        (DeletionBlocked("country", "Egypt"), 409),
        (OperationFailed("Could not add country."), 502),
        (RuntimeError("boom"), 500),
    ],
)
def test_error_response_status(error, status_code):
    response = error_response(error)
    body = json.loads(response["body"])

    assert response["statusCode"] == status_code
    assert body["error"] == type(error).__name__


def test_error_response_hides_unexpected_messages():
    body = json.loads(error_response(RuntimeError("secret detail"))["body"])
    assert body["message"] == "Internal server error"
