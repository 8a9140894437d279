from __future__ import annotations

import math
from urllib.parse import parse_qs, unquote, urlsplit

import pytest

from ev_charge_client.exceptions import InvalidCoordinate, ScanRejected
from ev_charge_client.security import (
    SessionAuthorizer,
    build_directions_target,
    display_count,
    format_cost,
    open_directions,
    sanitize,
    status_label,
)
from ev_charge_client.stations import accept_record

HOSTILE_STRINGS = [
    "<img src=x onerror=alert(1)>",
    "<script>alert('x')</script>",
    '" onmouseover="alert(1)',
    "Tom & Jerry's <b>Diner</b>",
    "&lt;already escaped&gt;",
    "&amp;lt;script&amp;gt;",
    "&#60;script&#62;",
    "& dangling ampersand &",
    "&#x3C;svg onload=alert(1)&#x3E;",
    "plain text",
    "",
]


@pytest.fixture()
def station_record():
    return {
        "id": "1",
        "name": "Downtown Plaza",
        "address": "123 Main St",
        "lat": 25.7617,
        "lng": -80.1918,
        "available": 3,
        "total": 4,
        "cost": 0.35,
        "amenities": [],
        "status": "available",
    }


def test_sanitize_escapes_markup():
    assert sanitize("<img src=x onerror=alert(1)>") == "&lt;img src=x onerror=alert(1)&gt;"
    assert sanitize("a & b") == "a &amp; b"
    assert sanitize("\"'") == "&quot;&#x27;"


@pytest.mark.parametrize("text", HOSTILE_STRINGS)
def test_sanitize_is_idempotent_and_has_no_raw_markup(text):
    once = sanitize(text)

    assert sanitize(once) == once
    for char in "<>\"'":
        assert char not in once


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (42, "42"),
        (0.5, "0.5"),
        (b"<b>", "&lt;b&gt;"),
        (b"\xff", "\ufffd"),
    ],
)
def test_sanitize_coerces_non_strings(value, expected):
    assert sanitize(value) == expected


def test_sanitize_never_raises_on_hostile_objects():
    class Hostile:
        def __str__(self):
            raise RuntimeError("boom")

    assert sanitize(Hostile()) == ""


@pytest.mark.parametrize(
    "value, expected",
    [(3, "3"), (0, "0"), (-2, "0"), (math.nan, "0"), (math.inf, "0"), ("7", "7"), ("x", "0"), (True, "0"), (None, "0")],
)
def test_display_count_clamps(value, expected):
    assert display_count(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(0.35, "0.35"), (0.4, "0.40"), (2, "2.00"), (-1, "0.00"), (math.nan, "0.00"), ("<b>", "0.00")],
)
def test_format_cost(value, expected):
    assert format_cost(value) == expected


def test_status_label():
    assert status_label("available") == "Available"
    assert status_label("busy") == "Busy"
    assert status_label("<b>") == "Unknown"
    assert status_label(None) == "Unknown"


def test_directions_url_for_valid_coordinates():
    url = build_directions_target(25.7617, -80.1918)

    assert url == "https://maps.google.com/?q=25.7617,-80.1918"


@pytest.mark.parametrize(
    "lat, lng",
    [(25.7617, -80.1918), (-90, 180), (0, 0), (1e-07, -179.999999), ("12.5", "-3.25")],
)
def test_directions_query_decodes_to_exact_coordinates(lat, lng):
    url = build_directions_target(lat, lng)

    query = parse_qs(urlsplit(url).query)["q"][0]
    lat_text, lng_text = unquote(query).split(",")
    assert float(lat_text) == float(lat)
    assert float(lng_text) == float(lng)
    assert urlsplit(url).netloc == "maps.google.com"


@pytest.mark.parametrize(
    "lat, lng",
    [
        (999, -80.19),
        (25.0, 181),
        (-90.5, 0),
        (math.nan, 0),
        (0, math.nan),
        (math.inf, 0),
        ("25.7&x=1", 0),
        ("javascript:alert(1)", 0),
        (None, 0),
        (True, 0),
    ],
)
def test_directions_rejects_invalid_coordinates(lat, lng):
    with pytest.raises(InvalidCoordinate):
        build_directions_target(lat, lng)


def test_invalid_coordinate_is_value_error():
    with pytest.raises(ValueError):
        build_directions_target(999, 0)


def test_open_directions_does_not_navigate_for_rejected_station(station_record):
    station_record["lat"] = 999
    opened = []

    assert not open_directions(accept_record(station_record), opened.append)
    assert opened == []


def test_open_directions_uses_configured_base(station_record):
    opened = []

    assert open_directions(accept_record(station_record), opened.append, "https://maps.example/")
    assert opened == ["https://maps.example/?q=25.7617,-80.1918"]


def test_permissive_authorizer_accepts_any_non_empty_payload():
    authorizer = SessionAuthorizer()

    authorizer.authorize("SESSION-OK")
    authorizer.authorize("anything", expected_station_id="1")
    for payload in ("", "   ", None, b"SESSION-OK"):
        with pytest.raises(ScanRejected):
            authorizer.authorize(payload)


def test_signed_authorizer_roundtrip():
    authorizer = SessionAuthorizer("s3cret")
    code = authorizer.issue("1")

    assert code.startswith("EVCHG1:1:")
    authorizer.authorize(code)
    authorizer.authorize(code, expected_station_id="1")


def test_signed_authorizer_handles_ids_with_separators():
    authorizer = SessionAuthorizer("s3cret")

    authorizer.authorize(authorizer.issue("site:7"), expected_station_id="site:7")


@pytest.mark.parametrize(
    "payload",
    ["SESSION-OK", "EVCHG1:1:zz", "EVCHG1::abcd", "EVCHG1:1:" + "00" * 32],
)
def test_signed_authorizer_rejects_forged_payloads(payload):
    with pytest.raises(ScanRejected):
        SessionAuthorizer("s3cret").authorize(payload)


def test_signed_authorizer_rejects_other_secret_and_other_station():
    code = SessionAuthorizer("other").issue("1")
    with pytest.raises(ScanRejected):
        SessionAuthorizer("s3cret").authorize(code)

    own = SessionAuthorizer("s3cret").issue("2")
    with pytest.raises(ScanRejected) as excinfo:
        SessionAuthorizer("s3cret").authorize(own, expected_station_id="1")
    assert "different station" in str(excinfo.value)


def test_issue_requires_secret():
    with pytest.raises(ValueError):
        SessionAuthorizer().issue("1")


@pytest.mark.parametrize("secret", [None, ""])
def test_authorizer_without_secret_cannot_issue(secret):
    authorizer = SessionAuthorizer(secret)

    assert not authorizer.requires_signature
    with pytest.raises(ValueError):
        authorizer.issue("1")


def test_issue_rejects_empty_station_id():
    with pytest.raises(ValueError):
        SessionAuthorizer("s3cret").issue("")
