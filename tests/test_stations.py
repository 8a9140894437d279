from __future__ import annotations

import math

import pytest

from ev_charge_client.catalog import load_station_feed
from ev_charge_client.exceptions import MalformedRecord
from ev_charge_client.stations import (
    ValidatedStation,
    accept_record,
    is_valid_coordinate,
    validate,
    validated_stations,
)


@pytest.fixture()
def record():
    return {
        "id": "1",
        "name": "Downtown Plaza",
        "address": "123 Main St, Miami, FL",
        "lat": 25.7617,
        "lng": -80.1918,
        "available": 3,
        "total": 4,
        "cost": 0.35,
        "amenities": ["WiFi"],
        "status": "available",
    }


def test_valid_record_passes(record):
    assert validate(record)
    station = accept_record(record)
    assert station.name == "Downtown Plaza"
    assert station.amenities == ("WiFi",)
    assert station.has_valid_coordinates
    assert station.capacity_consistent


@pytest.mark.parametrize(
    "field, value",
    [
        ("id", 1),
        ("name", None),
        ("address", ["123 Main St"]),
        ("lat", "25.76"),
        ("lng", True),
        ("available", 3.5),
        ("total", "4"),
        ("cost", None),
        ("amenities", "WiFi"),
        ("amenities", {"WiFi": True}),
        ("amenities", ["WiFi", None]),
        ("amenities", [["nested"]]),
        ("status", "Available"),
        ("status", "charging"),
        ("status", 1),
    ],
)
def test_wrong_field_type_is_rejected(record, field, value):
    record[field] = value

    assert not validate(record)
    with pytest.raises(MalformedRecord) as excinfo:
        accept_record(record)
    assert excinfo.value.field == field


@pytest.mark.parametrize("missing", ["id", "lat", "amenities", "status"])
def test_missing_field_is_rejected(record, missing):
    del record[missing]

    assert not validate(record)


@pytest.mark.parametrize("value", [None, "record", 42, ["id", "1"]])
def test_non_mapping_is_rejected(value):
    assert not validate(value)


def test_empty_amenities_and_numeric_amenities_are_accepted(record):
    record["amenities"] = []
    assert validate(record)

    record["amenities"] = ("Valet", 24)
    assert accept_record(record).amenities == ("Valet", "24")


def test_range_problems_are_flagged_not_rejected(record):
    record.update(lat=999, available=9, total=4, cost=-1.0)

    station = accept_record(record)

    assert not station.has_valid_coordinates
    assert not station.capacity_consistent


def test_nan_coordinates_are_flagged(record):
    record["lat"] = math.nan

    assert validate(record)
    assert not accept_record(record).has_valid_coordinates


def test_extra_fields_are_ignored(record):
    record["operator"] = "<script>"

    assert validate(record)


def test_validated_station_cannot_be_built_directly():
    with pytest.raises(TypeError):
        ValidatedStation(
            id="x",
            name="n",
            address="a",
            lat=0.0,
            lng=0.0,
            available=0,
            total=0,
            cost=0.0,
            amenities=(),
            status="offline",
        )


def test_validated_stations_keeps_valid_subset_in_order(record):
    broken = dict(record, id="2", status="unknown")
    other = dict(record, id="3", name="Beach Resort")

    stations = validated_stations([record, broken, "junk", other])

    assert [station.id for station in stations] == ["1", "3"]


def test_catalog_feed_is_fully_valid_and_copied():
    feed = load_station_feed()
    assert len(validated_stations(feed)) == 3

    feed[0]["name"] = "changed"
    assert load_station_feed()[0]["name"] == "Downtown Plaza"


@pytest.mark.parametrize(
    "lat, lng, expected",
    [
        (0, 0, True),
        (90, 180, True),
        (-90.0, -180.0, True),
        (90.0001, 0, False),
        (0, -180.5, False),
        (math.inf, 0, False),
        (math.nan, 0, False),
        ("1", 0, False),
        (True, 0, False),
    ],
)
def test_is_valid_coordinate(lat, lng, expected):
    assert is_valid_coordinate(lat, lng) is expected
