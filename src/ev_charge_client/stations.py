"""Station records: structural validation of untrusted feed data."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from .exceptions import MalformedRecord

_logger = logging.getLogger(__name__)

STATION_STATUSES = ("available", "busy", "offline")
"""The only status values a station record may carry."""

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)

_TEXT_FIELDS = ("id", "name", "address")
_REAL_FIELDS = ("lat", "lng", "cost")
_INT_FIELDS = ("available", "total")

_ISSUER = object()
"""Marker proving a :class:`ValidatedStation` was built by :func:`accept_record`."""


class Coordinate(NamedTuple):
    lat: float
    lng: float


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Return ``True`` if ``lat``/``lng`` are finite real numbers within range."""

    if not (_is_real(lat) and _is_real(lng)):
        return False
    lat_f, lng_f = float(lat), float(lng)
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return LAT_RANGE[0] <= lat_f <= LAT_RANGE[1] and LNG_RANGE[0] <= lng_f <= LNG_RANGE[1]


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text_coercible(value: Any) -> bool:
    return isinstance(value, str) or _is_real(value)


@dataclass(frozen=True, slots=True)
class ValidatedStation:
    """A station record that passed structural validation.

    Text fields are still untrusted for rendering; pass them through
    :func:`ev_charge_client.security.sanitize` before they reach a render sink.
    Instances can only be obtained from :func:`accept_record`.
    """

    id: str
    name: str
    address: str
    lat: float
    lng: float
    available: int
    total: int
    cost: float
    amenities: Tuple[str, ...]
    status: str
    _issued_by: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._issued_by is not _ISSUER:
            raise TypeError("ValidatedStation instances are created by accept_record()")

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)

    @property
    def has_valid_coordinates(self) -> bool:
        return is_valid_coordinate(self.lat, self.lng)

    @property
    def capacity_consistent(self) -> bool:
        """``False`` when the feed reports negative counts or more free ports than ports."""

        return 0 <= self.available <= self.total

    @property
    def is_available(self) -> bool:
        return self.status == "available"


def _check_record(record: Any) -> None:
    """Raise :class:`MalformedRecord` describing the first structural problem."""

    if not isinstance(record, Mapping):
        raise MalformedRecord("Station record is not a mapping")

    for name in _TEXT_FIELDS + _REAL_FIELDS + _INT_FIELDS + ("amenities", "status"):
        if name not in record:
            raise MalformedRecord(f"Missing field: {name}", field=name)

    for name in _TEXT_FIELDS:
        if not isinstance(record[name], str):
            raise MalformedRecord(f"Field {name} must be a string", field=name)

    for name in _REAL_FIELDS:
        if not _is_real(record[name]):
            raise MalformedRecord(f"Field {name} must be a number", field=name)

    for name in _INT_FIELDS:
        if not _is_int(record[name]):
            raise MalformedRecord(f"Field {name} must be an integer", field=name)

    amenities = record["amenities"]
    if not isinstance(amenities, (list, tuple)):
        raise MalformedRecord("Field amenities must be a list", field="amenities")
    for item in amenities:
        if not _is_text_coercible(item):
            raise MalformedRecord("Amenity values must be text", field="amenities")

    status = record["status"]
    if not isinstance(status, str) or status not in STATION_STATUSES:
        raise MalformedRecord("Field status is not a known station status", field="status")


def validate(record: Any) -> bool:
    """Return ``True`` if ``record`` has every station field with its declared type.

    Range problems (``available > total``, negative counts, coordinates out of
    range) do not fail validation; they are flagged on the resulting
    :class:`ValidatedStation` and neutralised where the value is used.
    """

    try:
        _check_record(record)
    except MalformedRecord:
        return False
    return True


def accept_record(record: Any) -> ValidatedStation:
    """Convert an untrusted record into a :class:`ValidatedStation`.

    Raises :class:`MalformedRecord` if the record fails :func:`validate`.
    """

    _check_record(record)
    return ValidatedStation(
        id=record["id"],
        name=record["name"],
        address=record["address"],
        lat=float(record["lat"]),
        lng=float(record["lng"]),
        available=record["available"],
        total=record["total"],
        cost=float(record["cost"]),
        amenities=tuple(str(item) for item in record["amenities"]),
        status=record["status"],
        _issued_by=_ISSUER,
    )


def validated_stations(records: Iterable[Any]) -> List[ValidatedStation]:
    """Return the structurally valid subset of ``records`` in input order."""

    accepted: List[ValidatedStation] = []
    for index, record in enumerate(records):
        try:
            station = accept_record(record)
        except MalformedRecord as exc:
            _logger.debug("Dropping station record #%d: %s", index, exc)
            continue
        if not station.capacity_consistent:
            _logger.debug(
                "Station %r reports inconsistent capacity %d/%d",
                station.id,
                station.available,
                station.total,
            )
        accepted.append(station)
    return accepted


def find_station(stations: Iterable[ValidatedStation], station_id: str) -> Optional[ValidatedStation]:
    """Return the validated station with ``station_id``, if any."""

    for station in stations:
        if station.id == station_id:
            return station
    return None


__all__ = [
    "STATION_STATUSES",
    "Coordinate",
    "ValidatedStation",
    "accept_record",
    "find_station",
    "is_valid_coordinate",
    "validate",
    "validated_stations",
]
