"""Trust-boundary primitives: text sanitising, numeric display guards,
directions URL construction and scan-payload authorisation."""
from __future__ import annotations

import html
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import quote

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .exceptions import InvalidCoordinate, ScanRejected
from .stations import LAT_RANGE, LNG_RANGE, ValidatedStation

_logger = logging.getLogger(__name__)

DEFAULT_DIRECTIONS_URL = "https://maps.google.com/"

_CHAR_REFERENCE = re.compile(
    r"&(?:[A-Za-z][A-Za-z0-9]{1,31}|#[0-9]{1,7}|#[xX][0-9A-Fa-f]{1,6});"
)
"""A complete HTML character reference, kept verbatim so escaping is idempotent."""

_STATUS_LABELS = {"available": "Available", "busy": "Busy", "offline": "Offline"}


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    try:
        return str(value)
    except Exception:
        return ""


def sanitize(value: Any) -> str:
    """Return ``value`` as text with every markup-significant character escaped.

    ``<``, ``>``, ``&``, ``"`` and ``'`` are replaced by character references.
    References already present in the input are left untouched, so applying
    the function to its own output returns the same string.  Never raises.
    """

    text = _coerce_text(value)
    parts = []
    position = 0
    for match in _CHAR_REFERENCE.finditer(text):
        parts.append(html.escape(text[position : match.start()], quote=True))
        parts.append(match.group(0))
        position = match.end()
    parts.append(html.escape(text[position:], quote=True))
    return "".join(parts)


def _finite_non_negative(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def display_count(value: Any) -> str:
    """Format a port count for display, clamping hostile values to ``0``."""

    return str(int(_finite_non_negative(value)))


def format_cost(value: Any) -> str:
    """Format a price per kWh with two decimals, clamping hostile values to ``0.00``."""

    return f"{_finite_non_negative(value):.2f}"


def status_label(status: Any) -> str:
    return sanitize(_STATUS_LABELS.get(status, "Unknown") if isinstance(status, str) else "Unknown")


def _parse_coordinate(value: Any, bounds: tuple, name: str, lat: Any, lng: Any) -> float:
    if isinstance(value, bool):
        raise InvalidCoordinate(f"{name} is not a number", lat=lat, lng=lng)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidCoordinate(f"{name} is not a number", lat=lat, lng=lng) from exc
    if math.isnan(number) or not bounds[0] <= number <= bounds[1]:
        raise InvalidCoordinate(f"{name} is out of range", lat=lat, lng=lng)
    return number


def build_directions_target(
    lat: Any, lng: Any, base_url: str = DEFAULT_DIRECTIONS_URL
) -> str:
    """Return the mapping-service URL for ``lat``/``lng``.

    Raises :class:`InvalidCoordinate` for non-numeric, NaN or out-of-range
    values.  Each coordinate is percent-encoded on its own before it is
    interpolated, so neither can add structure to the URL.
    """

    lat_value = _parse_coordinate(lat, LAT_RANGE, "Latitude", lat, lng)
    lng_value = _parse_coordinate(lng, LNG_RANGE, "Longitude", lat, lng)
    return (
        f"{base_url}?q={quote(repr(lat_value), safe='')},{quote(repr(lng_value), safe='')}"
    )


def open_directions(
    station: ValidatedStation,
    opener: Callable[[str], Any],
    base_url: str = DEFAULT_DIRECTIONS_URL,
) -> bool:
    """Open directions to ``station`` through ``opener``.

    Returns ``False`` without calling ``opener`` when the coordinates are rejected.
    """

    try:
        url = build_directions_target(station.lat, station.lng, base_url)
    except InvalidCoordinate as exc:
        _logger.warning("Directions aborted for station %r: %s", station.id, exc)
        return False
    opener(url)
    return True


TOKEN_PREFIX = "EVCHG1"
"""Prefix of authorisation codes issued by :meth:`SessionAuthorizer.issue`."""


@dataclass(slots=True)
class SessionAuthorizer:
    """Decide whether a scanned payload may start a charging session.

    Without a secret any non-empty payload is accepted.  With a secret the
    payload must be an ``EVCHG1:<station id>:<hex HMAC-SHA256>`` code.
    """

    secret: Optional[str] = None

    @property
    def requires_signature(self) -> bool:
        return bool(self.secret)

    def _mac(self, message: str) -> hmac.HMAC:
        if not self.requires_signature:
            raise ValueError("Signing charger codes requires a session secret")
        mac = hmac.HMAC(self.secret.encode("utf-8"), hashes.SHA256())
        mac.update(message.encode("utf-8"))
        return mac

    def issue(self, station_id: str) -> str:
        """Return a signed authorisation code for ``station_id``."""

        if not station_id:
            raise ValueError("Station id must not be empty")
        message = f"{TOKEN_PREFIX}:{station_id}"
        return f"{message}:{self._mac(message).finalize().hex()}"

    def authorize(self, payload: Any, expected_station_id: Optional[str] = None) -> None:
        """Raise :class:`ScanRejected` unless ``payload`` authorises a session."""

        if not isinstance(payload, str) or not payload.strip():
            raise ScanRejected("Scanned code is empty")
        if not self.requires_signature:
            return

        prefix = f"{TOKEN_PREFIX}:"
        if not payload.startswith(prefix):
            raise ScanRejected("Scanned code is not a charging authorisation")
        station_id, _, signature = payload[len(prefix) :].rpartition(":")
        if not station_id:
            raise ScanRejected("Scanned code is not a charging authorisation")

        try:
            signature_bytes = bytes.fromhex(signature)
        except ValueError as exc:
            raise ScanRejected("Scanned code signature is malformed") from exc

        try:
            self._mac(f"{TOKEN_PREFIX}:{station_id}").verify(signature_bytes)
        except InvalidSignature as exc:
            raise ScanRejected("Scanned code signature is invalid") from exc

        if expected_station_id is not None and station_id != expected_station_id:
            raise ScanRejected("Scanned code belongs to a different station")


__all__ = [
    "DEFAULT_DIRECTIONS_URL",
    "SessionAuthorizer",
    "TOKEN_PREFIX",
    "build_directions_target",
    "display_count",
    "format_cost",
    "open_directions",
    "sanitize",
    "status_label",
]
