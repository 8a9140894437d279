"""Exception hierarchy for the EV charge map client.

None of these conditions is fatal: callers recover by excluding a record,
skipping an action, falling back to a default or staying on the current view.
"""
from __future__ import annotations


class ChargeMapError(Exception):
    """Base exception for all client errors."""


class MalformedRecord(ChargeMapError):
    """A station record failed structural validation."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class InvalidCoordinate(ChargeMapError, ValueError):
    """A coordinate pair is non-numeric or outside the geographic range."""

    def __init__(self, message: str, *, lat: object = None, lng: object = None) -> None:
        self.lat = lat
        self.lng = lng
        super().__init__(message)


class LocationUnavailable(ChargeMapError):
    """The geolocation collaborator could not provide a position."""


class InertNavigation(ChargeMapError):
    """A view was requested without the state it needs (e.g. details with no selection)."""


class ScanRejected(ChargeMapError):
    """A decoded payload did not authorize a charging session."""


__all__ = [
    "ChargeMapError",
    "MalformedRecord",
    "InvalidCoordinate",
    "LocationUnavailable",
    "InertNavigation",
    "ScanRejected",
]
