"""EV charge map client package."""
from __future__ import annotations

from .config import AppConfig, CameraConfig, StyleConfig
from .exceptions import (
    ChargeMapError,
    InertNavigation,
    InvalidCoordinate,
    LocationUnavailable,
    MalformedRecord,
    ScanRejected,
)
from .map_state import MapStateController, marker_style
from .navigation import NavigationStateMachine
from .qr import QRCodeManager
from .security import SessionAuthorizer, build_directions_target, sanitize
from .state import MapViewState, SessionState
from .stations import ValidatedStation, accept_record, validate, validated_stations

__all__ = [
    "AppConfig",
    "CameraConfig",
    "StyleConfig",
    "ChargeMapError",
    "InertNavigation",
    "InvalidCoordinate",
    "LocationUnavailable",
    "MalformedRecord",
    "ScanRejected",
    "MapStateController",
    "marker_style",
    "NavigationStateMachine",
    "QRCodeManager",
    "SessionAuthorizer",
    "build_directions_target",
    "sanitize",
    "MapViewState",
    "SessionState",
    "ValidatedStation",
    "accept_record",
    "validate",
    "validated_stations",
]

__version__ = "1.0"
