"""Configuration data structures for the EV charge map client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(slots=True)
class AppConfig:
    """Static configuration options used across the application."""

    app_name: str = "EVChargeMap"
    app_version: str = "1.0"
    initial_center: Tuple[float, float] = (25.78, -80.1918)
    default_location: Tuple[float, float] = (25.7617, -80.1918)
    overview_zoom: int = 10
    focus_zoom: int = 13
    tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    tile_attribution: str = (
        '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
    )
    tile_probe_host: str = "tile.openstreetmap.org"
    directions_base_url: str = "https://maps.google.com/"
    geolocation_timeout_ms: int = 10_000
    network_check_interval_ms: int = 15_000
    camera_frame_skip: int = 5
    max_frame_size: int = 1_920
    qr_error_correction: str = "M"
    qr_scale: int = 10
    qr_border: int = 4
    max_card_amenities: int = 3
    session_secret: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Build a configuration, overriding selected fields from ``EVCHARGE_*`` variables.

        Unparseable numeric values are ignored and the default is kept.
        """

        env = os.environ if environ is None else environ
        config = cls()

        secret = env.get("EVCHARGE_SESSION_SECRET", "").strip()
        if secret:
            config.session_secret = secret

        directions = env.get("EVCHARGE_DIRECTIONS_URL", "").strip()
        if directions:
            config.directions_base_url = directions

        tiles = env.get("EVCHARGE_TILE_URL", "").strip()
        if tiles:
            config.tile_url = tiles

        location = _parse_pair(env.get("EVCHARGE_DEFAULT_LOCATION"))
        if location is not None:
            config.default_location = location
            config.initial_center = location

        timeout = _parse_int(env.get("EVCHARGE_GEOLOCATION_TIMEOUT_MS"))
        if timeout is not None and timeout > 0:
            config.geolocation_timeout_ms = timeout

        return config


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_pair(value: Optional[str]) -> Optional[Tuple[float, float]]:
    """Parse ``"lat,lng"``; return ``None`` unless both parts are in range."""

    if not value:
        return None
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return lat, lng


@dataclass(slots=True)
class CameraConfig:
    """Runtime camera configuration used by the optional camera worker."""

    width: int = 640
    height: int = 480

    def get_backends(self) -> List[int]:
        """Return a list of OpenCV backend identifiers to try.

        OpenCV is optional.  The import happens lazily so that unit tests can
        run in environments without the camera dependencies installed.
        """

        try:  # pragma: no cover - depends on the environment
            import cv2  # type: ignore
        except Exception:  # pragma: no cover - we simply fall back to an empty list
            return []

        try:
            return [cv2.CAP_V4L2, cv2.CAP_DSHOW, cv2.CAP_MSMF, cv2.CAP_ANY]
        except AttributeError:  # pragma: no cover - depends on the OpenCV build
            return [getattr(cv2, "CAP_ANY", 0)]

    def get_indices(self) -> List[int]:
        """Return candidate camera indices."""

        return [0, 1, 2]


@dataclass(slots=True)
class StyleConfig:
    """Grouping of UI styling constants."""

    bg_primary: str = "#FFFFFF"
    bg_secondary: str = "#F7F7F5"
    fg_primary: str = "#1F1F1F"
    fg_secondary: str = "#6B6B6B"
    accent_primary: str = "#F56B3F"
    border: str = "#E5E5E0"
    success: str = "#10B981"
    warning: str = "#F59E0B"
    danger: str = "#EF4444"
    font_family: str = "Segoe UI, sans-serif"
    font_size: int = 14
    marker_colors: Dict[str, str] = field(
        default_factory=lambda: {
            "marker-available": "#10B981",
            "marker-busy": "#F59E0B",
            "marker-offline": "#EF4444",
        }
    )
    user_marker_color: str = "#F56B3F"

    def marker_color(self, style_token: str) -> str:
        """Return the colour for ``style_token``; unknown tokens get the offline colour."""

        return self.marker_colors.get(style_token, self.marker_colors["marker-offline"])


__all__ = ["AppConfig", "CameraConfig", "StyleConfig"]
