"""Network utility helpers."""
from __future__ import annotations

import socket

from .config import AppConfig


def tiles_reachable(config: AppConfig, timeout: float = 1.0) -> bool:
    """Return ``True`` if the map tile host accepts HTTPS connections."""

    try:
        with socket.create_connection((config.tile_probe_host, 443), timeout=timeout):
            return True
    except OSError:
        return False


__all__ = ["tiles_reachable"]
