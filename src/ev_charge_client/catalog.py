"""In-memory station feed.

Stands in for the remote station service; records are returned exactly as a
feed would deliver them and must go through the validator before use.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List

_FEED: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Downtown Plaza",
        "address": "123 Main St, Miami, FL",
        "lat": 25.7617,
        "lng": -80.1918,
        "available": 3,
        "total": 4,
        "cost": 0.35,
        "amenities": ["Restaurant", "WiFi", "Restroom"],
        "status": "available",
    },
    {
        "id": "2",
        "name": "Airport Terminal",
        "address": "2100 NW 42nd Ave, Miami, FL",
        "lat": 25.7959,
        "lng": -80.2870,
        "available": 0,
        "total": 6,
        "cost": 0.42,
        "amenities": ["Food Court", "Shopping"],
        "status": "busy",
    },
    {
        "id": "3",
        "name": "Beach Resort",
        "address": "1701 Collins Ave, Miami Beach, FL",
        "lat": 25.7907,
        "lng": -80.1300,
        "available": 2,
        "total": 3,
        "cost": 0.38,
        "amenities": ["Hotel", "Restaurant", "Valet"],
        "status": "available",
    },
]


def load_station_feed() -> List[Dict[str, Any]]:
    """Return a fresh copy of the raw feed records."""

    return copy.deepcopy(_FEED)


__all__ = ["load_station_feed"]
