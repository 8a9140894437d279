"""Leaflet page generation for the map view.

The page is fully described by a :class:`~ev_charge_client.map_state.MapRenderRequest`;
nothing in it talks back to Python except popup links using the
``evcharge://`` scheme, which the shell intercepts.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .config import AppConfig, StyleConfig
from .map_state import MapRenderRequest

LEAFLET_VERSION = "1.9.4"


def _script_json(value: Any) -> str:
    """JSON that can be embedded in a ``<script>`` element without closing it."""

    return (
        json.dumps(value, ensure_ascii=True)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def map_payload(request: MapRenderRequest, style: StyleConfig) -> Dict[str, Any]:
    markers = [
        {
            "lat": marker.coordinate.lat,
            "lng": marker.coordinate.lng,
            "color": style.marker_color(marker.style),
            "className": marker.style,
            "popup": marker.popup_html,
        }
        for marker in request.markers
    ]
    user: Optional[Dict[str, float]] = None
    if request.user_location is not None:
        user = {"lat": request.user_location.lat, "lng": request.user_location.lng}
    return {
        "center": [request.center.lat, request.center.lng],
        "zoom": request.zoom,
        "markers": markers,
        "user": user,
        "userColor": style.user_marker_color,
    }


def build_map_html(
    request: MapRenderRequest,
    config: Optional[AppConfig] = None,
    style: Optional[StyleConfig] = None,
) -> str:
    """Return a self-contained HTML document drawing ``request`` with Leaflet."""

    config = config if config is not None else AppConfig()
    style = style if style is not None else StyleConfig()
    payload = _script_json(map_payload(request, style))
    tiles = _script_json({"url": config.tile_url, "attribution": config.tile_attribution})
    leaflet = f"https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <link rel="stylesheet" href="{leaflet}/leaflet.css" />
  <script src="{leaflet}/leaflet.js"></script>
  <style>
    html, body, #map {{ height: 100%; margin: 0; }}
    .station-popup h3 {{ margin: 0 0 4px 0; }}
    .station-popup p {{ margin: 2px 0; }}
    .popup-select {{
      display: inline-block; margin-top: 8px; padding: 8px 16px;
      background: {style.accent_primary}; color: white; border-radius: 4px; text-decoration: none;
    }}
  </style>
</head>
<body>
  <div id="map"></div>
  <script>
    const data = {payload};
    const tiles = {tiles};
    const map = L.map("map").setView(data.center, {config.overview_zoom});
    L.tileLayer(tiles.url, {{ attribution: tiles.attribution }}).addTo(map);
    map.flyTo(data.center, data.zoom);

    if (data.user) {{
      L.circleMarker([data.user.lat, data.user.lng], {{
        radius: 8, color: "white", weight: 3, fillColor: data.userColor, fillOpacity: 1
      }}).addTo(map).bindPopup("<strong>Your Location</strong>");
    }}

    for (const marker of data.markers) {{
      L.circleMarker([marker.lat, marker.lng], {{
        radius: 12, color: "white", weight: 3, fillColor: marker.color, fillOpacity: 1,
        className: marker.className
      }}).addTo(map).bindPopup(marker.popup);
    }}
  </script>
</body>
</html>
"""


__all__ = ["LEAFLET_VERSION", "build_map_html", "map_payload"]
