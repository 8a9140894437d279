"""Map state: centre, user location, search filter and marker derivation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit

from .config import AppConfig
from .exceptions import LocationUnavailable
from .navigation import NavigationStateMachine
from .presenters import popup_html
from .security import sanitize
from .state import MapViewState, SessionState
from .stations import Coordinate, ValidatedStation, find_station, is_valid_coordinate, validated_stations

_logger = logging.getLogger(__name__)

MARKER_STYLES = {
    "available": "marker-available",
    "busy": "marker-busy",
    "offline": "marker-offline",
}
FALLBACK_MARKER_STYLE = "marker-offline"

STATION_LINK_SCHEME = "evcharge"
"""URL scheme used by map popups to ask the shell to select a station."""

CHARGING_DETAIL = "45 min remaining • 78% charged"


def marker_style(status: Any) -> str:
    """Return the marker style token for ``status``; unknown values look offline."""

    if not isinstance(status, str):
        return FALLBACK_MARKER_STYLE
    return MARKER_STYLES.get(status, FALLBACK_MARKER_STYLE)


def station_link(station_id: str) -> str:
    return f"{STATION_LINK_SCHEME}://station/{quote(station_id, safe='')}"


def parse_station_link(url: str) -> Optional[str]:
    """Return the station id carried by a popup link, or ``None`` for other URLs."""

    parts = urlsplit(url)
    if parts.scheme != STATION_LINK_SCHEME or parts.netloc != "station":
        return None
    station_id = unquote(parts.path.lstrip("/"))
    return station_id or None


@dataclass(frozen=True, slots=True)
class MarkerSpec:
    coordinate: Coordinate
    style: str
    popup_html: str
    station_id: str


@dataclass(frozen=True, slots=True)
class MapRenderRequest:
    """Everything the tile/render collaborator needs to draw the map."""

    center: Coordinate
    zoom: int
    markers: Tuple[MarkerSpec, ...]
    user_location: Optional[Coordinate]


class LocationRequest:
    """One-shot geolocation result: the first of :meth:`resolve`/:meth:`fail` wins."""

    def __init__(self, controller: "MapStateController") -> None:
        self._controller = controller
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def _settle(self, outcome: str) -> bool:
        if self._settled:
            _logger.debug("Ignoring late geolocation %s", outcome)
            return False
        self._settled = True
        return True

    def resolve(self, lat: float, lng: float) -> bool:
        if not self._settle("fix"):
            return False
        self._controller.on_location_resolved(lat, lng)
        return True

    def fail(self, reason: object = None) -> bool:
        if not self._settle("failure"):
            return False
        self._controller.on_location_failed(reason)
        return True


class MapStateController:
    """Owns :class:`~ev_charge_client.state.MapViewState` for the map view."""

    def __init__(
        self,
        stations: Iterable[ValidatedStation],
        navigation: NavigationStateMachine,
        session: Optional[SessionState] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._config = config if config is not None else AppConfig()
        self._stations: Tuple[ValidatedStation, ...] = tuple(
            station for station in stations if isinstance(station, ValidatedStation)
        )
        self._navigation = navigation
        self._session = session if session is not None else navigation.session

        center = Coordinate(*self._config.initial_center)
        if not is_valid_coordinate(*center):
            center = Coordinate(*self._config.default_location)
        self._state = MapViewState(center=center)
        self._query = ""
        self._listeners: List[Callable[[MapViewState], None]] = []

    @classmethod
    def from_feed(
        cls,
        records: Iterable[Any],
        navigation: NavigationStateMachine,
        config: Optional[AppConfig] = None,
    ) -> "MapStateController":
        """Build a controller from raw feed records, keeping only valid ones."""

        return cls(validated_stations(records), navigation, config=config)

    @property
    def state(self) -> MapViewState:
        return self._state

    @property
    def stations(self) -> Tuple[ValidatedStation, ...]:
        return self._stations

    def subscribe(self, listener: Callable[[MapViewState], None]) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def begin_location_request(self) -> LocationRequest:
        return LocationRequest(self)

    def on_location_resolved(self, lat: float, lng: float) -> None:
        if not is_valid_coordinate(lat, lng):
            self.on_location_failed(LocationUnavailable(f"Invalid position fix {lat!r}, {lng!r}"))
            return
        position = Coordinate(float(lat), float(lng))
        self._state.user_location = position
        self._state.center = position
        self._notify()

    def on_location_failed(self, reason: object = None) -> None:
        _logger.info("Location unavailable (%s); using default location", reason)
        self._state.user_location = Coordinate(*self._config.default_location)
        self._notify()

    def on_station_card_activated(self, station: ValidatedStation) -> bool:
        """Ask navigation to show ``station`` and centre on it once it is selected."""

        if not isinstance(station, ValidatedStation):
            _logger.warning("Ignoring activation of an unvalidated station")
            return False
        if not self._navigation.select(station):
            return False
        if station.has_valid_coordinates:
            self._state.center = station.coordinate
        else:
            _logger.warning("Station %r has unusable coordinates; map not re-centred", station.id)
        self._notify()
        return True

    def select_station_id(self, station_id: str) -> bool:
        """Select a station by id, e.g. from a popup link; unknown ids are ignored."""

        station = self.station_by_id(station_id)
        if station is None:
            _logger.warning("Ignoring selection of unknown station id %r", station_id)
            return False
        return self._navigation.select(station)

    def station_by_id(self, station_id: str) -> Optional[ValidatedStation]:
        return find_station(self._stations, station_id)

    def set_search_query(self, text: Any) -> None:
        """Store the query; the state keeps the escaped form for display."""

        self._query = text.casefold() if isinstance(text, str) else ""
        self._state.search_query = sanitize(text)
        self._notify()

    @property
    def filtered_stations(self) -> List[ValidatedStation]:
        """Stations whose name or address contains the query, ignoring case.

        Matching runs on the raw query and the raw station text, so escape
        sequences such as ``&amp;`` never match on their own.
        """

        query = self._query
        if not query:
            return list(self._stations)
        return [
            station
            for station in self._stations
            if query in station.name.casefold() or query in station.address.casefold()
        ]

    def markers(self) -> Tuple[MarkerSpec, ...]:
        """Markers for every validated station that can be placed on the map."""

        markers = []
        for station in self._stations:
            if not station.has_valid_coordinates:
                continue
            markers.append(
                MarkerSpec(
                    coordinate=station.coordinate,
                    style=marker_style(station.status),
                    popup_html=popup_html(station, station_link(station.id)),
                    station_id=station.id,
                )
            )
        return tuple(markers)

    def render_request(self) -> MapRenderRequest:
        return MapRenderRequest(
            center=self._state.center,
            zoom=self._config.focus_zoom,
            markers=self.markers(),
            user_location=self._state.user_location,
        )

    def charging_banner(self) -> Optional[str]:
        """Banner text while a session is active, ``None`` otherwise."""

        if not self._session.is_charging:
            return None
        station = self._session.station
        if station is None:
            return "Currently charging"
        return f"Currently charging at {sanitize(station.name)}"

    def location_overlay(self) -> Optional[str]:
        location = self._state.user_location
        if location is None:
            return None
        return f"Your location: {location.lat:.4f}, {location.lng:.4f}"


__all__ = [
    "CHARGING_DETAIL",
    "FALLBACK_MARKER_STYLE",
    "LocationRequest",
    "MARKER_STYLES",
    "MapRenderRequest",
    "MapStateController",
    "MarkerSpec",
    "STATION_LINK_SCHEME",
    "marker_style",
    "parse_station_link",
    "station_link",
]
