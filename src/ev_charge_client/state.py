"""Runtime state containers shared between the controllers and the UI."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .stations import Coordinate, ValidatedStation


@dataclass(slots=True)
class SessionState:
    """Whether a charging session is active.

    Only :class:`~ev_charge_client.navigation.NavigationStateMachine` writes
    to it, through :meth:`start`; everything else reads the properties.
    """

    _is_charging: bool = False
    _station: Optional[ValidatedStation] = None
    _payload: Optional[str] = None

    @property
    def is_charging(self) -> bool:
        return self._is_charging

    @property
    def station(self) -> Optional[ValidatedStation]:
        """Station the session was authorised at, when the scan started from its details."""

        return self._station

    @property
    def payload(self) -> Optional[str]:
        return self._payload

    def start(self, station: Optional[ValidatedStation], payload: str) -> None:
        self._is_charging = True
        self._station = station
        self._payload = payload


@dataclass(slots=True)
class MapViewState:
    """Map centre, user position and search text; owned by the map controller."""

    center: Coordinate
    user_location: Optional[Coordinate] = None
    search_query: str = ""


__all__ = ["SessionState", "MapViewState"]
