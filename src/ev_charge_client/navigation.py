"""View navigation state machine.

The active view is one of four variants.  :class:`DetailsView` always carries
its station, so a details screen without a selection cannot be represented.
Every transition replaces the view, applies its side effects and only then
notifies listeners.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Union

from .exceptions import InertNavigation, ScanRejected
from .security import SessionAuthorizer
from .state import SessionState
from .stations import ValidatedStation

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MapView:
    name = "map"


@dataclass(frozen=True, slots=True)
class DetailsView:
    station: ValidatedStation
    name = "details"


@dataclass(frozen=True, slots=True)
class ScannerView:
    """Code scanner.

    ``back_station`` is where *back* returns to; ``charge_station`` is set only
    when the scanner was opened through *start charging*.
    """

    back_station: Optional[ValidatedStation] = None
    charge_station: Optional[ValidatedStation] = None
    name = "scanner"


@dataclass(frozen=True, slots=True)
class ProfileView:
    name = "profile"


View = Union[MapView, DetailsView, ScannerView, ProfileView]

NAV_TARGETS = ("map", "details", "scanner", "profile")


class CaptureControl(Protocol):
    """The camera side of the code scanner."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


class NavigationStateMachine:
    """Owns the active view, the selected station and the session state."""

    def __init__(
        self,
        session: Optional[SessionState] = None,
        capture: Optional[CaptureControl] = None,
        authorizer: Optional[SessionAuthorizer] = None,
    ) -> None:
        self._session = session if session is not None else SessionState()
        self._capture = capture
        self._authorizer = authorizer if authorizer is not None else SessionAuthorizer()
        self._view: View = MapView()
        self._selected: Optional[ValidatedStation] = None
        self._scan_open = False
        self._capturing = False
        self._scan_message = ""
        self._listeners: List[Callable[[View], None]] = []

    @property
    def view(self) -> View:
        return self._view

    @property
    def selected_station(self) -> Optional[ValidatedStation]:
        return self._selected

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def scanning(self) -> bool:
        """``True`` while the current scan session still waits for a payload."""

        return self._scan_open

    @property
    def scan_message(self) -> str:
        """Reason the last payload was rejected, empty otherwise."""

        return self._scan_message

    def set_capture(self, capture: Optional[CaptureControl]) -> None:
        self._capture = capture

    def subscribe(self, listener: Callable[[View], None]) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._view)

    def _open_scan(self, start_capture: bool = True) -> None:
        self._scan_open = True
        self._scan_message = ""
        if start_capture and self._capture is not None:
            self._capturing = True
            self._capture.start()

    def _close_scan(self) -> None:
        self._scan_open = False
        if self._capturing and self._capture is not None:
            self._capture.stop()
        self._capturing = False

    def _transition(self, view: View) -> None:
        leaving_scanner = isinstance(self._view, ScannerView)
        entering_scanner = isinstance(view, ScannerView)
        if leaving_scanner:
            self._close_scan()
            self._scan_message = ""
        _logger.debug("View %s -> %s", self._view.name, view.name)
        self._view = view
        if entering_scanner:
            self._open_scan()
        self._notify()

    def select(self, station: ValidatedStation) -> bool:
        """Show the details of ``station``; only valid from the map view."""

        if not isinstance(station, ValidatedStation):
            _logger.warning("Refusing to select an unvalidated station: %r", type(station))
            return False
        if not isinstance(self._view, MapView):
            _logger.debug("Ignoring station selection outside the map view")
            return False
        self._selected = station
        self._transition(DetailsView(station))
        return True

    def start_charging(self) -> bool:
        """Open the scanner for the displayed station if it is available."""

        view = self._view
        if not isinstance(view, DetailsView) or not view.station.is_available:
            return False
        self._transition(ScannerView(back_station=view.station, charge_station=view.station))
        return True

    def scan_result(self, payload: str) -> bool:
        """Consume a decoded payload; only the first one of a scan session counts."""

        view = self._view
        if not isinstance(view, ScannerView) or not self._scan_open:
            _logger.debug("Ignoring payload outside an open scan session")
            return False

        expected = view.charge_station.id if view.charge_station is not None else None
        try:
            self._authorizer.authorize(payload, expected)
        except ScanRejected as exc:
            _logger.warning("Rejected scanned payload %r: %s", payload, exc)
            self._close_scan()
            self._scan_message = str(exc)
            self._notify()
            return False

        self._close_scan()
        self._session.start(view.charge_station, payload)
        self._transition(MapView())
        return True

    def rescan(self, start_capture: bool = True) -> bool:
        """Start a new scan session after a rejected payload.

        With ``start_capture=False`` the session waits for a payload from
        another source, such as an image file, and the camera stays off.
        """

        if not isinstance(self._view, ScannerView) or self._scan_open:
            return False
        self._open_scan(start_capture)
        self._notify()
        return True

    def back(self) -> bool:
        view = self._view
        if isinstance(view, ScannerView):
            if view.back_station is not None:
                self._transition(DetailsView(view.back_station))
            else:
                self._transition(MapView())
            return True
        if isinstance(view, (DetailsView, ProfileView)):
            self._transition(MapView())
            return True
        return False

    def navigate_to(self, target: str) -> bool:
        """Bottom-navigation jump to ``target``; returns ``False`` if nothing changed."""

        if target not in NAV_TARGETS:
            raise ValueError(f"Unknown view: {target}")
        if target == self._view.name:
            return False

        if target == "map":
            self._transition(MapView())
        elif target == "profile":
            self._transition(ProfileView())
        elif target == "scanner":
            self._transition(ScannerView(back_station=self._selected))
        else:
            try:
                station = self._require_selection()
            except InertNavigation as exc:
                _logger.debug("Ignoring navigation: %s", exc)
                return False
            self._transition(DetailsView(station))
        return True

    def _require_selection(self) -> ValidatedStation:
        if self._selected is None:
            raise InertNavigation("Details requested without a selected station")
        return self._selected


__all__ = [
    "CaptureControl",
    "DetailsView",
    "MapView",
    "NAV_TARGETS",
    "NavigationStateMachine",
    "ProfileView",
    "ScannerView",
    "View",
]
