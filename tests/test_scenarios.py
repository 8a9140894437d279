from __future__ import annotations

import pytest

from ev_charge_client.config import StyleConfig
from ev_charge_client.map_state import MapStateController
from ev_charge_client.maps import build_map_html, map_payload
from ev_charge_client.navigation import DetailsView, MapView, NavigationStateMachine, ScannerView
from ev_charge_client.presenters import station_card, station_detail
from ev_charge_client.security import open_directions
from ev_charge_client.stations import is_valid_coordinate, validate


@pytest.fixture()
def downtown():
    return {
        "id": "1",
        "name": "Downtown Plaza",
        "address": "123 Main St, Miami, FL",
        "lat": 25.7617,
        "lng": -80.1918,
        "available": 3,
        "total": 4,
        "cost": 0.35,
        "amenities": ["WiFi"],
        "status": "available",
    }


@pytest.fixture()
def navigation():
    return NavigationStateMachine()


def test_valid_station_becomes_green_selectable_marker(downtown, navigation):
    assert validate(downtown)
    controller = MapStateController.from_feed([downtown], navigation)

    (marker,) = controller.markers()
    (payload_marker,) = map_payload(controller.render_request(), StyleConfig())["markers"]

    assert marker.style == "marker-available"
    assert payload_marker["color"] == "#10B981"
    assert controller.select_station_id("1")
    assert isinstance(navigation.view, DetailsView)


def test_markup_in_station_name_renders_as_text(downtown, navigation):
    downtown["name"] = "<img src=x onerror=alert(1)>"
    assert validate(downtown)
    controller = MapStateController.from_feed([downtown], navigation)
    (station,) = controller.stations

    escaped = "&lt;img src=x onerror=alert(1)&gt;"
    assert station_card(station).name == escaped
    assert station_detail(station).name == escaped
    assert escaped in controller.markers()[0].popup_html
    assert "<img" not in build_map_html(controller.render_request())


def test_directions_for_out_of_range_station_do_not_navigate(downtown, navigation):
    downtown.update(lat=999, lng=-80.19)
    controller = MapStateController.from_feed([downtown], navigation)
    (station,) = controller.stations
    opened = []

    assert not open_directions(station, opened.append)
    assert opened == []
    assert controller.markers() == ()


def test_scan_from_available_details_starts_charging(downtown, navigation):
    controller = MapStateController.from_feed([downtown], navigation)
    controller.on_station_card_activated(controller.station_by_id("1"))
    navigation.start_charging()
    assert isinstance(navigation.view, ScannerView)

    navigation.scan_result("SESSION-OK")

    assert navigation.view == MapView()
    assert navigation.session.is_charging
    assert controller.charging_banner() == "Currently charging at Downtown Plaza"


def test_geolocation_failure_falls_back_to_default(downtown, navigation):
    controller = MapStateController.from_feed([downtown], navigation)

    controller.begin_location_request().fail("denied")

    state = controller.state
    assert state.user_location == (25.7617, -80.1918)
    assert is_valid_coordinate(*state.center)
    assert "const data" in build_map_html(controller.render_request())
