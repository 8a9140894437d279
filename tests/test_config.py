from __future__ import annotations

import pytest

from ev_charge_client.config import AppConfig


def test_defaults():
    config = AppConfig()

    assert config.initial_center == (25.78, -80.1918)
    assert config.default_location == (25.7617, -80.1918)
    assert config.directions_base_url == "https://maps.google.com/"
    assert config.session_secret is None


def test_from_env_with_empty_environment():
    assert AppConfig.from_env({}) == AppConfig()


def test_from_env_overrides():
    config = AppConfig.from_env(
        {
            "EVCHARGE_SESSION_SECRET": " s3cret ",
            "EVCHARGE_DIRECTIONS_URL": "https://maps.example/",
            "EVCHARGE_TILE_URL": "https://tiles.example/{z}/{x}/{y}.png",
            "EVCHARGE_DEFAULT_LOCATION": "40.7128,-74.0060",
            "EVCHARGE_GEOLOCATION_TIMEOUT_MS": "2500",
        }
    )

    assert config.session_secret == "s3cret"
    assert config.directions_base_url == "https://maps.example/"
    assert config.tile_url == "https://tiles.example/{z}/{x}/{y}.png"
    assert config.default_location == (40.7128, -74.006)
    assert config.initial_center == (40.7128, -74.006)
    assert config.geolocation_timeout_ms == 2500


@pytest.mark.parametrize("location", ["", "40.7", "north,south", "95,0", "1,2,3"])
def test_from_env_ignores_bad_locations(location):
    config = AppConfig.from_env({"EVCHARGE_DEFAULT_LOCATION": location})

    assert config.default_location == (25.7617, -80.1918)


@pytest.mark.parametrize("timeout", ["soon", "0", "-5"])
def test_from_env_ignores_bad_timeouts(timeout):
    config = AppConfig.from_env({"EVCHARGE_GEOLOCATION_TIMEOUT_MS": timeout})

    assert config.geolocation_timeout_ms == 10_000


def test_blank_secret_keeps_permissive_mode():
    assert AppConfig.from_env({"EVCHARGE_SESSION_SECRET": "   "}).session_secret is None
