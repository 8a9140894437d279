"""Display models built from validated stations.

Every string produced here has been through :func:`~ev_charge_client.security.sanitize`
or one of the numeric display guards, so the UI may hand it to a rich-text
sink as-is.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .security import display_count, format_cost, sanitize, status_label
from .stations import ValidatedStation

STATUS_CLASSES = {
    "available": "status-available",
    "busy": "status-busy",
    "offline": "status-offline",
}

_AMENITY_ICONS = {
    "wifi": "wifi",
    "restaurant": "food",
    "food court": "food",
    "restroom": "restroom",
    "valet": "parking",
    "parking": "parking",
}

STATION_FACTS: Tuple[Tuple[str, str], ...] = (
    ("Network", "EVolution"),
    ("Connector Type", "CCS, CHAdeMO, Type 2"),
    ("Max Power", "150 kW"),
    ("Hours", "24/7"),
)

ESTIMATED_CHARGE_TIME = "~45 min"


def status_class(status: str) -> str:
    return STATUS_CLASSES.get(status, "status-unknown")


def amenity_icon(amenity: str) -> str:
    """Return the icon key for an amenity; unknown amenities get a map pin."""

    return _AMENITY_ICONS.get(sanitize(amenity).lower(), "pin")


def availability_text(station: ValidatedStation) -> str:
    """``free/total`` with free ports capped at the total when the feed disagrees."""

    available = display_count(station.available)
    total = display_count(station.total)
    if int(available) > int(total):
        available = total
    return f"{available}/{total}"


@dataclass(frozen=True, slots=True)
class StationCard:
    station_id: str
    name: str
    address: str
    status: str
    status_class: str
    availability: str
    cost: str
    amenity_tags: Tuple[str, ...]
    degraded: bool


@dataclass(frozen=True, slots=True)
class AmenityItem:
    label: str
    icon: str


@dataclass(frozen=True, slots=True)
class StationDetail:
    station_id: str
    name: str
    address: str
    status: str
    status_class: str
    availability: str
    cost: str
    charge_time: str
    amenities: Tuple[AmenityItem, ...]
    facts: Tuple[Tuple[str, str], ...]
    can_start_charging: bool
    charge_button_label: str
    degraded: bool


def station_card(station: ValidatedStation, max_amenities: int = 3) -> StationCard:
    tags: List[str] = [sanitize(item) for item in station.amenities[:max_amenities]]
    extra = len(station.amenities) - max_amenities
    if extra > 0:
        tags.append(f"+{extra} more")
    return StationCard(
        station_id=sanitize(station.id),
        name=sanitize(station.name),
        address=sanitize(station.address),
        status=status_label(station.status),
        status_class=status_class(station.status),
        availability=availability_text(station),
        cost=f"${format_cost(station.cost)}/kWh",
        amenity_tags=tuple(tags),
        degraded=not station.capacity_consistent,
    )


def station_detail(station: ValidatedStation) -> StationDetail:
    return StationDetail(
        station_id=sanitize(station.id),
        name=sanitize(station.name),
        address=sanitize(station.address),
        status=status_label(station.status),
        status_class=status_class(station.status),
        availability=availability_text(station),
        cost=f"${format_cost(station.cost)}",
        charge_time=ESTIMATED_CHARGE_TIME,
        amenities=tuple(
            AmenityItem(label=sanitize(item), icon=amenity_icon(item))
            for item in station.amenities
        ),
        facts=STATION_FACTS,
        can_start_charging=station.is_available,
        charge_button_label="Start Charging" if station.is_available else "Unavailable",
        degraded=not station.capacity_consistent,
    )


def popup_html(station: ValidatedStation, select_href: str = "") -> str:
    """Marker popup markup; ``select_href`` must already be URL-safe."""

    rows = [
        f"<h3><strong>{sanitize(station.name)}</strong></h3>",
        f"<p>{sanitize(station.address)}</p>",
        f"<p><strong>Status:</strong> {status_label(station.status)}</p>",
        f"<p><strong>Available:</strong> {availability_text(station)} ports</p>",
        f"<p><strong>Cost:</strong> ${format_cost(station.cost)}/kWh</p>",
    ]
    if select_href:
        rows.append(f'<a class="popup-select" href="{sanitize(select_href)}">View Details</a>')
    return f'<div class="station-popup">{"".join(rows)}</div>'


__all__ = [
    "AmenityItem",
    "STATION_FACTS",
    "StationCard",
    "StationDetail",
    "amenity_icon",
    "availability_text",
    "popup_html",
    "station_card",
    "station_detail",
    "status_class",
]
