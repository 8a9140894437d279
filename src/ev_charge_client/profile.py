"""User profile and charging history held in memory."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple

from .security import format_cost, sanitize


@dataclass(frozen=True, slots=True)
class ChargingSessionRecord:
    session_id: str
    station: str
    day: date
    duration_min: int
    energy_kwh: float
    cost: float


@dataclass(slots=True)
class UserProfile:
    name: str
    email: str
    member_since: str
    total_sessions: int
    total_energy_kwh: float
    total_cost: float
    carbon_saved_lbs: float
    favorite_station: str
    recent_sessions: List[ChargingSessionRecord] = field(default_factory=list)

    def recent_totals(self) -> Tuple[float, float]:
        """Return ``(energy_kwh, cost)`` summed over the recent sessions."""

        energy = sum(item.energy_kwh for item in self.recent_sessions)
        cost = sum(item.cost for item in self.recent_sessions)
        return round(energy, 2), round(cost, 2)


@dataclass(frozen=True, slots=True)
class ProfileStat:
    value: str
    label: str


@dataclass(frozen=True, slots=True)
class SessionRow:
    station: str
    day: str
    duration: str
    energy: str
    cost: str


def load_profile() -> UserProfile:
    return UserProfile(
        name="Alex Rivera",
        email="alex.rivera@example.com",
        member_since="January 2024",
        total_sessions=47,
        total_energy_kwh=1250,
        total_cost=437.50,
        carbon_saved_lbs=890,
        favorite_station="Downtown Plaza",
        recent_sessions=[
            ChargingSessionRecord("1", "Downtown Plaza", date(2024, 8, 20), 45, 28.5, 9.98),
            ChargingSessionRecord("2", "Beach Resort", date(2024, 8, 18), 52, 32.1, 12.20),
            ChargingSessionRecord("3", "Airport Terminal", date(2024, 8, 15), 38, 24.8, 10.42),
        ],
    )


def profile_stats(profile: UserProfile) -> List[ProfileStat]:
    return [
        ProfileStat(str(max(profile.total_sessions, 0)), "Charging Sessions"),
        ProfileStat(f"{profile.total_energy_kwh:,.0f}", "kWh Charged"),
        ProfileStat(f"${format_cost(profile.total_cost)}", "Total Spent"),
        ProfileStat(f"{profile.carbon_saved_lbs:,.0f}", "lbs CO₂ Saved"),
    ]


def recent_summary(profile: UserProfile) -> str:
    energy, cost = profile.recent_totals()
    count = len(profile.recent_sessions)
    return f"Last {count} sessions: {energy:g} kWh \u00b7 ${format_cost(cost)}"


def session_rows(profile: UserProfile) -> List[SessionRow]:
    """Recent sessions, newest first, ready for display."""

    ordered = sorted(profile.recent_sessions, key=lambda item: item.day, reverse=True)
    return [
        SessionRow(
            station=sanitize(item.station),
            day=item.day.isoformat(),
            duration=f"{item.duration_min} min",
            energy=f"{item.energy_kwh:g} kWh",
            cost=f"${format_cost(item.cost)}",
        )
        for item in ordered
    ]


__all__ = [
    "ChargingSessionRecord",
    "ProfileStat",
    "SessionRow",
    "UserProfile",
    "load_profile",
    "profile_stats",
    "recent_summary",
    "session_rows",
]
