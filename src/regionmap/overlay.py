"""Day/night overlay and highlight color from time of day and solar times."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import DEFAULT_SOLAR_WINDOW, SolarWindow


@dataclass(frozen=True, slots=True)
class _OverlayPalette:
    dawn: str
    day: str
    dusk: str
    night: str
    night_fill: str


@dataclass(frozen=True, slots=True)
class _BandPolicy:
    dawn_before_sunrise: int
    dawn_after_sunrise: int
    dusk_before_sunset: int
    dusk_after_sunset: int


_PALETTE = _OverlayPalette(
    dawn="#fbbf24",
    day="#06b6d4",
    dusk="#db2777",
    night="#38bdf8",
    night_fill="rgba(10, 20, 50, 0.4)",
)
_BANDS = _BandPolicy(
    dawn_before_sunrise=60,
    dawn_after_sunrise=30,
    dusk_before_sunset=60,
    dusk_after_sunset=60,
)


@dataclass(frozen=True, slots=True)
class OverlayState:
    is_night: bool
    highlight_color: str
    band: str

    @property
    def night_opacity(self) -> float:
        return 1.0 if self.is_night else 0.0

    @property
    def night_fill(self) -> str:
        return _PALETTE.night_fill


def compute_overlay(time_minute: float, window: SolarWindow | None) -> OverlayState:
    """Night flag and highlight band for one time of day.

    Bands are tried in order dawn, day, dusk; anything left is night.
    """
    solar = window if window is not None else DEFAULT_SOLAR_WINDOW
    sunrise = solar.sunrise_minute
    sunset = solar.sunset_minute
    is_night = time_minute < sunrise or time_minute > sunset

    if sunrise - _BANDS.dawn_before_sunrise <= time_minute < sunrise + _BANDS.dawn_after_sunrise:
        band, color = "dawn", _PALETTE.dawn
    elif sunrise + _BANDS.dawn_after_sunrise <= time_minute < sunset - _BANDS.dusk_before_sunset:
        band, color = "day", _PALETTE.day
    elif sunset - _BANDS.dusk_before_sunset <= time_minute < sunset + _BANDS.dusk_after_sunset:
        band, color = "dusk", _PALETTE.dusk
    else:
        band, color = "night", _PALETTE.night
    return OverlayState(is_night=is_night, highlight_color=color, band=band)


def resolve_solar_window(month: str | None, table: Mapping[str, SolarWindow]) -> SolarWindow:
    if month is None:
        return DEFAULT_SOLAR_WINDOW
    return table.get(_normalize_month_key(month), DEFAULT_SOLAR_WINDOW)


def load_solar_times(path: Path) -> dict[str, SolarWindow]:
    """Load the optional month -> {sunrise, sunset} table (minutes since midnight)."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")

    table: dict[str, SolarWindow] = {}
    for month_raw, value in raw.items():
        month = _normalize_month_key(month_raw)
        if not month:
            raise ValueError(f"Invalid month key '{month_raw}' in {path}")
        if not isinstance(value, dict):
            raise ValueError(f"Solar entry for {month} must be a mapping in {path}")
        table[month] = SolarWindow.from_mapping(value, field_name=f"solar_times.{month}")
    return table


def _normalize_month_key(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:02d}" if 1 <= value <= 12 else ""
    if not isinstance(value, str):
        return ""
    text = value.strip()
    if text.isdigit():
        return _normalize_month_key(int(text))
    return text.casefold()
