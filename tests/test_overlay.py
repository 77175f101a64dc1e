from __future__ import annotations

from pathlib import Path

import pytest

from regionmap.models import DEFAULT_SOLAR_WINDOW, SolarWindow
from regionmap.overlay import compute_overlay, load_solar_times, resolve_solar_window


SUMMER = SolarWindow(sunrise_minute=420, sunset_minute=1200)


class TestComputeOverlay:
    @pytest.mark.parametrize(
        ("minute", "band", "color", "is_night"),
        [
            (200, "night", "#38bdf8", True),
            (300, "dawn", "#fbbf24", True),
            (389, "dawn", "#fbbf24", False),
            (390, "day", "#06b6d4", False),
            (500, "day", "#06b6d4", False),
            (1100, "dusk", "#db2777", True),
            (1140, "night", "#38bdf8", True),
        ],
    )
    def test_bands_with_default_window(
        self, minute: int, band: str, color: str, is_night: bool
    ) -> None:
        state = compute_overlay(minute, None)
        assert (state.band, state.highlight_color, state.is_night) == (band, color, is_night)

    def test_dusk_boundary(self) -> None:
        assert compute_overlay(1139, SUMMER).band == "day"
        assert compute_overlay(1140, SUMMER).band == "dusk"
        assert compute_overlay(1259, SUMMER).band == "dusk"
        assert compute_overlay(1260, SUMMER).band == "night"
        assert compute_overlay(1200, SUMMER).is_night is False
        assert compute_overlay(1201, SUMMER).is_night is True

    def test_night_opacity(self) -> None:
        assert compute_overlay(0, None).night_opacity == 1.0
        assert compute_overlay(720, None).night_opacity == 0.0
        assert compute_overlay(0, None).night_fill == "rgba(10, 20, 50, 0.4)"

    def test_every_minute_gets_exactly_one_band(self) -> None:
        bands = {compute_overlay(minute, SUMMER).band for minute in range(24 * 60)}
        assert bands == {"dawn", "day", "dusk", "night"}


class TestSolarTable:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_solar_times(tmp_path / "nope.yaml") == {}

    def test_month_keys_are_normalized(self, tmp_path: Path) -> None:
        path = tmp_path / "solar.yaml"
        path.write_text(
            '1: {sunrise: 500, sunset: 1000}\n"07": {sunrise: 360, sunset: 1290}\n'
            "Août: {sunrise: 400, sunset: 1250}\n",
            encoding="utf-8",
        )
        table = load_solar_times(path)
        assert set(table) == {"01", "07", "août"}
        assert resolve_solar_window("7", table).sunrise_minute == 360
        assert resolve_solar_window("AOÛT", table).sunset_minute == 1250

    def test_unknown_month_uses_default(self) -> None:
        assert resolve_solar_window("13", {}) == DEFAULT_SOLAR_WINDOW
        assert resolve_solar_window(None, {"01": SUMMER}) == DEFAULT_SOLAR_WINDOW

    def test_bad_entry_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "solar.yaml"
        path.write_text('"03": 42\n', encoding="utf-8")
        with pytest.raises(ValueError):
            load_solar_times(path)

    def test_shipped_table_loads(self) -> None:
        table = load_solar_times(Path(__file__).resolve().parents[1] / "data" / "solar_times.yaml")
        assert len(table) == 12
