"""Shared fixtures: a tiny boundary collection covering mainland and insets."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest


def _square(lon0: float, lat0: float, lon1: float, lat1: float) -> dict[str, Any]:
    return {
        "type": "Polygon",
        "coordinates": [[[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]],
    }


@pytest.fixture
def feature_collection() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {"properties": {"code": "75", "nom": "Paris"}, "geometry": _square(2.2, 48.8, 2.5, 48.9)},
            {
                "properties": {"code": "13", "nom": "Bouches-du-Rhône"},
                "geometry": _square(4.2, 43.2, 5.8, 43.9),
            },
            {
                "properties": {"code": "971", "nom": "Guadeloupe"},
                "geometry": _square(-61.8, 15.9, -61.0, 16.5),
            },
            {
                "properties": {"code": "973", "nom": "Guyane"},
                "geometry": _square(-54.6, 2.1, -51.6, 5.8),
            },
            # A single point cannot be fit into a box.
            {
                "properties": {"code": "974", "nom": "La Réunion"},
                "geometry": {"type": "Point", "coordinates": [55.5, -21.1]},
            },
        ],
    }


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(text: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


_BASE_CONFIG = """
source:
  url: https://example.invalid/departements.geojson
  path: data/departements.geojson
  request_timeout_s: 5
  user_agent: regionmap-tests/0.1
paths:
  solar_times: data/solar_times.yaml
  output_dir: build/maps
  logs_dir: build/logs
render:
  viewport_width_px: 1280
  time_minute: 720
  month: 6
"""


@pytest.fixture
def base_config() -> str:
    return _BASE_CONFIG
