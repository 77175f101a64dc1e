from __future__ import annotations

import math
import re

import pytest
from shapely.geometry import Point, Polygon, shape

from regionmap.layout import layout
from regionmap.models import DeviceClass, Feature
from regionmap.projection import (
    ProjectionFitError,
    fit_extent,
    inset_extent,
    inset_projection,
    main_projection,
)


_PATH_RE = re.compile(r"^(M-?[\d.]+,-?[\d.]+(L-?[\d.]+,-?[\d.]+)*Z)+$")


def _conic_conformal_reference(
    lon: float,
    lat: float,
    *,
    scale: float,
    translate: tuple[float, float],
) -> tuple[float, float]:
    """Closed-form conic conformal (both parallels at 30N) centered on 2.454071E 46.279229N."""

    def raw(lam: float, phi: float) -> tuple[float, float]:
        rho = f / math.sqrt(math.tan(math.pi / 4.0 + phi / 2.0))
        return rho * math.sin(n * lam), f - rho * math.cos(n * lam)

    phi0 = math.radians(30.0)
    n = math.sin(phi0)
    f = math.cos(phi0) * math.sqrt(math.tan(math.pi / 4.0 + phi0 / 2.0)) / n
    cx, cy = raw(math.radians(2.454071), math.radians(46.279229))
    x, y = raw(math.radians(lon), math.radians(lat))
    return translate[0] + scale * (x - cx), translate[1] - scale * (y - cy)


class TestMainProjection:
    def test_center_maps_to_translate(self) -> None:
        desktop = main_projection(DeviceClass.DESKTOP)
        x, y = desktop.project_point(2.454071, 46.279229)
        assert x == pytest.approx(350.0, abs=1e-6)
        assert y == pytest.approx(275.0, abs=1e-6)

        mobile = main_projection(DeviceClass.MOBILE)
        x, y = mobile.project_point(2.454071, 46.279229)
        assert (x, y) == pytest.approx((275.0, 170.0), abs=1e-6)

    def test_north_is_up_and_east_is_right(self) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        paris = projection.project_point(2.35, 48.86)
        marseille = projection.project_point(5.37, 43.30)
        assert paris[1] < marseille[1]
        assert paris[0] < marseille[0]

    def test_same_input_same_output(self) -> None:
        first = main_projection(DeviceClass.DESKTOP).project_point(-1.55, 47.22)
        second = main_projection(DeviceClass.DESKTOP).project_point(-1.55, 47.22)
        assert first == second

    def test_invert_round_trips(self) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        x, y = projection.project_point(7.26, 43.70)
        lon, lat = projection.invert_point(x, y)
        assert (lon, lat) == pytest.approx((7.26, 43.70), abs=1e-6)

    def test_mainland_fits_on_canvas(self) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        # Brest, Strasbourg, Perpignan, Dunkerque.
        for lon, lat in [(-4.49, 48.39), (7.75, 48.58), (2.9, 42.7), (2.38, 51.03)]:
            x, y = projection.project_point(lon, lat)
            assert 0.0 < x < 550.0
            assert 0.0 < y < 550.0

    @pytest.mark.parametrize(
        ("device_class", "scale", "translate"),
        [
            (DeviceClass.DESKTOP, 2800.0, (350.0, 275.0)),
            (DeviceClass.MOBILE, 2900.0, (275.0, 170.0)),
        ],
    )
    def test_matches_closed_form_conic(self, device_class, scale, translate) -> None:
        projection = main_projection(device_class)
        # Paris, Brest, Strasbourg, Bastia.
        for lon, lat in [(2.35, 48.86), (-4.49, 48.39), (7.75, 48.58), (9.45, 42.7)]:
            expected = _conic_conformal_reference(lon, lat, scale=scale, translate=translate)
            assert projection.project_point(lon, lat) == pytest.approx(expected, abs=0.05)

    def test_mainland_paths_render(self, feature_collection) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        paris = Feature.from_geojson(feature_collection["features"][0])
        path = projection.path(paris.geometry)
        assert path is not None
        assert _PATH_RE.match(path)


class TestPathData:
    def test_polygon_path_format(self) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        path = projection.path(Polygon([(2.2, 48.8), (2.5, 48.8), (2.5, 48.9), (2.2, 48.9)]))
        assert path is not None
        assert _PATH_RE.match(path)
        # Closing vertex is dropped in favour of "Z".
        assert path.count("L") == 3

    def test_multipolygon_emits_one_subpath_per_ring(self) -> None:
        geometry = shape(
            {
                "type": "MultiPolygon",
                "coordinates": [
                    [[[0, 45], [1, 45], [1, 46], [0, 45]]],
                    [[[3, 45], [4, 45], [4, 46], [3, 45]]],
                ],
            }
        )
        path = main_projection(DeviceClass.DESKTOP).path(geometry)
        assert path is not None
        assert path.count("M") == 2
        assert path.count("Z") == 2

    def test_nothing_drawable(self) -> None:
        projection = main_projection(DeviceClass.DESKTOP)
        assert projection.path(None) is None
        assert projection.path(Polygon()) is None
        assert projection.path(Point(2.0, 46.0)) is None


class TestInsetFit:
    def test_fit_stays_within_margins(self) -> None:
        box = layout(DeviceClass.DESKTOP)["971"]
        geometry = Polygon([(-61.8, 15.9), (-61.0, 15.9), (-61.0, 16.5), (-61.8, 16.5)])
        (ex0, ey0), (ex1, ey1) = inset_extent(box)
        assert (ex0, ey0, ex1, ey1) == (10.0, 30.0, 70.0, 85.0)

        projection = fit_extent(geometry, inset_extent(box))
        points = [projection.project_point(lon, lat) for lon, lat in geometry.exterior.coords]
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        assert min(xs) >= ex0 - 1e-6 and max(xs) <= ex1 + 1e-6
        assert min(ys) >= ey0 - 1e-6 and max(ys) <= ey1 + 1e-6
        # The limiting axis is filled exactly.
        assert max(xs) - min(xs) == pytest.approx(60.0) or max(ys) - min(ys) == pytest.approx(55.0)

    def test_fit_is_centered(self) -> None:
        box = layout(DeviceClass.MOBILE)["973"]
        geometry = Polygon([(-54.6, 2.1), (-51.6, 2.1), (-51.6, 5.8), (-54.6, 5.8)])
        (ex0, ey0), (ex1, ey1) = inset_extent(box)
        projection = fit_extent(geometry, inset_extent(box))
        x0, y0 = projection.project_point(-54.6, 5.8)
        x1, y1 = projection.project_point(-51.6, 2.1)
        assert (x0 + x1) / 2.0 == pytest.approx((ex0 + ex1) / 2.0)
        assert (y0 + y1) / 2.0 == pytest.approx((ey0 + ey1) / 2.0)

    @pytest.mark.parametrize("geometry", [None, Polygon(), Point(55.5, -21.1)])
    def test_degenerate_geometry_raises(self, geometry) -> None:
        box = layout(DeviceClass.DESKTOP)["974"]
        with pytest.raises(ProjectionFitError):
            fit_extent(geometry, inset_extent(box))

    def test_inset_projection_degrades_to_none(self, caplog: pytest.LogCaptureFixture) -> None:
        box = layout(DeviceClass.DESKTOP)["974"]
        feature = Feature.from_geojson(
            {
                "properties": {"code": "974", "nom": "La Réunion"},
                "geometry": {"type": "Point", "coordinates": [55.5, -21.1]},
            }
        )
        with caplog.at_level("DEBUG", logger="regionmap.projection"):
            assert inset_projection(feature, box) is None
        assert "La Réunion" in caplog.text
        assert all(record.levelname == "DEBUG" for record in caplog.records)
        assert inset_projection(None, box) is None
