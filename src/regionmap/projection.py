"""Projection engine: main conic projection and per-inset fitted projections."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache, partial
from typing import Any, Callable, Sequence

from .models import DeviceClass, Feature, InsetBox


_LOGGER = logging.getLogger("regionmap.projection")

_Extent = tuple[tuple[float, float], tuple[float, float]]


@dataclass(frozen=True, slots=True)
class _MainProjectionPolicy:
    center_lon: float
    center_lat: float
    standard_parallels: tuple[float, float]
    desktop_scale: float
    mobile_scale: float
    desktop_translate: tuple[float, float]
    mobile_translate: tuple[float, float]


@dataclass(frozen=True, slots=True)
class _InsetMarginPolicy:
    horizontal: float
    top: float
    bottom: float


_MAIN_POLICY = _MainProjectionPolicy(
    center_lon=2.454071,
    center_lat=46.279229,
    standard_parallels=(30.0, 30.0),
    desktop_scale=2800.0,
    mobile_scale=2900.0,
    desktop_translate=(350.0, 275.0),
    mobile_translate=(275.0, 170.0),
)
# Bottom margin is larger to leave room for the inset's name label.
_INSET_MARGIN = _InsetMarginPolicy(horizontal=5.0, top=10.0, bottom=15.0)
_PATH_DECIMALS = 2


class ProjectionFitError(ValueError):
    """Raised when a geometry cannot be fit into a screen extent."""


@dataclass(frozen=True, slots=True)
class ProjectionHandle:
    """Geographic (lon, lat) to screen (x, y) mapping with y growing downward.

    ``origin`` is the projected coordinate placed at ``translate``; screen
    coordinates are ``translate + scale * (projected - origin)`` with the
    vertical axis flipped.
    """

    forward: Callable[[float, float], tuple[float, float]]
    inverse: Callable[[float, float], tuple[float, float]]
    scale: float
    translate: tuple[float, float]
    origin: tuple[float, float]

    def project_point(self, lon: float, lat: float) -> tuple[float, float]:
        px, py = self.forward(float(lon), float(lat))
        return self._to_screen(float(px), float(py))

    def invert_point(self, x: float, y: float) -> tuple[float, float]:
        px = (float(x) - self.translate[0]) / self.scale + self.origin[0]
        py = self.origin[1] - (float(y) - self.translate[1]) / self.scale
        lon, lat = self.inverse(px, py)
        return (float(lon), float(lat))

    def path(self, geometry: Any) -> str | None:
        """SVG path data for a polygonal geometry, or None when nothing is drawable."""
        if not _is_valid_geometry(geometry):
            return None
        parts: list[str] = []
        for ring in _iter_linear_rings(geometry):
            if len(ring) < 3:
                continue
            points = self._project_ring(ring)
            if points is None:
                continue
            head, *tail = points
            segment = "M" + _format_point(head)
            if tail:
                segment += "L" + "L".join(_format_point(point) for point in tail)
            parts.append(segment + "Z")
        if not parts:
            return None
        return "".join(parts)

    def _project_ring(
        self,
        ring: Sequence[tuple[float, float]],
    ) -> list[tuple[float, float]] | None:
        out: list[tuple[float, float]] = []
        # GeoJSON rings repeat the first point; "Z" closes the subpath instead.
        coords = ring[:-1] if len(ring) > 1 and ring[0] == ring[-1] else ring
        for lon, lat in coords:
            x, y = self.project_point(lon, lat)
            if not (math.isfinite(x) and math.isfinite(y)):
                return None
            out.append((x, y))
        return out

    def _to_screen(self, px: float, py: float) -> tuple[float, float]:
        return (
            self.translate[0] + self.scale * (px - self.origin[0]),
            self.translate[1] - self.scale * (py - self.origin[1]),
        )


@lru_cache(maxsize=None)
def main_projection(device_class: DeviceClass) -> ProjectionHandle:
    """Conic conformal projection for the mainland, tuned per device class."""
    proj = _require_conic_proj(_MAIN_POLICY.standard_parallels)
    ox, oy = proj(_MAIN_POLICY.center_lon, _MAIN_POLICY.center_lat)
    if device_class is DeviceClass.MOBILE:
        scale = _MAIN_POLICY.mobile_scale
        translate = _MAIN_POLICY.mobile_translate
    else:
        scale = _MAIN_POLICY.desktop_scale
        translate = _MAIN_POLICY.desktop_translate
    return ProjectionHandle(
        forward=proj,
        inverse=partial(proj, inverse=True),
        scale=scale,
        translate=translate,
        origin=(float(ox), float(oy)),
    )


def fit_extent(geometry: Any, extent: _Extent) -> ProjectionHandle:
    """Fit a Mercator projection so the geometry's bounds fill ``extent``.

    Aspect ratio is preserved; the unused axis is centered. Raises
    ProjectionFitError for missing, empty or degenerate geometry.
    """
    if not _is_valid_geometry(geometry):
        raise ProjectionFitError("geometry is missing or empty")
    (ex0, ey0), (ex1, ey1) = extent
    width = float(ex1) - float(ex0)
    height = float(ey1) - float(ey0)
    if width <= 0.0 or height <= 0.0:
        raise ProjectionFitError(f"extent has no area: {extent}")

    transformer = _require_mercator_transformer()
    try:
        projected = _require_shapely_transform()(transformer.transform, geometry)
        min_x, min_y, max_x, max_y = [float(item) for item in projected.bounds]
    except Exception as exc:
        raise ProjectionFitError(f"geometry could not be projected: {exc}") from exc
    if not all(math.isfinite(value) for value in (min_x, min_y, max_x, max_y)):
        raise ProjectionFitError("projected bounds are not finite")

    span_x = max_x - min_x
    span_y = max_y - min_y
    candidates: list[float] = []
    if span_x > 0.0:
        candidates.append(width / span_x)
    if span_y > 0.0:
        candidates.append(height / span_y)
    if not candidates:
        raise ProjectionFitError("geometry bounds are degenerate")
    scale = min(candidates)

    return ProjectionHandle(
        forward=transformer.transform,
        inverse=partial(transformer.transform, direction="INVERSE"),
        scale=scale,
        translate=(
            float(ex0) + (width - scale * span_x) / 2.0,
            float(ey0) + (height - scale * span_y) / 2.0,
        ),
        origin=(min_x, max_y),
    )


def inset_extent(box: InsetBox) -> _Extent:
    return (
        (box.x0 + _INSET_MARGIN.horizontal, box.y0 + _INSET_MARGIN.top),
        (box.x1 - _INSET_MARGIN.horizontal, box.y1 - _INSET_MARGIN.bottom),
    )


def inset_projection(feature: Feature | None, box: InsetBox) -> ProjectionHandle | None:
    """Best-fit projection for one inset, or None when no path is available."""
    if feature is None:
        return None
    try:
        return fit_extent(feature.geometry, inset_extent(box))
    except ProjectionFitError as exc:
        _LOGGER.debug("No inset projection for %s (%s): %s", box.name, box.code, exc)
        return None


def _format_point(point: tuple[float, float]) -> str:
    return f"{_format_number(point[0])},{_format_number(point[1])}"


def _format_number(value: float) -> str:
    text = f"{value:.{_PATH_DECIMALS}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def _is_valid_geometry(geometry: Any) -> bool:
    if geometry is None:
        return False
    if hasattr(geometry, "is_empty") and bool(geometry.is_empty):
        return False
    return True


def _iter_linear_rings(geometry: Any) -> Sequence[Sequence[tuple[float, float]]]:
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        exterior = [(float(x), float(y)) for x, y, *_ in geometry.exterior.coords]
        rings: list[Sequence[tuple[float, float]]] = [exterior]
        for interior in geometry.interiors:
            rings.append([(float(x), float(y)) for x, y, *_ in interior.coords])
        return rings

    if geom_type in ("MultiPolygon", "GeometryCollection"):
        rings = []
        for part in geometry.geoms:
            rings.extend(_iter_linear_rings(part))
        return rings

    return []


def _require_shapely_transform() -> Any:
    try:
        from shapely.ops import transform
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for geometry projection") from exc
    return transform


@lru_cache(maxsize=None)
def _require_conic_proj(parallels: tuple[float, float]) -> Any:
    try:
        from pyproj import Proj
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for the conic conformal projection") from exc
    # Unit sphere, no rotation: the center only shifts the output, as in d3.geoConicConformal.
    # Proj maps lon/lat on its own sphere, so no Earth datum pipeline is involved.
    return Proj(
        f"+proj=lcc +lat_1={parallels[0]} +lat_2={parallels[1]} "
        "+lat_0=0 +lon_0=0 +R=1 +units=m +no_defs"
    )


@lru_cache(maxsize=1)
def _require_mercator_transformer() -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for Web Mercator projection") from exc
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
