"""Domain models shared across engine modules."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping


# Overseas départements drawn in fixed boxes instead of at their true position.
INSET_CODES: tuple[str, ...] = ("971", "972", "973", "974", "976")

MOBILE_BREAKPOINT_PX = 768


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _require_minute(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected numeric minute value for '{field_name}'")
    minute = int(value)
    if minute < 0 or minute > 24 * 60:
        raise ValueError(f"'{field_name}' must be between 0 and 1440")
    return minute


class RegionClass(enum.Enum):
    MAINLAND = "mainland"
    INSET = "inset"


def classify_code(code: str) -> RegionClass:
    """Classify a region code; a pure function of inset-code membership."""
    return RegionClass.INSET if code in INSET_CODES else RegionClass.MAINLAND


class DeviceClass(enum.Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"

    @classmethod
    def from_viewport_width(cls, width_px: float) -> DeviceClass:
        return cls.MOBILE if width_px < MOBILE_BREAKPOINT_PX else cls.DESKTOP


@dataclass(frozen=True, slots=True)
class Feature:
    """One named boundary polygon loaded from the source collection."""

    code: str
    name: str
    geometry: Any
    region_class: RegionClass

    @property
    def is_inset(self) -> bool:
        return self.region_class is RegionClass.INSET

    @classmethod
    def from_geojson(cls, raw: Mapping[str, Any]) -> Feature:
        properties = raw.get("properties")
        if not isinstance(properties, Mapping):
            raise ValueError("Expected mapping for 'properties'")
        code_raw = properties.get("code")
        if isinstance(code_raw, float):
            if not (math.isfinite(code_raw) and code_raw.is_integer()):
                raise ValueError("Expected integral number for 'properties.code'")
            code_raw = int(code_raw)
        if isinstance(code_raw, int) and not isinstance(code_raw, bool):
            code_raw = str(code_raw)
        code = _require_str(code_raw, "properties.code")
        name_raw = properties.get("name", properties.get("nom"))
        name = name_raw.strip() if isinstance(name_raw, str) and name_raw.strip() else code
        return cls(
            code=code,
            name=name,
            geometry=_shape_or_none(raw.get("geometry")),
            region_class=classify_code(code),
        )


def _shape_or_none(raw: Any) -> Any | None:
    if not isinstance(raw, Mapping):
        return None
    shape = _require_shapely_shape()
    try:
        return shape(raw)
    except Exception:
        # Unparseable geometry is carried as missing; projection decides the fallback.
        return None


def _require_shapely_shape() -> Any:
    try:
        from shapely.geometry import shape
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for boundary geometry parsing") from exc
    return shape


@dataclass(frozen=True, slots=True)
class InsetBox:
    """Screen-space box reserved for one inset region."""

    code: str
    name: str
    initials: str
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center(self) -> tuple[float, float]:
        return ((self.x0 + self.x1) / 2.0, (self.y0 + self.y1) / 2.0)

    def overlaps(self, other: InsetBox) -> bool:
        return (
            self.x0 < other.x1
            and other.x0 < self.x1
            and self.y0 < other.y1
            and other.y0 < self.y1
        )


@dataclass(frozen=True, slots=True)
class ViewportTransform:
    """Uniform zoom/pan applied to the drawable group: screen = k * p + (x, y)."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * self.k + self.x, point[1] * self.k + self.y)

    def invert(self, point: tuple[float, float]) -> tuple[float, float]:
        return ((point[0] - self.x) / self.k, (point[1] - self.y) / self.k)

    def scale_to(self, k: float) -> ViewportTransform:
        return ViewportTransform(k=k, x=self.x, y=self.y)

    def interpolate(self, other: ViewportTransform, t: float) -> ViewportTransform:
        if t <= 0.0:
            return self
        if t >= 1.0:
            return other
        # Geometric interpolation keeps the zoom rate visually even.
        k = self.k * math.pow(other.k / self.k, t)
        return ViewportTransform(
            k=k,
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
        )

    @property
    def is_identity(self) -> bool:
        return self.k == 1.0 and self.x == 0.0 and self.y == 0.0

    def svg_attribute(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"


IDENTITY = ViewportTransform()


@dataclass(frozen=True, slots=True)
class InteractionState:
    """Hover is engine-owned; selected is the host's value echoed back."""

    hovered: str | None = None
    selected: str | None = None

    def is_selected(self, name: str) -> bool:
        return self.selected is not None and self.selected == name

    def is_hovered(self, name: str) -> bool:
        return self.hovered is not None and self.hovered == name


@dataclass(frozen=True, slots=True)
class SolarWindow:
    """Sunrise/sunset for one month, in minutes since midnight."""

    sunrise_minute: int
    sunset_minute: int

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str = "solar") -> SolarWindow:
        sunrise = _require_minute(data.get("sunrise"), f"{field_name}.sunrise")
        sunset = _require_minute(data.get("sunset"), f"{field_name}.sunset")
        if sunset <= sunrise:
            raise ValueError(f"'{field_name}.sunset' must be later than sunrise")
        return cls(sunrise_minute=sunrise, sunset_minute=sunset)


DEFAULT_SOLAR_WINDOW = SolarWindow(sunrise_minute=360, sunset_minute=1080)


@dataclass(frozen=True, slots=True)
class RenderManifest:
    """Audit record written next to each rendered map."""

    generated_at_utc: str
    config_hash_sha256: str
    git_commit: str | None
    device_class: str
    render_inputs: Mapping[str, Any]
    summary: Mapping[str, int]
    artifacts: Mapping[str, str]

    @classmethod
    def create(
        cls,
        *,
        config_hash_sha256: str,
        git_commit: str | None,
        device_class: DeviceClass,
        render_inputs: Mapping[str, Any],
        summary: Mapping[str, int],
        artifacts: Mapping[str, str],
    ) -> RenderManifest:
        return cls(
            generated_at_utc=datetime.now(timezone.utc).isoformat(),
            config_hash_sha256=config_hash_sha256,
            git_commit=git_commit,
            device_class=device_class.value,
            render_inputs=render_inputs,
            summary=summary,
            artifacts=artifacts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at_utc": self.generated_at_utc,
            "config_hash_sha256": self.config_hash_sha256,
            "git_commit": self.git_commit,
            "device_class": self.device_class,
            "render_inputs": dict(self.render_inputs),
            "summary": dict(self.summary),
            "artifacts": dict(self.artifacts),
        }
