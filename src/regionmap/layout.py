"""Screen-space box tables for the overseas inset regions."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from .models import INSET_CODES, DeviceClass, InsetBox


@dataclass(frozen=True, slots=True)
class _InsetLabel:
    name: str
    initials: str


@dataclass(frozen=True, slots=True)
class _RowPolicy:
    box_size: float
    gap: float
    start_y: float


@dataclass(frozen=True, slots=True)
class _LayoutVariant:
    canvas_width: float
    canvas_height: float
    # Either literal boxes (desktop column) or a centered row policy (mobile).
    literal_boxes: tuple[tuple[float, float, float, float], ...] = ()
    row: _RowPolicy | None = None


_INSET_LABELS: Mapping[str, _InsetLabel] = {
    "971": _InsetLabel(name="Guadeloupe", initials="GP"),
    "972": _InsetLabel(name="Martinique", initials="MQ"),
    "973": _InsetLabel(name="Guyane", initials="GF"),
    "974": _InsetLabel(name="La Réunion", initials="RE"),
    "976": _InsetLabel(name="Mayotte", initials="YT"),
}

_LAYOUT_VARIANTS: Mapping[DeviceClass, _LayoutVariant] = {
    DeviceClass.DESKTOP: _LayoutVariant(
        canvas_width=550.0,
        canvas_height=550.0,
        literal_boxes=(
            (5.0, 20.0, 75.0, 100.0),
            (5.0, 120.0, 75.0, 200.0),
            (5.0, 220.0, 75.0, 300.0),
            (5.0, 320.0, 75.0, 400.0),
            (5.0, 420.0, 75.0, 500.0),
        ),
    ),
    DeviceClass.MOBILE: _LayoutVariant(
        canvas_width=550.0,
        canvas_height=450.0,
        row=_RowPolicy(box_size=60.0, gap=12.0, start_y=390.0),
    ),
}


def canvas_size(device_class: DeviceClass) -> tuple[float, float]:
    variant = _LAYOUT_VARIANTS[device_class]
    return (variant.canvas_width, variant.canvas_height)


@lru_cache(maxsize=None)
def layout(device_class: DeviceClass) -> Mapping[str, InsetBox]:
    """Return the full inset box table for one device class.

    The table always holds exactly the five inset codes; switching device
    class means swapping the whole returned mapping.
    """
    variant = _LAYOUT_VARIANTS[device_class]
    coords = _variant_boxes(variant)
    table: dict[str, InsetBox] = {}
    for code, (x0, y0, x1, y1) in zip(INSET_CODES, coords):
        label = _INSET_LABELS[code]
        table[code] = InsetBox(
            code=code,
            name=label.name,
            initials=label.initials,
            x0=x0,
            y0=y0,
            x1=x1,
            y1=y1,
        )
    return MappingProxyType(table)


def find_overlaps(table: Mapping[str, InsetBox]) -> list[tuple[str, str]]:
    """List code pairs whose boxes intersect; an empty list means a valid layout."""
    boxes = list(table.values())
    out: list[tuple[str, str]] = []
    for idx, left in enumerate(boxes):
        for right in boxes[idx + 1:]:
            if left.overlaps(right):
                out.append((left.code, right.code))
    return out


def _variant_boxes(variant: _LayoutVariant) -> tuple[tuple[float, float, float, float], ...]:
    if variant.row is None:
        return variant.literal_boxes
    row = variant.row
    count = len(INSET_CODES)
    total_width = row.box_size * count + row.gap * (count - 1)
    start_x = (variant.canvas_width - total_width) / 2.0
    out: list[tuple[float, float, float, float]] = []
    for idx in range(count):
        x0 = start_x + idx * (row.box_size + row.gap)
        out.append((x0, row.start_y, x0 + row.box_size, row.start_y + row.box_size))
    return tuple(out)
