"""Drawable scene model composed from projection, layout, interaction and overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from .io_geo import FeaturePartition
from .layout import canvas_size, layout
from .models import (
    IDENTITY,
    DeviceClass,
    Feature,
    InsetBox,
    InteractionState,
    ViewportTransform,
)
from .overlay import OverlayState
from .projection import ProjectionHandle, inset_projection, main_projection


_LOGGER = logging.getLogger("regionmap.scene")


@dataclass(frozen=True, slots=True)
class ShapeStyle:
    fill: str
    stroke: str
    stroke_width: float
    glow_radius: float = 0.0
    glow_color: str | None = None


@dataclass(frozen=True, slots=True)
class _RegionPalette:
    idle_fill: str
    hover_fill: str
    idle_stroke: str
    active_stroke: str
    idle_width: float
    selected_width: float
    glow_radius: float


@dataclass(frozen=True, slots=True)
class _InsetPalette:
    box_fill: str
    box_selected_fill: str
    box_stroke: str
    box_width: float
    box_selected_width: float
    box_corner_radius: float
    shape_fill: str
    shape_hover_fill: str
    shape_stroke: str
    shape_active_stroke: str
    shape_width: float
    glow_radius: float
    initials_fill: str
    initials_idle_opacity: float
    initials_font_size: float
    label_fill: str
    label_font_size: float
    label_bottom_offset: float


_REGION_PALETTE = _RegionPalette(
    idle_fill="rgba(255, 255, 255, 0.05)",
    hover_fill="rgba(255,255,255,0.15)",
    idle_stroke="rgba(255, 255, 255, 0.4)",
    active_stroke="#ffffff",
    idle_width=0.6,
    selected_width=1.5,
    glow_radius=10.0,
)
_INSET_PALETTE = _InsetPalette(
    box_fill="rgba(30, 40, 50, 0.5)",
    box_selected_fill="rgba(6, 182, 212, 0.15)",
    box_stroke="rgba(255,255,255,0.25)",
    box_width=1.0,
    box_selected_width=1.5,
    box_corner_radius=8.0,
    shape_fill="rgba(255,255,255,0.15)",
    shape_hover_fill="rgba(255,255,255,0.4)",
    shape_stroke="rgba(255,255,255,0.6)",
    shape_active_stroke="#ffffff",
    shape_width=1.5,
    glow_radius=8.0,
    initials_fill="rgba(255,255,255,0.2)",
    initials_idle_opacity=0.4,
    initials_font_size=24.0,
    label_fill="#d1d5db",
    label_font_size=9.0,
    label_bottom_offset=6.0,
)


@dataclass(frozen=True, slots=True)
class RegionShape:
    code: str
    name: str
    path: str | None
    style: ShapeStyle


@dataclass(frozen=True, slots=True)
class TextMark:
    text: str
    x: float
    y: float
    fill: str
    font_size: float
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class InsetShape:
    """One inset box; ``path`` is None when only the initials fallback can be drawn."""

    box: InsetBox
    path: str | None
    box_style: ShapeStyle
    shape_style: ShapeStyle
    initials: TextMark
    label: TextMark
    corner_radius: float

    @property
    def name(self) -> str:
        return self.box.name

    @property
    def code(self) -> str:
        return self.box.code

    @property
    def has_path(self) -> bool:
        return self.path is not None


@dataclass(frozen=True, slots=True)
class MapScene:
    canvas: tuple[float, float]
    device_class: DeviceClass
    transform: ViewportTransform
    overlay: OverlayState
    interaction: InteractionState
    regions: tuple[RegionShape, ...] = ()
    insets: tuple[InsetShape, ...] = ()
    loading: bool = False

    @property
    def hovered(self) -> str | None:
        return self.interaction.hovered

    def region_names(self) -> tuple[str, ...]:
        return tuple(shape.name for shape in self.regions) + tuple(
            shape.name for shape in self.insets
        )


@dataclass(frozen=True, slots=True)
class SceneRequest:
    partition: FeaturePartition | None
    device_class: DeviceClass
    interaction: InteractionState
    overlay: OverlayState
    transform: ViewportTransform = IDENTITY


def build_scene(req: SceneRequest) -> MapScene:
    """Compose every drawable for one frame.

    A request without a partition yields the loading placeholder. Each of the
    five inset boxes is always present, with or without a projected path.
    """
    canvas = canvas_size(req.device_class)
    if req.partition is None:
        return MapScene(
            canvas=canvas,
            device_class=req.device_class,
            transform=req.transform,
            overlay=req.overlay,
            interaction=req.interaction,
            loading=True,
        )

    projection = main_projection(req.device_class)
    regions = tuple(
        _region_shape(feature, projection, req.interaction, req.overlay)
        for feature in req.partition.mainland
    )
    insets = _inset_shapes(
        boxes=layout(req.device_class),
        features=req.partition.inset_by_code(),
        interaction=req.interaction,
        overlay=req.overlay,
    )
    return MapScene(
        canvas=canvas,
        device_class=req.device_class,
        transform=req.transform,
        overlay=req.overlay,
        interaction=req.interaction,
        regions=regions,
        insets=insets,
    )


def _region_shape(
    feature: Feature,
    projection: ProjectionHandle,
    interaction: InteractionState,
    overlay: OverlayState,
) -> RegionShape:
    path = projection.path(feature.geometry)
    if path is None:
        _LOGGER.debug("No drawable path for %s (%s)", feature.name, feature.code)
    selected = interaction.is_selected(feature.name)
    hovered = interaction.is_hovered(feature.name)
    if selected:
        fill = overlay.highlight_color
    elif hovered:
        fill = _REGION_PALETTE.hover_fill
    else:
        fill = _REGION_PALETTE.idle_fill
    return RegionShape(
        code=feature.code,
        name=feature.name,
        path=path,
        style=ShapeStyle(
            fill=fill,
            stroke=(
                _REGION_PALETTE.active_stroke
                if selected or hovered
                else _REGION_PALETTE.idle_stroke
            ),
            stroke_width=(
                _REGION_PALETTE.selected_width if selected else _REGION_PALETTE.idle_width
            ),
            glow_radius=_REGION_PALETTE.glow_radius if selected else 0.0,
            glow_color=overlay.highlight_color if selected else None,
        ),
    )


def _inset_shapes(
    *,
    boxes: Mapping[str, InsetBox],
    features: Mapping[str, Feature],
    interaction: InteractionState,
    overlay: OverlayState,
) -> tuple[InsetShape, ...]:
    out: list[InsetShape] = []
    for code, box in boxes.items():
        feature = features.get(code)
        path: str | None = None
        projection = inset_projection(feature, box)
        if projection is not None and feature is not None:
            path = projection.path(feature.geometry)
        out.append(_inset_shape(box, path, interaction, overlay))
    return tuple(out)


def _inset_shape(
    box: InsetBox,
    path: str | None,
    interaction: InteractionState,
    overlay: OverlayState,
) -> InsetShape:
    # Insets are identified by their box name, not the dataset's feature name.
    selected = interaction.is_selected(box.name)
    hovered = interaction.is_hovered(box.name)
    highlight = overlay.highlight_color
    center_x, center_y = box.center

    if selected:
        shape_fill = highlight
    elif hovered:
        shape_fill = _INSET_PALETTE.shape_hover_fill
    else:
        shape_fill = _INSET_PALETTE.shape_fill

    return InsetShape(
        box=box,
        path=path,
        box_style=ShapeStyle(
            fill=_INSET_PALETTE.box_selected_fill if selected else _INSET_PALETTE.box_fill,
            stroke=highlight if selected else _INSET_PALETTE.box_stroke,
            stroke_width=(
                _INSET_PALETTE.box_selected_width if selected else _INSET_PALETTE.box_width
            ),
        ),
        shape_style=ShapeStyle(
            fill=shape_fill,
            stroke=(
                _INSET_PALETTE.shape_active_stroke
                if selected or hovered
                else _INSET_PALETTE.shape_stroke
            ),
            stroke_width=_INSET_PALETTE.shape_width,
            glow_radius=_INSET_PALETTE.glow_radius if selected else 0.0,
            glow_color=highlight if selected else None,
        ),
        initials=TextMark(
            text=box.initials,
            x=center_x,
            y=center_y + 5.0,
            fill=highlight if selected else _INSET_PALETTE.initials_fill,
            font_size=_INSET_PALETTE.initials_font_size,
            opacity=1.0 if selected else _INSET_PALETTE.initials_idle_opacity,
        ),
        label=TextMark(
            text=box.name,
            x=center_x,
            y=box.y1 - _INSET_PALETTE.label_bottom_offset,
            fill=highlight if selected else _INSET_PALETTE.label_fill,
            font_size=_INSET_PALETTE.label_font_size,
        ),
        corner_radius=_INSET_PALETTE.box_corner_radius,
    )
