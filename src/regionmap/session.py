"""In-process map component: lifecycle, device class and event routing."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Mapping, Union

from .interaction import RegionInteraction, SelectCallback
from .io_geo import EMPTY_PARTITION, BoundarySource, FeaturePartition, load_partition
from .layout import layout
from .models import DeviceClass, InsetBox, SolarWindow
from .overlay import OverlayState, compute_overlay, resolve_solar_window
from .projection import inset_projection
from .scene import MapScene, SceneRequest, build_scene
from .viewport import GestureEvent, ViewportController


_LOGGER = logging.getLogger("regionmap.session")

_DEFAULT_VIEWPORT_WIDTH_PX = 1024


class RegionEventKind(enum.Enum):
    ENTER = "mouseenter"
    LEAVE = "mouseleave"
    CLICK = "click"


@dataclass(frozen=True, slots=True)
class RegionEvent:
    """Pointer event raised on a drawn region shape (mainland or inset)."""

    kind: RegionEventKind
    region: str


SessionEvent = Union[RegionEvent, GestureEvent]


class MapSession:
    """Owns viewport and hover state for one mounted map.

    Until boundaries are loaded every render is the loading placeholder.
    Selection stays with the host: ``render`` takes it as an argument and
    clicks only go out through ``on_select``.
    """

    def __init__(
        self,
        *,
        on_select: SelectCallback | None = None,
        solar_table: Mapping[str, SolarWindow] | None = None,
        viewport_width_px: float = _DEFAULT_VIEWPORT_WIDTH_PX,
    ) -> None:
        self._device_class = DeviceClass.from_viewport_width(viewport_width_px)
        self._viewport = ViewportController(self._device_class)
        self._interaction = RegionInteraction(on_select)
        self._partition: FeaturePartition | None = None
        self._solar_table: dict[str, SolarWindow] = dict(solar_table or {})

    @property
    def device_class(self) -> DeviceClass:
        return self._device_class

    @property
    def viewport(self) -> ViewportController:
        return self._viewport

    @property
    def interaction(self) -> RegionInteraction:
        return self._interaction

    @property
    def partition(self) -> FeaturePartition | None:
        return self._partition

    @property
    def is_loading(self) -> bool:
        return self._partition is None

    @property
    def boxes(self) -> Mapping[str, InsetBox]:
        return layout(self._device_class)

    def load(self, partition: FeaturePartition | None) -> None:
        self._partition = partition if partition is not None else EMPTY_PARTITION
        self._warn_inset_fallbacks()

    def load_from(self, source: BoundarySource) -> FeaturePartition:
        partition = load_partition(source)
        self.load(partition)
        return partition

    def resize(self, viewport_width_px: float) -> bool:
        """Track the host viewport width; returns True when the device class changed."""
        device_class = DeviceClass.from_viewport_width(viewport_width_px)
        if device_class is self._device_class:
            return False
        _LOGGER.info(
            "Device class changed %s -> %s; resetting viewport",
            self._device_class.value,
            device_class.value,
        )
        self._device_class = device_class
        self._viewport.set_device_class(device_class)
        self._interaction.clear()
        return True

    def dispatch(self, event: SessionEvent, now_ms: float = 0.0) -> bool:
        """Route one input event; returns True when something consumed it."""
        if isinstance(event, RegionEvent):
            if event.kind is RegionEventKind.ENTER:
                self._interaction.enter(event.region)
                return True
            if event.kind is RegionEventKind.LEAVE:
                self._interaction.leave(event.region)
                return True
            # Clicks stop at the shape and never reach the viewport as a drag.
            return self._interaction.click(event.region)
        return self._viewport.handle_gesture(event, now_ms)

    def zoom_in(self, now_ms: float = 0.0) -> None:
        self._viewport.zoom_in(now_ms)

    def zoom_out(self, now_ms: float = 0.0) -> None:
        self._viewport.zoom_out(now_ms)

    def reset(self, now_ms: float = 0.0) -> None:
        self._viewport.reset(now_ms)

    def tick(self, now_ms: float) -> None:
        self._viewport.tick(now_ms)

    def overlay(self, time_minute: float, month: str | None) -> OverlayState:
        return compute_overlay(time_minute, resolve_solar_window(month, self._solar_table))

    def render(
        self,
        *,
        selected: str | None,
        time_minute: float,
        month: str | None,
        now_ms: float | None = None,
    ) -> MapScene:
        if now_ms is not None:
            self._viewport.tick(now_ms)
        return build_scene(
            SceneRequest(
                partition=self._partition,
                device_class=self._device_class,
                interaction=self._interaction.state(selected),
                overlay=self.overlay(time_minute, month),
                transform=self._viewport.transform,
            )
        )

    def _warn_inset_fallbacks(self) -> None:
        features = self._partition.inset_by_code() if self._partition is not None else {}
        fallback = [
            f"{box.name} ({code})"
            for code, box in self.boxes.items()
            if inset_projection(features.get(code), box) is None
        ]
        if fallback:
            _LOGGER.warning("Insets without a drawable boundary: %s", ", ".join(fallback))
