"""Viewport controller: bounded zoom/pan transform driven by commands and gestures."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Union

from .layout import canvas_size
from .models import IDENTITY, DeviceClass, ViewportTransform


_LOGGER = logging.getLogger("regionmap.viewport")

_Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class _ZoomPolicy:
    min_scale: float
    max_scale: float
    step_factor: float
    step_duration_ms: float
    reset_duration_ms: float
    wheel_pixel_delta: float
    wheel_line_delta: float
    wheel_page_delta: float
    wheel_modifier_boost: float


_ZOOM_POLICY = _ZoomPolicy(
    min_scale=1.0,
    max_scale=8.0,
    step_factor=1.5,
    step_duration_ms=300.0,
    reset_duration_ms=500.0,
    wheel_pixel_delta=0.002,
    wheel_line_delta=0.05,
    wheel_page_delta=1.0,
    wheel_modifier_boost=10.0,
)


@dataclass(frozen=True, slots=True)
class ZoomBy:
    factor: float
    anchor: _Point | None = None


@dataclass(frozen=True, slots=True)
class PanBy:
    """Translate by a screen-space offset."""

    dx: float
    dy: float


@dataclass(frozen=True, slots=True)
class Reset:
    pass


@dataclass(frozen=True, slots=True)
class SetTransform:
    transform: ViewportTransform


ViewportCommand = Union[ZoomBy, PanBy, Reset, SetTransform]


class GestureKind(enum.Enum):
    MOUSE_DOWN = "mousedown"
    MOUSE_MOVE = "mousemove"
    MOUSE_UP = "mouseup"
    TOUCH_START = "touchstart"
    TOUCH_MOVE = "touchmove"
    TOUCH_END = "touchend"
    WHEEL = "wheel"
    DOUBLE_CLICK = "dblclick"


_START_KINDS = frozenset(
    {GestureKind.MOUSE_DOWN, GestureKind.TOUCH_START, GestureKind.WHEEL, GestureKind.DOUBLE_CLICK}
)


@dataclass(frozen=True, slots=True)
class GestureEvent:
    """Raw input event in canvas coordinates.

    ``points`` holds the pointer position (mouse, wheel) or every active
    touch point (touch events).
    """

    kind: GestureKind
    points: tuple[_Point, ...] = ()
    delta_y: float = 0.0
    delta_mode: int = 0
    ctrl_key: bool = False


@dataclass(frozen=True, slots=True)
class Transition:
    start: ViewportTransform
    end: ViewportTransform
    started_at_ms: float
    duration_ms: float

    def progress(self, now_ms: float) -> float:
        if self.duration_ms <= 0:
            return 1.0
        return min(max((now_ms - self.started_at_ms) / self.duration_ms, 0.0), 1.0)

    def value_at(self, now_ms: float) -> ViewportTransform:
        return self.start.interpolate(self.end, _ease_cubic_in_out(self.progress(now_ms)))

    def done(self, now_ms: float) -> bool:
        return self.progress(now_ms) >= 1.0


class ViewportController:
    """Owns the single zoom/pan transform for the map's drawable group.

    Every resulting transform has ``1 <= k <= 8`` and keeps the scaled
    content covering the whole canvas. Requests outside those bounds are
    clamped, never rejected.
    """

    def __init__(self, device_class: DeviceClass = DeviceClass.DESKTOP) -> None:
        self._device_class = device_class
        self._canvas = canvas_size(device_class)
        self._transform = IDENTITY
        self._transition: Transition | None = None
        self._drag_point: _Point | None = None
        self._touches: tuple[_Point, ...] = ()

    @property
    def device_class(self) -> DeviceClass:
        return self._device_class

    @property
    def canvas(self) -> tuple[float, float]:
        return self._canvas

    @property
    def transform(self) -> ViewportTransform:
        """Currently displayed transform (as of the last tick)."""
        return self._transform

    @property
    def target(self) -> ViewportTransform:
        """End state of the in-flight transition, or the current transform."""
        if self._transition is not None:
            return self._transition.end
        return self._transform

    @property
    def is_animating(self) -> bool:
        return self._transition is not None

    def set_device_class(self, device_class: DeviceClass) -> None:
        """Swap canvas bounds and return to identity."""
        self._device_class = device_class
        self._canvas = canvas_size(device_class)
        self._transition = None
        self._drag_point = None
        self._touches = ()
        self._transform = IDENTITY
        _LOGGER.debug("Viewport reset for %s canvas %s", device_class.value, self._canvas)

    def zoom_in(self, now_ms: float = 0.0) -> ViewportTransform:
        return self.apply(
            ZoomBy(_ZOOM_POLICY.step_factor),
            now_ms=now_ms,
            duration_ms=_ZOOM_POLICY.step_duration_ms,
        )

    def zoom_out(self, now_ms: float = 0.0) -> ViewportTransform:
        return self.apply(
            ZoomBy(1.0 / _ZOOM_POLICY.step_factor),
            now_ms=now_ms,
            duration_ms=_ZOOM_POLICY.step_duration_ms,
        )

    def reset(self, now_ms: float = 0.0) -> ViewportTransform:
        return self.apply(Reset(), now_ms=now_ms, duration_ms=_ZOOM_POLICY.reset_duration_ms)

    def apply(
        self,
        command: ViewportCommand,
        *,
        now_ms: float = 0.0,
        duration_ms: float = 0.0,
    ) -> ViewportTransform:
        """Apply one command and return its end state.

        A command issued while a transition is running supersedes it and
        starts from whatever transform is on screen at ``now_ms``.
        """
        current = self.tick(now_ms)
        end = self._resolve(command, base=current)
        self._transition = None
        if duration_ms > 0 and end != current:
            self._transition = Transition(
                start=current,
                end=end,
                started_at_ms=now_ms,
                duration_ms=duration_ms,
            )
        else:
            self._transform = end
        return end

    def tick(self, now_ms: float) -> ViewportTransform:
        transition = self._transition
        if transition is None:
            return self._transform
        if transition.done(now_ms):
            self._transform = transition.end
            self._transition = None
        else:
            self._transform = self._constrain(transition.value_at(now_ms))
        return self._transform

    def accepts(self, event: GestureEvent) -> bool:
        """Gesture filter: drags and touches always, wheel only with Ctrl held.

        Touch versus mouse is told apart by event type, not by a device
        capability query. Double-click zoom is disabled.
        """
        kind = event.kind
        if kind in (GestureKind.MOUSE_DOWN, GestureKind.TOUCH_START):
            return True
        if kind is GestureKind.WHEEL:
            return event.ctrl_key
        if kind is GestureKind.DOUBLE_CLICK:
            return False
        if kind in (GestureKind.MOUSE_MOVE, GestureKind.MOUSE_UP):
            return self._drag_point is not None
        return bool(self._touches)

    def handle_gesture(self, event: GestureEvent, now_ms: float = 0.0) -> bool:
        """Feed one raw input event; returns True when the viewport consumed it."""
        if not self.accepts(event):
            return False
        if event.kind in _START_KINDS:
            # A user gesture interrupts any programmatic transition where it stands.
            self.tick(now_ms)
            self._transition = None

        kind = event.kind
        if kind is GestureKind.MOUSE_DOWN:
            self._drag_point = event.points[0] if event.points else None
            return self._drag_point is not None
        if kind is GestureKind.MOUSE_MOVE:
            if event.points:
                self._drag_to(event.points[0])
            return True
        if kind is GestureKind.MOUSE_UP:
            self._drag_point = None
            return True
        if kind is GestureKind.WHEEL:
            self._wheel(event)
            return True
        if kind is GestureKind.TOUCH_START:
            self._touches = tuple(event.points[:2])
            return bool(self._touches)
        if kind is GestureKind.TOUCH_MOVE:
            self._touch_move(tuple(event.points[:2]))
            return True
        if kind is GestureKind.TOUCH_END:
            self._touches = tuple(event.points[:2])
            return True
        return False

    def _drag_to(self, point: _Point) -> None:
        previous = self._drag_point
        self._drag_point = point
        if previous is None:
            return
        self._transform = self._resolve(
            PanBy(point[0] - previous[0], point[1] - previous[1]),
            base=self._transform,
        )

    def _wheel(self, event: GestureEvent) -> None:
        if event.delta_mode == 1:
            per_unit = _ZOOM_POLICY.wheel_line_delta
        elif event.delta_mode:
            per_unit = _ZOOM_POLICY.wheel_page_delta
        else:
            per_unit = _ZOOM_POLICY.wheel_pixel_delta
        boost = _ZOOM_POLICY.wheel_modifier_boost if event.ctrl_key else 1.0
        exponent = -float(event.delta_y) * per_unit * boost
        anchor = event.points[0] if event.points else None
        self._transform = self._resolve(
            ZoomBy(math.pow(2.0, exponent), anchor=anchor),
            base=self._transform,
        )

    def _touch_move(self, points: tuple[_Point, ...]) -> None:
        previous = self._touches
        self._touches = points
        if not points or not previous:
            return
        if len(points) == 1 or len(previous) == 1:
            self._transform = self._resolve(
                PanBy(points[0][0] - previous[0][0], points[0][1] - previous[0][1]),
                base=self._transform,
            )
            return

        mid_prev = _midpoint(previous[0], previous[1])
        mid_now = _midpoint(points[0], points[1])
        dist_prev = _distance(previous[0], previous[1])
        dist_now = _distance(points[0], points[1])
        panned = self._resolve(
            PanBy(mid_now[0] - mid_prev[0], mid_now[1] - mid_prev[1]),
            base=self._transform,
        )
        if dist_prev > 0.0:
            panned = self._resolve(ZoomBy(dist_now / dist_prev, anchor=mid_now), base=panned)
        self._transform = panned

    def _resolve(self, command: ViewportCommand, *, base: ViewportTransform) -> ViewportTransform:
        if isinstance(command, Reset):
            return IDENTITY
        if isinstance(command, SetTransform):
            target = command.transform
            return self._constrain(target.scale_to(self._clamp_scale(target.k)))
        if isinstance(command, PanBy):
            if not (math.isfinite(command.dx) and math.isfinite(command.dy)):
                return base
            return self._constrain(
                ViewportTransform(k=base.k, x=base.x + command.dx, y=base.y + command.dy)
            )
        if isinstance(command, ZoomBy):
            factor = float(command.factor)
            if not math.isfinite(factor) or factor <= 0.0:
                return base
            anchor = command.anchor or (self._canvas[0] / 2.0, self._canvas[1] / 2.0)
            k = self._clamp_scale(base.k * factor)
            local_x, local_y = base.invert(anchor)
            return self._constrain(
                ViewportTransform(k=k, x=anchor[0] - local_x * k, y=anchor[1] - local_y * k)
            )
        raise TypeError(f"Unknown viewport command: {command!r}")

    def _clamp_scale(self, k: float) -> float:
        if not math.isfinite(k):
            return _ZOOM_POLICY.max_scale if k > 0 else _ZOOM_POLICY.min_scale
        return max(_ZOOM_POLICY.min_scale, min(k, _ZOOM_POLICY.max_scale))

    def _constrain(self, transform: ViewportTransform) -> ViewportTransform:
        # With k >= 1 and the pan extent equal to the canvas, d3-zoom's default
        # constrain reduces to clamping the offset into [size * (1 - k), 0].
        width, height = self._canvas
        x = min(0.0, max(width * (1.0 - transform.k), transform.x))
        y = min(0.0, max(height * (1.0 - transform.k), transform.y))
        if x == transform.x and y == transform.y:
            return transform
        return ViewportTransform(k=transform.k, x=x, y=y)


def _ease_cubic_in_out(t: float) -> float:
    t *= 2.0
    if t <= 1.0:
        return t * t * t / 2.0
    t -= 2.0
    return (t * t * t + 2.0) / 2.0


def _midpoint(left: _Point, right: _Point) -> _Point:
    return ((left[0] + right[0]) / 2.0, (left[1] + right[1]) / 2.0)


def _distance(left: _Point, right: _Point) -> float:
    return math.hypot(right[0] - left[0], right[1] - left[1])
