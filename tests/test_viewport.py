from __future__ import annotations

import math

import pytest

from regionmap.models import IDENTITY, DeviceClass, ViewportTransform
from regionmap.viewport import (
    GestureEvent,
    GestureKind,
    PanBy,
    Reset,
    SetTransform,
    Transition,
    ViewportController,
    ZoomBy,
)


def _covers_canvas(controller: ViewportController) -> bool:
    width, height = controller.canvas
    t = controller.transform
    return (
        t.x <= 1e-9
        and t.y <= 1e-9
        and t.x + width * t.k >= width - 1e-9
        and t.y + height * t.k >= height - 1e-9
    )


class TestCommands:
    def test_zoom_in_scales_about_center(self) -> None:
        controller = ViewportController()
        end = controller.apply(ZoomBy(1.5))
        assert end == ViewportTransform(k=1.5, x=-137.5, y=-137.5)
        assert controller.transform == end

    def test_scale_is_clamped(self) -> None:
        controller = ViewportController()
        assert controller.apply(ZoomBy(100.0)).k == 8.0
        assert controller.apply(ZoomBy(0.001)).k == 1.0
        assert controller.apply(SetTransform(ViewportTransform(k=20.0))).k == 8.0

    def test_zoom_out_at_minimum_is_identity(self) -> None:
        controller = ViewportController()
        assert controller.apply(ZoomBy(1.0 / 1.5)) == IDENTITY

    def test_pan_cannot_reveal_empty_space(self) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(2.0))
        controller.apply(PanBy(10_000.0, 10_000.0))
        assert (controller.transform.x, controller.transform.y) == (0.0, 0.0)
        controller.apply(PanBy(-10_000.0, -10_000.0))
        assert (controller.transform.x, controller.transform.y) == (-550.0, -550.0)
        assert _covers_canvas(controller)

    def test_pan_at_identity_is_a_no_op(self) -> None:
        controller = ViewportController()
        assert controller.apply(PanBy(40.0, -25.0)) == IDENTITY

    @pytest.mark.parametrize("factor", [0.0, -2.0, math.nan, math.inf])
    def test_invalid_zoom_factor_is_ignored(self, factor: float) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(2.0))
        before = controller.transform
        assert controller.apply(ZoomBy(factor)) == before

    def test_unknown_command(self) -> None:
        with pytest.raises(TypeError):
            ViewportController().apply("zoom")  # type: ignore[arg-type]

    def test_reset_returns_to_identity(self) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(3.0, anchor=(100.0, 400.0)))
        controller.apply(Reset())
        assert controller.transform == IDENTITY


class TestTransitions:
    def test_zoom_in_animates_to_end_state(self) -> None:
        controller = ViewportController()
        end = controller.zoom_in(now_ms=0.0)
        assert end.k == pytest.approx(1.5)
        assert controller.is_animating
        assert controller.transform == IDENTITY

        mid = controller.tick(150.0)
        assert 1.0 < mid.k < 1.5
        assert _covers_canvas(controller)

        assert controller.tick(300.0) == end
        assert not controller.is_animating

    def test_reset_takes_500ms(self) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(4.0))
        controller.reset(now_ms=1000.0)
        assert controller.tick(1499.0) != IDENTITY
        assert controller.tick(1500.0) == IDENTITY

    def test_latest_command_supersedes(self) -> None:
        controller = ViewportController()
        controller.zoom_in(now_ms=0.0)
        shown = controller.tick(150.0)
        end = controller.reset(now_ms=150.0)
        assert controller.target == end == IDENTITY
        # The new transition starts from what was on screen.
        assert controller.tick(150.0) == shown
        assert controller.tick(650.0) == IDENTITY

    def test_zoom_steps_compound(self) -> None:
        controller = ViewportController()
        controller.zoom_in(now_ms=0.0)
        controller.zoom_in(now_ms=300.0)
        assert controller.tick(600.0).k == pytest.approx(2.25)
        controller.zoom_out(now_ms=600.0)
        assert controller.tick(900.0).k == pytest.approx(1.5)

    def test_transition_easing_is_symmetric(self) -> None:
        transition = Transition(
            start=IDENTITY,
            end=ViewportTransform(k=1.0, x=-100.0, y=0.0),
            started_at_ms=0.0,
            duration_ms=100.0,
        )
        assert transition.value_at(50.0).x == pytest.approx(-50.0)
        assert transition.value_at(25.0).x == pytest.approx(-100.0 * 0.0625)
        assert transition.done(100.0)


class TestGestureFilter:
    def test_wheel_without_ctrl_is_ignored(self) -> None:
        controller = ViewportController()
        event = GestureEvent(GestureKind.WHEEL, points=((275.0, 275.0),), delta_y=-100.0)
        assert not controller.accepts(event)
        assert not controller.handle_gesture(event)
        assert controller.transform == IDENTITY

    def test_ctrl_wheel_zooms_about_pointer(self) -> None:
        controller = ViewportController()
        event = GestureEvent(
            GestureKind.WHEEL,
            points=((100.0, 200.0),),
            delta_y=-50.0,
            ctrl_key=True,
        )
        assert controller.handle_gesture(event)
        t = controller.transform
        assert t.k == pytest.approx(2.0)
        # The content point under the pointer stays put.
        assert t.apply((100.0, 200.0)) == pytest.approx((100.0, 200.0))

    def test_double_click_is_filtered(self) -> None:
        controller = ViewportController()
        event = GestureEvent(GestureKind.DOUBLE_CLICK, points=((275.0, 275.0),))
        assert not controller.handle_gesture(event)
        assert controller.transform == IDENTITY

    def test_mouse_move_without_drag_is_ignored(self) -> None:
        controller = ViewportController()
        assert not controller.accepts(GestureEvent(GestureKind.MOUSE_MOVE, points=((1.0, 1.0),)))

    def test_drag_pans_within_bounds(self) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(2.0))
        start = controller.transform
        controller.handle_gesture(GestureEvent(GestureKind.MOUSE_DOWN, points=((300.0, 300.0),)))
        controller.handle_gesture(GestureEvent(GestureKind.MOUSE_MOVE, points=((320.0, 290.0),)))
        assert controller.transform.x == pytest.approx(start.x + 20.0)
        assert controller.transform.y == pytest.approx(start.y - 10.0)
        controller.handle_gesture(GestureEvent(GestureKind.MOUSE_MOVE, points=((5000.0, 5000.0),)))
        assert _covers_canvas(controller)
        controller.handle_gesture(GestureEvent(GestureKind.MOUSE_UP))
        assert not controller.accepts(GestureEvent(GestureKind.MOUSE_MOVE, points=((0.0, 0.0),)))

    def test_gesture_interrupts_transition(self) -> None:
        controller = ViewportController()
        controller.zoom_in(now_ms=0.0)
        controller.handle_gesture(
            GestureEvent(GestureKind.MOUSE_DOWN, points=((10.0, 10.0),)),
            now_ms=150.0,
        )
        assert not controller.is_animating
        assert 1.0 < controller.transform.k < 1.5


class TestTouch:
    def test_single_finger_pans(self) -> None:
        controller = ViewportController()
        controller.apply(ZoomBy(2.0))
        start = controller.transform
        controller.handle_gesture(GestureEvent(GestureKind.TOUCH_START, points=((200.0, 200.0),)))
        controller.handle_gesture(GestureEvent(GestureKind.TOUCH_MOVE, points=((180.0, 230.0),)))
        assert controller.transform.x == pytest.approx(start.x - 20.0)
        assert controller.transform.y == pytest.approx(start.y + 30.0)

    def test_pinch_zooms(self) -> None:
        controller = ViewportController()
        controller.handle_gesture(
            GestureEvent(GestureKind.TOUCH_START, points=((225.0, 275.0), (325.0, 275.0)))
        )
        controller.handle_gesture(
            GestureEvent(GestureKind.TOUCH_MOVE, points=((175.0, 275.0), (375.0, 275.0)))
        )
        assert controller.transform.k == pytest.approx(2.0)
        assert _covers_canvas(controller)

    def test_touch_end_releases(self) -> None:
        controller = ViewportController()
        controller.handle_gesture(GestureEvent(GestureKind.TOUCH_START, points=((1.0, 1.0),)))
        controller.handle_gesture(GestureEvent(GestureKind.TOUCH_END))
        assert not controller.accepts(GestureEvent(GestureKind.TOUCH_MOVE, points=((2.0, 2.0),)))


class TestDeviceClass:
    def test_switch_resets_and_swaps_canvas(self) -> None:
        controller = ViewportController(DeviceClass.DESKTOP)
        controller.zoom_in(now_ms=0.0)
        controller.set_device_class(DeviceClass.MOBILE)
        assert controller.transform == IDENTITY
        assert not controller.is_animating
        assert controller.canvas == (550.0, 450.0)

    def test_mobile_pan_bounds_use_mobile_canvas(self) -> None:
        controller = ViewportController(DeviceClass.MOBILE)
        controller.apply(ZoomBy(2.0))
        controller.apply(PanBy(-10_000.0, -10_000.0))
        assert (controller.transform.x, controller.transform.y) == (-550.0, -450.0)
