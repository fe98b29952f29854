import pytest

from flowprof.config import ViewportConfig
from flowprof.layout import Viewport


def test_screen_graph_round_trip() -> None:
    v = Viewport(offset_x=12.0, offset_y=-7.0, scale=1.3)
    sx, sy = v.to_screen(40.0, 25.0)

    assert v.to_graph(sx, sy) == pytest.approx((40.0, 25.0))


def test_pan_is_additive() -> None:
    v = Viewport().pan(5.0, -3.0).pan(1.0, 1.0)

    assert (v.offset_x, v.offset_y, v.scale) == (6.0, -2.0, 1.0)


@pytest.mark.parametrize("factor", [0.5, 1.1, 1.7, 3.0])
@pytest.mark.parametrize("cursor", [(0.0, 0.0), (120.0, 80.0), (-30.0, 400.5)])
def test_zoom_keeps_point_under_cursor_fixed(factor, cursor) -> None:
    v = Viewport(offset_x=12.0, offset_y=-7.0, scale=1.3)
    gx, gy = v.to_graph(*cursor)

    zoomed = v.zoom_at(cursor[0], cursor[1], factor)

    assert zoomed.to_screen(gx, gy) == pytest.approx(cursor)


def test_zoom_is_clamped_and_still_anchored() -> None:
    v = Viewport(offset_x=3.0, offset_y=4.0, scale=2.0)
    gx, gy = v.to_graph(50.0, 60.0)

    zoomed = v.zoom_at(50.0, 60.0, 100.0)
    assert zoomed.scale == 4.0
    assert zoomed.to_screen(gx, gy) == pytest.approx((50.0, 60.0))

    assert Viewport().zoom_at(0.0, 0.0, 0.001).scale == 0.2


def test_wheel_direction_and_custom_limits() -> None:
    v = Viewport()

    assert v.wheel(10.0, 10.0, -1.0).scale == pytest.approx(1.1)
    assert v.wheel(10.0, 10.0, 1.0).scale == pytest.approx(1 / 1.1)
    assert v.wheel(10.0, 10.0, 0.0) is v

    config = ViewportConfig(min_scale=0.5, max_scale=1.05, wheel_step=2.0)
    assert v.wheel(0.0, 0.0, -1.0, config).scale == 1.05


def test_viewport_to_dict() -> None:
    assert Viewport(1.0, 2.0, 0.5).to_dict() == {"x": 1.0, "y": 2.0, "k": 0.5}
