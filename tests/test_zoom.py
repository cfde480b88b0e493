from __future__ import annotations

import itertools

import pytest

from attendance_board.logic.zoom import (
    MAX_SCALE, MIN_SCALE, GridMetrics, PinchTracker, ViewState, clamp_scale, content_at,
    day_scroll, fit_scale, wheel_factor, zoom_at
)


def test_scenario_e_wheel_zoom_keeps_content_under_pointer():
    pointer = 200.0
    scroll = 300.0                       # 500 = (300 + 200) / 1.0
    assert content_at(scroll, pointer, 1.0) == 500
    new_scale, new_scroll = zoom_at(scroll, pointer, 1.0, 1.5)
    assert new_scale == 1.5
    assert new_scroll == pytest.approx(550.0)
    assert abs(content_at(new_scroll, pointer, new_scale) - 500) < 1


@pytest.mark.parametrize("scale, target", list(itertools.product(
    [0.3, 0.55, 1.0, 1.37, 2.0], [0.1, 0.3, 0.8, 1.0, 1.25, 2.0, 3.5])))
def test_anchor_drift_below_one_pixel(scale, target):
    for pointer, scroll in itertools.product([0, 13.5, 400, 1279], [0, 77, 2500.25, 12000]):
        before = content_at(scroll, pointer, scale)
        new_scale, new_scroll = zoom_at(scroll, pointer, scale, target)
        after = content_at(round(new_scroll), pointer, new_scale)
        # 화면 픽셀 기준 오차
        assert abs(after - before) * new_scale < 1


def test_scale_is_clamped():
    assert clamp_scale(0.01) == MIN_SCALE
    assert clamp_scale(9.0) == MAX_SCALE
    assert zoom_at(0, 0, 1.0, 10.0)[0] == MAX_SCALE


def test_wheel_factor_direction():
    assert wheel_factor(120) > 1.0
    assert wheel_factor(-120) < 1.0
    assert wheel_factor(120) * wheel_factor(-120) == pytest.approx(1.0)


def test_fit_scale_uses_one_day_of_columns():
    m = GridMetrics()
    assert m.fixed_width + m.day_width == 445
    assert fit_scale(445, m) == pytest.approx(1.0)
    assert fit_scale(890, m) == MAX_SCALE
    assert fit_scale(50, m) == MIN_SCALE


def test_day_scroll_puts_day_at_leading_edge():
    m = GridMetrics()
    assert day_scroll(0, 1.0, m) == 0
    assert day_scroll(3, 0.5, m) == pytest.approx(3 * 315 * 0.5)


def test_view_state_pixels():
    vs = ViewState(GridMetrics(), scale=0.5)
    assert vs.period_width == 22 or vs.period_width == 23
    assert vs.row_height == 20
    assert vs.fixed_width == 65
    vs.scale = vs.clamp(0.0001)
    assert vs.px(1) == 1


def test_view_state_is_per_instance():
    a, b = ViewState(), ViewState()
    a.scale = 1.8
    assert b.scale == 1.0


def test_pinch_preview_then_commit_around_midpoint():
    p = PinchTracker()
    assert p.begin((100, 100), (300, 100), 1.0, 400, 0)
    assert p.anchor == (200, 100)
    ratio = p.update((50, 100), (350, 100))
    assert ratio == pytest.approx(1.5)
    result = p.end()
    assert result.scale == pytest.approx(1.5)
    # 중점 아래 콘텐츠(600)가 유지
    assert content_at(result.scroll_x, 200, result.scale) == pytest.approx(600)
    assert not p.active


def test_pinch_preview_ratio_respects_bounds():
    p = PinchTracker()
    p.begin_at((0, 0), 1.5, 0, 0)
    assert p.update_ratio(4.0) == pytest.approx(MAX_SCALE / 1.5)
    assert p.end().scale == MAX_SCALE


def test_pinch_degenerate_or_cancelled():
    p = PinchTracker()
    assert not p.begin((10, 10), (10, 10), 1.0, 0, 0)
    assert p.end() is None
    p.begin((0, 0), (100, 0), 1.0, 0, 0)
    p.cancel()
    assert p.end() is None
    assert p.update((0, 0), (300, 0)) == 1.0


def test_day_width_follows_period_count():
    from attendance_board.models.attendance import PERIODS
    m = GridMetrics(period_width=30)
    assert m.day_width == 30 * len(PERIODS)
