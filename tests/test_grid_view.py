from __future__ import annotations

import os
from datetime import timedelta

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtCore = pytest.importorskip("PySide6.QtCore")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from attendance_board.gui.grid_model import AttendanceGridModel  # noqa: E402
from attendance_board.gui.grid_view import AttendanceGridView  # noqa: E402
from attendance_board.logic.seat_matrix import build_rows  # noqa: E402
from attendance_board.logic.zoom import ViewState  # noqa: E402
from attendance_board.models.seat import RosterEntry  # noqa: E402

from conftest import DAY  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def view(qapp, state):
    rows = build_rows([RosterEntry("hong", 1, "홍길동"), RosterEntry("kim", 3, "김철수")], capacity=30)
    vs = ViewState()
    model = AttendanceGridModel(state, vs)
    model.set_grid(rows, [DAY + timedelta(days=i) for i in range(10)])
    v = AttendanceGridView(model, vs)
    v.resize(800, 500)
    v.show()
    qapp.processEvents()
    yield v
    v.close()


def _column_under(view, x: int) -> float:
    """뷰포트 x 위치의 열 좌표(소수 포함)."""
    col = view.columnAt(x)
    return col + (x - view.columnViewportPosition(col)) / view.columnWidth(col)


@pytest.mark.parametrize("x, target", [(200, 1.5), (333, 0.73), (517, 1.91), (10, 0.8)])
def test_wheel_zoom_keeps_column_under_pointer(view, x, target):
    view.horizontalScrollBar().setValue(1000)
    before = _column_under(view, x)
    view.set_scale(target, QtCore.QPointF(x, 0))
    after = _column_under(view, x)
    # 새 배율의 화면 픽셀 기준 1px 미만
    assert abs(after - before) * view.view_state.period_width < 1
    assert view.view_state.scale == pytest.approx(target)


def test_scale_change_resizes_sections(view):
    view.set_scale(2.0)
    assert view.columnWidth(0) == 90
    assert view.rowHeight(0) == 80
    assert view.verticalHeader().width() == 260


def test_fit_to_viewport_scrolls_to_today(view):
    today = DAY + timedelta(days=4)
    view.fit_to_viewport(today)
    assert view.columnAt(0) == 4 * 7


def test_reveal_row_scrolls_minimally(view):
    view.reveal_row(25)
    vbar = view.verticalScrollBar()
    rh = view.view_state.row_height
    assert view.rowAt(view.viewport().height() - 1) == 25
    assert vbar.value() == 26 * rh - view.viewport().height()
