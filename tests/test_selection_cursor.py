from __future__ import annotations

from datetime import date

from attendance_board.logic.seat_matrix import build_rows
from attendance_board.logic.selection_cursor import Cursor, SelectionCursor, reveal_scroll
from attendance_board.models.seat import RosterEntry

D = date(2025, 3, 14)


def _rows():
    return build_rows([RosterEntry("a", 1, "가"), RosterEntry("b", 2, "나"),
                       RosterEntry("c", 4, "다")], capacity=4)


def test_advance_moves_down_same_column_and_skips_empty_seat():
    moves = []
    rows = _rows()
    cur = SelectionCursor(lambda: rows, moves.append)
    cur.move_to("b", D, 5)
    assert cur.advance() == Cursor("c", D, 5)
    assert moves[-1] == Cursor("c", D, 5)


def test_advance_on_last_row_is_terminal():
    rows = _rows()
    cur = SelectionCursor(lambda: rows)
    cur.move_to("c", D, 2)
    assert cur.advance() == Cursor("c", D, 2)
    assert cur.advance() == Cursor("c", D, 2)


def test_advance_follows_current_row_order():
    rows = _rows()
    cur = SelectionCursor(lambda: rows)
    cur.move_to("a", D, 1)
    rows[:] = [rows[3], rows[0], rows[1], rows[2]]      # 강조로 순서 변경
    assert cur.advance().person_id == "b"


def test_idle_cursor():
    cur = SelectionCursor(lambda: _rows())
    assert cur.is_idle
    assert cur.advance() is None
    assert cur.row_index() == -1
    cur.move_to("a", D, 1)
    cur.clear()
    assert cur.is_idle


def test_reveal_scroll_minimal():
    # 행 높이 40, 화면 높이 200
    assert reveal_scroll(2, 0, 200, 40) == 0            # 이미 보임
    assert reveal_scroll(5, 0, 200, 40) == 40           # 아래로 한 줄만
    assert reveal_scroll(1, 120, 200, 40) == 40         # 위로
    assert reveal_scroll(0, 300, 200, 40) == 0


def test_reveal_scroll_accounts_for_sticky_header():
    # 헤더 75px가 위를 가림
    assert reveal_scroll(0, 0, 300, 40, header_height=75) == 0
    assert reveal_scroll(3, 100, 300, 40, header_height=75) == 100
    assert reveal_scroll(1, 100, 300, 40, header_height=75) == 40
    assert reveal_scroll(10, 0, 300, 40, header_height=75) == 75 + 11 * 40 - 300
