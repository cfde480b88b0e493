# logic/selection_cursor.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence

from attendance_board.models.seat import SeatRow


@dataclass(frozen=True)
class Cursor:
    person_id: str
    date: date
    period: int


def reveal_scroll(row_index: int, scroll_y: float, viewport_height: float,
                  row_height: float, header_height: float = 0.0) -> float:
    """
    row_index 행이 보이도록 하는 최소 세로 스크롤 값.
    - 행은 콘텐츠 좌표 header_height부터 쌓인다
    - 상단 header_height만큼은 고정 헤더가 가린다
    이미 보이면 scroll_y 그대로.
    """
    top = header_height + row_index * row_height
    bottom = top + row_height
    visible_top = scroll_y + header_height
    visible_bottom = scroll_y + viewport_height
    if top < visible_top:
        return max(0.0, top - header_height)
    if bottom > visible_bottom:
        return bottom - viewport_height
    return scroll_y


class SelectionCursor:
    """
    커서 입력 모드의 '현재 칸'.
    상태: Idle(cursor=None) ↔ CellSelected(cursor)
    rows: 현재 행 순서를 돌려주는 함수(강조로 순서가 바뀔 수 있음)
    """

    def __init__(self, rows: Callable[[], Sequence[SeatRow]],
                 on_moved: Optional[Callable[[Optional[Cursor]], None]] = None):
        self._rows = rows
        self.on_moved = on_moved
        self.cursor: Optional[Cursor] = None

    @property
    def is_idle(self) -> bool:
        return self.cursor is None

    def move_to(self, person_id: str, day: date, period: int) -> Cursor:
        self.cursor = Cursor(person_id, day, period)
        self._emit()
        return self.cursor

    def clear(self) -> None:
        if self.cursor is not None:
            self.cursor = None
            self._emit()

    def row_index(self) -> int:
        if self.cursor is None:
            return -1
        rows = self._rows()
        return next((i for i, r in enumerate(rows) if r.person_id == self.cursor.person_id), -1)

    def advance(self) -> Optional[Cursor]:
        """
        같은 (날짜, 교시)의 아래 행으로 이동. 공석 행은 건너뜀.
        마지막 행이면 그대로 둔다(순환/예외 없음).
        """
        if self.cursor is None:
            return None
        rows: List[SeatRow] = list(self._rows())
        idx = self.row_index()
        if idx < 0:
            return self.cursor
        for row in rows[idx + 1:]:
            if row.accepts_input:
                self.cursor = Cursor(row.person_id, self.cursor.date, self.cursor.period)
                self._emit()
                break
        return self.cursor

    def _emit(self):
        if self.on_moved:
            self.on_moved(self.cursor)
