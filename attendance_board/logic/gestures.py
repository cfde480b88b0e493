# logic/gestures.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol

from loguru import logger

from attendance_board.logic.attendance_state import AttendanceState
from attendance_board.logic.selection_cursor import SelectionCursor
from attendance_board.models.attendance import AttendanceKey

LONG_PRESS_MS = 500

CellCallback = Callable[[AttendanceKey], None]


class OneShotTimer(Protocol):
    def start(self, ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class PressTranslator:
    """
    누름/뗌/이탈 → tap / long_press 단일 흐름으로 변환.
    - 만료 전에 떼거나 벗어나면 타이머 취소 + tap
    - 만료되면 long_press, 이후의 뗌은 이미 소비됨(중복 tap 없음)
    플랫폼 포인터 이벤트는 이 클래스 밖(뷰)에서 처리한다.
    """

    IDLE, PRESSED, CONSUMED = "idle", "pressed", "consumed"

    def __init__(self, timer: OneShotTimer, on_tap: CellCallback, on_long_press: CellCallback,
                 long_press_ms: int = LONG_PRESS_MS):
        self.timer = timer
        self.on_tap = on_tap
        self.on_long_press = on_long_press
        self.long_press_ms = long_press_ms
        self.state = self.IDLE
        self._cell: Optional[AttendanceKey] = None

    def press(self, cell: AttendanceKey) -> None:
        self.timer.stop()
        self._cell = cell
        self.state = self.PRESSED
        self.timer.start(self.long_press_ms, self._expired)

    def release(self) -> None:
        self._finish()

    def leave(self) -> None:
        self._finish()

    def cancel(self) -> None:
        """스크롤/드래그 등으로 누름이 무효가 됨: 아무것도 발생시키지 않음."""
        self.timer.stop()
        self._reset()

    def _finish(self) -> None:
        state, cell = self.state, self._cell
        self.timer.stop()
        self._reset()
        if state == self.PRESSED and cell is not None:
            self.on_tap(cell)

    def _expired(self) -> None:
        if self.state != self.PRESSED or self._cell is None:
            return
        self.state = self.CONSUMED
        self.on_long_press(self._cell)

    def _reset(self) -> None:
        self.state = self.IDLE
        self._cell = None


class InteractionMode(ABC):
    """화면 설정에 따라 하나를 골라 쓰는 입력 전략."""

    name = ""
    uses_cursor = False

    def __init__(self, state: AttendanceState, open_picker: Optional[CellCallback] = None):
        self.state = state
        self.open_picker = open_picker

    @abstractmethod
    def on_tap(self, cell: AttendanceKey) -> None:
        raise NotImplementedError

    def on_long_press(self, cell: AttendanceKey) -> None:
        if self.open_picker:
            self.open_picker(cell)

    @abstractmethod
    def pick(self, cell: AttendanceKey, label, reason: Optional[str] = None) -> None:
        """상태 선택 메뉴에서 고른 라벨 적용."""
        raise NotImplementedError


class DirectToggleMode(InteractionMode):
    name = "direct"

    def on_tap(self, cell: AttendanceKey) -> None:
        self.state.toggle(cell.person_id, cell.date, cell.period)

    def pick(self, cell: AttendanceKey, label, reason: Optional[str] = None) -> None:
        self.state.set_status(cell.person_id, cell.date, cell.period, label, reason)


class CursorSelectMode(InteractionMode):
    name = "cursor"
    uses_cursor = True

    def __init__(self, state: AttendanceState, cursor: SelectionCursor,
                 open_picker: Optional[CellCallback] = None):
        super().__init__(state, open_picker)
        self.cursor = cursor

    def on_tap(self, cell: AttendanceKey) -> None:
        self.cursor.move_to(cell.person_id, cell.date, cell.period)

    def on_long_press(self, cell: AttendanceKey) -> None:
        self.cursor.move_to(cell.person_id, cell.date, cell.period)
        super().on_long_press(cell)

    def apply(self, label, reason: Optional[str] = None) -> bool:
        """현재 커서 칸에 라벨 적용 후 아래 행으로 이동. 선택이 없으면 False."""
        cur = self.cursor.cursor
        if cur is None:
            return False
        self.state.set_status(cur.person_id, cur.date, cur.period, label, reason)
        self.cursor.advance()
        return True

    def pick(self, cell: AttendanceKey, label, reason: Optional[str] = None) -> None:
        self.cursor.move_to(cell.person_id, cell.date, cell.period)
        self.apply(label, reason)


def interaction_mode_for(name: str, state: AttendanceState, cursor: SelectionCursor,
                         open_picker: Optional[CellCallback] = None) -> InteractionMode:
    if name == DirectToggleMode.name:
        return DirectToggleMode(state, open_picker)
    if name == CursorSelectMode.name:
        return CursorSelectMode(state, cursor, open_picker)
    logger.warning(f"알 수 없는 입력 모드 '{name}', 직접 토글로 대체")
    return DirectToggleMode(state, open_picker)
