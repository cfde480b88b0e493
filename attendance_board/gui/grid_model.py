# gui/grid_model.py
from __future__ import annotations
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

from PySide6.QtCore import Qt, QAbstractTableModel, QModelIndex
from PySide6.QtGui import QBrush, QColor, QFont

from attendance_board.logic.attendance_state import AttendanceState
from attendance_board.logic.cell_renderer import Palette, render
from attendance_board.logic.selection_cursor import Cursor
from attendance_board.logic.zoom import ViewState
from attendance_board.models.attendance import PERIODS, AttendanceKey
from attendance_board.models.seat import SeatRow
from attendance_board.utils.date_helper import header_label

CURSOR_ROLE = Qt.UserRole + 1

# 팔레트 → (배경, 글자)
PALETTE_COLORS = {
    Palette.DISABLED: ("#f7fafc", "#cbd5e0"),
    Palette.VACATION: ("#bee3f8", "#2a4365"),
    Palette.ANNOTATED: ("#fefcbf", "#975a16"),
    Palette.PRESENT: ("#c6f6d5", "#22543d"),
    Palette.ABSENT: ("#fed7d7", "#c53030"),
}
DIMMED_FG = "#a0aec0"      # 강조 행이 있을 때 나머지 행 글자
BASE_POINT_SIZE = 9.0


class AttendanceGridModel(QAbstractTableModel):
    """
    행 = 좌석(SeatRow), 열 = (날짜, 교시).
    셀 표시는 매번 render()로 파생하고, 상태 변경 시 바뀐 칸만 dataChanged.
    """

    def __init__(self, state: AttendanceState, view_state: ViewState, parent=None):
        super().__init__(parent)
        self.state = state
        self.view_state = view_state
        self.rows: List[SeatRow] = []
        self.columns: List[Tuple[date, int]] = []
        self.cursor: Optional[Cursor] = None
        self.highlighted_seat: Optional[int] = None
        self._row_of: Dict[str, int] = {}
        self._col_of: Dict[Tuple[date, int], int] = {}

    # ---- 구성 ----
    def set_grid(self, rows: List[SeatRow], days: List[date]):
        self.beginResetModel()
        self.rows = list(rows)
        self.columns = [(d, p) for d in days for p in PERIODS]
        self._reindex()
        self.endResetModel()

    def set_rows(self, rows: List[SeatRow]):
        """행 순서만 바뀜(강조 이동 등)."""
        self.layoutAboutToBeChanged.emit()
        self.rows = list(rows)
        self._reindex()
        self.layoutChanged.emit()

    def _reindex(self):
        self._row_of = {r.person_id: i for i, r in enumerate(self.rows)}
        self._col_of = {c: i for i, c in enumerate(self.columns)}

    def days(self) -> List[date]:
        return [d for d, p in self.columns if p == PERIODS[0]]

    # ---- 상태 변경 반영 ----
    def on_state_changed(self, keys: Optional[Set[AttendanceKey]]):
        if not self.rows or not self.columns:
            return
        if keys is None:
            self._emit_all()
            return
        for key in keys:
            idx = self.index_for(key.person_id, key.date, key.period)
            if idx.isValid():
                self.dataChanged.emit(idx, idx)

    def set_cursor(self, cursor: Optional[Cursor]):
        old, self.cursor = self.cursor, cursor
        for c in (old, cursor):
            if c is not None:
                idx = self.index_for(c.person_id, c.date, c.period)
                if idx.isValid():
                    self.dataChanged.emit(idx, idx)

    def set_highlight(self, seat_number: Optional[int]):
        self.highlighted_seat = seat_number
        self._emit_all()
        self.headerDataChanged.emit(Qt.Vertical, 0, max(0, len(self.rows) - 1))

    def scale_changed(self):
        self._emit_all()
        self.headerDataChanged.emit(Qt.Horizontal, 0, max(0, len(self.columns) - 1))
        self.headerDataChanged.emit(Qt.Vertical, 0, max(0, len(self.rows) - 1))

    def _emit_all(self):
        if self.rows and self.columns:
            self.dataChanged.emit(self.index(0, 0), self.index(len(self.rows) - 1, len(self.columns) - 1))

    # ---- 조회 ----
    def index_for(self, person_id: str, day: date, period: int) -> QModelIndex:
        r = self._row_of.get(person_id)
        c = self._col_of.get((day, period))
        if r is None or c is None:
            return QModelIndex()
        return self.index(r, c)

    def cell_at(self, index: QModelIndex) -> Optional[AttendanceKey]:
        """입력 가능한 칸이면 키, 공석/범위 밖이면 None."""
        if not index.isValid():
            return None
        row = self.rows[index.row()]
        if not row.accepts_input:
            return None
        day, period = self.columns[index.column()]
        return AttendanceKey(row.person_id, day, period)

    def _font(self, bold: bool = True) -> QFont:
        f = QFont()
        f.setPointSizeF(max(5.0, BASE_POINT_SIZE * self.view_state.scale))
        f.setBold(bold)
        return f

    def _is_dimmed(self, row: SeatRow) -> bool:
        return self.highlighted_seat is not None and row.seat_number != self.highlighted_seat

    # ---- Qt 모델 필수 구현 ----
    def rowCount(self, _=QModelIndex()):
        return len(self.rows)

    def columnCount(self, _=QModelIndex()):
        return len(self.columns)

    def flags(self, index: QModelIndex):
        if not index.isValid():
            return Qt.NoItemFlags
        if not self.rows[index.row()].accepts_input:
            return Qt.NoItemFlags        # 공석: 비활성
        return Qt.ItemIsEnabled

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal:
            if section >= len(self.columns):
                return None
            day, period = self.columns[section]
            if role == Qt.DisplayRole:
                return f"{header_label(day)}\n{period}" if period == PERIODS[0] else f"\n{period}"
            if role == Qt.FontRole:
                return self._font(bold=period == PERIODS[0])
            if role == Qt.TextAlignmentRole:
                return Qt.AlignCenter
            return None

        if section >= len(self.rows):
            return None
        row = self.rows[section]
        if role == Qt.DisplayRole:
            return row.header_text
        if role == Qt.FontRole:
            return self._font(bold=not row.is_empty_placeholder)
        if role == Qt.ForegroundRole:
            if row.is_empty_placeholder or self._is_dimmed(row):
                return QBrush(QColor(PALETTE_COLORS[Palette.DISABLED][1]))
            return QBrush(QColor("#2d3748"))
        return None

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        row = self.rows[index.row()]
        day, period = self.columns[index.column()]

        if role == CURSOR_ROLE:
            c = self.cursor
            return c is not None and (c.person_id, c.date, c.period) == (row.person_id, day, period)

        if role == Qt.TextAlignmentRole:
            return Qt.AlignCenter
        if role == Qt.FontRole:
            return self._font()

        record = None if row.is_empty_placeholder else self.state.record_at(row.person_id, day, period)
        vacation = None if row.is_empty_placeholder else self.state.vacation_at(row.person_id, day)
        visual = render(record, vacation, period, row.is_empty_placeholder)

        if role == Qt.DisplayRole:
            return visual.label or ""
        if role == Qt.BackgroundRole:
            return QBrush(QColor(PALETTE_COLORS[visual.palette][0]))
        if role == Qt.ForegroundRole:
            if self._is_dimmed(row):
                return QBrush(QColor(DIMMED_FG))
            return QBrush(QColor(PALETTE_COLORS[visual.palette][1]))
        if role == Qt.ToolTipRole:
            if row.is_empty_placeholder:
                return f"{row.seat_number}번 공석"
            tip = f"{row.name} {day.isoformat()} {period}교시: {visual.label}"
            if vacation is not None and vacation.reason:
                tip += f"\n사유: {vacation.reason}"
            return tip
        return None
