# gui/grid_view.py
from __future__ import annotations
from datetime import date
from typing import Callable, Optional

from PySide6.QtCore import Qt, QEvent, QPoint, QPointF, QTimer, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import (
    QAbstractItemView, QApplication, QHeaderView, QMenu, QStyledItemDelegate, QTableView, QWidget
)
from loguru import logger

from attendance_board.exceptions import ValidationError
from attendance_board.gui.grid_model import CURSOR_ROLE, AttendanceGridModel
from attendance_board.logic.gestures import LONG_PRESS_MS, InteractionMode, PressTranslator
from attendance_board.logic.selection_cursor import reveal_scroll
from attendance_board.logic.zoom import (
    PinchTracker, ViewState, anchored_scroll, content_at, day_scroll, fit_scale, wheel_factor
)
from attendance_board.models.attendance import ANNOTATIONS, AttendanceKey, StatusLabel

# 상태 선택 메뉴: (표시, 라벨). None = 일반 출석(O)
PICKER_ITEMS = (
    [("O  출석", None), ("X  결석", StatusLabel.ABSENT), None]
    + [(lbl.text, lbl) for lbl in ANNOTATIONS]
    + [None,
       (StatusLabel.VACATION_FULL.text, StatusLabel.VACATION_FULL),
       (StatusLabel.VACATION_HALF_AM.text, StatusLabel.VACATION_HALF_AM),
       (StatusLabel.VACATION_HALF_PM.text, StatusLabel.VACATION_HALF_PM),
       (StatusLabel.VACATION_CANCEL.text, StatusLabel.VACATION_CANCEL)]
)


class QtOneShotTimer:
    """PressTranslator용 QTimer 어댑터."""

    def __init__(self, parent=None):
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._fire)

    def start(self, ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(ms)

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self):
        cb, self._callback = self._callback, None
        if cb:
            cb()


class CursorDelegate(QStyledItemDelegate):
    """커서 칸에 테두리."""

    def paint(self, painter, option, index):
        super().paint(painter, option, index)
        if index.data(CURSOR_ROLE):
            painter.save()
            painter.setPen(QPen(QColor("#3182ce"), 2))
            painter.drawRect(option.rect.adjusted(1, 1, -1, -1))
            painter.restore()


class _ZoomPreview(QWidget):
    """핀치 중 미리보기: 시작 시점 화면을 중점 기준으로 확대/축소해 그리기만 한다."""

    def __init__(self, parent):
        super().__init__(parent)
        self.setAttribute(Qt.WA_TransparentForMouseEvents)
        self._pixmap: Optional[QPixmap] = None
        self._anchor = QPointF()
        self._ratio = 1.0
        self.hide()

    def start(self, pixmap: QPixmap, anchor: QPointF):
        self._pixmap = pixmap
        self._anchor = anchor
        self._ratio = 1.0
        self.setGeometry(self.parentWidget().rect())
        self.show()
        self.raise_()

    def set_ratio(self, ratio: float):
        self._ratio = ratio
        self.update()

    def stop(self):
        self._pixmap = None
        self.hide()

    def paintEvent(self, _ev):
        if self._pixmap is None:
            return
        p = QPainter(self)
        p.fillRect(self.rect(), QColor("white"))
        p.translate(self._anchor)
        p.scale(self._ratio, self._ratio)
        p.translate(-self._anchor)
        p.drawPixmap(0, 0, self._pixmap)
        p.end()


class AttendanceGridView(QTableView):
    """
    출석부 격자 뷰.
    - 짧게 누름/길게 누름 → 현재 InteractionMode
    - Ctrl+휠 / 핀치 → 포인터(중점) 기준 확대/축소
    - 세로 헤더(좌석+이름)는 가로 스크롤과 무관하게 고정
    """
    nameClicked = Signal(int)          # 행 번호
    scaleChanged = Signal(float)
    inputRejected = Signal(str)

    def __init__(self, model: AttendanceGridModel, view_state: ViewState,
                 long_press_ms: int = LONG_PRESS_MS, parent=None):
        super().__init__(parent)
        self.view_state = view_state
        self.mode: Optional[InteractionMode] = None
        self.setModel(model)
        self.setItemDelegate(CursorDelegate(self))

        self.setSelectionMode(QAbstractItemView.NoSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setHorizontalScrollMode(QAbstractItemView.ScrollPerPixel)
        self.setVerticalScrollMode(QAbstractItemView.ScrollPerPixel)
        self.setWordWrap(True)

        hh, vh = self.horizontalHeader(), self.verticalHeader()
        for h in (hh, vh):
            h.setSectionResizeMode(QHeaderView.Fixed)
            h.setMinimumSectionSize(1)
        vh.setDefaultAlignment(Qt.AlignVCenter | Qt.AlignLeft)
        vh.sectionClicked.connect(self.nameClicked.emit)

        self._timer = QtOneShotTimer(self)
        self.translator = PressTranslator(self._timer, self._on_tap, self._on_long_press, long_press_ms)
        self._press_pos: Optional[QPoint] = None

        self.pinch = PinchTracker(view_state.min_scale, view_state.max_scale)
        self._preview = _ZoomPreview(self.viewport())
        self.viewport().setAttribute(Qt.WA_AcceptTouchEvents)
        self.viewport().grabGesture(Qt.PinchGesture)

        self.apply_layout()

    @property
    def grid_model(self) -> AttendanceGridModel:
        return self.model()

    def set_mode(self, mode: InteractionMode):
        self.translator.cancel()
        self.mode = mode

    # ---------------- 배율/레이아웃 ----------------
    def _effective_scales(self):
        # 섹션 크기는 정수로 반올림되므로 실제 폭/높이 기준 배율을 쓴다
        m = self.view_state.metrics
        return self.view_state.period_width / m.period_width, self.view_state.row_height / m.row_height

    def apply_layout(self):
        """현재 배율을 모든 칸에 한 번에 반영(중간 상태가 그려지지 않게)."""
        vs, m = self.view_state, self.view_state.metrics
        self.setUpdatesEnabled(False)
        try:
            self.horizontalHeader().setDefaultSectionSize(vs.period_width)
            self.horizontalHeader().setFixedHeight(vs.px(m.header_height))
            self.verticalHeader().setDefaultSectionSize(vs.row_height)
            self.verticalHeader().setFixedWidth(vs.fixed_width)
            self.grid_model.scale_changed()
            self.updateGeometries()        # 스크롤 범위 갱신
        finally:
            self.setUpdatesEnabled(True)

    def set_scale(self, new_scale: float, anchor: Optional[QPointF] = None):
        """anchor(뷰포트 좌표) 아래의 콘텐츠가 그대로 남도록 배율 변경."""
        new_scale = self.view_state.clamp(new_scale)
        if abs(new_scale - self.view_state.scale) < 1e-9:
            return
        ax, ay = (anchor.x(), anchor.y()) if anchor is not None else (0.0, 0.0)
        hbar, vbar = self.horizontalScrollBar(), self.verticalScrollBar()
        old_ex, old_ey = self._effective_scales()
        content_x = content_at(hbar.value(), ax, old_ex)
        content_y = content_at(vbar.value(), ay, old_ey)

        self.view_state.scale = new_scale
        self.setUpdatesEnabled(False)
        try:
            self.apply_layout()
            new_ex, new_ey = self._effective_scales()
            hbar.setValue(round(anchored_scroll(content_x, new_ex, ax)))
            vbar.setValue(round(anchored_scroll(content_y, new_ey, ay)))
        finally:
            self.setUpdatesEnabled(True)
        logger.debug(f"배율 {new_scale:.2f}")
        self.scaleChanged.emit(new_scale)

    def fit_to_viewport(self, today: Optional[date] = None):
        """하루치가 화면 폭에 맞게 배율 조정 후 오늘을 왼쪽 끝으로."""
        vs = self.view_state
        width = self.viewport().width() + self.verticalHeader().width()
        scale = fit_scale(width, vs.metrics, vs.min_scale, vs.max_scale)
        if abs(scale - vs.scale) > 1e-9:
            vs.scale = scale
            self.apply_layout()
            self.scaleChanged.emit(scale)
        days = self.grid_model.days()
        idx = days.index(today) if today in days else 0
        ex, _ = self._effective_scales()
        self.horizontalScrollBar().setValue(round(day_scroll(idx, ex, vs.metrics)))

    def reveal_row(self, row: int):
        """행이 화면 밖이면 최소한으로 세로 스크롤. 헤더는 뷰포트 밖에 있으므로 오프셋 0."""
        vbar = self.verticalScrollBar()
        target = reveal_scroll(row, vbar.value(), self.viewport().height(),
                               self.view_state.row_height, header_height=0)
        vbar.setValue(round(target))

    # ---------------- 휠/핀치 ----------------
    def wheelEvent(self, e):
        if e.modifiers() & Qt.ControlModifier:
            dy = e.angleDelta().y()
            if dy:
                self.set_scale(self.view_state.scale * wheel_factor(dy), e.position())
            e.accept()
            return
        super().wheelEvent(e)

    def viewportEvent(self, e):
        if e.type() == QEvent.Gesture:
            g = e.gesture(Qt.PinchGesture)
            if g is not None:
                self._handle_pinch(g)
                e.accept()
                return True
        if e.type() == QEvent.NativeGesture and e.gestureType() == Qt.ZoomNativeGesture:
            # 트랙패드 확대(증분값): 휠과 같은 즉시 방식
            self.set_scale(self.view_state.scale * (1.0 + e.value()), e.position())
            return True
        return super().viewportEvent(e)

    def _handle_pinch(self, g):
        state = g.state()
        center = QPointF(self.viewport().mapFromGlobal(g.centerPoint().toPoint()))
        if state == Qt.GestureStarted:
            self.translator.cancel()
            self.pinch.begin_at((center.x(), center.y()), self.view_state.scale,
                                self.horizontalScrollBar().value(), self.verticalScrollBar().value())
            self._preview.start(self.viewport().grab(), center)
        elif state == Qt.GestureUpdated:
            self._preview.set_ratio(self.pinch.update_ratio(g.totalScaleFactor()))
        elif state == Qt.GestureFinished:
            ax, ay = self.pinch.anchor
            result = self.pinch.end()
            self._preview.stop()
            if result is not None:
                self.set_scale(result.scale, QPointF(ax, ay))
        else:
            self.pinch.cancel()
            self._preview.stop()

    # ---------------- 누름 → tap/long-press ----------------
    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton and not self.pinch.active:
            pos = e.position().toPoint()
            cell = self.grid_model.cell_at(self.indexAt(pos))
            if cell is not None:
                self._press_pos = pos
                self.translator.press(cell)
        super().mousePressEvent(e)

    def mouseMoveEvent(self, e):
        if self._press_pos is not None:
            moved = (e.position().toPoint() - self._press_pos).manhattanLength()
            if moved > QApplication.startDragDistance():
                # 드래그/스크롤로 판단: 입력 취소
                self.translator.cancel()
                self._press_pos = None
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e):
        if e.button() == Qt.LeftButton:
            self._press_pos = None
            self.translator.release()
        super().mouseReleaseEvent(e)

    def leaveEvent(self, e):
        self._press_pos = None
        self.translator.leave()
        super().leaveEvent(e)

    def contextMenuEvent(self, e):
        cell = self.grid_model.cell_at(self.indexAt(e.pos()))
        if cell is not None:
            self.translator.cancel()
            self._on_long_press(cell)

    def _on_tap(self, cell: AttendanceKey):
        if self.mode is None:
            return
        try:
            self.mode.on_tap(cell)
        except ValidationError as err:
            self.inputRejected.emit(str(err))

    def _on_long_press(self, cell: AttendanceKey):
        if self.mode is None:
            return
        try:
            self.mode.on_long_press(cell)
        except ValidationError as err:
            self.inputRejected.emit(str(err))

    # ---------------- 상태 선택 메뉴 ----------------
    def show_status_menu(self, cell: AttendanceKey):
        idx = self.grid_model.index_for(cell.person_id, cell.date, cell.period)
        if not idx.isValid() or self.mode is None:
            return
        menu = QMenu(self)
        actions = {}
        for item in PICKER_ITEMS:
            if item is None:
                menu.addSeparator()
                continue
            text, label = item
            actions[menu.addAction(text)] = label
        rect = self.visualRect(idx)
        act = menu.exec(self.viewport().mapToGlobal(rect.center()))
        if act is None or act not in actions:
            return
        try:
            self.mode.pick(cell, actions[act])
        except ValidationError as err:
            self.inputRejected.emit(str(err))
