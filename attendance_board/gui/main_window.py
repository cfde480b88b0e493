# gui/main_window.py
from __future__ import annotations
from datetime import date, timedelta
from typing import List, Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QComboBox, QLabel, QMainWindow, QPushButton, QSplitter, QStackedWidget,
    QToolBar, QVBoxLayout, QWidget
)
from loguru import logger

from attendance_board.data.record_store import RecordStore
from attendance_board.exceptions import RemoteError, ValidationError
from attendance_board.gui.action_bar import StatusActionBar
from attendance_board.gui.grid_model import AttendanceGridModel
from attendance_board.gui.grid_view import AttendanceGridView
from attendance_board.gui.memo_dialog import DailyMemoDialog, MemberMemoPanel
from attendance_board.gui.workers import QtWriteDispatcher
from attendance_board.logic.attendance_state import AttendanceState, Notice, NoticeKind
from attendance_board.logic.gestures import CursorSelectMode, interaction_mode_for
from attendance_board.logic.seat_matrix import build_rows, placeholder_ids, promote
from attendance_board.logic.selection_cursor import Cursor, SelectionCursor
from attendance_board.logic.zoom import GridMetrics, ViewState
from attendance_board.models.seat import SeatRow
from attendance_board.utils.config import GridConfig
from attendance_board.utils.date_helper import DateWindow, day_window, header_label, month_window, shift_month

VIEW_OPTIONS = [("일간", "daily"), ("월간", "monthly")]            # (표시, 저장값)
MODE_OPTIONS = [("직접 입력", "direct"), ("커서 입력", "cursor")]
NOTICE_MS = {NoticeKind.ALREADY_CLEAR: 2000, NoticeKind.RECONCILE_FAILED: 10000}


class MainWindow(QMainWindow):
    def __init__(self, store: RecordStore, grid_cfg: Optional[GridConfig] = None, dispatcher=None):
        super().__init__()
        self.grid_cfg = grid_cfg or GridConfig()
        self.setWindowTitle(f"출석부 - {self.grid_cfg.branch}")
        self.resize(1280, 900)

        self.store = store
        self.dispatcher = dispatcher or QtWriteDispatcher(self)
        self.view_state = ViewState(GridMetrics.from_config(self.grid_cfg), 1.0,
                                    self.grid_cfg.min_scale, self.grid_cfg.max_scale)
        self.state = AttendanceState(store, self.dispatcher,
                                     on_changed=self._on_state_changed, on_notice=self._on_notice)
        self.model = AttendanceGridModel(self.state, self.view_state, self)
        self.cursor = SelectionCursor(lambda: self.model.rows, on_moved=self._on_cursor_moved)

        self.current_day = date.today()
        self.view_mode = self.grid_cfg.view
        self._base_rows: List[SeatRow] = []     # 강조 전 순서
        self._fitted = False
        self._loaded = False                    # 첫 로딩 성공 여부

        self._build_ui()
        self.set_mode(self.grid_cfg.interaction_mode)
        self.reload()

    # ---------------- UI ----------------
    def _build_ui(self):
        tb = QToolBar()
        tb.setMovable(False)
        self.addToolBar(tb)

        btn_prev = QPushButton("◀ 이전")
        btn_prev.clicked.connect(lambda: self.navigate(-1))
        tb.addWidget(btn_prev)

        self.date_label = QLabel("")
        self.date_label.setStyleSheet("font-weight:600; padding:0 8px;")
        tb.addWidget(self.date_label)

        btn_next = QPushButton("다음 ▶")
        btn_next.clicked.connect(lambda: self.navigate(1))
        tb.addWidget(btn_next)

        btn_today = QPushButton("오늘")
        btn_today.clicked.connect(self.go_today)
        tb.addWidget(btn_today)

        tb.addSeparator()

        self.view_combo = QComboBox()
        for disp, val in VIEW_OPTIONS:
            self.view_combo.addItem(disp, userData=val)
        self.view_combo.setCurrentIndex([v for _, v in VIEW_OPTIONS].index(self.view_mode))
        self.view_combo.currentIndexChanged.connect(self._on_view_combo)
        tb.addWidget(self.view_combo)

        self.mode_combo = QComboBox()
        for disp, val in MODE_OPTIONS:
            self.mode_combo.addItem(disp, userData=val)
        self.mode_combo.currentIndexChanged.connect(lambda _i: self.set_mode(self.mode_combo.currentData()))
        tb.addWidget(self.mode_combo)

        tb.addSeparator()

        btn_fit = QPushButton("화면 맞춤")
        btn_fit.setToolTip("하루치가 화면 폭에 맞도록 배율 조정")
        btn_fit.clicked.connect(lambda: self.grid.fit_to_viewport(date.today()))
        tb.addWidget(btn_fit)

        btn_refresh = QPushButton("새로고침")
        btn_refresh.clicked.connect(self.reload)
        tb.addWidget(btn_refresh)

        btn_memo = QPushButton("참고사항")
        btn_memo.clicked.connect(self.open_daily_memos)
        tb.addWidget(btn_memo)

        # 중앙: [격자 화면, 로딩 실패 화면]
        self.stack = QStackedWidget()
        self.setCentralWidget(self.stack)

        grid_page = QWidget()
        gl = QVBoxLayout(grid_page)
        gl.setContentsMargins(0, 0, 0, 0)
        gl.setSpacing(0)

        self.action_bar = StatusActionBar()
        self.action_bar.labelChosen.connect(self._on_action_label)
        self.action_bar.clearRequested.connect(self.cursor.clear)
        gl.addWidget(self.action_bar)

        splitter = QSplitter(Qt.Horizontal)
        splitter.setHandleWidth(2)
        self.grid = AttendanceGridView(self.model, self.view_state, self.grid_cfg.long_press_ms)
        self.grid.nameClicked.connect(self._on_name_clicked)
        self.grid.inputRejected.connect(lambda msg: self.statusBar().showMessage(msg, 3000))
        self.grid.scaleChanged.connect(self._on_scale_changed)
        self.member_panel = MemberMemoPanel(self.store)
        splitter.addWidget(self.grid)
        splitter.addWidget(self.member_panel)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)
        splitter.setCollapsible(0, False)
        gl.addWidget(splitter, 1)

        error_page = QWidget()
        el = QVBoxLayout(error_page)
        el.addStretch(1)
        self.error_label = QLabel("")
        self.error_label.setAlignment(Qt.AlignCenter)
        self.error_label.setWordWrap(True)
        el.addWidget(self.error_label)
        btn_retry = QPushButton("다시 시도")
        btn_retry.clicked.connect(self.reload)
        el.addWidget(btn_retry, 0, Qt.AlignHCenter)
        el.addStretch(1)

        self.stack.addWidget(grid_page)
        self.stack.addWidget(error_page)

        self.scale_label = QLabel("")
        self.statusBar().addPermanentWidget(self.scale_label)
        self._on_scale_changed(self.view_state.scale)

    # ---------------- 데이터 ----------------
    def window_for_view(self) -> DateWindow:
        if self.view_mode == "monthly":
            return month_window(self.current_day.year, self.current_day.month)
        return day_window(self.current_day)

    def reload(self):
        """
        명단+출석+휴가 전체 로딩. 실패하면 재시도 화면.
        첫 로딩만 동기로 하고, 이후에는 대기 중인 쓰기 뒤에서 백그라운드로 읽는다.
        """
        window = self.window_for_view()
        if not self._loaded:
            self._load_blocking(window)
            return
        branch = self.grid_cfg.branch
        self.statusBar().showMessage("불러오는 중...")
        self.state.load_async(
            window,
            on_loaded=lambda roster: self._apply_load(window, roster),
            on_failed=self._show_load_error,
            extra=lambda: self.store.query_seat_roster(branch),
        )

    def _load_blocking(self, window: DateWindow):
        try:
            roster = self.store.query_seat_roster(self.grid_cfg.branch)
            self.state.load(window)
        except RemoteError as e:
            self._show_load_error(e)
            return
        self._loaded = True
        self._apply_load(window, roster)

    def _show_load_error(self, err: Exception):
        logger.error(f"출석부를 불러오지 못함: {err}")
        self.error_label.setText(f"출석부를 불러오지 못했습니다.\n{err}")
        self.stack.setCurrentIndex(1)

    def _apply_load(self, window: DateWindow, roster):
        if window != self.window_for_view():
            # 로딩 중에 다른 날짜로 이동함: 뒤따르는 로딩이 화면을 채운다
            return
        base = build_rows(roster, self.grid_cfg.seat_capacity)
        self.state.set_placeholders(placeholder_ids(base))
        self._base_rows = base
        highlighted = self.model.highlighted_seat
        if highlighted is not None and not any(r.seat_number == highlighted for r in base):
            highlighted = None
        self.cursor.clear()
        self.model.set_grid(promote(base, highlighted), window.days())
        self.model.set_highlight(highlighted)
        self.stack.setCurrentIndex(0)
        self._update_date_label(window)

        people = sum(1 for r in base if not r.is_empty_placeholder)
        self.statusBar().showMessage(f"인원 {people}명, 출석 {len(self.state.records())}건", 3000)
        if not self._fitted:
            self._fitted = True
            QTimer.singleShot(0, lambda: self.grid.fit_to_viewport(date.today()))

    def _update_date_label(self, window: DateWindow):
        if self.view_mode == "monthly":
            self.date_label.setText(f"{window.start.year}-{window.start.month:02d}")
        else:
            self.date_label.setText(f"{window.start.isoformat()} {header_label(window.start)}")

    def navigate(self, step: int):
        if self.view_mode == "monthly":
            y, m = shift_month(self.current_day.year, self.current_day.month, step)
            self.current_day = date(y, m, 1)
        else:
            self.current_day += timedelta(days=step)
        self.reload()

    def go_today(self):
        self.current_day = date.today()
        self.reload()

    def _on_view_combo(self, _idx):
        self.view_mode = self.view_combo.currentData()
        self.reload()

    # ---------------- 입력 모드 ----------------
    def set_mode(self, name: str):
        self.cursor.clear()
        self.mode = interaction_mode_for(name, self.state, self.cursor, self.grid.show_status_menu)
        self.grid.set_mode(self.mode)
        self.action_bar.setVisible(self.mode.uses_cursor)
        idx = [v for _, v in MODE_OPTIONS].index(self.mode.name)
        if self.mode_combo.currentIndex() != idx:
            self.mode_combo.blockSignals(True)
            self.mode_combo.setCurrentIndex(idx)
            self.mode_combo.blockSignals(False)
        logger.info(f"입력 모드: {self.mode.name}")

    def _on_action_label(self, label):
        if not isinstance(self.mode, CursorSelectMode):
            return
        try:
            if not self.mode.apply(label):
                self.statusBar().showMessage("먼저 칸을 선택해주세요.", 2000)
        except ValidationError as e:
            self.statusBar().showMessage(str(e), 3000)

    def _on_cursor_moved(self, cur: Optional[Cursor]):
        self.model.set_cursor(cur)
        if cur is None:
            self.action_bar.set_target(None)
            return
        row = self.cursor.row_index()
        if row >= 0:
            seat = self.model.rows[row]
            self.action_bar.set_target(f"{seat.header_text} · {header_label(cur.date)} {cur.period}교시")
            self.grid.reveal_row(row)

    # ---------------- 강조/개인 메모 ----------------
    def _on_name_clicked(self, row_idx: int):
        if not 0 <= row_idx < len(self.model.rows):
            return
        row = self.model.rows[row_idx]
        if row.is_empty_placeholder:
            return
        highlighted = self.model.highlighted_seat
        if row.seat_number is not None and row.seat_number != highlighted:
            self._set_highlight(row.seat_number)
            self.member_panel.close_panel()
            return
        # 이미 강조된 행(또는 미배정 인원): 메모 패널 열기/닫기
        if self.member_panel.isVisible() and self.member_panel.person == row:
            self.member_panel.close_panel()
            self._set_highlight(None)
        else:
            self.member_panel.show_for(row)

    def _set_highlight(self, seat_number: Optional[int]):
        self.model.set_rows(promote(self._base_rows, seat_number))
        self.model.set_highlight(seat_number)
        if self.cursor.cursor is not None:
            self._on_cursor_moved(self.cursor.cursor)

    def open_daily_memos(self):
        DailyMemoDialog(self, self.store, self.current_day, self.grid_cfg.branch).exec()

    # ---------------- 콜백 ----------------
    def _on_state_changed(self, keys):
        self.model.on_state_changed(keys)

    def _on_notice(self, notice: Notice):
        self.statusBar().showMessage(notice.message, NOTICE_MS.get(notice.kind, 4000))

    def _on_scale_changed(self, scale: float):
        self.scale_label.setText(f"배율 {round(scale * 100)}%")

    def closeEvent(self, e):
        wait = getattr(self.dispatcher, "wait", None)
        if wait is not None and not wait(5000):
            logger.warning("종료 시점에 끝나지 않은 저장 작업이 있습니다.")
        super().closeEvent(e)
