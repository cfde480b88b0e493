# gui/memo_dialog.py
from __future__ import annotations
from datetime import date
from typing import Callable, List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog, QHBoxLayout, QLabel, QLineEdit, QListWidget, QListWidgetItem,
    QMessageBox, QPushButton, QVBoxLayout, QWidget
)
from loguru import logger

from attendance_board.data.record_store import RecordStore
from attendance_board.exceptions import RemoteError, ValidationError
from attendance_board.models.seat import SeatRow
from attendance_board.utils.date_helper import header_label


class MemoListWidget(QWidget):
    """
    메모 목록 + 입력줄 + 추가/삭제.
    load/add/delete는 저장소 호출을 감싼 함수로 주입한다.
    """

    def __init__(self, parent=None, placeholder: str = "내용 입력"):
        super().__init__(parent)
        self._load: Optional[Callable[[], List]] = None
        self._add: Optional[Callable[[str], object]] = None
        self._delete: Optional[Callable[[int], int]] = None

        self.list = QListWidget()
        self.list.setWordWrap(True)
        self.edit = QLineEdit()
        self.edit.setPlaceholderText(placeholder)
        btn_add = QPushButton("추가")
        btn_del = QPushButton("삭제")

        row = QHBoxLayout()
        row.setContentsMargins(0, 0, 0, 0)
        row.addWidget(self.edit, 1)
        row.addWidget(btn_add)
        row.addWidget(btn_del)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.addWidget(self.list, 1)
        root.addLayout(row)

        btn_add.clicked.connect(self.on_add)
        self.edit.returnPressed.connect(self.on_add)
        btn_del.clicked.connect(self.on_delete)

    def bind(self, load, add, delete):
        self._load, self._add, self._delete = load, add, delete
        self.refresh()

    def refresh(self):
        self.list.clear()
        if self._load is None:
            return
        try:
            memos = self._load()
        except RemoteError as e:
            QMessageBox.warning(self, "오류", f"메모를 불러오지 못했습니다.\n{e}")
            return
        for m in memos:
            item = QListWidgetItem(f"{m.content}\n  {m.created_at}")
            item.setData(Qt.UserRole, m.id)
            self.list.addItem(item)

    def on_add(self):
        if self._add is None:
            return
        try:
            self._add(self.edit.text())
        except ValidationError as e:
            QMessageBox.information(self, "확인", str(e))
            self.edit.setFocus()
            return
        except RemoteError as e:
            QMessageBox.warning(self, "오류", f"메모 저장 실패\n{e}")
            return
        self.edit.clear()
        self.refresh()

    def on_delete(self):
        item = self.list.currentItem()
        if item is None or self._delete is None:
            QMessageBox.information(self, "안내", "삭제할 메모를 선택해주세요.")
            return
        if QMessageBox.question(self, "확인", "선택한 메모를 삭제하시겠습니까?") != QMessageBox.Yes:
            return
        try:
            if self._delete(item.data(Qt.UserRole)) == 0:
                logger.info("이미 삭제된 메모")
        except RemoteError as e:
            QMessageBox.warning(self, "오류", f"메모 삭제 실패\n{e}")
            return
        self.refresh()


class DailyMemoDialog(QDialog):
    """날짜+지점 참고사항."""

    def __init__(self, parent, store: RecordStore, day: date, branch: str):
        super().__init__(parent)
        self.setWindowTitle(f"참고사항 - {header_label(day)} {branch}")
        self.resize(420, 360)

        self.memos = MemoListWidget(self, "참고사항 입력")
        btn_close = QPushButton("닫기")
        btn_close.clicked.connect(self.accept)

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.addWidget(QLabel(f"{day.isoformat()} ({branch})"))
        root.addWidget(self.memos, 1)
        root.addWidget(btn_close, 0, Qt.AlignRight)

        self.memos.bind(
            lambda: store.query_daily_memos(day, branch),
            lambda text: store.add_daily_memo(day, branch, text),
            store.delete_daily_memo,
        )


class MemberMemoPanel(QWidget):
    """이름 클릭으로 열리는 개인 메모 패널."""

    def __init__(self, store: RecordStore, parent=None):
        super().__init__(parent)
        self.store = store
        self.person: Optional[SeatRow] = None

        self.title = QLabel("")
        self.title.setStyleSheet("font-weight:600;")
        self.memos = MemoListWidget(self, "메모 입력")

        root = QVBoxLayout(self)
        root.setContentsMargins(6, 6, 6, 6)
        root.addWidget(self.title)
        root.addWidget(self.memos, 1)
        self.setMinimumWidth(240)
        self.hide()

    def show_for(self, row: SeatRow):
        self.person = row
        self.title.setText(f"{row.header_text} 메모")
        pid = row.person_id
        self.memos.bind(
            lambda: self.store.query_member_memos(pid),
            lambda text: self.store.add_member_memo(pid, text),
            self.store.delete_member_memo,
        )
        self.show()

    def close_panel(self):
        self.person = None
        self.hide()
