# gui/action_bar.py
from __future__ import annotations
from PySide6.QtCore import Signal
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton, QSizePolicy, QWidget

from attendance_board.models.attendance import ANNOTATIONS, StatusLabel

_CLEAR = "clear"


class StatusActionBar(QWidget):
    """
    커서 입력 모드 전용 버튼 줄.
    버튼을 누르면 현재 커서 칸에 적용되고 커서는 아래 행으로 내려간다(MainWindow에서 처리).
    """
    labelChosen = Signal(object)      # StatusLabel 또는 None(일반 출석)
    clearRequested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._buttons = []

        root = QHBoxLayout(self)
        root.setContentsMargins(4, 2, 4, 2)
        root.setSpacing(4)

        self.target_label = QLabel("선택된 칸 없음")
        self.target_label.setStyleSheet("color:#4a5568; padding:0 6px;")
        root.addWidget(self.target_label)

        self._add(root, "O", None, "출석")
        self._add(root, "X", StatusLabel.ABSENT, "결석(기록 삭제)")
        root.addWidget(self._separator())
        for lbl in ANNOTATIONS:
            self._add(root, lbl.text, lbl)
        root.addWidget(self._separator())
        self._add(root, "월차", StatusLabel.VACATION_FULL)
        self._add(root, "오전반차", StatusLabel.VACATION_HALF_AM)
        self._add(root, "오후반차", StatusLabel.VACATION_HALF_PM)
        self._add(root, "휴가취소", StatusLabel.VACATION_CANCEL)
        root.addStretch(1)

        btn_clear = QPushButton("선택 해제")
        btn_clear.clicked.connect(self.clearRequested.emit)
        root.addWidget(btn_clear)
        self._buttons.append(btn_clear)

        self.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Fixed)
        self.set_target(None)

    def _add(self, layout, text: str, label, tip: str = ""):
        btn = QPushButton(text)
        btn.setMinimumWidth(44)
        if tip:
            btn.setToolTip(tip)
        btn.clicked.connect(lambda _=False, v=label: self.labelChosen.emit(v))
        layout.addWidget(btn)
        self._buttons.append(btn)

    @staticmethod
    def _separator():
        line = QFrame()
        line.setFrameShape(QFrame.VLine)
        line.setFrameShadow(QFrame.Sunken)
        return line

    def set_target(self, text):
        """text=None이면 버튼 비활성."""
        self.target_label.setText(text or "선택된 칸 없음")
        for b in self._buttons:
            b.setEnabled(text is not None)
