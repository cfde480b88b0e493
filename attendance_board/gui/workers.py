# gui/workers.py
from __future__ import annotations
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot
from loguru import logger

from attendance_board.logic.dispatch import Job, OnFailure, OnSuccess


class _JobRunnable(QRunnable):
    def __init__(self, dispatcher: "QtWriteDispatcher", job: Job, on_success: OnSuccess, on_failure: OnFailure):
        super().__init__()
        self._dispatcher = dispatcher
        self._job = job
        self._on_success = on_success
        self._on_failure = on_failure

    def run(self):
        try:
            result = self._job()
        except Exception as e:
            logger.warning(f"백그라운드 저장소 작업 실패: {e}")
            self._dispatcher.finished.emit(self._on_failure, e)
            return
        self._dispatcher.finished.emit(self._on_success, result)


class QtWriteDispatcher(QObject):
    """
    저장소 작업을 전용 스레드 1개에서 순서대로 실행하고
    콜백은 큐 연결로 UI 스레드에서 호출한다.
    """
    finished = Signal(object, object)   # (callback, 결과 또는 예외)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(1)   # 제출 순서 보장
        self.finished.connect(self._deliver)

    def submit(self, job: Job, on_success: OnSuccess = None, on_failure: OnFailure = None) -> None:
        self._pool.start(_JobRunnable(self, job, on_success, on_failure))

    @Slot(object, object)
    def _deliver(self, callback, value):
        if callback is not None:
            callback(value)

    def wait(self, msecs: int = 5000) -> bool:
        """종료 시 남은 쓰기를 기다린다."""
        return self._pool.waitForDone(msecs)
