# logic/dispatch.py
from __future__ import annotations
from typing import Any, Callable, Optional, Protocol

from loguru import logger

Job = Callable[[], Any]
OnSuccess = Optional[Callable[[Any], None]]
OnFailure = Optional[Callable[[Exception], None]]


class WriteDispatcher(Protocol):
    """
    저장소 작업을 던지고 잊는(fire-and-forget) 실행기.
    - 제출 순서대로 실행
    - 콜백은 상태를 소유한 스레드(UI)에서 호출
    """

    def submit(self, job: Job, on_success: OnSuccess = None, on_failure: OnFailure = None) -> None:
        ...


class ImmediateDispatcher:
    """제출 즉시 같은 스레드에서 실행. 헤드리스 실행/테스트용."""

    def submit(self, job: Job, on_success: OnSuccess = None, on_failure: OnFailure = None) -> None:
        try:
            result = job()
        except Exception as e:
            logger.warning(f"저장소 작업 실패: {e}")
            if on_failure is None:
                raise
            on_failure(e)
            return
        if on_success is not None:
            on_success(result)
