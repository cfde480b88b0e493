# logic/attendance_state.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Set

from loguru import logger

from attendance_board.data.record_store import RecordStore
from attendance_board.exceptions import InitialLoadError, RemoteError, ValidationError
from attendance_board.logic.dispatch import ImmediateDispatcher, WriteDispatcher
from attendance_board.logic.vacation_overlay import VacationOverlay
from attendance_board.models.attendance import (
    PERIODS, AttendanceKey, AttendanceRecord, StatusLabel, VacationEntry, VacationPayload,
    check_period, parse_status
)
from attendance_board.utils.date_helper import DateWindow


class NoticeKind(str, Enum):
    ALREADY_CLEAR = "already_clear"        # 삭제 대상 없음(정상)
    SYNC_FAILED = "sync_failed"            # 쓰기 실패 → 재조회 시작
    RECONCILED = "reconciled"              # 재조회 결과로 교체됨
    RECONCILE_FAILED = "reconcile_failed"  # 재조회도 실패


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    message: str


ChangedCallback = Callable[[Optional[Set[AttendanceKey]]], None]
NoticeCallback = Callable[[Notice], None]


class AttendanceState:
    """
    보이는 날짜 구간의 출석/휴가 스냅샷을 소유한다.
    - 변경은 로컬에 먼저 반영(낙관적)하고 쓰기는 dispatcher로 던진다
    - 쓰기 실패 시 역패치 없이 구간 전체를 다시 읽어 통째로 교체한다
    on_changed(keys): keys=None이면 전체 변경
    """

    def __init__(self, store: RecordStore, dispatcher: Optional[WriteDispatcher] = None,
                 on_changed: Optional[ChangedCallback] = None,
                 on_notice: Optional[NoticeCallback] = None):
        self.store = store
        self.dispatcher = dispatcher or ImmediateDispatcher()
        self.on_changed = on_changed
        self.on_notice = on_notice
        self.overlay = VacationOverlay()
        self._records: Dict[AttendanceKey, AttendanceRecord] = {}
        self._window: Optional[DateWindow] = None
        self._placeholders: frozenset = frozenset()
        self._write_seq = 0         # 제출한 쓰기 수. 읽기 결과가 그 뒤의 쓰기를 포함하는지 판정

    # ---------------- 조회 ----------------
    @property
    def window(self) -> Optional[DateWindow]:
        return self._window

    def set_placeholders(self, person_ids: Iterable[str]) -> None:
        self._placeholders = frozenset(person_ids)

    def record_at(self, person_id: str, day: date, period: int) -> Optional[AttendanceRecord]:
        return self._records.get(AttendanceKey(person_id, day, period))

    def vacation_at(self, person_id: str, day: date) -> Optional[VacationEntry]:
        return self.overlay.overlay_for(person_id, day)

    def has_record(self, person_id: str, day: date, period: int) -> bool:
        return AttendanceKey(person_id, day, period) in self._records

    def records(self) -> Dict[AttendanceKey, AttendanceRecord]:
        return dict(self._records)

    # ---------------- 로딩/재조회 ----------------
    def load(self, window: DateWindow) -> None:
        """최초 로딩(동기). 실패하면 InitialLoadError."""
        try:
            rows = self.store.query_attendance(window)
            vacations = self.store.query_vacations(window)
        except RemoteError as e:
            logger.error(f"출석부 로딩 실패 {window.start}~{window.end}: {e}")
            raise InitialLoadError(str(e)) from e
        self._window = window
        self._replace(rows, vacations)
        logger.debug(f"출석 {len(self._records)}건, 휴가 {len(self.overlay)}건 로딩")
        self._emit_changed(None)

    def load_async(self, window: DateWindow,
                   on_loaded: Optional[Callable[[Any], None]] = None,
                   on_failed: Optional[Callable[[InitialLoadError], None]] = None,
                   extra: Optional[Callable[[], Any]] = None) -> None:
        """
        구간 로딩을 쓰기 큐 뒤에 넣는다. 먼저 제출된 쓰기는 결과에 포함된다.
        extra: 같은 작업에서 함께 읽을 것(명단 등). 결과는 on_loaded로 전달.
        """
        seq = self._write_seq

        def job():
            extra_result = extra() if extra is not None else None
            return self.store.query_attendance(window), self.store.query_vacations(window), extra_result

        def done(result):
            if self._write_seq != seq:
                logger.debug("로딩 중 새 쓰기가 제출됨, 다시 읽음")
                self.load_async(window, on_loaded, on_failed, extra)
                return
            rows, vacations, extra_result = result
            self._window = window
            self._replace(rows, vacations)
            self._emit_changed(None)
            if on_loaded:
                on_loaded(extra_result)

        def failed(err: Exception):
            logger.error(f"출석부 로딩 실패 {window.start}~{window.end}: {err}")
            if on_failed:
                on_failed(InitialLoadError(str(err)))

        self.dispatcher.submit(job, done, failed)

    def reconcile(self) -> None:
        """현재 구간 전체 재조회 후 스냅샷 교체(비동기)."""
        window = self._window
        if window is None:
            return
        seq = self._write_seq

        def job():
            return self.store.query_attendance(window), self.store.query_vacations(window)

        def done(result):
            if window != self._window:
                # 그 사이 다른 날짜로 이동함: 결과 버림
                logger.debug(f"지난 구간 재조회 결과 무시: {window.start}~{window.end}")
                return
            if self._write_seq != seq:
                # 읽은 뒤에 제출된 쓰기가 빠져 있음: 그 쓰기들 뒤에서 다시 읽는다
                logger.debug("재조회 이후 쓰기 발생, 재조회 다시 제출")
                self.reconcile()
                return
            rows, vacations = result
            if self._replace(rows, vacations):
                self._emit_changed(None)
                self._notify(NoticeKind.RECONCILED, "서버 기준으로 출석부를 다시 맞췄습니다.")

        def failed(err: Exception):
            logger.error(f"재조회 실패: {err}")
            self._notify(NoticeKind.RECONCILE_FAILED, "최신 출석부를 불러오지 못했습니다. 새로고침 해주세요.")

        self.dispatcher.submit(job, done, failed)

    def _replace(self, rows, vacations) -> bool:
        """스냅샷 통째 교체. 내용이 달라졌으면 True."""
        records = {
            r.key: AttendanceRecord(True, r.status_label) for r in rows
        }
        entries = list(vacations)
        changed = records != self._records or set(entries) != set(self.overlay)
        self._records = records
        self.overlay.replace(entries)
        return changed

    # ---------------- 변경 ----------------
    def toggle(self, person_id: str, day: date, period: int) -> Optional[AttendanceRecord]:
        """없으면 출석 생성, 있으면(사유 무관) 삭제."""
        key = self._key(person_id, day, period)
        if key in self._records:
            del self._records[key]
            self._emit_changed({key})
            self._write(lambda: self.store.delete_attendance(person_id, day, period))
            return None
        rec = AttendanceRecord(True, None)
        self._records[key] = rec
        self._emit_changed({key})
        self._write(lambda: self.store.upsert_attendance(person_id, day, period, None))
        return rec

    def set_status(self, person_id: str, day: date, period: int, label,
                   reason: Optional[str] = None) -> None:
        """
        label:
          - 사유 라벨 → 출석+사유로 upsert
          - None → 사유만 지우고 출석 유지(결석 칸이면 일반 출석 생성)
          - absent → 레코드 삭제
          - vacation_full/half_am/half_pm → 휴가 upsert(출석과 공존)
          - vacation_cancel → 휴가 삭제(없어도 정상)
        """
        label = parse_status(label)
        key = self._key(person_id, day, period)

        if label is None or label.is_annotation:
            rec = AttendanceRecord(True, label)
            self._records[key] = rec
            self._emit_changed({key})
            self._write(lambda: self.store.upsert_attendance(person_id, day, period, label))
        elif label == StatusLabel.ABSENT:
            # 로컬에 없어도 서버에는 남아 있을 수 있으므로 삭제는 항상 보낸다
            self._records.pop(key, None)
            self._emit_changed({key})
            self._write(lambda: self.store.delete_attendance(person_id, day, period))
        elif label == StatusLabel.VACATION_CANCEL:
            self.cancel_vacation(person_id, day)
        else:
            payload = VacationPayload.for_label(label, reason)
            self.overlay.put(VacationEntry.from_payload(person_id, day, payload))
            self._emit_changed(self._day_keys(person_id, day))
            self._write(lambda: self.store.upsert_vacation(person_id, day, payload))

    def cancel_vacation(self, person_id: str, day: date) -> None:
        self._key(person_id, day, PERIODS[0])
        self.overlay.discard(person_id, day)
        self._emit_changed(self._day_keys(person_id, day))

        def done(rows_affected: int):
            if rows_affected == 0:
                self._notify(NoticeKind.ALREADY_CLEAR, "이미 휴가가 없습니다.")

        self._write(lambda: self.store.delete_vacation(person_id, day), done)

    # ---------------- 내부 ----------------
    def _key(self, person_id: str, day: date, period: int) -> AttendanceKey:
        if not person_id:
            raise ValidationError("사람 ID가 비어 있습니다.")
        if person_id in self._placeholders:
            raise ValidationError(f"공석에는 입력할 수 없습니다: {person_id}")
        check_period(period)
        if self._window is not None and day not in self._window:
            raise ValidationError(f"보이는 구간 밖의 날짜입니다: {day}")
        return AttendanceKey(person_id, day, period)

    @staticmethod
    def _day_keys(person_id: str, day: date) -> Set[AttendanceKey]:
        return {AttendanceKey(person_id, day, p) for p in PERIODS}

    def _write(self, job, on_success=None) -> None:
        self._write_seq += 1
        self.dispatcher.submit(job, on_success, self._on_write_failed)

    def _on_write_failed(self, err: Exception) -> None:
        logger.warning(f"쓰기 실패, 재조회로 맞춤: {err}")
        self._notify(NoticeKind.SYNC_FAILED, "저장에 실패했습니다. 최신 상태로 다시 맞춥니다.")
        self.reconcile()

    def _emit_changed(self, keys: Optional[Set[AttendanceKey]]) -> None:
        if self.on_changed:
            self.on_changed(keys)

    def _notify(self, kind: NoticeKind, message: str) -> None:
        logger.info(f"[{kind.value}] {message}")
        if self.on_notice:
            self.on_notice(Notice(kind, message))
