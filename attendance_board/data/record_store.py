# data/record_store.py
from __future__ import annotations
from datetime import date
from typing import Iterable, List, Optional, Protocol

from attendance_board.models.attendance import (
    AttendanceRow, StatusLabel, VacationEntry, VacationPayload
)
from attendance_board.models.memo import DailyMemo, MemberMemo
from attendance_board.models.seat import RosterEntry
from attendance_board.utils.date_helper import DateWindow


class RecordStore(Protocol):
    """
    출석부 그리드가 쓰는 원격 저장소 계약.
    - 실패는 TransientRemoteError로 올린다.
    - delete_*는 영향받은 행 수를 돌려준다(0도 정상).
    """

    def query_attendance(self, window: DateWindow,
                         person_ids: Optional[Iterable[str]] = None) -> List[AttendanceRow]:
        raise NotImplementedError

    def upsert_attendance(self, person_id: str, day: date, period: int,
                          status_label: Optional[StatusLabel]) -> None:
        raise NotImplementedError

    def delete_attendance(self, person_id: str, day: date, period: int) -> int:
        raise NotImplementedError

    def query_vacations(self, window: DateWindow) -> List[VacationEntry]:
        raise NotImplementedError

    def upsert_vacation(self, person_id: str, day: date, payload: VacationPayload) -> None:
        raise NotImplementedError

    def delete_vacation(self, person_id: str, day: date) -> int:
        raise NotImplementedError

    def query_seat_roster(self, branch: str) -> List[RosterEntry]:
        raise NotImplementedError

    # --- 참고사항(메모) ---
    def query_daily_memos(self, day: date, branch: str) -> List[DailyMemo]:
        raise NotImplementedError

    def add_daily_memo(self, day: date, branch: str, content: str) -> DailyMemo:
        raise NotImplementedError

    def delete_daily_memo(self, memo_id: int) -> int:
        raise NotImplementedError

    def query_member_memos(self, person_id: str) -> List[MemberMemo]:
        raise NotImplementedError

    def add_member_memo(self, person_id: str, content: str) -> MemberMemo:
        raise NotImplementedError

    def delete_member_memo(self, memo_id: int) -> int:
        raise NotImplementedError
