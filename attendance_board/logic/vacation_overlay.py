# logic/vacation_overlay.py
from __future__ import annotations
from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from attendance_board.models.attendance import VacationEntry


class VacationOverlay:
    """
    (사람, 날짜) → 휴가 항목 조회용 투영.
    replace/put/discard는 AttendanceState만 호출한다.
    """

    def __init__(self, entries: Iterable[VacationEntry] = ()):
        self._by_key: Dict[Tuple[str, date], VacationEntry] = {}
        self.replace(entries)

    def overlay_for(self, person_id: str, day: date) -> Optional[VacationEntry]:
        return self._by_key.get((person_id, day))

    def replace(self, entries: Iterable[VacationEntry]) -> None:
        # 통째로 교체(부분 병합 없음)
        self._by_key = {(e.person_id, e.date): e for e in entries}

    def put(self, entry: VacationEntry) -> None:
        self._by_key[(entry.person_id, entry.date)] = entry

    def discard(self, person_id: str, day: date) -> Optional[VacationEntry]:
        return self._by_key.pop((person_id, day), None)

    def __len__(self):
        return len(self._by_key)

    def __iter__(self):
        return iter(self._by_key.values())
