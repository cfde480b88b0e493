# logic/cell_renderer.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from attendance_board.models.attendance import AttendanceRecord, VacationEntry, VacationType

PRESENT_GLYPH = "O"
ABSENT_GLYPH = "X"
FULL_DAY_TEXT = "월차"
HALF_AM_TEXT = "오전"
HALF_PM_TEXT = "오후"


class Palette(str, Enum):
    DISABLED = "disabled"
    VACATION = "vacation"
    ANNOTATED = "annotated"
    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class CellVisual:
    label: Optional[str]
    palette: Palette


def render(record: Optional[AttendanceRecord], vacation: Optional[VacationEntry],
           period: int, is_placeholder: bool) -> CellVisual:
    """
    셀 표시 상태 결정(순수 함수). 우선순위:
      1) 공석 → 비활성
      2) 월차 → 모든 교시 휴가 표시
      3) 반차 + 해당 교시 → 오전/오후
      4) 출석 + 사유 → 사유 텍스트
      5) 출석 → O
      6) 그 외 → X
    """
    if is_placeholder:
        return CellVisual(None, Palette.DISABLED)

    if vacation is not None:
        if vacation.type == VacationType.FULL:
            return CellVisual(FULL_DAY_TEXT, Palette.VACATION)
        if vacation.covers(period):
            return CellVisual(HALF_AM_TEXT if vacation.is_am else HALF_PM_TEXT, Palette.VACATION)

    if record is not None and record.present:
        if record.status_label is not None:
            return CellVisual(record.status_label.text, Palette.ANNOTATED)
        return CellVisual(PRESENT_GLYPH, Palette.PRESENT)

    return CellVisual(ABSENT_GLYPH, Palette.ABSENT)
