# models/attendance.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional

from attendance_board.exceptions import ValidationError

PERIODS = (1, 2, 3, 4, 5, 6, 7)          # 하루 교시(격자의 최소 시간 단위)
AM_PERIODS = frozenset({1, 2, 3, 4})      # 오전 반차
PM_PERIODS = frozenset({5, 6, 7})         # 오후 반차


class StatusLabel(str, Enum):
    # 출석 주석(출석 + 사유)
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    HOSPITAL = "hospital"
    ERRAND = "errand"
    STUDY = "study"
    PART_TIME = "part_time"
    OTHER = "other"
    # 제어용 라벨: 출석 주석으로 저장되지 않음
    ABSENT = "absent"
    VACATION_FULL = "vacation_full"
    VACATION_HALF_AM = "vacation_half_am"
    VACATION_HALF_PM = "vacation_half_pm"
    VACATION_CANCEL = "vacation_cancel"

    @property
    def text(self) -> str:
        return STATUS_TEXT[self]

    @property
    def is_annotation(self) -> bool:
        return self in ANNOTATIONS

    @property
    def is_vacation(self) -> bool:
        return self in (StatusLabel.VACATION_FULL, StatusLabel.VACATION_HALF_AM,
                        StatusLabel.VACATION_HALF_PM, StatusLabel.VACATION_CANCEL)


STATUS_TEXT = {
    StatusLabel.LATE: "지각",
    StatusLabel.EARLY_LEAVE: "조퇴",
    StatusLabel.HOSPITAL: "병원",
    StatusLabel.ERRAND: "외출",
    StatusLabel.STUDY: "스터디",
    StatusLabel.PART_TIME: "알바",
    StatusLabel.OTHER: "기타",
    StatusLabel.ABSENT: "X",
    StatusLabel.VACATION_FULL: "월차",
    StatusLabel.VACATION_HALF_AM: "오전반차",
    StatusLabel.VACATION_HALF_PM: "오후반차",
    StatusLabel.VACATION_CANCEL: "휴가취소",
}

ANNOTATIONS = (
    StatusLabel.LATE, StatusLabel.EARLY_LEAVE, StatusLabel.HOSPITAL,
    StatusLabel.ERRAND, StatusLabel.STUDY, StatusLabel.PART_TIME, StatusLabel.OTHER,
)


def parse_status(value) -> Optional[StatusLabel]:
    """문자열/Enum → StatusLabel. None은 그대로. 어휘 밖이면 ValidationError."""
    if value is None or isinstance(value, StatusLabel):
        return value
    try:
        return StatusLabel(str(value))
    except ValueError:
        raise ValidationError(f"알 수 없는 상태값: {value!r}") from None


def check_period(period: int) -> int:
    if isinstance(period, bool) or not isinstance(period, int) or period not in PERIODS:
        raise ValidationError(f"교시는 1~7 사이여야 합니다: {period!r}")
    return period


class VacationType(str, Enum):
    FULL = "full"
    HALF = "half"


@dataclass(frozen=True)
class AttendanceKey:
    person_id: str
    date: date
    period: int


@dataclass(frozen=True)
class AttendanceRecord:
    """레코드는 출석일 때만 존재한다. 결석은 기본(파생) 상태."""
    present: bool = True
    status_label: Optional[StatusLabel] = None


@dataclass(frozen=True)
class AttendanceRow:
    """저장소 조회 결과 한 줄."""
    person_id: str
    date: date
    period: int
    status_label: Optional[StatusLabel] = None

    @property
    def key(self) -> AttendanceKey:
        return AttendanceKey(self.person_id, self.date, self.period)


@dataclass(frozen=True)
class VacationPayload:
    type: VacationType
    half_periods: Optional[FrozenSet[int]] = None
    reason: Optional[str] = None

    @staticmethod
    def for_label(label: StatusLabel, reason: Optional[str] = None) -> "VacationPayload":
        if label == StatusLabel.VACATION_FULL:
            return VacationPayload(VacationType.FULL, None, reason)
        if label == StatusLabel.VACATION_HALF_AM:
            return VacationPayload(VacationType.HALF, AM_PERIODS, reason)
        if label == StatusLabel.VACATION_HALF_PM:
            return VacationPayload(VacationType.HALF, PM_PERIODS, reason)
        raise ValidationError(f"휴가 라벨이 아닙니다: {label!r}")


@dataclass(frozen=True)
class VacationEntry:
    person_id: str
    date: date
    type: VacationType
    half_periods: Optional[FrozenSet[int]] = None
    reason: Optional[str] = None

    @staticmethod
    def from_payload(person_id: str, day: date, payload: VacationPayload) -> "VacationEntry":
        return VacationEntry(person_id, day, payload.type, payload.half_periods, payload.reason)

    def covers(self, period: int) -> bool:
        if self.type == VacationType.FULL:
            return True
        # 교시 정보가 없는 반차는 오후로 본다(1교시 포함 여부로 오전 판정)
        periods = self.half_periods or PM_PERIODS
        return period in periods

    @property
    def is_am(self) -> bool:
        return self.type == VacationType.HALF and 1 in (self.half_periods or ())
