# utils/date_helper.py
import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List

WEEKDAYS_KR = ["월", "화", "수", "목", "금", "토", "일"]   # date.weekday() 순서


@dataclass(frozen=True)
class DateWindow:
    """화면에 보이는 날짜 구간(양 끝 포함)."""
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"잘못된 구간: {self.start} > {self.end}")

    def days(self) -> List[date]:
        n = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(n)]

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


def day_window(day: date) -> DateWindow:
    return DateWindow(day, day)


def month_window(year: int, month: int) -> DateWindow:
    days = calendar.monthrange(year, month)[1]
    return DateWindow(date(year, month, 1), date(year, month, days))


def shift_month(year: int, month: int, step: int):
    """(year, month)를 step개월 이동."""
    idx = year * 12 + (month - 1) + step
    return idx // 12, idx % 12 + 1


def date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_date_key(text: str) -> date:
    return datetime.strptime(text, "%Y-%m-%d").date()


def header_label(day: date) -> str:
    """예: 3.14(금)"""
    return f"{day.month}.{day.day}({WEEKDAYS_KR[day.weekday()]})"
