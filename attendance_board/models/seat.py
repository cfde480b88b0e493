# models/seat.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

EMPTY_SEAT_NAME = "공석"


@dataclass(frozen=True)
class RosterEntry:
    """좌석 명단 원본 한 줄(저장소 조회 결과)."""
    person_id: str
    seat_number: Optional[int]
    name: str


@dataclass(frozen=True)
class SeatRow:
    person_id: str
    seat_number: Optional[int]
    name: str
    is_empty_placeholder: bool = False
    is_unassigned: bool = False

    @staticmethod
    def placeholder(seat_number: int) -> "SeatRow":
        return SeatRow(f"empty_{seat_number}", seat_number, EMPTY_SEAT_NAME,
                       is_empty_placeholder=True)

    @property
    def accepts_input(self) -> bool:
        return not self.is_empty_placeholder

    @property
    def header_text(self) -> str:
        seat = str(self.seat_number) if self.seat_number else "-"
        return f"{seat}  {self.name}"
