# logic/seat_matrix.py
from __future__ import annotations
from typing import Iterable, List, Optional

from loguru import logger

from attendance_board.models.seat import RosterEntry, SeatRow

DEFAULT_CAPACITY = 102
PROMOTED_INDEX = 2          # 강조된 행은 세 번째 줄로 올린다


def build_rows(roster: Iterable[RosterEntry], capacity: int = DEFAULT_CAPACITY) -> List[SeatRow]:
    """
    좌석 1..capacity 고정 순서 + 미배정 인원.
    - 비어 있는 좌석은 공석 행으로 채움
    - 범위 밖/중복 좌석 번호는 미배정 꼬리로 보냄
    """
    by_seat = {}
    tail: List[SeatRow] = []
    for e in roster:
        seat = e.seat_number
        if seat is None:
            tail.append(SeatRow(e.person_id, None, e.name, is_unassigned=True))
            continue
        if not 1 <= seat <= capacity:
            logger.warning(f"좌석 번호 범위 밖: {e.name}({seat}) → 미배정 처리")
            tail.append(SeatRow(e.person_id, None, e.name, is_unassigned=True))
            continue
        if seat in by_seat:
            logger.warning(f"좌석 {seat} 중복: {by_seat[seat].name}, {e.name} → 뒤쪽을 미배정 처리")
            tail.append(SeatRow(e.person_id, None, e.name, is_unassigned=True))
            continue
        by_seat[seat] = SeatRow(e.person_id, seat, e.name)

    rows = [by_seat.get(n) or SeatRow.placeholder(n) for n in range(1, capacity + 1)]
    rows.extend(tail)
    return rows


def promote(rows: List[SeatRow], seat_number: Optional[int]) -> List[SeatRow]:
    """강조 좌석을 PROMOTED_INDEX 위치로 옮긴 새 목록. 없으면 그대로."""
    if seat_number is None:
        return rows
    idx = next((i for i, r in enumerate(rows) if r.seat_number == seat_number), -1)
    if idx < 0:
        return rows
    out = list(rows)
    target = out.pop(idx)
    out.insert(min(PROMOTED_INDEX, len(out)), target)
    return out


def index_of(rows: List[SeatRow], person_id: str) -> int:
    for i, r in enumerate(rows):
        if r.person_id == person_id:
            return i
    return -1


def placeholder_ids(rows: Iterable[SeatRow]) -> frozenset:
    return frozenset(r.person_id for r in rows if r.is_empty_placeholder)
