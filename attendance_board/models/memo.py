# models/memo.py
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DailyMemo:
    id: int
    date: date
    branch: str
    content: str
    created_at: str          # "YYYY-MM-DD HH:MM:SS"


@dataclass(frozen=True)
class MemberMemo:
    id: int
    person_id: str
    content: str
    created_at: str
