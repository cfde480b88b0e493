# data/repo.py
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger

from attendance_board.exceptions import TransientRemoteError, ValidationError
from attendance_board.models.attendance import (
    AttendanceRow, StatusLabel, VacationEntry, VacationPayload, VacationType, check_period
)
from attendance_board.models.memo import DailyMemo, MemberMemo
from attendance_board.models.seat import RosterEntry
from attendance_board.utils.date_helper import DateWindow, date_key, parse_date_key


def _periods_to_text(periods) -> Optional[str]:
    if not periods:
        return None
    return ",".join(str(p) for p in sorted(periods))


def _text_to_periods(text: Optional[str]):
    if not text:
        return None
    return frozenset(int(tok) for tok in text.split(",") if tok.strip())


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class Repo:
    """
    SQLite 기반 RecordStore 구현.
    연결 하나를 쓰기 스레드와 UI 스레드가 같이 쓰므로 lock으로 직렬화한다.
    """

    def __init__(self, db_path: str = "attendance.sqlite3"):
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_tables()

    def close(self):
        with self._lock:
            self.conn.close()

    @contextmanager
    def _cursor(self):
        with self._lock:
            try:
                cur = self.conn.cursor()
                yield cur
                self.conn.commit()
            except sqlite3.Error as e:
                self.conn.rollback()
                logger.warning(f"DB 오류: {e}")
                raise TransientRemoteError(str(e)) from e

    def _create_tables(self):
        with self._cursor() as cur:
            cur.execute("""
            CREATE TABLE IF NOT EXISTS persons(
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                branch TEXT NOT NULL,
                seat_number INTEGER          -- NULL = 미배정
            );
            """)
            cur.execute("""
            CREATE TABLE IF NOT EXISTS attendance_logs(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                person_id TEXT NOT NULL,
                date TEXT NOT NULL,          -- YYYY-MM-DD
                period INTEGER NOT NULL,     -- 1..7
                status TEXT,                 -- NULL = 일반 출석
                UNIQUE(person_id, date, period)
            );
            """)
            cur.execute("""
            CREATE TABLE IF NOT EXISTS vacation_requests(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                person_id TEXT NOT NULL,
                date TEXT NOT NULL,
                type TEXT NOT NULL,          -- 'full' | 'half'
                periods TEXT,                -- '1,2,3,4' | '5,6,7' | NULL
                reason TEXT,
                UNIQUE(person_id, date)
            );
            """)
            cur.execute("""
            CREATE TABLE IF NOT EXISTS attendance_memos(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                date TEXT NOT NULL,
                branch TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """)
            cur.execute("""
            CREATE TABLE IF NOT EXISTS member_memos(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                person_id TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """)
            cur.execute("CREATE INDEX IF NOT EXISTS ix_att_date ON attendance_logs(date);")
            cur.execute("CREATE INDEX IF NOT EXISTS ix_vac_date ON vacation_requests(date);")

    # --- 명단 ---
    def add_person(self, name: str, branch: str, seat_number: Optional[int] = None,
                   person_id: Optional[str] = None) -> str:
        person_id = person_id or uuid.uuid4().hex
        with self._cursor() as cur:
            cur.execute("INSERT INTO persons(id, name, branch, seat_number) VALUES(?,?,?,?)",
                        (person_id, name, branch, seat_number))
        return person_id

    def query_seat_roster(self, branch: str) -> List[RosterEntry]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT id, name, seat_number FROM persons
                WHERE branch=?
                ORDER BY seat_number IS NULL, seat_number, name
            """, (branch,))
            rows = cur.fetchall()
        return [RosterEntry(r["id"], r["seat_number"], r["name"]) for r in rows]

    # --- 출석 ---
    def query_attendance(self, window: DateWindow,
                         person_ids: Optional[Iterable[str]] = None) -> List[AttendanceRow]:
        sql = "SELECT person_id, date, period, status FROM attendance_logs WHERE date BETWEEN ? AND ?"
        params: list = [date_key(window.start), date_key(window.end)]
        if person_ids is not None:
            ids = list(person_ids)
            if not ids:
                return []
            sql += f" AND person_id IN ({','.join('?' * len(ids))})"
            params.extend(ids)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [
            AttendanceRow(r["person_id"], parse_date_key(r["date"]), r["period"],
                          StatusLabel(r["status"]) if r["status"] else None)
            for r in rows
        ]

    def upsert_attendance(self, person_id: str, day: date, period: int,
                          status_label: Optional[StatusLabel]) -> None:
        check_period(period)
        status = status_label.value if status_label is not None else None
        with self._cursor() as cur:
            # 조회 후 분기(check-then-act). 동시 편집자가 같은 칸을 동시에 넣으면
            # UNIQUE 위반 → TransientRemoteError → 호출 측 재조회로 수렴.
            cur.execute("SELECT id FROM attendance_logs WHERE person_id=? AND date=? AND period=?",
                        (person_id, date_key(day), period))
            row = cur.fetchone()
            if row:
                cur.execute("UPDATE attendance_logs SET status=? WHERE id=?", (status, row["id"]))
            else:
                cur.execute("INSERT INTO attendance_logs(person_id, date, period, status) VALUES(?,?,?,?)",
                            (person_id, date_key(day), period, status))

    def delete_attendance(self, person_id: str, day: date, period: int) -> int:
        with self._cursor() as cur:
            cur.execute("DELETE FROM attendance_logs WHERE person_id=? AND date=? AND period=?",
                        (person_id, date_key(day), period))
            return cur.rowcount

    # --- 휴가 ---
    def query_vacations(self, window: DateWindow) -> List[VacationEntry]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT person_id, date, type, periods, reason FROM vacation_requests
                WHERE date BETWEEN ? AND ?
            """, (date_key(window.start), date_key(window.end)))
            rows = cur.fetchall()
        return [
            VacationEntry(r["person_id"], parse_date_key(r["date"]), VacationType(r["type"]),
                          _text_to_periods(r["periods"]), r["reason"])
            for r in rows
        ]

    def upsert_vacation(self, person_id: str, day: date, payload: VacationPayload) -> None:
        periods = _periods_to_text(payload.half_periods)
        with self._cursor() as cur:
            cur.execute("SELECT id FROM vacation_requests WHERE person_id=? AND date=?",
                        (person_id, date_key(day)))
            row = cur.fetchone()
            if row:
                cur.execute("UPDATE vacation_requests SET type=?, periods=?, reason=? WHERE id=?",
                            (payload.type.value, periods, payload.reason, row["id"]))
            else:
                cur.execute("""
                    INSERT INTO vacation_requests(person_id, date, type, periods, reason)
                    VALUES(?,?,?,?,?)
                """, (person_id, date_key(day), payload.type.value, periods, payload.reason))

    def delete_vacation(self, person_id: str, day: date) -> int:
        with self._cursor() as cur:
            cur.execute("DELETE FROM vacation_requests WHERE person_id=? AND date=?",
                        (person_id, date_key(day)))
            return cur.rowcount

    # --- 참고사항 ---
    def query_daily_memos(self, day: date, branch: str) -> List[DailyMemo]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT * FROM attendance_memos WHERE date=? AND branch=?
                ORDER BY created_at, id
            """, (date_key(day), branch))
            rows = cur.fetchall()
        return [DailyMemo(r["id"], parse_date_key(r["date"]), r["branch"], r["content"], r["created_at"])
                for r in rows]

    def add_daily_memo(self, day: date, branch: str, content: str) -> DailyMemo:
        content = (content or "").strip()
        if not content:
            raise ValidationError("내용을 입력해주세요.")
        created = _now()
        with self._cursor() as cur:
            cur.execute("INSERT INTO attendance_memos(date, branch, content, created_at) VALUES(?,?,?,?)",
                        (date_key(day), branch, content, created))
            memo_id = cur.lastrowid
        return DailyMemo(memo_id, day, branch, content, created)

    def delete_daily_memo(self, memo_id: int) -> int:
        with self._cursor() as cur:
            cur.execute("DELETE FROM attendance_memos WHERE id=?", (memo_id,))
            return cur.rowcount

    def query_member_memos(self, person_id: str) -> List[MemberMemo]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM member_memos WHERE person_id=? ORDER BY created_at, id",
                        (person_id,))
            rows = cur.fetchall()
        return [MemberMemo(r["id"], r["person_id"], r["content"], r["created_at"]) for r in rows]

    def add_member_memo(self, person_id: str, content: str) -> MemberMemo:
        content = (content or "").strip()
        if not content:
            raise ValidationError("내용을 입력해주세요.")
        created = _now()
        with self._cursor() as cur:
            cur.execute("INSERT INTO member_memos(person_id, content, created_at) VALUES(?,?,?)",
                        (person_id, content, created))
            memo_id = cur.lastrowid
        return MemberMemo(memo_id, person_id, content, created)

    def delete_member_memo(self, memo_id: int) -> int:
        with self._cursor() as cur:
            cur.execute("DELETE FROM member_memos WHERE id=?", (memo_id,))
            return cur.rowcount

    # 간단 시드
    def seed_if_empty(self, branch: str, seats: int = 102):
        if self.query_seat_roster(branch):
            return
        names = ["홍길동", "김철수", "이영희", "박민수", "최유리", "오지점", "정가게", "한소라", "윤도현", "서지우"]
        for i, n in enumerate(names):
            # 두 명은 미배정으로 둔다
            seat = None if i >= len(names) - 2 else min(seats, 1 + i * 3)
            self.add_person(n, branch, seat_number=seat)
        logger.info(f"[{branch}] 시드 데이터 {len(names)}명 추가")
