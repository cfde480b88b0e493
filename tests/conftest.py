from __future__ import annotations

from datetime import date

import pytest

from attendance_board.data.repo import Repo
from attendance_board.exceptions import TransientRemoteError
from attendance_board.logic.attendance_state import AttendanceState
from attendance_board.utils.date_helper import day_window

BRANCH = "망미점"
DAY = date(2025, 3, 14)


class FakeTimer:
    """수동으로 만료시키는 타이머."""

    def __init__(self):
        self.callback = None
        self.ms = None

    def start(self, ms, callback):
        self.ms = ms
        self.callback = callback

    def stop(self):
        self.callback = None

    @property
    def running(self) -> bool:
        return self.callback is not None

    def fire(self):
        cb, self.callback = self.callback, None
        if cb:
            cb()


class FlakyStore:
    """실제 Repo를 감싸고 지정한 메서드만 실패시킨다."""

    def __init__(self, inner):
        self.inner = inner
        self.failing = set()
        self.calls = []

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if not callable(attr):
            return attr

        def wrapper(*args, **kwargs):
            self.calls.append(name)
            if name in self.failing:
                raise TransientRemoteError(f"{name} 실패(테스트)")
            return attr(*args, **kwargs)

        return wrapper


class Recorder:
    """AttendanceState 콜백 기록."""

    def __init__(self):
        self.changed = []
        self.notices = []

    def on_changed(self, keys):
        self.changed.append(keys)

    def on_notice(self, notice):
        self.notices.append(notice)

    @property
    def notice_kinds(self):
        return [n.kind for n in self.notices]


@pytest.fixture
def repo():
    r = Repo(":memory:")
    yield r
    r.close()


@pytest.fixture
def people(repo):
    """좌석 1: 홍길동, 좌석 3: 김철수, 미배정: 이영희."""
    return {
        "hong": repo.add_person("홍길동", BRANCH, seat_number=1, person_id="hong"),
        "kim": repo.add_person("김철수", BRANCH, seat_number=3, person_id="kim"),
        "lee": repo.add_person("이영희", BRANCH, seat_number=None, person_id="lee"),
    }


@pytest.fixture
def store(repo, people):
    return FlakyStore(repo)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def state(store, recorder):
    st = AttendanceState(store, on_changed=recorder.on_changed, on_notice=recorder.on_notice)
    st.set_placeholders({"empty_2"})
    st.load(day_window(DAY))
    recorder.changed.clear()
    return st


@pytest.fixture
def fake_timer():
    return FakeTimer()
