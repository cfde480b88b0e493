from __future__ import annotations

from datetime import date, timedelta

import pytest

from attendance_board.exceptions import InitialLoadError, ValidationError
from attendance_board.logic.attendance_state import AttendanceState, NoticeKind
from attendance_board.logic.cell_renderer import Palette, render
from attendance_board.models.attendance import (
    PERIODS, AttendanceKey, StatusLabel, VacationPayload, VacationType
)
from attendance_board.utils.date_helper import day_window

from conftest import DAY


def _visual(state, pid, day, period):
    return render(state.record_at(pid, day, period), state.vacation_at(pid, day), period, False)


class DeferredDispatcher:
    """제출된 작업을 모아 두었다가 run_all()에서 순서대로 실행."""

    def __init__(self):
        self.pending = []

    def submit(self, job, on_success=None, on_failure=None):
        self.pending.append((job, on_success, on_failure))

    def step(self):
        """대기 중인 작업 하나만 실행(콜백 포함)."""
        job, ok, fail = self.pending.pop(0)
        try:
            result = job()
        except Exception as e:
            if fail:
                fail(e)
            return
        if ok:
            ok(result)

    def run_all(self):
        while self.pending:
            self.step()


# ---------------- 로딩 ----------------
def test_load_reads_window_snapshot(repo, people, recorder):
    repo.upsert_attendance("hong", DAY, 1, None)
    repo.upsert_attendance("hong", DAY + timedelta(days=1), 1, None)   # 구간 밖
    st = AttendanceState(repo, on_changed=recorder.on_changed)
    st.load(day_window(DAY))
    assert st.has_record("hong", DAY, 1)
    assert len(st.records()) == 1
    assert recorder.changed == [None]


def test_initial_load_failure_raises(store, recorder):
    store.failing.add("query_attendance")
    st = AttendanceState(store, on_changed=recorder.on_changed)
    with pytest.raises(InitialLoadError):
        st.load(day_window(DAY))
    assert st.window is None
    assert recorder.changed == []


# ---------------- toggle ----------------
def test_scenario_a_toggle_present_then_absent(state, repo):
    state.toggle("hong", DAY, 3)
    assert _visual(state, "hong", DAY, 3).palette == Palette.PRESENT
    assert _visual(state, "hong", DAY, 3).label == "O"
    assert [r.period for r in repo.query_attendance(day_window(DAY))] == [3]

    state.toggle("hong", DAY, 3)
    assert _visual(state, "hong", DAY, 3).palette == Palette.ABSENT
    assert repo.query_attendance(day_window(DAY)) == []


@pytest.mark.parametrize("period", PERIODS)
def test_toggle_twice_is_involution(state, period):
    before = state.has_record("kim", DAY, period)
    state.toggle("kim", DAY, period)
    state.toggle("kim", DAY, period)
    assert state.has_record("kim", DAY, period) == before


def test_toggle_removes_annotated_record(state):
    state.set_status("hong", DAY, 2, StatusLabel.HOSPITAL)
    state.toggle("hong", DAY, 2)
    assert not state.has_record("hong", DAY, 2)


def test_toggle_emits_only_changed_key(state, recorder):
    state.toggle("hong", DAY, 5)
    assert recorder.changed == [{AttendanceKey("hong", DAY, 5)}]


# ---------------- set_status ----------------
def test_scenario_b_late_on_absent_cell(state, repo):
    state.set_status("hong", DAY, 3, "late")
    rec = state.record_at("hong", DAY, 3)
    assert rec.present and rec.status_label == StatusLabel.LATE
    assert _visual(state, "hong", DAY, 3).label == "지각"
    assert repo.query_attendance(day_window(DAY))[0].status_label == StatusLabel.LATE


@pytest.mark.parametrize("label", [StatusLabel.LATE, StatusLabel.STUDY, None, StatusLabel.ABSENT,
                                   StatusLabel.VACATION_FULL, StatusLabel.VACATION_HALF_PM])
def test_set_status_is_idempotent(state, label):
    state.set_status("kim", DAY, 4, label)
    once = (state.records(), set(state.overlay))
    state.set_status("kim", DAY, 4, label)
    assert (state.records(), set(state.overlay)) == once


def test_clear_status_keeps_presence(state):
    state.set_status("hong", DAY, 1, StatusLabel.ERRAND)
    state.set_status("hong", DAY, 1, None)
    rec = state.record_at("hong", DAY, 1)
    assert rec is not None and rec.status_label is None


def test_absent_deletes_record(state, repo):
    state.toggle("hong", DAY, 6)
    state.set_status("hong", DAY, 6, StatusLabel.ABSENT)
    assert not state.has_record("hong", DAY, 6)
    assert repo.query_attendance(day_window(DAY)) == []


def test_vacation_coexists_with_attendance(state, repo):
    state.toggle("hong", DAY, 6)
    state.set_status("hong", DAY, 6, StatusLabel.VACATION_HALF_PM, reason="병원")
    assert state.has_record("hong", DAY, 6)
    entry = state.vacation_at("hong", DAY)
    assert entry.type == VacationType.HALF and entry.half_periods == frozenset({5, 6, 7})
    stored = repo.query_vacations(day_window(DAY))
    assert len(stored) == 1 and stored[0].reason == "병원"


def test_vacation_emits_whole_day(state, recorder):
    state.set_status("kim", DAY, 1, StatusLabel.VACATION_FULL)
    assert recorder.changed[-1] == {AttendanceKey("kim", DAY, p) for p in PERIODS}


def test_scenario_c_full_day_vacation_overrides_presence(state):
    for p in PERIODS:
        state.toggle("hong", DAY, p)
    state.set_status("hong", DAY, 1, StatusLabel.VACATION_FULL)
    for p in PERIODS:
        v = _visual(state, "hong", DAY, p)
        assert v.palette == Palette.VACATION
        assert v.label == "월차"


def test_vacation_cancel_removes_entry(state, repo, recorder):
    state.set_status("hong", DAY, 2, StatusLabel.VACATION_HALF_AM)
    state.set_status("hong", DAY, 2, StatusLabel.VACATION_CANCEL)
    assert state.vacation_at("hong", DAY) is None
    assert repo.query_vacations(day_window(DAY)) == []
    assert NoticeKind.ALREADY_CLEAR not in recorder.notice_kinds


def test_scenario_d_cancel_without_vacation_is_already_clear(state, recorder):
    state.cancel_vacation("kim", DAY)
    assert recorder.notice_kinds == [NoticeKind.ALREADY_CLEAR]
    assert state.vacation_at("kim", DAY) is None


# ---------------- 검증 ----------------
@pytest.mark.parametrize("args", [
    ("hong", DAY, 0),
    ("hong", DAY, 8),
    ("", DAY, 1),
    ("empty_2", DAY, 1),
    ("hong", DAY + timedelta(days=3), 1),
])
def test_invalid_mutation_rejected_before_local_change(state, store, args):
    before = state.records()
    with pytest.raises(ValidationError):
        state.toggle(*args)
    assert state.records() == before
    assert "upsert_attendance" not in store.calls


def test_unknown_label_rejected(state):
    with pytest.raises(ValidationError):
        state.set_status("hong", DAY, 1, "sleeping")
    assert not state.has_record("hong", DAY, 1)


def test_unassigned_person_accepts_input(state):
    state.toggle("lee", DAY, 1)
    assert state.has_record("lee", DAY, 1)


# ---------------- 실패 → 재조회 ----------------
def test_write_failure_reconciles_to_store(state, store, repo, recorder):
    repo.upsert_attendance("kim", DAY, 2, StatusLabel.STUDY)   # 다른 사용자가 쓴 기록
    store.failing.add("upsert_attendance")

    state.toggle("hong", DAY, 1)

    assert recorder.notice_kinds == [NoticeKind.SYNC_FAILED, NoticeKind.RECONCILED]
    assert not state.has_record("hong", DAY, 1)
    assert state.record_at("kim", DAY, 2).status_label == StatusLabel.STUDY
    assert recorder.changed[-1] is None


def test_reconcile_failure_is_reported(state, store, recorder):
    store.failing.update({"delete_vacation", "query_attendance"})
    state.cancel_vacation("hong", DAY)
    assert recorder.notice_kinds == [NoticeKind.SYNC_FAILED, NoticeKind.RECONCILE_FAILED]


def test_reconcile_without_difference_is_silent(state, recorder):
    state.reconcile()
    assert recorder.notices == []


def test_stale_reconcile_result_is_ignored(repo, people, recorder):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(repo, dispatcher, recorder.on_changed, recorder.on_notice)
    st.load(day_window(DAY))
    st.reconcile()
    other = DAY + timedelta(days=1)
    repo.upsert_attendance("hong", other, 1, None)
    st.load(day_window(other))
    dispatcher.run_all()
    assert st.window == day_window(other)
    assert st.has_record("hong", other, 1)
    assert NoticeKind.RECONCILED not in recorder.notice_kinds


def test_optimistic_change_visible_before_write(repo, people):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(repo, dispatcher)
    st.load(day_window(DAY))
    st.toggle("hong", DAY, 1)
    assert st.has_record("hong", DAY, 1)
    assert repo.query_attendance(day_window(DAY)) == []
    dispatcher.run_all()
    assert len(repo.query_attendance(day_window(DAY))) == 1


def test_payload_rejects_non_vacation_label():
    with pytest.raises(ValidationError):
        VacationPayload.for_label(StatusLabel.LATE)


def test_month_window_allows_any_day_inside(repo, people):
    from attendance_board.utils.date_helper import month_window
    st = AttendanceState(repo)
    st.load(month_window(2025, 3))
    st.toggle("hong", date(2025, 3, 31), 7)
    assert st.has_record("hong", date(2025, 3, 31), 7)


# ---------------- 쓰기 순서와 재조회/로딩 ----------------
def test_reconcile_does_not_drop_write_queued_behind_it(store, recorder):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(store, dispatcher, recorder.on_changed, recorder.on_notice)
    st.load(day_window(DAY))
    store.failing.add("upsert_attendance")

    st.toggle("hong", DAY, 1)
    dispatcher.step()                      # 쓰기 실패 → 재조회 제출
    store.failing.clear()
    st.toggle("kim", DAY, 2)               # 재조회 뒤에 쌓인 쓰기
    dispatcher.step()                      # 재조회 결과는 kim 쓰기 이전 상태
    assert st.has_record("kim", DAY, 2)
    dispatcher.run_all()

    assert store.inner.query_attendance(day_window(DAY))[0].person_id == "kim"
    assert st.has_record("kim", DAY, 2)
    assert not st.has_record("hong", DAY, 1)


def test_async_load_runs_after_queued_writes(repo, people):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(repo, dispatcher)
    st.load(day_window(DAY))
    st.toggle("hong", DAY, 4)
    loaded = []
    st.load_async(day_window(DAY), on_loaded=loaded.append, extra=lambda: "roster")
    dispatcher.run_all()
    assert loaded == ["roster"]
    assert st.has_record("hong", DAY, 4)


def test_async_load_rereads_when_write_submitted_meanwhile(repo, people):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(repo, dispatcher)
    st.load(day_window(DAY))
    loaded = []
    st.load_async(day_window(DAY), on_loaded=loaded.append)
    st.toggle("kim", DAY, 7)
    dispatcher.run_all()
    assert loaded == [None]                # 첫 결과는 버려지고 한 번만 적용
    assert st.has_record("kim", DAY, 7)


def test_async_load_switches_window(repo, people):
    other = DAY + timedelta(days=1)
    repo.upsert_attendance("lee", other, 2, StatusLabel.OTHER)
    dispatcher = DeferredDispatcher()
    st = AttendanceState(repo, dispatcher)
    st.load(day_window(DAY))
    st.load_async(day_window(other))
    assert st.window == day_window(DAY)
    dispatcher.run_all()
    assert st.window == day_window(other)
    assert st.record_at("lee", other, 2).status_label == StatusLabel.OTHER


def test_async_load_failure_is_initial_load_error(store):
    dispatcher = DeferredDispatcher()
    st = AttendanceState(store, dispatcher)
    store.failing.add("query_vacations")
    errors = []
    st.load_async(day_window(DAY), on_failed=errors.append)
    dispatcher.run_all()
    assert len(errors) == 1 and isinstance(errors[0], InitialLoadError)
    assert st.window is None
