"""Poll-loop behaviour: drift notifications, failure isolation, and shutdown."""

from __future__ import annotations

import threading

import pytest

from lib_paramstore.application.poller import Poller, PollerState
from lib_paramstore.application.snapshot import fetch_snapshot
from lib_paramstore.application.state import StoreState
from lib_paramstore.domain.errors import RetrievalError
from lib_paramstore.domain.parameters import ParameterPage
from lib_paramstore.observability import TRACE_ID
from lib_paramstore.testing import ScriptedPageFetcher


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[object, object]] = []
        self.fired = threading.Event()

    def __call__(self, event, error) -> None:
        self.calls.append((event, error))
        self.fired.set()


def _poller(fetcher, state: StoreState, callback, *, interval: float = 3600) -> Poller:
    return Poller(lambda: fetch_snapshot(fetcher, "/app", with_decryption=False, state=state), state, callback, interval=interval, path="/app")


def test_first_tick_on_empty_state_reports_nothing_then_drift_is_reported(record) -> None:
    s1 = ParameterPage((record("A", 1), record("B", 1)))
    s2 = ParameterPage((record("A", 2), record("B", 1), record("C", 1)))
    recorder = _Recorder()
    poller = _poller(ScriptedPageFetcher([s1, s2]), StoreState(), recorder)

    assert poller.tick() == ()
    assert recorder.calls == []
    assert poller.tick() == (record("A", 2),)
    assert recorder.calls == [((record("A", 2),), None)]


def test_failed_tick_reports_once_and_keeps_the_diff_base(record) -> None:
    s1 = ParameterPage((record("A", 1), record("B", 1)))
    s2 = ParameterPage((record("A", 2), record("B", 1)))
    failure = RetrievalError("throttled")
    state = StoreState()
    recorder = _Recorder()
    poller = _poller(ScriptedPageFetcher([s1, failure, s2]), state, recorder)

    poller.tick()
    baseline = state.snapshot
    assert poller.tick() == ()
    assert recorder.calls == [(None, failure)]
    assert state.snapshot == baseline

    assert poller.tick() == (record("A", 2),)
    assert recorder.calls[-1] == ((record("A", 2),), None)
    assert len(recorder.calls) == 2


def test_failed_page_mid_pass_commits_nothing(record) -> None:
    state = StoreState()
    state.replace((record("A", 1),))
    fetcher = ScriptedPageFetcher([ParameterPage((record("A", 2),), "t1"), RetrievalError("reset")])
    recorder = _Recorder()
    _poller(fetcher, state, recorder).tick()
    assert state.snapshot == (record("A", 1),)
    assert recorder.calls[0][0] is None


def test_callback_errors_do_not_escape_tick(record, caplog: pytest.LogCaptureFixture) -> None:
    state = StoreState()
    state.replace((record("A", 1),))

    def _explode(event, error) -> None:
        raise ValueError("consumer bug")

    poller = _poller(ScriptedPageFetcher([ParameterPage((record("A", 2),))]), state, _explode)
    caplog.set_level("ERROR", logger="lib_paramstore")
    assert poller.tick() == (record("A", 2),)
    assert any(entry.getMessage() == "callback_failed" for entry in caplog.records)


def test_background_loop_delivers_events_and_stops(record) -> None:
    state = StoreState()
    state.replace((record("A", 1),))
    fetcher = ScriptedPageFetcher([ParameterPage((record("A", 2),))])
    recorder = _Recorder()
    poller = _poller(fetcher, state, recorder, interval=0.01)

    assert poller.status is PollerState.IDLE
    poller.start()
    assert poller.running
    try:
        assert recorder.fired.wait(5)
    finally:
        poller.stop(timeout=5)
    assert poller.status is PollerState.STOPPED
    assert poller.join(0)
    assert recorder.calls[0] == ((record("A", 2),), None)


def test_loop_survives_repeated_failures(record) -> None:
    errors = [RetrievalError(f"fail {n}") for n in range(3)]
    fetcher = ScriptedPageFetcher(errors)
    seen = threading.Event()
    calls: list[object] = []

    def _callback(event, error) -> None:
        calls.append(error)
        if len(calls) >= 4:
            seen.set()

    poller = _poller(fetcher, StoreState(), _callback, interval=0.01)
    poller.start()
    try:
        # three scripted failures, then the exhausted script keeps failing as RetrievalError
        assert seen.wait(5)
    finally:
        poller.stop(timeout=5)
    assert calls[:3] == errors
    assert all(isinstance(error, RetrievalError) for error in calls)


def test_stop_wakes_a_long_interval_promptly() -> None:
    poller = _poller(ScriptedPageFetcher([]), StoreState(), _Recorder(), interval=3600)
    poller.start()
    poller.stop(timeout=5)
    assert poller.join(0)


def test_start_twice_is_rejected() -> None:
    poller = _poller(ScriptedPageFetcher([]), StoreState(), _Recorder())
    poller.start()
    try:
        with pytest.raises(RuntimeError):
            poller.start()
    finally:
        poller.stop(timeout=5)


def test_stop_from_inside_the_callback(record) -> None:
    state = StoreState()
    state.replace((record("A", 1),))
    done = threading.Event()
    holder: dict[str, Poller] = {}

    def _callback(event, error) -> None:
        holder["poller"].stop()
        done.set()

    poller = _poller(ScriptedPageFetcher([ParameterPage((record("A", 2),))]), state, _callback, interval=0.01)
    holder["poller"] = poller
    poller.start()
    assert done.wait(5)
    assert poller.join(5)
    assert poller.status is PollerState.STOPPED


def test_non_positive_interval_rejected() -> None:
    with pytest.raises(ValueError):
        Poller(lambda: (), StoreState(), _Recorder(), interval=0)


def test_tick_logs_carry_one_trace_id(record, caplog: pytest.LogCaptureFixture) -> None:
    state = StoreState()
    state.replace((record("A", 1),))
    poller = _poller(ScriptedPageFetcher([ParameterPage((record("A", 2),))]), state, _Recorder())
    caplog.set_level("DEBUG", logger="lib_paramstore")

    poller.tick()

    contexts = {
        entry.getMessage(): getattr(entry, "context")
        for entry in caplog.records
        if entry.getMessage() in {"snapshot_fetched", "tick_completed", "changes_detected"}
    }
    assert set(contexts) == {"snapshot_fetched", "tick_completed", "changes_detected"}
    trace_ids = {context["trace_id"] for context in contexts.values()}
    assert len(trace_ids) == 1 and None not in trace_ids
    assert TRACE_ID.get() is None


def test_status_stays_running_while_a_tick_outlives_stop() -> None:
    entered = threading.Event()
    release = threading.Event()

    def _slow_fetch():
        entered.set()
        release.wait(5)
        return ()

    poller = Poller(_slow_fetch, StoreState(), _Recorder(), interval=0.01, path="/app")
    poller.start()
    try:
        assert entered.wait(5)
        poller.stop(timeout=0.05)
        assert poller.status is PollerState.RUNNING
    finally:
        release.set()
    assert poller.join(5)
    assert poller.status is PollerState.STOPPED
