"""Background poll loop driving fetch → diff → callback on an interval.

Purpose
-------
Run one tick per interval on a daemon thread, commit each successful snapshot
to store state, and forward drift (or fetch failures) to the caller's
callback. The loop waits on a :class:`threading.Event`, so :meth:`Poller.stop`
wakes and terminates it deterministically.

Contents
    - ``PollerState``: ``idle`` → ``running`` → ``stopped`` lifecycle.
    - ``Poller``: the loop, its single-cycle ``tick``, and ``start``/``stop``.

System Role
-----------
Created by :meth:`lib_paramstore.core.ParamStoreProvider.watch`. Ticks of one
poller never overlap because the loop runs each tick to completion before it
waits again; store state is shared with ``read`` through its lock.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable

from ..domain.errors import ParamStoreError
from ..domain.parameters import ChangeEvent, Snapshot
from ..observability import bind_trace_id, log_debug, log_error, log_info, new_trace_id
from .changes import detect_changes
from .ports import WatchCallback
from .state import StoreState


class PollerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Poller:
    """Timer-driven loop comparing successive snapshots.

    Why
    ----
    Polling detects *drift*: a tick only reports records whose identity was
    already known with another version. Failures are delivered as
    ``(None, error)`` and the loop carries on with the next interval, which is
    the provider's only self-healing mechanism.

    Parameters
    ----------
    fetch:
        Zero-argument callable returning a full snapshot (usually a bound
        :func:`~lib_paramstore.application.snapshot.fetch_snapshot`).
    state:
        Store state holding the diff base; shared with ``read``.
    callback:
        Receives ``(event, None)`` or ``(None, error)``.
    interval:
        Seconds to wait before each tick.
    path:
        Parameter path, used for log context only.

    Examples
    --------
    >>> from lib_paramstore.testing import InMemoryParameterStore
    >>> from lib_paramstore.application.snapshot import fetch_snapshot
    >>> store = InMemoryParameterStore()
    >>> _ = store.put("/app/a", "1")
    >>> state = StoreState()
    >>> events = []
    >>> poller = Poller(
    ...     lambda: fetch_snapshot(store, "/app", with_decryption=False),
    ...     state,
    ...     lambda event, error: events.append(event),
    ...     interval=60,
    ... )
    >>> poller.tick()
    ()
    >>> _ = store.put("/app/a", "2")
    >>> [record.version for record in poller.tick()]
    [2]
    >>> len(events)
    1
    """

    def __init__(
        self,
        fetch: Callable[[], Snapshot],
        state: StoreState,
        callback: WatchCallback,
        *,
        interval: float,
        path: str | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self._fetch = fetch
        self._state = state
        self._callback = callback
        self.interval = interval
        self.path = path
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._status = PollerState.IDLE
        self._status_lock = threading.Lock()

    @property
    def status(self) -> PollerState:
        return self._status

    @property
    def running(self) -> bool:
        return self._status is PollerState.RUNNING

    def start(self) -> None:
        """Launch the daemon thread and return immediately.

        Raises
        ------
        RuntimeError
            When the poller was already started.
        """

        if self._status is not PollerState.IDLE:
            raise RuntimeError(f"poller already {self._status.value}")
        self._thread = threading.Thread(
            target=self._run,
            name=f"lib_paramstore-poller[{self.path}]",
            daemon=True,
        )
        self._status = PollerState.RUNNING
        self._thread.start()
        log_info("watch_started", operation="watch", path=self.path, interval=self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit and wait up to *timeout* seconds for it.

        Safe to call repeatedly, before :meth:`start`, or from inside the
        callback (the poll thread does not join itself). The status only turns
        ``stopped`` once the thread has exited; after a timed-out join it stays
        ``running`` until the in-flight tick finishes.
        """

        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is None or not thread.is_alive():
            self._mark_stopped()

    def join(self, timeout: float | None = None) -> bool:
        """Block until the loop ends or *timeout* elapses; return ``True`` if it ended."""

        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def tick(self) -> ChangeEvent:
        """Run one fetch → swap → diff → callback cycle and return the change event.

        An empty tuple is returned (and the callback is not invoked) when
        nothing drifted. A failed fetch leaves store state untouched.
        """

        new_trace_id()
        try:
            try:
                with self._state.locked():
                    current = self._fetch()
                    previous = self._state.swap(current)
            except ParamStoreError as exc:
                log_error("tick_failed", operation="tick", path=self.path, error=str(exc))
                self._notify(None, exc)
                return ()

            changes = detect_changes(previous, current)
            log_debug("tick_completed", operation="tick", path=self.path, records=len(current), changes=len(changes))
            if changes:
                log_info("changes_detected", operation="tick", path=self.path, names=[record.name for record in changes])
                self._notify(changes, None)
            return changes
        finally:
            bind_trace_id(None)

    def _run(self) -> None:
        try:
            while not self._stop_event.wait(self.interval):
                try:
                    self.tick()
                except Exception as exc:  # noqa: BLE001 - the loop outlives any single tick
                    log_error("tick_crashed", operation="tick", path=self.path, error=str(exc), error_type=type(exc).__name__)
        finally:
            self._mark_stopped()

    def _mark_stopped(self) -> None:
        with self._status_lock:
            if self._status is PollerState.STOPPED:
                return
            self._status = PollerState.STOPPED
        log_info("watch_stopped", operation="watch", path=self.path)

    def _notify(self, event: ChangeEvent | None, error: ParamStoreError | None) -> None:
        try:
            self._callback(event, error)
        except Exception as exc:  # noqa: BLE001 - caller code must not kill the loop
            log_error("callback_failed", operation="tick", path=self.path, error=str(exc), error_type=type(exc).__name__)
