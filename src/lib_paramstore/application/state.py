"""Process-held store state shared by ``read`` and the poll loop.

Purpose
-------
Own the last-known snapshot and the transient pagination cursor behind one
re-entrant lock so a ``read`` call racing an active watch loop can never
interleave pages or observe a half-committed snapshot.

Contents
--------
* :class:`StoreState` – lock, snapshot, cursor, and the swap primitive used by
  the poller.

System Role
-----------
Created empty by :class:`lib_paramstore.core.ParamStoreProvider`, passed to
:func:`lib_paramstore.application.snapshot.fetch_snapshot` (which mirrors the
cursor into it) and to :class:`lib_paramstore.application.poller.Poller`.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from ..domain.parameters import EMPTY_SNAPSHOT, Snapshot


class StoreState:
    """Last-known snapshot plus pagination cursor, guarded by a re-entrant lock.

    Why
    ----
    The snapshot is replaced wholesale after every successful pass and never
    partially updated; the cursor only lives for the duration of one pass.

    Examples
    --------
    >>> from lib_paramstore.domain.parameters import ParameterRecord
    >>> state = StoreState()
    >>> state.snapshot
    ()
    >>> record = ParameterRecord(name="a", value="1", identity="id-a", version=1)
    >>> state.swap((record,))
    ()
    >>> len(state.snapshot)
    1
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._snapshot: Snapshot = EMPTY_SNAPSHOT
        self._cursor: str | None = None

    @contextmanager
    def locked(self) -> Iterator[StoreState]:
        """Hold the state lock for the duration of a full fetch-and-commit pass."""

        with self._lock:
            yield self

    @property
    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    @property
    def cursor(self) -> str | None:
        with self._lock:
            return self._cursor

    def advance(self, token: str | None) -> None:
        """Record the continuation token of the page just fetched."""

        with self._lock:
            self._cursor = token

    def reset_cursor(self) -> None:
        with self._lock:
            self._cursor = None

    def replace(self, snapshot: Snapshot) -> None:
        """Commit *snapshot* as the new diff base."""

        with self._lock:
            self._snapshot = tuple(snapshot)

    def swap(self, snapshot: Snapshot) -> Snapshot:
        """Commit *snapshot* and return the one it replaced, atomically."""

        with self._lock:
            previous = self._snapshot
            self._snapshot = tuple(snapshot)
            return previous
