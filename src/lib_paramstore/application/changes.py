"""Change detector: version drift between two snapshots.

Purpose
-------
Compute which parameters changed between the previous and the current
snapshot. Only drift on an already-known identity counts; creations and
deletions are not reported, so the first tick against an empty baseline never
reports anything.

Contents
    - ``detect_changes``: public entry point.
    - ``_index_versions``: identity → versions lookup built from the baseline.

System Role
-----------
Called by :class:`lib_paramstore.application.poller.Poller` after every
successful fetch; free of I/O so it can be property-tested in isolation.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.parameters import ChangeEvent, ParameterRecord, Snapshot


def detect_changes(previous: Snapshot, current: Snapshot) -> ChangeEvent:
    """Return records of *current* whose identity is in *previous* with another version.

    What
    ----
    Identity matching is exact string equality; versions are compared with
    ``!=`` on their raw representation. Records keep the order of *current*.
    The lookup index gives the same result as scanning *previous* for every
    record: a baseline holding the same identity twice contributes once per
    differing version.

    Examples
    --------
    >>> a1 = ParameterRecord(name="a", value="1", identity="A", version=1)
    >>> b1 = ParameterRecord(name="b", value="1", identity="B", version=1)
    >>> c1 = ParameterRecord(name="c", value="1", identity="C", version=1)
    >>> a2 = a1.with_version(2, value="2")
    >>> [r.name for r in detect_changes((a1, b1), (a2, b1, c1))]
    ['a']
    >>> detect_changes((), (a2, b1))
    ()
    >>> detect_changes((a1, b1), (a1, b1))
    ()
    """

    if not previous:
        return ()
    known = _index_versions(previous)
    changed: list[ParameterRecord] = []
    for record in current:
        for version in known.get(record.identity, ()):
            if version != record.version:
                changed.append(record)
    return tuple(changed)


def _index_versions(records: Iterable[ParameterRecord]) -> dict[str, list[object]]:
    """Map each identity to the versions it carries in *records*."""

    index: dict[str, list[object]] = {}
    for record in records:
        index.setdefault(record.identity, []).append(record.version)
    return index
