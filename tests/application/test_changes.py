"""Property tests for version-drift detection between two snapshots."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_paramstore.application.changes import detect_changes
from lib_paramstore.domain.parameters import ParameterRecord

IDENTITIES = st.sampled_from(["A", "B", "C", "D", "E", "F"])
VERSIONS = st.integers(min_value=1, max_value=4)


@st.composite
def snapshots(draw, *, min_size: int = 0):
    """Snapshots with unique identities, as a store would return them."""

    entries = draw(st.dictionaries(IDENTITIES, VERSIONS, min_size=min_size, max_size=6))
    return tuple(
        ParameterRecord(name=f"/app/{identity.lower()}", value=str(version), identity=identity, version=version)
        for identity, version in entries.items()
    )


def test_only_version_drift_on_known_identity_is_reported(record) -> None:
    previous = (record("A", 1), record("B", 1))
    current = (record("A", 2), record("B", 1), record("C", 1))
    assert detect_changes(previous, current) == (record("A", 2),)


def test_deleted_parameters_are_not_reported(record) -> None:
    assert detect_changes((record("A", 1), record("B", 1)), (record("A", 1),)) == ()


def test_rename_with_same_identity_counts_as_change_only_on_version_bump(record) -> None:
    renamed = record("A", 1, name="/app/renamed")
    assert detect_changes((record("A", 1),), (renamed,)) == ()
    assert detect_changes((record("A", 1),), (renamed.with_version(2),)) == (renamed.with_version(2),)


def test_identity_match_is_exact(record) -> None:
    assert detect_changes((record("a", 1),), (record("A", 2),)) == ()


def test_order_follows_current_snapshot(record) -> None:
    previous = (record("A", 1), record("B", 1))
    current = (record("B", 2), record("A", 2))
    assert [r.identity for r in detect_changes(previous, current)] == ["B", "A"]


def test_duplicate_baseline_identities_behave_like_a_full_scan(record) -> None:
    previous = (record("A", 1), record("A", 2))
    assert detect_changes(previous, (record("A", 3),)) == (record("A", 3), record("A", 3))
    assert detect_changes(previous, (record("A", 2),)) == (record("A", 2),)


@given(snapshots(min_size=1), snapshots())
def test_result_is_exactly_the_drifted_known_records(previous, current) -> None:
    known = {r.identity: r.version for r in previous}
    expected = tuple(r for r in current if r.identity in known and known[r.identity] != r.version)
    changes = detect_changes(previous, current)
    assert changes == expected
    assert all(r.identity in known for r in changes)


@given(snapshots())
def test_empty_baseline_reports_nothing(current) -> None:
    assert detect_changes((), current) == ()


@given(snapshots())
def test_comparing_a_snapshot_to_itself_reports_nothing(snapshot) -> None:
    assert detect_changes(snapshot, snapshot) == ()
