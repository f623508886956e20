"""Key transform and flat-mapping materializer.

Purpose
-------
Turn a snapshot into the flat ``{key: value}`` mapping handed to the
unflattener, applying the caller's optional key transform on the way.

Contents
    - ``materialize``: public entry point.
    - ``strip_prefix``: ready-made transform removing the configured path.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.errors import EmptyKeyError
from ..domain.parameters import ParameterRecord
from .ports import KeyTransform


def materialize(records: Iterable[ParameterRecord], *, transform: KeyTransform | None = None) -> dict[str, str]:
    """Return ``{transformed name: value}`` for *records* in order.

    Duplicate keys overwrite silently so the last record wins. An empty key
    aborts the whole call with :class:`EmptyKeyError`; no partial mapping is
    returned.

    Examples
    --------
    >>> records = [
    ...     ParameterRecord(name="/app/db/host", value="localhost", identity="a", version=1),
    ...     ParameterRecord(name="/app/db/port", value="5432", identity="b", version=1),
    ... ]
    >>> materialize(records, transform=strip_prefix("/app/"))
    {'db/host': 'localhost', 'db/port': '5432'}
    >>> materialize(records, transform=lambda name: "")
    Traceback (most recent call last):
    ...
    lib_paramstore.domain.errors.EmptyKeyError: transformed key is empty for parameter /app/db/host
    """

    flat: dict[str, str] = {}
    for record in records:
        key = transform(record.name) if transform is not None else record.name
        if key == "":
            raise EmptyKeyError(f"transformed key is empty for parameter {record.name}")
        flat[key] = record.value
    return flat


def strip_prefix(prefix: str) -> KeyTransform:
    """Build a transform that drops *prefix* from parameter names.

    Names outside *prefix* pass through unchanged.

    Examples
    --------
    >>> strip_prefix("/app/")("/app/db/host")
    'db/host'
    >>> strip_prefix("/app/")("/other/key")
    '/other/key'
    """

    def _transform(name: str) -> str:
        return name[len(prefix) :] if name.startswith(prefix) else name

    return _transform
