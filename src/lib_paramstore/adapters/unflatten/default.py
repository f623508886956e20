"""Delimiter-driven unflatten adapter.

Purpose
-------
Implement the :class:`lib_paramstore.application.ports.Unflattener` port by
splitting flat keys on a delimiter and assigning values into nested
dictionaries.

Key behaviours
--------------
* Keys are split verbatim; no case folding (parameter names are
  case-sensitive).
* A leading delimiter produces an empty first segment
  (``/app/x`` → ``{"": {"app": {"x": ...}}}``); strip prefixes with a key
  transform when that is undesired.
* An empty delimiter keeps every key whole.
* When a key is both a leaf and a branch (``db`` next to ``db/host``) the
  branch wins and the scalar is dropped, whatever the input order.
"""

from __future__ import annotations

from collections.abc import Mapping

from ...observability import log_debug


def unflatten(flat: Mapping[str, object], delimiter: str) -> dict[str, object]:
    """Return a nested mapping built from *flat* by splitting keys on *delimiter*.

    Examples
    --------
    >>> unflatten({"db/host": "localhost", "db/port": "5432", "debug": "true"}, "/")
    {'db': {'host': 'localhost', 'port': '5432'}, 'debug': 'true'}
    >>> unflatten({"a.b": "1"}, "")
    {'a.b': '1'}
    >>> unflatten({"db": "x", "db/host": "y"}, "/")
    {'db': {'host': 'y'}}
    """

    nested: dict[str, object] = {}
    for key, value in flat.items():
        assign_nested(nested, key, value, delimiter)
    return nested


def assign_nested(target: dict[str, object], key: str, value: object, delimiter: str) -> None:
    """Assign ``value`` inside ``target`` using *delimiter* as a nesting separator.

    Examples
    --------
    >>> data: dict[str, object] = {}
    >>> assign_nested(data, 'service/timeout', '5', '/')
    >>> data
    {'service': {'timeout': '5'}}
    >>> assign_nested(data, 'service', 'flat', '/')
    >>> data
    {'service': {'timeout': '5'}}
    """

    parts = key.split(delimiter) if delimiter else [key]
    cursor = target
    for part in parts[:-1]:
        cursor = _ensure_child_mapping(cursor, part, key=key)
    leaf = parts[-1]
    if isinstance(cursor.get(leaf), dict):
        log_debug("scalar_shadowed", key=key, reason="branch already present")
        return
    cursor[leaf] = value


def _ensure_child_mapping(mapping: dict[str, object], part: str, *, key: str) -> dict[str, object]:
    """Return ``mapping[part]`` as a ``dict``, replacing a scalar that sits there."""

    child = mapping.get(part)
    if isinstance(child, dict):
        return child
    if part in mapping:
        log_debug("scalar_shadowed", key=key, segment=part, reason="replaced by branch")
    child = {}
    mapping[part] = child
    return child
