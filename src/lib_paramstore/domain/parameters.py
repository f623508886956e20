"""Domain-level parameter value objects.

Purpose
-------
Anchor the immutable records that flow from the store adapters through the
snapshot fetcher, the change detector, and the watch callback. This module
belongs to the domain layer and contains no I/O.

Contents
--------
* :class:`ParameterRecord` – one parameter as returned by the store.
* :class:`ParameterPage` – one page of records plus the continuation token.
* :data:`Snapshot` / :data:`ChangeEvent` – tuple aliases naming their role.
* :class:`ProviderSettings` – provider configuration resolved once at
  construction.
* :data:`DEFAULT_DELIMITER` / :data:`DEFAULT_WATCH_INTERVAL` – defaults applied
  by :class:`ProviderSettings`.

System Role
-----------
Every snapshot held in :class:`lib_paramstore.application.state.StoreState`
is a tuple of :class:`ParameterRecord`; every change event delivered to a
watch callback is a non-empty tuple of the same type.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Final, Tuple

from .errors import ConfigurationError

DEFAULT_DELIMITER: Final[str] = "/"
"""Delimiter used for unflattening when none is configured."""

DEFAULT_WATCH_INTERVAL: Final[float] = 600.0
"""Polling interval in seconds used when none (or zero) is configured."""


@dataclass(frozen=True, slots=True)
class ParameterRecord:
    """A single parameter as observed in one snapshot.

    Why
    ----
    The change detector needs a stable identity that survives renames and a
    version that the store bumps on every write; the materializer only needs
    ``name`` and ``value``.

    Attributes
    ----------
    name:
        Hierarchical, delimiter-separated parameter name.
    value:
        Parameter value (decrypted when requested and permitted).
    identity:
        Opaque identifier stable across versions (the ARN for SSM).
    version:
        Store-assigned version, strictly increasing on mutation.
    type:
        Store-specific value type (``String``, ``SecureString`` ...), if known.
    last_modified:
        Timestamp of the last write, if the store reports one.

    Examples
    --------
    >>> record = ParameterRecord(name="/app/db/host", value="localhost", identity="arn:1", version=3)
    >>> record.with_version(4).version
    4
    >>> record.version
    3
    """

    name: str
    value: str
    identity: str
    version: int
    type: str | None = None
    last_modified: datetime | None = None

    def with_version(self, version: int, *, value: str | None = None) -> ParameterRecord:
        """Return a copy carrying *version* (and optionally a new *value*)."""

        return replace(self, version=version, value=self.value if value is None else value)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dictionary view of the record.

        Examples
        --------
        >>> ParameterRecord(name="a", value="1", identity="id-a", version=1).as_dict()
        {'name': 'a', 'value': '1', 'identity': 'id-a', 'version': 1, 'type': None, 'last_modified': None}
        """

        return {
            "name": self.name,
            "value": self.value,
            "identity": self.identity,
            "version": self.version,
            "type": self.type,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }


@dataclass(frozen=True, slots=True)
class ParameterPage:
    """One page returned by a :class:`~lib_paramstore.application.ports.PageFetcher`.

    ``next_token`` is ``None`` (or empty) on the final page.
    """

    records: Tuple[ParameterRecord, ...]
    next_token: str | None = None


Snapshot = Tuple[ParameterRecord, ...]
"""Records retrieved in one full pagination pass, in retrieval order."""

ChangeEvent = Tuple[ParameterRecord, ...]
"""Records whose identity persisted across two snapshots but whose version changed."""


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    """Configuration resolved once when a provider is constructed.

    Why
    ----
    Gathers the provider knobs (path, delimiter, decryption, credentials,
    region, polling interval) into one immutable object so the
    composition root, CLI, and environment adapter agree on defaults.

    What
    ----
    ``__post_init__`` normalises an empty delimiter to ``/`` and a missing or
    zero interval to 600 seconds. Negative intervals raise
    :class:`ConfigurationError`. The path is *not* validated here: an empty
    path only fails when ``read``/``watch`` is called, before any network call.

    Examples
    --------
    >>> settings = ProviderSettings(path="/app", delimiter="", watch_interval=0)
    >>> settings.delimiter, settings.watch_interval
    ('/', 600.0)
    """

    path: str = ""
    delimiter: str = DEFAULT_DELIMITER
    with_decryption: bool = False
    recursive: bool = False
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_role_arn: str | None = None
    aws_region: str | None = None
    watch_interval: float = DEFAULT_WATCH_INTERVAL

    def __post_init__(self) -> None:
        if not self.delimiter:
            object.__setattr__(self, "delimiter", DEFAULT_DELIMITER)
        interval = self.watch_interval
        if not interval:
            interval = DEFAULT_WATCH_INTERVAL
        if interval < 0:
            raise ConfigurationError(f"watch_interval must be positive, got {self.watch_interval!r}")
        object.__setattr__(self, "watch_interval", float(interval))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ProviderSettings:
        """Build settings from *values*, ignoring keys that are not settings fields.

        Examples
        --------
        >>> ProviderSettings.from_mapping({"path": "/svc", "unrelated": 1}).path
        '/svc'
        """

        known = {field.name for field in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    def has_static_credentials(self) -> bool:
        """Return ``True`` when both access key id and secret key are configured."""

        return bool(self.aws_access_key_id and self.aws_secret_access_key)


EMPTY_SNAPSHOT: Snapshot = ()
"""Store state before the first successful fetch."""
