"""Composition root for ``lib_paramstore``.

Purpose
-------
Provide the provider object that wires the snapshot fetcher, key transform,
unflattener, change detector, and poller together around one lock-guarded
store state, plus factories that build it on top of a ``boto3`` SSM client.

Contents
--------
* :class:`ParamStoreProvider` – ``read`` / ``read_bytes`` / ``watch`` / ``stop``.
* :func:`provider` – builds the SSM client from settings (region, static
  credentials, role assumption) and returns a provider.
* :func:`provider_with_client` – wraps a caller-built SSM client.

System Role
-----------
This is the canonical place to adjust how operations compose. Adapters are
reached only through the ports declared in
:mod:`lib_paramstore.application.ports`.
"""

from __future__ import annotations

import threading
from typing import Any

from .adapters.ssm.default import SSMPageFetcher, build_ssm_client
from .adapters.unflatten.default import unflatten
from .application.materialize import materialize
from .application.poller import Poller
from .application.ports import KeyTransform, PageFetcher, Unflattener, WatchCallback
from .application.snapshot import fetch_snapshot
from .application.state import StoreState
from .domain.errors import ConfigurationError, UnsupportedOperationError
from .domain.parameters import ProviderSettings, Snapshot
from .observability import bind_trace_id, log_info, make_event, new_trace_id


class ParamStoreProvider:
    """Configuration provider backed by a paginated parameter store.

    Why
    ----
    Applications want the parameters under one path as a nested mapping, and
    optionally a notification whenever one of them is rewritten.

    What
    ----
    ``read`` performs a full pass, seeds store state, and returns a fresh
    nested ``dict``. ``watch`` starts a :class:`Poller` that diffs each new
    pass against the previous one. Store state is guarded by a lock so
    ``read`` may run while a watch loop is active.

    Parameters
    ----------
    settings:
        Provider settings.
    fetcher:
        Any :class:`~lib_paramstore.application.ports.PageFetcher`.
    transform:
        Optional key transform applied to every parameter name during ``read``.
    unflattener:
        Optional replacement for :func:`~lib_paramstore.adapters.unflatten.default.unflatten`.

    Examples
    --------
    >>> from lib_paramstore.testing import InMemoryParameterStore
    >>> store = InMemoryParameterStore()
    >>> _ = store.put("/app/db/host", "localhost")
    >>> _ = store.put("/app/db/port", "5432")
    >>> settings = ProviderSettings(path="/app", recursive=True)
    >>> provider = ParamStoreProvider(settings, store, transform=lambda name: name[len("/app/"):])
    >>> provider.read()
    {'db': {'host': 'localhost', 'port': '5432'}}
    """

    def __init__(
        self,
        settings: ProviderSettings,
        fetcher: PageFetcher,
        *,
        transform: KeyTransform | None = None,
        unflattener: Unflattener | None = None,
    ) -> None:
        self.settings = settings
        self._fetcher = fetcher
        self._transform = transform
        self._unflatten = unflattener or unflatten
        self._state = StoreState()
        self._pollers: list[Poller] = []
        self._pollers_lock = threading.Lock()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def pollers(self) -> tuple[Poller, ...]:
        with self._pollers_lock:
            return tuple(self._pollers)

    def read(self) -> dict[str, object]:
        """Fetch every parameter under the configured path as a nested mapping.

        Raises
        ------
        ConfigurationError
            When no path is configured (before any network call).
        RetrievalError
            When a page cannot be fetched; store state is left untouched.
        EmptyKeyError
            When the key transform yields ``""``; store state has already been
            seeded with the fetched snapshot.
        """

        self._require_path()
        new_trace_id()
        try:
            with self._state.locked():
                snapshot = self._fetch()
                self._state.replace(snapshot)
            flat = materialize(snapshot, transform=self._transform)
            nested = self._unflatten(flat, self.settings.delimiter)
            log_info("configuration_read", **make_event("read", self.settings.path, {"parameters": len(snapshot), "keys": len(flat)}))
            return nested
        finally:
            bind_trace_id(None)

    def read_bytes(self) -> bytes:
        """Always raise: this provider kind has no raw-document representation."""

        raise UnsupportedOperationError("paramstore provider does not support read_bytes")

    def watch(self, callback: WatchCallback) -> Poller:
        """Start polling in the background and return the running :class:`Poller`.

        The callback receives ``(event, None)`` whenever known parameters
        changed version and ``(None, error)`` when a tick failed; the loop
        keeps running either way until :meth:`stop` (or ``Poller.stop``).

        Raises
        ------
        ConfigurationError
            When no path is configured.
        """

        self._require_path()
        poller = Poller(
            self._fetch,
            self._state,
            callback,
            interval=self.settings.watch_interval,
            path=self.settings.path,
        )
        with self._pollers_lock:
            self._pollers.append(poller)
        poller.start()
        return poller

    def stop(self, timeout: float | None = None) -> None:
        """Stop every poller started by :meth:`watch` and wait for their threads."""

        with self._pollers_lock:
            pollers, self._pollers = self._pollers, []
        for poller in pollers:
            poller.stop(timeout)

    def __enter__(self) -> ParamStoreProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _fetch(self) -> Snapshot:
        return fetch_snapshot(
            self._fetcher,
            self.settings.path,
            with_decryption=self.settings.with_decryption,
            recursive=self.settings.recursive,
            state=self._state,
        )

    def _require_path(self) -> None:
        if not self.settings.path:
            raise ConfigurationError("no parameter path provided")


def provider(
    settings: ProviderSettings,
    *,
    transform: KeyTransform | None = None,
    max_results: int | None = None,
) -> ParamStoreProvider:
    """Build a provider on a fresh SSM client configured from *settings*.

    See :func:`lib_paramstore.adapters.ssm.default.build_ssm_client` for the
    credential rules.
    """

    client = build_ssm_client(settings)
    return provider_with_client(settings, client, transform=transform, max_results=max_results)


def provider_with_client(
    settings: ProviderSettings,
    client: Any,
    *,
    transform: KeyTransform | None = None,
    max_results: int | None = None,
) -> ParamStoreProvider:
    """Build a provider around an existing ``boto3`` SSM *client*."""

    return ParamStoreProvider(settings, SSMPageFetcher(client, max_results=max_results), transform=transform)


__all__ = [
    "ParamStoreProvider",
    "provider",
    "provider_with_client",
]
