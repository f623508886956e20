"""Application-layer ports describing adapter and provider responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the application
services can orchestrate behaviour without depending on concrete
implementations (boto3, in-memory fakes, custom stores).

Contents
--------
* :class:`PageFetcher` – one paginated "list parameters under path" call.
* :class:`Unflattener` – turns flat delimiter-separated keys into nested maps.
* :class:`Reader` / :class:`BytesReader` / :class:`Watcher` – one protocol per
  provider capability.
* :data:`KeyTransform` / :data:`WatchCallback` – callable signatures shared by
  the composition root and the poller.

System Role
-----------
These protocols enforce Dependency Inversion. Provider kinds are modelled as
explicit capability protocols rather than duck-typed matching, so callers can
``isinstance``-check which capabilities a provider offers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Mapping, Optional, Protocol, runtime_checkable

from ..domain.errors import ParamStoreError
from ..domain.parameters import ChangeEvent, ParameterPage

if TYPE_CHECKING:
    from .poller import Poller

KeyTransform = Callable[[str], str]
"""Pure function rewriting a parameter name into a configuration key."""

WatchCallback = Callable[[Optional[ChangeEvent], Optional[ParamStoreError]], None]
"""Receives ``(event, None)`` on detected drift or ``(None, error)`` on a failed tick."""


@runtime_checkable
class PageFetcher(Protocol):
    """Retrieve one page of parameters stored under a path.

    Why
    ----
    Encapsulate credentials, regions, and the wire protocol so the snapshot
    fetcher only deals with records and continuation tokens.
    """

    def fetch_page(
        self,
        path: str,
        with_decryption: bool,
        next_token: str | None,
        *,
        recursive: bool = False,
    ) -> ParameterPage:
        """Return the page starting at *next_token* (``None`` for the first page)."""


@runtime_checkable
class Unflattener(Protocol):
    """Expand a flat mapping of delimiter-separated keys into nested mappings."""

    def __call__(self, flat: Mapping[str, object], delimiter: str) -> dict[str, object]:
        """Return a nested mapping built by splitting keys on *delimiter*."""


@runtime_checkable
class Reader(Protocol):
    """Providers that materialise a nested configuration mapping."""

    def read(self) -> dict[str, object]:
        """Fetch and return the nested configuration mapping."""


@runtime_checkable
class BytesReader(Protocol):
    """Providers that return a raw configuration document."""

    def read_bytes(self) -> bytes:
        """Return the raw document or raise ``UnsupportedOperationError``."""


@runtime_checkable
class Watcher(Protocol):
    """Providers that notify callers about remote changes."""

    def watch(self, callback: WatchCallback) -> "Poller":
        """Start background polling and return a handle that can stop it."""

    def stop(self, timeout: float | None = None) -> None:
        """Stop every poller started through :meth:`watch`."""
