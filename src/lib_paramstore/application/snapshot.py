"""Snapshot fetcher: one full paginated pass over a parameter path.

Purpose
-------
Follow continuation tokens until the store reports the final page and return
every record as one :data:`~lib_paramstore.domain.parameters.Snapshot`. The
same routine seeds state during ``read`` and runs on every poll tick.

Contents
    - ``fetch_snapshot``: public entry point.
    - ``_fetch_page``: wraps one collaborator call in the domain error taxonomy.

System Role
-----------
Sits between :class:`~lib_paramstore.application.ports.PageFetcher` adapters
and the composition root / poller. It never commits anything itself; callers
decide whether to replace store state once the pass succeeds.
"""

from __future__ import annotations

from ..domain.errors import ConfigurationError, ParamStoreError, RetrievalError
from ..domain.parameters import ParameterPage, ParameterRecord, Snapshot
from ..observability import log_debug, log_error
from .ports import PageFetcher
from .state import StoreState


def fetch_snapshot(
    fetcher: PageFetcher,
    path: str,
    *,
    with_decryption: bool,
    recursive: bool = False,
    state: StoreState | None = None,
) -> Snapshot:
    """Retrieve every parameter under *path* following continuation tokens.

    Why
    ----
    Change detection compares whole snapshots, so a pass must either see the
    final page or produce nothing at all.

    What
    ----
    Starts from a ``None`` token on every pass (a pass that died mid-way is
    never resumed), calls :meth:`PageFetcher.fetch_page` until ``next_token``
    is empty, and accumulates records in retrieval order. When *state* is
    given, its cursor mirrors the token of each page and is cleared once the
    pass ends.

    Parameters
    ----------
    fetcher:
        Collaborator performing the paginated call.
    path:
        Parameter path prefix; must be non-empty.
    with_decryption:
        Ask the store to decrypt secure values.
    recursive:
        Include parameters nested below direct children of *path*.
    state:
        Optional store state whose cursor is updated as pagination proceeds.

    Returns
    -------
    Snapshot
        Records from all pages.

    Raises
    ------
    ConfigurationError
        When *path* is empty; raised before any fetcher call.
    RetrievalError
        When any page fails. Partial results are discarded.

    Examples
    --------
    >>> from lib_paramstore.testing import InMemoryParameterStore
    >>> store = InMemoryParameterStore(page_size=1)
    >>> _ = store.put("/app/a", "1")
    >>> _ = store.put("/app/b", "2")
    >>> [record.name for record in fetch_snapshot(store, "/app", with_decryption=False)]
    ['/app/a', '/app/b']
    >>> store.calls
    2
    """

    if not path:
        raise ConfigurationError("no parameter path provided")

    records: list[ParameterRecord] = []
    token: str | None = None
    pages = 0
    if state is not None:
        state.reset_cursor()
    try:
        while True:
            page = _fetch_page(fetcher, path, with_decryption, token, recursive)
            pages += 1
            records.extend(page.records)
            token = page.next_token or None
            if state is not None:
                state.advance(token)
            log_debug("page_fetched", path=path, page=pages, records=len(page.records), more=token is not None)
            if token is None:
                break
    finally:
        if state is not None:
            state.reset_cursor()

    log_debug("snapshot_fetched", path=path, pages=pages, records=len(records))
    return tuple(records)


def _fetch_page(
    fetcher: PageFetcher,
    path: str,
    with_decryption: bool,
    token: str | None,
    recursive: bool,
) -> ParameterPage:
    """Call the collaborator once, translating foreign failures into :class:`RetrievalError`."""

    try:
        return fetcher.fetch_page(path, with_decryption, token, recursive=recursive)
    except RetrievalError as exc:
        log_error("page_failed", path=path, error=str(exc))
        raise
    except ParamStoreError:
        raise
    except Exception as exc:
        log_error("page_failed", path=path, error=str(exc), error_type=type(exc).__name__)
        raise RetrievalError(f"Failed to fetch parameters under {path}: {exc}") from exc
