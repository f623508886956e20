"""Testing collaborators that keep provider scenarios observable and predictable.

Purpose
    Provide in-process :class:`~lib_paramstore.application.ports.PageFetcher`
    implementations so applications (and this package's own suites) can
    exercise ``read``/``watch`` without AWS.

Contents
    - ``InMemoryParameterStore``: a tiny versioned store with paging, deletes,
      and injected failures.
    - ``ScriptedPageFetcher``: replays a fixed list of pages (or exceptions)
      and records every request.

System Integration
    Both classes satisfy the ``PageFetcher`` protocol and can be handed to
    :class:`lib_paramstore.core.ParamStoreProvider` directly.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Final, Iterable, Sequence

from .domain.errors import RetrievalError
from .domain.parameters import ParameterPage, ParameterRecord

FAKE_ARN_PREFIX: Final[str] = "arn:aws:ssm:us-east-1:000000000000:parameter"
"""Identity prefix used by :class:`InMemoryParameterStore`."""


@dataclass(frozen=True, slots=True)
class FetchRequest:
    """One recorded ``fetch_page`` call."""

    path: str
    with_decryption: bool
    next_token: str | None
    recursive: bool


class InMemoryParameterStore:
    """Versioned parameter store living in process memory.

    Why
    ----
    Watch scenarios need version bumps, new parameters, deletions, and
    transient failures between ticks; scripting all of that page by page is
    tedious.

    What
    ----
    ``put`` creates a parameter at version 1 or bumps its version; identities
    are ARN-like strings derived from the name at creation time and survive
    updates. Pages hold at most ``page_size`` records and continuation tokens
    are ``"offset:<n>"`` strings. ``fail_next`` makes the next calls raise.

    Examples
    --------
    >>> store = InMemoryParameterStore(page_size=2)
    >>> store.put("/app/a", "1").version
    1
    >>> store.put("/app/a", "2").version
    2
    >>> store.fetch_page("/app", False, None).records[0].value
    '2'
    """

    def __init__(self, *, page_size: int = 10) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self._records: dict[str, ParameterRecord] = {}
        self._failures: list[Exception] = []
        self._lock = threading.Lock()
        self.requests: list[FetchRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def put(self, name: str, value: str, *, type: str = "String") -> ParameterRecord:
        """Create *name* or bump its version, returning the stored record."""

        with self._lock:
            existing = self._records.get(name)
            if existing is None:
                record = ParameterRecord(name=name, value=value, identity=f"{FAKE_ARN_PREFIX}{name}", version=1, type=type)
            else:
                record = existing.with_version(existing.version + 1, value=value)
            self._records[name] = record
            return record

    def delete(self, name: str) -> None:
        with self._lock:
            self._records.pop(name, None)

    def fail_next(self, error: Exception | None = None, *, count: int = 1) -> None:
        """Make the next *count* ``fetch_page`` calls raise *error* (a ``RetrievalError`` by default)."""

        with self._lock:
            for _ in range(count):
                self._failures.append(error or RetrievalError("injected failure"))

    def fetch_page(
        self,
        path: str,
        with_decryption: bool,
        next_token: str | None,
        *,
        recursive: bool = False,
    ) -> ParameterPage:
        with self._lock:
            self.requests.append(FetchRequest(path, with_decryption, next_token, recursive))
            if self._failures:
                raise self._failures.pop(0)
            matching = [record for name, record in sorted(self._records.items()) if _under(name, path, recursive)]
        offset = int(next_token.split(":", 1)[1]) if next_token else 0
        chunk = tuple(matching[offset : offset + self.page_size])
        end = offset + len(chunk)
        token = f"offset:{end}" if end < len(matching) else None
        return ParameterPage(records=chunk, next_token=token)


class ScriptedPageFetcher:
    """Replay *pages* in order, raising any item that is an exception.

    Examples
    --------
    >>> record = ParameterRecord(name="/a", value="1", identity="A", version=1)
    >>> fetcher = ScriptedPageFetcher([ParameterPage((record,), "t1"), ParameterPage(())])
    >>> fetcher.fetch_page("/", False, None).next_token
    't1'
    >>> [request.next_token for request in fetcher.requests]
    [None]
    """

    def __init__(self, pages: Iterable[ParameterPage | Exception]) -> None:
        self._pages: list[ParameterPage | Exception] = list(pages)
        self.requests: list[FetchRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def extend(self, pages: Sequence[ParameterPage | Exception]) -> None:
        self._pages.extend(pages)

    def fetch_page(
        self,
        path: str,
        with_decryption: bool,
        next_token: str | None,
        *,
        recursive: bool = False,
    ) -> ParameterPage:
        self.requests.append(FetchRequest(path, with_decryption, next_token, recursive))
        if not self._pages:
            raise AssertionError("ScriptedPageFetcher ran out of pages")
        item = self._pages.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _under(name: str, path: str, recursive: bool) -> bool:
    """Return ``True`` when *name* lives below *path* (directly unless *recursive*)."""

    prefix = path if path.endswith("/") else f"{path}/"
    if not name.startswith(prefix):
        return False
    return recursive or "/" not in name[len(prefix) :]
