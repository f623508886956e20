"""Shared fixtures: in-memory store, settings, and record builders."""

from __future__ import annotations

from typing import Callable

import pytest

from lib_paramstore.core import ParamStoreProvider
from lib_paramstore.domain.parameters import ParameterRecord, ProviderSettings
from lib_paramstore.testing import InMemoryParameterStore

PATH = "/app"


@pytest.fixture()
def store() -> InMemoryParameterStore:
    """Two records per page so most scenarios paginate."""

    return InMemoryParameterStore(page_size=2)


@pytest.fixture()
def settings() -> ProviderSettings:
    return ProviderSettings(path=PATH, recursive=True, watch_interval=3600)


@pytest.fixture()
def make_provider(settings: ProviderSettings) -> Callable[..., ParamStoreProvider]:
    """Build providers that are always stopped at teardown."""

    created: list[ParamStoreProvider] = []

    def _make(fetcher, **kwargs) -> ParamStoreProvider:
        instance = ParamStoreProvider(kwargs.pop("settings", settings), fetcher, **kwargs)
        created.append(instance)
        return instance

    yield _make
    for instance in created:
        instance.stop(timeout=5)


@pytest.fixture()
def record() -> Callable[..., ParameterRecord]:
    def _record(identity: str, version: int, *, name: str | None = None, value: str | None = None) -> ParameterRecord:
        return ParameterRecord(
            name=name if name is not None else f"{PATH}/{identity.lower()}",
            value=value if value is not None else f"{identity}@{version}",
            identity=identity,
            version=version,
        )

    return _record
