"""Adapter contract tests for the application ports.

Verify the default adapters and the provider keep satisfying the protocols in
``src/lib_paramstore/application/ports.py`` so dependency inversion remains
enforceable through automated tests.
"""

from __future__ import annotations

import boto3
import pytest

from lib_paramstore.adapters.ssm.default import SSMPageFetcher
from lib_paramstore.adapters.unflatten.default import unflatten
from lib_paramstore.application import ports
from lib_paramstore.core import ParamStoreProvider
from lib_paramstore.domain.errors import UnsupportedOperationError
from lib_paramstore.domain.parameters import ProviderSettings
from lib_paramstore.testing import InMemoryParameterStore


def test_ssm_fetcher_is_a_page_fetcher() -> None:
    client = boto3.client("ssm", region_name="us-east-1", aws_access_key_id="x", aws_secret_access_key="y")
    assert isinstance(SSMPageFetcher(client), ports.PageFetcher)


def test_unflatten_is_an_unflattener() -> None:
    assert isinstance(unflatten, ports.Unflattener)


def test_provider_offers_every_capability(store: InMemoryParameterStore) -> None:
    provider = ParamStoreProvider(ProviderSettings(path="/app"), store)
    for capability in (ports.Reader, ports.BytesReader, ports.Watcher):
        assert isinstance(provider, capability)


@pytest.mark.parametrize("path", ["", "/app"])
def test_read_bytes_is_always_unsupported(store: InMemoryParameterStore, path: str) -> None:
    provider = ParamStoreProvider(ProviderSettings(path=path, with_decryption=True), store)
    with pytest.raises(UnsupportedOperationError):
        provider.read_bytes()
    assert store.calls == 0
