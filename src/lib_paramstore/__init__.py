"""Public package surface for the parameter-store configuration provider.

Exposes the provider, its factories, the settings object, the domain error
taxonomy, and the observability hooks so ``import lib_paramstore`` is enough
for typical applications.
"""

from __future__ import annotations

from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .application.changes import detect_changes
from .application.materialize import strip_prefix
from .application.poller import Poller, PollerState
from .core import ParamStoreProvider, provider, provider_with_client
from .domain.errors import (
    ConfigurationError,
    EmptyKeyError,
    ParamStoreError,
    RetrievalError,
    UnsupportedOperationError,
)
from .domain.parameters import ChangeEvent, ParameterPage, ParameterRecord, ProviderSettings, Snapshot
from .observability import bind_trace_id, get_logger

__all__ = [
    "ChangeEvent",
    "ConfigurationError",
    "DefaultEnvLoader",
    "EmptyKeyError",
    "ParamStoreError",
    "ParamStoreProvider",
    "ParameterPage",
    "ParameterRecord",
    "Poller",
    "PollerState",
    "ProviderSettings",
    "RetrievalError",
    "Snapshot",
    "UnsupportedOperationError",
    "bind_trace_id",
    "default_env_prefix",
    "detect_changes",
    "get_logger",
    "provider",
    "provider_with_client",
    "strip_prefix",
]
