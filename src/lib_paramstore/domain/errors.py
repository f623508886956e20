"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the application services,
the composition root, and consuming applications. The hierarchy lives in the
domain layer so outer layers may depend on it without the reverse being true.

Contents
--------
* :class:`ParamStoreError` – umbrella base class for all provider failures.
* :class:`ConfigurationError` – missing or malformed provider settings.
* :class:`RetrievalError` – a paginated fetch against the store failed.
* :class:`EmptyKeyError` – a key transform produced an empty key.
* :class:`UnsupportedOperationError` – the provider lacks a capability.

System Role
-----------
:func:`lib_paramstore.core.ParamStoreProvider.read` raises these directly.
During polling the same instances are delivered through the watch callback as
``(None, error)`` so the background loop never dies on a single tick.
"""

from __future__ import annotations


class ParamStoreError(Exception):
    """Base type for all exceptions emitted by ``lib_paramstore``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class ConfigurationError(ParamStoreError):
    """Raised when required settings are missing or malformed.

    Why
    ----
    A missing parameter path is a programming error; it is reported before any
    network interaction and is never retried.
    """


class RetrievalError(ParamStoreError):
    """Raised when a page of parameters cannot be fetched from the store.

    Why
    ----
    Network, authentication, and store-side failures all abort the current
    pass. ``read`` surfaces them to the caller, the poller hands them to the
    watch callback and tries again on the next interval.

    Typical Sources
    ---------------
    ``botocore`` client errors wrapped by the SSM adapter, or any exception a
    custom :class:`~lib_paramstore.application.ports.PageFetcher` raises.
    """


class EmptyKeyError(ParamStoreError):
    """Signals that the key transform mapped a parameter name to ``""``."""


class UnsupportedOperationError(ParamStoreError):
    """Represents a capability that this provider kind does not offer (``read_bytes``)."""
