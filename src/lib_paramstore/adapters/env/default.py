"""Environment variable adapter for provider settings.

Purpose
-------
Translate ``PARAMSTORE_*`` process environment variables into keyword
arguments for :class:`~lib_paramstore.domain.parameters.ProviderSettings`, so
the CLI and embedding applications can be configured without code.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured; the remainder must name a settings field
  (``PARAMSTORE_WATCH_INTERVAL`` → ``watch_interval``).
* Parses by field type: booleans accept ``1/true/yes/on`` and
  ``0/false/no/off``, the interval is a float in seconds, everything else
  stays a string.
* Unknown suffixes are ignored; malformed values raise
  :class:`~lib_paramstore.domain.errors.ConfigurationError`.
"""

from __future__ import annotations

import os
from typing import Callable, Final, Mapping

from ...domain.errors import ConfigurationError
from ...observability import log_debug

DEFAULT_SLUG: Final[str] = "paramstore"

_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


def default_env_prefix(slug: str = DEFAULT_SLUG) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix()
    'PARAMSTORE'
    >>> default_env_prefix('billing-service')
    'BILLING_SERVICE'
    """

    return slug.replace("-", "_").upper()


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_seconds(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from exc


def _parse_text(name: str, value: str) -> str:
    return value


_FIELD_PARSERS: Final[Mapping[str, Callable[[str, str], object]]] = {
    "path": _parse_text,
    "delimiter": _parse_text,
    "with_decryption": _parse_bool,
    "recursive": _parse_bool,
    "aws_access_key_id": _parse_text,
    "aws_secret_access_key": _parse_text,
    "aws_role_arn": _parse_text,
    "aws_region": _parse_text,
    "watch_interval": _parse_seconds,
}


class DefaultEnvLoader:
    """Load environment variables that belong to the provider namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = environ if environ is not None else os.environ

    def load(self, prefix: str | None = None) -> dict[str, object]:
        """Return settings keyword arguments found under *prefix*.

        Examples
        --------
        >>> env = {
        ...     'PARAMSTORE_PATH': '/app',
        ...     'PARAMSTORE_WITH_DECRYPTION': 'yes',
        ...     'PARAMSTORE_WATCH_INTERVAL': '30',
        ...     'PARAMSTORE_UNKNOWN': 'x',
        ... }
        >>> loaded = DefaultEnvLoader(environ=env).load()
        >>> sorted(loaded.items())
        [('path', '/app'), ('watch_interval', 30.0), ('with_decryption', True)]
        """

        prefix = default_env_prefix() if prefix is None else prefix
        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if not key.startswith(prefix):
                continue
            field = key[len(prefix) :].lower()
            parser = _FIELD_PARSERS.get(field)
            if parser is None:
                continue
            collected[field] = parser(key, value)
        log_debug("env_settings_loaded", operation="configure", path=None, keys=sorted(collected.keys()))
        return collected
