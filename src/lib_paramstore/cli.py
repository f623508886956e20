"""CLI adapter for ``lib_paramstore`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the provider via a command line interface so operators can dump the
nested configuration under a path or follow version changes without writing
Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env_prefix` – helper exposing :func:`default_env_prefix`.
* :func:`cli_read` – one-shot ``read`` printed as JSON.
* :func:`cli_watch` – seeds state with ``read`` then prints one JSON line per
  watch callback.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. Options override ``PARAMSTORE_*``
environment variables (read through
:class:`~lib_paramstore.adapters.env.default.DefaultEnvLoader`); credentials
are only accepted from the environment or the default AWS chain.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import DefaultEnvLoader
from .adapters.env.default import default_env_prefix as _default_env_prefix
from .application.materialize import strip_prefix
from .core import ParamStoreProvider, provider
from .domain.errors import ParamStoreError
from .domain.parameters import ChangeEvent, ProviderSettings

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_paramstore"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _provider_options(func: Any) -> Any:
    """Attach the options shared by ``read`` and ``watch``."""

    options = [
        click.option("--path", default=None, help="Parameter path prefix (env: PARAMSTORE_PATH)"),
        click.option("--delimiter", default=None, help="Nesting delimiter, '/' when unset"),
        click.option("--decrypt/--no-decrypt", "with_decryption", default=None, help="Decrypt SecureString values"),
        click.option("--recursive/--no-recursive", default=None, help="Include parameters below direct children"),
        click.option("--region", "aws_region", default=None, help="AWS region override"),
        click.option("--role-arn", "aws_role_arn", default=None, help="IAM role to assume before reading"),
        click.option(
            "--strip-prefix/--keep-prefix",
            "strip",
            default=True,
            show_default=True,
            help="Drop the path prefix from keys before nesting",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(
    help="Hierarchical configuration from AWS SSM Parameter Store",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_paramstore version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo("lib_paramstore (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> result = runner.invoke(cli, ["env-prefix", "billing-service"])
    >>> result.output.strip()
    'BILLING_SERVICE'
    """

    click.echo(_default_env_prefix(slug))


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@_provider_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_read(indent: Optional[int], strip: bool, **overrides: Any) -> None:
    """Read all parameters under the path and print them as nested JSON."""

    settings = _resolve_settings(overrides)
    with _build_provider(settings, strip=strip) as store:
        payload = store.read()
    click.echo(json.dumps(payload, indent=indent, ensure_ascii=False))


@cli.command("watch", context_settings=CLICK_CONTEXT_SETTINGS)
@_provider_options
@click.option("--interval", "watch_interval", type=float, default=None, help="Seconds between polls (600 when unset)")
@click.option("--duration", type=float, default=None, help="Stop after this many seconds (runs until interrupted when unset)")
def cli_watch(duration: Optional[float], strip: bool, **overrides: Any) -> None:
    """Poll for version changes and print one JSON line per notification.

    Lines look like ``{"changes": [...]}`` or ``{"error": "..."}``.
    """

    settings = _resolve_settings(overrides)
    with _build_provider(settings, strip=strip) as store:
        store.read()
        poller = store.watch(_echo_notification)
        try:
            poller.join(duration)
        except KeyboardInterrupt:
            click.echo("interrupted", err=True)


def _echo_notification(event: Optional[ChangeEvent], error: Optional[ParamStoreError]) -> None:
    if error is not None:
        click.echo(json.dumps({"error": str(error), "type": type(error).__name__}))
        return
    changes = [record.as_dict() for record in event or ()]
    click.echo(json.dumps({"changes": changes}, ensure_ascii=False))


def _resolve_settings(overrides: dict[str, Any]) -> ProviderSettings:
    """Merge environment settings with explicitly supplied CLI options."""

    values = DefaultEnvLoader().load()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ProviderSettings.from_mapping(values)


def _build_provider(settings: ProviderSettings, *, strip: bool) -> ParamStoreProvider:
    """Return the SSM-backed provider for *settings* (patched in tests)."""

    transform = strip_prefix(settings.path.rstrip("/") + "/") if strip and settings.path else None
    return provider(settings, transform=transform)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
