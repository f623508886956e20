"""AWS Systems Manager Parameter Store adapter.

Purpose
-------
Implement the :class:`lib_paramstore.application.ports.PageFetcher` port on
top of ``boto3``'s ``get_parameters_by_path`` and build the SSM client from
:class:`~lib_paramstore.domain.parameters.ProviderSettings`.

Contents
--------
* :class:`SSMPageFetcher` – one ``GetParametersByPath`` call per page, mapped
  into :class:`~lib_paramstore.domain.parameters.ParameterPage`.
* :func:`build_ssm_client` – client factory honouring region, static
  credentials, and role assumption.
* :func:`record_from_response` – converts one API parameter dictionary.

System Role
-----------
Used by :func:`lib_paramstore.core.provider` and
:func:`lib_paramstore.core.provider_with_client`. ``botocore`` failures are
translated into :class:`~lib_paramstore.domain.errors.RetrievalError` here so
the application layer only sees the domain taxonomy.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Final, Mapping

import boto3
import botocore.session
from botocore.credentials import CredentialProvider, RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError

from ...domain.errors import RetrievalError
from ...domain.parameters import ParameterPage, ParameterRecord, ProviderSettings
from ...observability import log_debug, log_error

ROLE_SESSION_NAME: Final[str] = "lib_paramstore"
"""Session name reported to STS when assuming ``aws_role_arn``."""


class SSMPageFetcher:
    """Fetch pages of parameters from SSM Parameter Store.

    Why
    ----
    Keeps the wire format (``Parameters``/``NextToken`` dictionaries) and the
    ``botocore`` exception hierarchy out of the application layer.

    Parameters
    ----------
    client:
        A ``boto3`` SSM client (real or stubbed).
    max_results:
        Optional page size forwarded as ``MaxResults`` (SSM allows 1–10).
    """

    def __init__(self, client: Any, *, max_results: int | None = None) -> None:
        self._client = client
        self._max_results = max_results

    def fetch_page(
        self,
        path: str,
        with_decryption: bool,
        next_token: str | None,
        *,
        recursive: bool = False,
    ) -> ParameterPage:
        """Return one page of parameters stored under *path*.

        Raises
        ------
        RetrievalError
            Wrapping any ``ClientError`` or ``BotoCoreError``.
        """

        request: dict[str, Any] = {"Path": path, "WithDecryption": with_decryption, "Recursive": recursive}
        if next_token:
            request["NextToken"] = next_token
        if self._max_results:
            request["MaxResults"] = self._max_results
        try:
            response = self._client.get_parameters_by_path(**request)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            log_error("ssm_request_failed", path=path, error=str(exc), code=code)
            raise RetrievalError(f"GetParametersByPath failed for {path} ({code}): {exc}") from exc
        except BotoCoreError as exc:
            log_error("ssm_request_failed", path=path, error=str(exc))
            raise RetrievalError(f"GetParametersByPath failed for {path}: {exc}") from exc

        records = tuple(record_from_response(item) for item in response.get("Parameters", []))
        token = response.get("NextToken") or None
        log_debug("ssm_page_received", path=path, records=len(records), more=token is not None)
        return ParameterPage(records=records, next_token=token)


def record_from_response(item: Mapping[str, Any]) -> ParameterRecord:
    """Convert one ``Parameters`` entry of the SSM response.

    Examples
    --------
    >>> record_from_response({"Name": "/app/a", "Value": "1", "ARN": "arn:aws:ssm:::parameter/app/a", "Version": 2, "Type": "String"})
    ParameterRecord(name='/app/a', value='1', identity='arn:aws:ssm:::parameter/app/a', version=2, type='String', last_modified=None)
    """

    return ParameterRecord(
        name=item["Name"],
        value=item.get("Value", ""),
        identity=item["ARN"],
        version=int(item["Version"]),
        type=item.get("Type"),
        last_modified=item.get("LastModifiedDate"),
    )


def build_ssm_client(settings: ProviderSettings, *, session: boto3.session.Session | None = None) -> Any:
    """Create an SSM client following the provider's credential rules.

    What
    ----
    * Region comes from ``aws_region`` when set, else the default chain.
    * Static credentials are used only when both key id and secret are set.
    * ``aws_role_arn`` assumes that role via STS on top of whichever
      credentials are active; the assumed credentials refresh themselves
      before they expire, so long-running watches keep working.

    Parameters
    ----------
    settings:
        Provider settings.
    session:
        Optional base session (mainly for tests); built from *settings* when
        omitted.
    """

    if session is None:
        session = _base_session(settings)
    if settings.aws_role_arn:
        session = _assume_role_session(session, settings.aws_role_arn, settings.aws_region)
    log_debug(
        "ssm_client_created",
        region=settings.aws_region or session.region_name,
        static_credentials=settings.has_static_credentials(),
        role=settings.aws_role_arn,
    )
    return session.client("ssm")


def _base_session(settings: ProviderSettings) -> boto3.session.Session:
    if settings.has_static_credentials():
        return boto3.session.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )
    return boto3.session.Session(region_name=settings.aws_region)


def _assume_role_session(base: boto3.session.Session, role_arn: str, region: str | None) -> boto3.session.Session:
    """Return a session whose credentials come from ``sts:AssumeRole`` and auto-refresh."""

    sts = base.client("sts")

    def _refresh() -> dict[str, str]:
        response = sts.assume_role(RoleArn=role_arn, RoleSessionName=ROLE_SESSION_NAME)
        credentials = response["Credentials"]
        expiry = credentials.get("Expiration") or datetime.now(timezone.utc) + timedelta(hours=1)
        log_debug("role_assumed", role=role_arn, expires=expiry.isoformat())
        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretAccessKey"],
            "token": credentials["SessionToken"],
            "expiry_time": expiry.isoformat(),
        }

    botocore_session = botocore.session.get_session()
    resolver = botocore_session.get_component("credential_provider")
    resolver.insert_before(resolver.providers[0].METHOD, _AssumedRoleProvider(_refresh))
    return boto3.session.Session(botocore_session=botocore_session, region_name=region or base.region_name)


class _AssumedRoleProvider(CredentialProvider):
    """Credential provider placed first in the chain so the assumed role wins over env and profile."""

    METHOD = "lib-paramstore-assume-role"
    CANONICAL_NAME = "LibParamstoreAssumeRole"

    def __init__(self, refresh: Any) -> None:
        super().__init__()
        self._refresh = refresh

    def load(self) -> RefreshableCredentials:
        return RefreshableCredentials.create_from_metadata(
            metadata=self._refresh(),
            refresh_using=self._refresh,
            method=self.METHOD,
        )
