from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lib_paramstore.domain.errors import ConfigurationError
from lib_paramstore.domain.parameters import (
    DEFAULT_DELIMITER,
    DEFAULT_WATCH_INTERVAL,
    ParameterRecord,
    ProviderSettings,
)


def test_settings_defaults() -> None:
    settings = ProviderSettings()
    assert settings.path == ""
    assert settings.delimiter == DEFAULT_DELIMITER == "/"
    assert settings.watch_interval == DEFAULT_WATCH_INTERVAL == 600.0
    assert settings.with_decryption is False
    assert settings.recursive is False


@pytest.mark.parametrize("interval", [0, 0.0, None])
def test_unset_interval_falls_back_to_default(interval) -> None:
    assert ProviderSettings(path="/app", watch_interval=interval).watch_interval == 600.0


def test_empty_delimiter_falls_back_to_default() -> None:
    assert ProviderSettings(delimiter="").delimiter == "/"


def test_custom_delimiter_and_interval_kept() -> None:
    settings = ProviderSettings(delimiter=".", watch_interval=5)
    assert settings.delimiter == "."
    assert settings.watch_interval == 5.0


def test_negative_interval_rejected() -> None:
    with pytest.raises(ConfigurationError):
        ProviderSettings(watch_interval=-1)


def test_settings_are_immutable() -> None:
    settings = ProviderSettings(path="/app")
    with pytest.raises(AttributeError):
        settings.path = "/other"  # type: ignore[misc]


def test_from_mapping_ignores_unknown_keys() -> None:
    settings = ProviderSettings.from_mapping({"path": "/svc", "aws_region": "eu-west-1", "colour": "blue"})
    assert settings.path == "/svc"
    assert settings.aws_region == "eu-west-1"


def test_static_credentials_need_both_halves() -> None:
    assert not ProviderSettings(aws_access_key_id="AKIA").has_static_credentials()
    assert not ProviderSettings(aws_secret_access_key="secret").has_static_credentials()
    assert ProviderSettings(aws_access_key_id="AKIA", aws_secret_access_key="secret").has_static_credentials()


def test_record_with_version_keeps_identity() -> None:
    original = ParameterRecord(name="/app/a", value="1", identity="arn:a", version=1)
    bumped = original.with_version(2, value="2")
    assert (bumped.identity, bumped.name, bumped.version, bumped.value) == ("arn:a", "/app/a", 2, "2")
    assert original.version == 1


def test_record_as_dict_serialises_timestamp() -> None:
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    payload = ParameterRecord(name="n", value="v", identity="i", version=7, type="String", last_modified=stamp).as_dict()
    assert payload["last_modified"] == "2024-01-02T03:04:05+00:00"
    assert payload["version"] == 7
