"""Tests for rotation settings."""

import pytest

from tailscale_rotation.config import (DEFAULT_TAILSCALE_API_URL,
                                       RotationSettings, load_settings)
from tailscale_rotation.exceptions import ConfigurationError

REQUIRED_VARS = ("OAUTH_SECRET_ARN", "TAILNET", "TAG_NAME")


@pytest.fixture
def clean_env(monkeypatch):
    for name in REQUIRED_VARS + (
        "TAILSCALE_API_URL",
        "TAILSCALE_REQUEST_TIMEOUT",
        "ROTATION_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_settings_from_environment(clean_env):
    clean_env.setenv("OAUTH_SECRET_ARN", "arn:aws:secretsmanager:eu-west-1:1:secret:oauth")
    clean_env.setenv("TAILNET", "example.com")
    clean_env.setenv("TAG_NAME", "ci")
    clean_env.setenv("TAILSCALE_REQUEST_TIMEOUT", "5")

    settings = load_settings()

    assert settings.oauth_secret_arn.endswith(":secret:oauth")
    assert settings.tailnet == "example.com"
    assert settings.tag_name == "ci"
    assert settings.tailscale_request_timeout == 5.0
    settings.ensure_configured()


def test_defaults(clean_env):
    settings = load_settings()

    assert settings.tailscale_api_url == DEFAULT_TAILSCALE_API_URL
    assert settings.tailscale_request_timeout == 30.0
    assert settings.rotation_log_level == "INFO"


def test_all_missing_reported_together(clean_env):
    settings = load_settings()

    assert settings.missing_settings() == list(REQUIRED_VARS)
    with pytest.raises(ConfigurationError) as exc_info:
        settings.ensure_configured()

    for name in REQUIRED_VARS:
        assert name in str(exc_info.value)


@pytest.mark.parametrize("missing", REQUIRED_VARS)
def test_single_missing_setting(clean_env, missing):
    for name in REQUIRED_VARS:
        if name != missing:
            clean_env.setenv(name, "value")

    settings = load_settings()

    assert settings.missing_settings() == [missing]
    with pytest.raises(ConfigurationError, match=missing):
        settings.ensure_configured()


def test_empty_value_counts_as_missing():
    settings = RotationSettings(oauth_secret_arn="arn", tailnet="", tag_name="ci")

    assert settings.missing_settings() == ["TAILNET"]
