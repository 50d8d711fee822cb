"""Tests for configuration settings loading."""

import importlib

import pytest

from config.config import (
    DEFAULT_HOSTING_API_ORIGIN,
    DEFAULT_IDENTITY_API_ORIGIN,
    Settings,
)


def reload_settings():
    config_module = importlib.import_module("config.config")
    importlib.reload(config_module)
    return config_module.settings


def test_defaults_without_environment():
    settings = Settings()

    assert settings.hosting_api_origin == DEFAULT_HOSTING_API_ORIGIN
    assert settings.identity_api_origin == DEFAULT_IDENTITY_API_ORIGIN
    assert settings.hosting_access_token is None
    assert settings.hosting_request_timeout == 30
    assert settings.operation_poll_interval_seconds == 1.0
    assert settings.operation_poll_max_interval_seconds == 10.0
    assert settings.operation_poll_max_attempts == 60


def test_origins_respect_env_and_drop_trailing_slash(monkeypatch):
    monkeypatch.setenv("HOSTING_API_ORIGIN", "http://localhost:5000/")
    monkeypatch.setenv("IDENTITY_API_ORIGIN", "http://localhost:9099")

    settings = Settings()

    assert settings.hosting_api_origin == "http://localhost:5000"
    assert settings.identity_api_origin == "http://localhost:9099"


def test_access_token_falls_back_to_google_alias(monkeypatch):
    monkeypatch.setenv("GOOGLE_ACCESS_TOKEN", "google-token")

    assert Settings().hosting_access_token == "google-token"

    monkeypatch.setenv("HOSTING_ACCESS_TOKEN", "hosting-token")

    assert Settings().hosting_access_token == "hosting-token"


@pytest.mark.parametrize(
    "raw, expected",
    [("5", 5), (" 12 ", 12), ("not-a-number", 60), ("", 60)],
)
def test_poll_attempts_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("OPERATION_POLL_MAX_ATTEMPTS", raw)

    assert Settings().operation_poll_max_attempts == expected


def test_poll_interval_parsing(monkeypatch):
    monkeypatch.setenv("OPERATION_POLL_INTERVAL_SECONDS", "0.25")
    monkeypatch.setenv("OPERATION_POLL_MAX_INTERVAL_SECONDS", "bogus")

    settings = Settings()

    assert settings.operation_poll_interval_seconds == 0.25
    assert settings.operation_poll_max_interval_seconds == 10.0


def test_module_singleton_reflects_environment(monkeypatch):
    monkeypatch.setenv("HOSTING_REQUEST_TIMEOUT", "7")

    settings = reload_settings()

    assert settings.hosting_request_timeout == 7
