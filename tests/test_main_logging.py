"""Regression tests for the main module logging bootstrap and CLI."""

from __future__ import annotations

import json
import logging

import pytest

import main
from integration.errors import ListNotFound


def _reset_logging_state() -> None:
    """Return the logging module to a clean slate for deterministic tests."""

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # pragma: no cover - defensive cleanup
            pass
    for existing_filter in list(root_logger.filters):
        root_logger.removeFilter(existing_filter)
    main._project_filter_attached = False
    main.current_project_var.set("n/a")


def test_init_logging_injects_default_project(capsys):
    _reset_logging_state()

    main._init_logging()

    logging.getLogger(__name__).info("log message emitted before any project is set")
    captured = capsys.readouterr()
    assert "project=n/a" in captured.err


def test_logging_filter_uses_current_project(capsys):
    _reset_logging_state()

    main._init_logging()
    token = main.current_project_var.set("test-project")
    try:
        logging.getLogger(__name__).info("log message with project context")
    finally:
        main.current_project_var.reset(token)

    captured = capsys.readouterr()
    assert "project=test-project" in captured.err


def test_cli_prints_cleaned_domains(mocker, capsys):
    _reset_logging_state()
    clean = mocker.patch.object(
        main,
        "_clean_auth_domains",
        mocker.AsyncMock(return_value={"my-site": ["localhost"]}),
    )

    exit_code = main.main(["clean-auth-domains", "test-project", "my-site", "--dry-run"])

    assert exit_code == 0
    clean.assert_awaited_once_with("test-project", ["my-site"], dry_run=True)
    assert json.loads(capsys.readouterr().out) == {"my-site": ["localhost"]}


def test_cli_reports_hosting_errors(mocker, capsys):
    _reset_logging_state()
    mocker.patch.object(
        main,
        "_clean_auth_domains",
        mocker.AsyncMock(side_effect=ListNotFound("channels")),
    )

    exit_code = main.main(["clean-auth-domains", "test-project", "my-site"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "could not find channels" in captured.err
    assert "project=test-project" in captured.err


@pytest.mark.asyncio
async def test_dry_run_reads_domains_without_updating(hosting, mock_api):
    channels_url = (
        "https://hosting.test.local/v1beta1/projects/test-project/sites/my-site/channels"
    )
    config_url = "https://identity.test.local/admin/v2/projects/test-project/config"
    mock_api.add(
        "GET",
        channels_url,
        payload={"channels": [{"name": "live", "url": "https://my-site--live-abc1.web.app"}]},
    )
    mock_api.add(
        "GET",
        config_url,
        payload={
            "authorizedDomains": [
                "localhost",
                "my-site--live-abc1.web.app",
                "my-site--gone-xyz9.web.app",
            ]
        },
    )

    result = await main._clean_auth_domains(
        "test-project", ["my-site"], dry_run=True, hosting=hosting
    )

    assert result == {"my-site": ["localhost", "my-site--live-abc1.web.app"]}
    assert [request.method for request in mock_api.requests] == ["GET", "GET"]

    mock_api.add("GET", channels_url, payload={"channels": []})
    assert await hosting.list_channels("test-project", "my-site") == []
