"""Tests for settings, spreadsheet options and logging setup."""

from __future__ import annotations

import json

import pytest
from loguru import logger

from sheetfeed.config import Settings, SpreadsheetOptions
from sheetfeed.logging import setup_logging


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SHEETFEED_FEEDS_HOST", raising=False)
    settings = Settings(_env_file=None)
    assert settings.feeds_host == "spreadsheets.google.com"
    assert settings.use_https is True
    assert settings.timeout == 60


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHEETFEED_USE_HTTPS", "false")
    monkeypatch.setenv("SHEETFEED_ACCESS_TOKEN", "abc")
    monkeypatch.setenv("SHEETFEED_TIMEOUT", "5")

    settings = Settings(_env_file=None)

    assert settings.use_https is False
    assert settings.access_token == "abc"
    assert settings.timeout == 5


def test_options_accept_camel_case() -> None:
    options = SpreadsheetOptions.model_validate(
        {
            "spreadsheetId": "ss",
            "worksheetName": "Sheet1",
            "useHTTPS": False,
            "useCellTextValues": False,
            "oauth": {"keyFile": "sa.json"},
        }
    )
    assert options.spreadsheet_id == "ss"
    assert options.worksheet_name == "Sheet1"
    assert options.protocol == "http"
    assert options.use_cell_text_values is False
    assert options.oauth is not None
    assert options.oauth.key_file == "sa.json"
    assert options.has_credentials is True


def test_options_defaults() -> None:
    options = SpreadsheetOptions()
    assert options.use_https is True
    assert options.use_cell_text_values is True
    assert options.protocol == "https"
    assert options.has_credentials is False


def test_json_logs(capsys: pytest.CaptureFixture[str]) -> None:
    setup_logging(json_logs=True, log_level="DEBUG")
    try:
        logger.info("Received {count} cells", count=3)
    finally:
        logger.remove()
        logger.add(lambda message: None)

    entry = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert entry["severity"] == "INFO"
    assert entry["message"] == "Received 3 cells"
