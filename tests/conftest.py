"""Shared test fixtures for sheetfeed."""

from __future__ import annotations

from pathlib import Path

import pytest

from sheetfeed.auth import AuthToken
from sheetfeed.pipeline import RequestPipeline
from sheetfeed.spreadsheet import Spreadsheet
from sheetfeed.transport import LocalFileTransport

from tests.fakes import FakeAuthenticator, FakeTransport

GOLDEN_DIR = Path(__file__).parent / "golden"


@pytest.fixture
def golden_dir() -> Path:
    return GOLDEN_DIR


@pytest.fixture
def local_transport() -> LocalFileTransport:
    return LocalFileTransport(GOLDEN_DIR)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def authenticator() -> FakeAuthenticator:
    return FakeAuthenticator()


@pytest.fixture
def spreadsheet(
    fake_transport: FakeTransport, authenticator: FakeAuthenticator
) -> Spreadsheet:
    return Spreadsheet(
        "spreadsheetId",
        "worksheetId",
        AuthToken("initial"),
        RequestPipeline(fake_transport, authenticator),
    )
