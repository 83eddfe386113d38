"""Tests for the request pipeline (via Spreadsheet.request)."""

from __future__ import annotations

import httpx
import pytest

from sheetfeed.auth import AuthToken
from sheetfeed.exceptions import (
    AuthenticationError,
    MissingUrlError,
    NoResponseError,
    ServerError,
    TransportError,
    UnexpectedContentTypeError,
    XmlParseError,
)
from sheetfeed.pipeline import RequestOptions
from sheetfeed.spreadsheet import Spreadsheet
from sheetfeed.transport import TransportResponse

from tests.fakes import ATOM_FEED, FakeAuthenticator, FakeTransport

URL = "https://example.com"


class TestRequestValidation:
    @pytest.mark.asyncio
    async def test_missing_url(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        """A request without a URL fails before anything is sent."""
        with pytest.raises(MissingUrlError, match="^Invalid request$"):
            await spreadsheet.request({})
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_url(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        with pytest.raises(MissingUrlError):
            await spreadsheet.request(RequestOptions(url=""))
        assert fake_transport.requests == []


class TestTransportRequest:
    @pytest.mark.asyncio
    async def test_sends_token_and_query_by_identity(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.respond("<title>Income</title>")
        qs = {"min-row": 2}

        await spreadsheet.request({"url": URL, "qs": qs})

        assert len(fake_transport.requests) == 1
        sent = fake_transport.requests[0]
        assert sent.method == "GET"
        assert sent.url == URL
        assert sent.params is qs
        assert sent.headers["Authorization"] == "Bearer initial"
        assert sent.headers["GData-Version"] == "3.0"


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectTimeout("ETIMEDOUT"),
            httpx.ConnectError("connection refused"),
            TimeoutError("ETIMEDOUT"),
        ],
    )
    async def test_transport_error(
        self,
        spreadsheet: Spreadsheet,
        fake_transport: FakeTransport,
        authenticator: FakeAuthenticator,
        error: Exception,
    ) -> None:
        """Network failures are wrapped and never retried."""
        fake_transport.error = error

        with pytest.raises(TransportError) as exc_info:
            await spreadsheet.request({"url": URL})

        assert exc_info.value.__cause__ is error
        assert len(fake_transport.requests) == 1
        assert authenticator.calls == []

    @pytest.mark.asyncio
    async def test_no_response(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.response = None
        with pytest.raises(NoResponseError) as exc_info:
            await spreadsheet.request({"url": URL})
        assert str(exc_info.value) == "no response"

    @pytest.mark.asyncio
    async def test_server_error(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.respond("Something broke.", status_code=500)

        with pytest.raises(ServerError) as exc_info:
            await spreadsheet.request({"url": URL})

        assert str(exc_info.value)
        assert exc_info.value.code == 500
        assert exc_info.value.body == "Something broke."

    @pytest.mark.asyncio
    async def test_client_error_is_a_server_error(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.respond("Not found", status_code=404)
        with pytest.raises(ServerError) as exc_info:
            await spreadsheet.request({"url": URL})
        assert exc_info.value.code == 404
        assert "Not Found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unexpected_content_type(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.respond("<!DOCTYPE html>", content_type="text/html")

        with pytest.raises(UnexpectedContentTypeError) as exc_info:
            await spreadsheet.request({"url": URL})

        assert str(exc_info.value) == "<!DOCTYPE html>"
        assert exc_info.value.content_type == "text/html"

    @pytest.mark.asyncio
    async def test_missing_content_type(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.response = TransportResponse(200, {}, "<title>x</title>")
        with pytest.raises(UnexpectedContentTypeError):
            await spreadsheet.request({"url": URL})

    @pytest.mark.asyncio
    async def test_malformed_xml(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        fake_transport.respond("<feed><entry></feed>")
        with pytest.raises(XmlParseError):
            await spreadsheet.request({"url": URL})


class TestReauthentication:
    @pytest.mark.asyncio
    async def test_reauth_on_401(
        self,
        spreadsheet: Spreadsheet,
        fake_transport: FakeTransport,
        authenticator: FakeAuthenticator,
    ) -> None:
        """A 401 triggers one re-auth and one retry of the same request."""
        qs = {"max-row": 5}
        fake_transport.responses = [
            TransportResponse(401, {"content-type": "text/html"}, "Token expired")
        ]
        fake_transport.respond("<title>Income</title>")

        tree = await spreadsheet.request({"url": URL, "qs": qs})

        assert tree == {"title": "Income"}
        assert len(authenticator.calls) == 1
        assert authenticator.calls[0].spreadsheet_id == "spreadsheetId"
        assert authenticator.calls[0].worksheet_id == "worksheetId"
        assert spreadsheet.auth_token == AuthToken("token-1")

        first, retry = fake_transport.requests
        assert first.headers["Authorization"] == "Bearer initial"
        assert retry.headers["Authorization"] == "Bearer token-1"
        assert retry.url == first.url
        assert retry.params is qs

    @pytest.mark.asyncio
    async def test_second_401_is_not_retried(
        self,
        spreadsheet: Spreadsheet,
        fake_transport: FakeTransport,
        authenticator: FakeAuthenticator,
    ) -> None:
        fake_transport.respond("Unauthorized", status_code=401)

        with pytest.raises(ServerError) as exc_info:
            await spreadsheet.request({"url": URL})

        assert exc_info.value.code == 401
        assert len(authenticator.calls) == 1
        assert len(fake_transport.requests) == 2

    @pytest.mark.asyncio
    async def test_reauth_failure_propagates(
        self, spreadsheet: Spreadsheet, fake_transport: FakeTransport
    ) -> None:
        error = AuthenticationError("refresh token revoked")
        spreadsheet._pipeline._authenticator = FakeAuthenticator(error=error)
        fake_transport.respond("Unauthorized", status_code=401)

        with pytest.raises(AuthenticationError) as exc_info:
            await spreadsheet.request({"url": URL})

        assert exc_info.value is error
        assert len(fake_transport.requests) == 1
        assert spreadsheet.auth_token == AuthToken("initial")

    @pytest.mark.asyncio
    async def test_no_reauth_on_success(
        self,
        spreadsheet: Spreadsheet,
        fake_transport: FakeTransport,
        authenticator: FakeAuthenticator,
    ) -> None:
        fake_transport.respond("<title>Income</title>", content_type=ATOM_FEED)
        await spreadsheet.request({"url": URL})
        assert authenticator.calls == []
