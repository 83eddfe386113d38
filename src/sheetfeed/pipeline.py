"""Request pipeline: one logical feed request with transparent re-auth."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Protocol

import httpx
from loguru import logger

from sheetfeed.auth import AuthParams, Authenticator, AuthToken
from sheetfeed.exceptions import (
    MissingUrlError,
    NoResponseError,
    ServerError,
    TransportError,
    UnexpectedContentTypeError,
)
from sheetfeed.transport import (
    ATOM_CONTENT_TYPE,
    Transport,
    TransportRequest,
    TransportResponse,
)
from sheetfeed.xml_coerce import CoercedValue, parse

GDATA_VERSION = "3.0"


@dataclass
class RequestOptions:
    """Per-call request options. ``qs`` is forwarded to the transport as-is."""

    url: str | None = None
    qs: Mapping[str, Any] | None = None


class Session(Protocol):
    """What the pipeline needs from a session handle."""

    auth_token: AuthToken

    def auth_params(self) -> AuthParams: ...


class RequestPipeline:
    """Runs feed requests for a session.

    Each call performs one transport exchange. A 401 answer triggers a single
    re-authentication, after which the same request is sent once more; the
    refreshed token is stored on the session. Concurrent calls on one session
    race on that token and may each re-authenticate.
    """

    def __init__(self, transport: Transport, authenticator: Authenticator) -> None:
        self._transport = transport
        self._authenticator = authenticator

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def authenticator(self) -> Authenticator:
        return self._authenticator

    async def request(
        self, session: Session, options: RequestOptions
    ) -> dict[str, CoercedValue]:
        """Fetch ``options.url`` and return the coerced XML tree.

        Raises:
            MissingUrlError: If no URL was given; nothing is sent.
            TransportError: If the HTTP exchange failed.
            NoResponseError: If the transport produced no response.
            ServerError: If the service answered with an error status.
            UnexpectedContentTypeError: If the body is not an Atom feed.
            XmlParseError: If the body is not well-formed XML.
        """
        if not options.url:
            raise MissingUrlError()

        response = await self._send(session, options)
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            logger.info(f"Token rejected for {options.url}, re-authenticating")
            session.auth_token = await self._authenticator.authenticate(
                session.auth_params()
            )
            response = await self._send(session, options)

        if response.status_code >= 400:
            logger.warning(f"GET {options.url} failed with {response.status_code}")
            raise ServerError(
                _status_message(response.status_code),
                code=response.status_code,
                body=response.body,
            )

        content_type = response.content_type or ""
        if ATOM_CONTENT_TYPE not in content_type:
            logger.warning(f"GET {options.url} returned {content_type or 'no content-type'}")
            raise UnexpectedContentTypeError(response.body, content_type)

        return parse(response.body)

    async def _send(
        self, session: Session, options: RequestOptions
    ) -> TransportResponse:
        request = TransportRequest(
            url=options.url or "",
            headers={
                "Authorization": session.auth_token.header,
                "GData-Version": GDATA_VERSION,
            },
            params=options.qs,
        )
        logger.debug(f"GET {request.url} params={request.params}")
        try:
            response = await self._transport.fetch(request)
        except (httpx.RequestError, OSError) as e:
            logger.warning(f"GET {request.url} failed: {e!r}")
            raise TransportError(f"Network error: {e!r}") from e
        if response is None:
            raise NoResponseError()
        return response


def _status_message(status: int) -> str:
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return f"HTTP error {status}"
    return f"HTTP error {status} ({phrase})"
