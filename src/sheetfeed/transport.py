"""Transport layer for the spreadsheet feed service.

Defines the Transport protocol and implementations:
- HttpxTransport: Production transport over HTTP(S)
- LocalFileTransport: Test transport reading from local golden files
"""

from __future__ import annotations

import ssl
import urllib.parse
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

import certifi
import httpx

ATOM_CONTENT_TYPE = "application/atom+xml"
DEFAULT_TIMEOUT = 60


@dataclass
class TransportRequest:
    """A single HTTP request as handed to a Transport.

    ``params`` is the caller's query mapping itself, not a copy.
    """

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and raw body of an HTTP response."""

    status_code: int
    headers: Mapping[str, str]
    body: str

    def header(self, name: str) -> str | None:
        """Look up a header case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")


class Transport(ABC):
    """Abstract base class for feed transport.

    A transport performs exactly one HTTP exchange per ``fetch`` call. It may
    raise ``httpx.RequestError`` or ``OSError`` for network failures, and may
    return None when the exchange produced no response at all.
    """

    @abstractmethod
    async def fetch(self, request: TransportRequest) -> TransportResponse | None:
        """Perform the request and return the response."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class HttpxTransport(Transport):
    """Production transport backed by an ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds
            client: Pre-configured client to use instead of the default one
        """
        if client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            client = httpx.AsyncClient(
                timeout=timeout,
                verify=ssl_context,
                headers={"Accept": ATOM_CONTENT_TYPE},
            )
        self._client = client

    async def fetch(self, request: TransportRequest) -> TransportResponse | None:
        response = await self._client.request(
            request.method,
            request.url,
            params=request.params,
            headers=request.headers,
        )
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class LocalFileTransport(Transport):
    """Test transport that serves feeds from local golden files.

    The feed URL is mapped onto the golden directory by its identifiers:

        golden_dir/
            spreadsheets.xml                       # spreadsheets/private/full
            <spreadsheet_id>/
                worksheets.xml                     # worksheets/<ss>/private/full
                <worksheet_id>/
                    cells.xml                      # cells/<ss>/<ws>/private/full
                    worksheets.xml                 # worksheets/<ss>/private/full/<ws>

    A missing file is answered with a 404.
    """

    def __init__(self, golden_dir: Path) -> None:
        """Initialize the transport.

        Args:
            golden_dir: Directory containing golden feed files
        """
        self._golden_dir = golden_dir
        self.requests: list[TransportRequest] = []

    def path_for(self, url: str) -> Path:
        """Return the golden file that answers ``url``."""
        path = urllib.parse.urlparse(url).path
        _, _, feed_path = path.partition("/feeds/")
        kind, *rest = feed_path.strip("/").split("/")
        ids = [part for part in rest if part not in ("private", "full", "")]
        return self._golden_dir.joinpath(*ids, f"{kind}.xml")

    async def fetch(self, request: TransportRequest) -> TransportResponse | None:
        self.requests.append(request)
        path = self.path_for(request.url)
        if not path.exists():
            return TransportResponse(
                status_code=404,
                headers={"content-type": "text/plain"},
                body=f"Feed not found: {request.url}",
            )
        return TransportResponse(
            status_code=200,
            headers={"content-type": f"{ATOM_CONTENT_TYPE}; charset=UTF-8; type=feed"},
            body=path.read_text(encoding="utf-8"),
        )

    async def close(self) -> None:
        """No-op for local file transport."""
        pass
