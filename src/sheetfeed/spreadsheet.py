"""Spreadsheet session handle and the ``create`` entry point."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from sheetfeed.auth import (
    AuthParams,
    Authenticator,
    AuthToken,
    OAuth2Authenticator,
    ServiceAccountAuthenticator,
    StaticTokenAuthenticator,
)
from sheetfeed.config import Settings, SpreadsheetOptions, get_settings
from sheetfeed.exceptions import ConfigurationError
from sheetfeed.feed import (
    FeedInfo,
    RowsGrid,
    WorksheetMetadata,
    extract_cells,
    extract_worksheet,
    find_entry_id,
)
from sheetfeed.pipeline import RequestOptions, RequestPipeline
from sheetfeed.transport import HttpxTransport, Transport
from sheetfeed.xml_coerce import CoercedValue

DEFAULT_FEEDS_HOST = "spreadsheets.google.com"


class Spreadsheet:
    """A resolved worksheet plus the credential used to read it.

    Created by ``create``. Identifiers are fixed for the lifetime of the
    handle; ``auth_token`` is replaced whenever the pipeline re-authenticates.

    Example:
        >>> sheet = await sheetfeed.create({"accessToken": "ya29...",
        ...                                 "spreadsheetId": "abc", "worksheetId": "od6"})
        >>> rows, info = await sheet.receive()
        >>> rows[1][1]
        'Name'
    """

    def __init__(
        self,
        spreadsheet_id: str,
        worksheet_id: str,
        auth_token: AuthToken,
        pipeline: RequestPipeline,
        *,
        protocol: str = "https",
        use_cell_text_values: bool = True,
        feeds_host: str = DEFAULT_FEEDS_HOST,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._worksheet_id = worksheet_id
        self._protocol = protocol
        self._use_cell_text_values = use_cell_text_values
        self._feeds_host = feeds_host
        self._pipeline = pipeline
        self.auth_token = auth_token

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    @property
    def worksheet_id(self) -> str:
        return self._worksheet_id

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def use_cell_text_values(self) -> bool:
        return self._use_cell_text_values

    @property
    def feeds_url(self) -> str:
        return f"{self._protocol}://{self._feeds_host}/feeds"

    @property
    def cells_url(self) -> str:
        return (
            f"{self.feeds_url}/cells/{self._spreadsheet_id}/{self._worksheet_id}"
            "/private/full"
        )

    def auth_params(self) -> AuthParams:
        return AuthParams(
            spreadsheet_id=self._spreadsheet_id or None,
            worksheet_id=self._worksheet_id or None,
            use_cell_text_values=self._use_cell_text_values,
            use_https=self._protocol == "https",
        )

    async def request(
        self, options: RequestOptions | Mapping[str, Any]
    ) -> dict[str, CoercedValue]:
        """Fetch a feed URL and return its coerced XML tree.

        Accepts ``RequestOptions`` or a mapping with ``url`` and optional ``qs``.
        """
        if not isinstance(options, RequestOptions):
            options = RequestOptions(url=options.get("url"), qs=options.get("qs"))
        return await self._pipeline.request(self, options)

    async def receive(
        self,
        query: Mapping[str, Any] | None = None,
        *,
        get_values: bool = False,
    ) -> tuple[RowsGrid, FeedInfo]:
        """Read the worksheet's cells feed.

        Args:
            query: Feed query parameters (``min-row``, ``max-col`` ...), sent
                unchanged
            get_values: Return computed values instead of formulas

        Returns:
            The sparse row grid (``rows[row][col]``, 1-based) and feed info.

        Raises:
            MalformedFeedError: If the response has no feed element.
        """
        tree = await self.request(RequestOptions(url=self.cells_url, qs=query))
        rows, info = extract_cells(
            tree, self._spreadsheet_id, self._worksheet_id, get_values=get_values
        )
        logger.debug(
            f"Received {info.total_cells} cells in {info.total_rows} rows "
            f"from worksheet {self._worksheet_id}"
        )
        return rows, info

    async def metadata(self) -> WorksheetMetadata:
        """Read the worksheet's title, update time and dimensions."""
        url = (
            f"{self.feeds_url}/worksheets/{self._spreadsheet_id}/private/full/"
            f"{self._worksheet_id}"
        )
        return extract_worksheet(await self.request(RequestOptions(url=url)))

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._pipeline.transport.close()

    async def __aenter__(self) -> Spreadsheet:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _resolve_spreadsheet(self, name: str) -> None:
        tree = await self.request(
            RequestOptions(url=f"{self.feeds_url}/spreadsheets/private/full")
        )
        spreadsheet_id = find_entry_id(tree, name)
        if spreadsheet_id is None:
            raise ConfigurationError(f"Spreadsheet '{name}' not found")
        logger.info(f"Resolved spreadsheet '{name}' to {spreadsheet_id}")
        self._spreadsheet_id = spreadsheet_id

    async def _resolve_worksheet(self, name: str) -> None:
        tree = await self.request(
            RequestOptions(
                url=f"{self.feeds_url}/worksheets/{self._spreadsheet_id}/private/full"
            )
        )
        worksheet_id = find_entry_id(tree, name)
        if worksheet_id is None:
            raise ConfigurationError(f"Worksheet '{name}' not found")
        logger.info(f"Resolved worksheet '{name}' to {worksheet_id}")
        self._worksheet_id = worksheet_id


def authenticator_for(options: SpreadsheetOptions) -> Authenticator:
    """Pick the authenticator matching the credentials in ``options``.

    Precedence: OAuth2 refresh token, service account, access token.
    """
    if options.oauth2 is not None:
        return OAuth2Authenticator(
            client_id=options.oauth2.client_id,
            client_secret=options.oauth2.client_secret,
            refresh_token=options.oauth2.refresh_token,
        )
    if options.oauth is not None:
        return ServiceAccountAuthenticator(options.oauth.key_file)
    if options.access_token:
        return StaticTokenAuthenticator(options.access_token)
    raise ConfigurationError("Missing authentication information")


async def create(
    options: SpreadsheetOptions | Mapping[str, Any],
    *,
    transport: Transport | None = None,
    authenticator: Authenticator | None = None,
    settings: Settings | None = None,
) -> Spreadsheet:
    """Authenticate and return a ready-to-use ``Spreadsheet``.

    Options are validated before any network activity. Spreadsheet and
    worksheet names are resolved to ids after authenticating.

    Args:
        options: Target and credentials, as ``SpreadsheetOptions`` or a mapping
        transport: Transport to use (default: a new ``HttpxTransport``)
        authenticator: Authenticator to use instead of one derived from the
            credentials in ``options``
        settings: Settings providing the feeds host and timeout

    Raises:
        ConfigurationError: If credentials or identifiers are missing, or a
            name does not match any spreadsheet/worksheet.
    """
    if not isinstance(options, SpreadsheetOptions):
        try:
            options = SpreadsheetOptions.model_validate(options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid spreadsheet options: {e}") from e

    if authenticator is None and not options.has_credentials:
        raise ConfigurationError("Missing authentication information")
    if not options.spreadsheet_id and not options.spreadsheet_name:
        raise ConfigurationError("Missing 'spreadsheetId' or 'spreadsheetName'")
    if not options.worksheet_id and not options.worksheet_name:
        raise ConfigurationError("Missing 'worksheetId' or 'worksheetName'")

    settings = settings or get_settings()
    authenticator = authenticator or authenticator_for(options)
    token = await authenticator.authenticate(
        AuthParams(
            spreadsheet_id=options.spreadsheet_id,
            worksheet_id=options.worksheet_id,
            use_cell_text_values=options.use_cell_text_values,
            use_https=options.use_https,
        )
    )

    owns_transport = transport is None
    if transport is None:
        transport = HttpxTransport(timeout=settings.timeout)

    spreadsheet = Spreadsheet(
        options.spreadsheet_id or "",
        options.worksheet_id or "",
        token,
        RequestPipeline(transport, authenticator),
        protocol=options.protocol,
        use_cell_text_values=options.use_cell_text_values,
        feeds_host=settings.feeds_host,
    )
    try:
        if not options.spreadsheet_id and options.spreadsheet_name:
            await spreadsheet._resolve_spreadsheet(options.spreadsheet_name)
        if not options.worksheet_id and options.worksheet_name:
            await spreadsheet._resolve_worksheet(options.worksheet_name)
    except Exception:
        if owns_transport:
            await transport.close()
        raise
    return spreadsheet
