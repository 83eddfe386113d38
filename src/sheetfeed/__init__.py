"""sheetfeed - Async reader for spreadsheet Atom/XML feeds.

Authenticates against the feed service, fetches worksheet feeds and turns the
XML into plain Python values: a sparse row/column grid plus worksheet info.
"""

__version__ = "0.1.0"

from sheetfeed.auth import (
    AuthParams,
    Authenticator,
    AuthToken,
    OAuth2Authenticator,
    ServiceAccountAuthenticator,
    StaticTokenAuthenticator,
)
from sheetfeed.config import Settings, SpreadsheetOptions, get_settings
from sheetfeed.exceptions import (
    AuthenticationError,
    ConfigurationError,
    MalformedFeedError,
    MissingUrlError,
    NoResponseError,
    ServerError,
    SheetFeedError,
    TransportError,
    UnexpectedContentTypeError,
    XmlParseError,
)
from sheetfeed.feed import FeedInfo, RowsGrid, WorksheetMetadata
from sheetfeed.pipeline import RequestOptions, RequestPipeline
from sheetfeed.spreadsheet import Spreadsheet, create
from sheetfeed.transport import (
    HttpxTransport,
    LocalFileTransport,
    Transport,
    TransportRequest,
    TransportResponse,
)
from sheetfeed.xml_coerce import parse

load = create

__all__ = [
    "AuthParams",
    "AuthToken",
    "AuthenticationError",
    "Authenticator",
    "ConfigurationError",
    "FeedInfo",
    "HttpxTransport",
    "LocalFileTransport",
    "MalformedFeedError",
    "MissingUrlError",
    "NoResponseError",
    "OAuth2Authenticator",
    "RequestOptions",
    "RequestPipeline",
    "RowsGrid",
    "ServerError",
    "ServiceAccountAuthenticator",
    "Settings",
    "SheetFeedError",
    "Spreadsheet",
    "SpreadsheetOptions",
    "StaticTokenAuthenticator",
    "Transport",
    "TransportError",
    "TransportRequest",
    "TransportResponse",
    "UnexpectedContentTypeError",
    "WorksheetMetadata",
    "XmlParseError",
    "__version__",
    "create",
    "get_settings",
    "load",
    "parse",
]
