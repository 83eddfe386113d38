"""Exceptions raised by sheetfeed."""

from __future__ import annotations


class SheetFeedError(Exception):
    """Base exception for all sheetfeed errors."""


class ConfigurationError(SheetFeedError):
    """Raised when spreadsheet options are incomplete or cannot be resolved."""


class AuthenticationError(SheetFeedError):
    """Raised when a credential exchange fails."""


class MissingUrlError(SheetFeedError):
    """Raised when a request is issued without a URL."""

    def __init__(self) -> None:
        super().__init__("Invalid request")


class TransportError(SheetFeedError):
    """Raised when the HTTP call itself fails (timeout, connection reset...)."""


class NoResponseError(SheetFeedError):
    """Raised when the transport completes without a response."""

    def __init__(self) -> None:
        super().__init__("no response")


class ServerError(SheetFeedError):
    """Raised when the feed service answers with an error status."""

    def __init__(self, message: str, code: int, body: str) -> None:
        super().__init__(message)
        self.code = code
        self.body = body


class UnexpectedContentTypeError(SheetFeedError):
    """Raised when the response is not an Atom feed.

    The message is the raw body, which is usually an HTML error page.
    """

    def __init__(self, body: str, content_type: str | None = None) -> None:
        super().__init__(body)
        self.body = body
        self.content_type = content_type


class XmlParseError(SheetFeedError):
    """Raised when a response body is not well-formed XML."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


class MalformedFeedError(SheetFeedError):
    """Raised when a parsed document lacks the expected feed structure."""

    def __init__(self, message: str = "Error Reading Spreadsheet") -> None:
        super().__init__(message)
