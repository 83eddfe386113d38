"""Credential acquisition for the spreadsheet feed service.

Supports three authentication modes:
1. Access token - a token obtained elsewhere, used as-is
2. OAuth2 refresh token - exchanged for a fresh access token with google-auth
3. Service account file - signed JWT exchange with google-auth

Every mode implements the ``Authenticator`` interface so the request pipeline
can re-authenticate without knowing which one is in use.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from loguru import logger

from sheetfeed.exceptions import AuthenticationError

FEEDS_SCOPE = "https://spreadsheets.google.com/feeds"
TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class AuthToken:
    """An access token plus its scheme."""

    value: str
    type: str = "Bearer"

    @property
    def header(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"{self.type} {self.value}"


@dataclass(frozen=True)
class AuthParams:
    """Parameters handed to an authenticator on every (re)authentication."""

    spreadsheet_id: str | None
    worksheet_id: str | None
    use_cell_text_values: bool = True
    use_https: bool = True


class Authenticator(ABC):
    """Obtains access tokens for the feed service."""

    @abstractmethod
    async def authenticate(self, params: AuthParams) -> AuthToken:
        """Return a fresh token.

        Raises:
            AuthenticationError: If the credential exchange fails.
        """
        ...


class StaticTokenAuthenticator(Authenticator):
    """Hands out a token that was obtained out of band.

    There is nothing to refresh, so re-authentication yields the same token.
    """

    def __init__(self, token: str | AuthToken) -> None:
        self._token = token if isinstance(token, AuthToken) else AuthToken(token)

    async def authenticate(self, params: AuthParams) -> AuthToken:
        return self._token


class _GoogleCredentialsAuthenticator(Authenticator):
    """Shared refresh logic for google-auth credential objects."""

    @abstractmethod
    def _credentials(self) -> Credentials | service_account.Credentials:
        """Build the credential object to refresh."""
        ...

    async def authenticate(self, params: AuthParams) -> AuthToken:
        credentials = self._credentials()
        try:
            # google-auth refreshes synchronously over requests
            await asyncio.to_thread(credentials.refresh, Request())
        except GoogleAuthError as e:
            logger.warning(f"Token refresh failed: {e}")
            raise AuthenticationError(f"Token refresh failed: {e}") from e
        if not credentials.token:
            raise AuthenticationError("Token refresh returned no access token")
        logger.debug(f"Obtained access token for spreadsheet {params.spreadsheet_id}")
        return AuthToken(credentials.token)


class OAuth2Authenticator(_GoogleCredentialsAuthenticator):
    """Exchanges an OAuth2 refresh token for access tokens."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        token_uri: str = TOKEN_URI,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._token_uri = token_uri

    def _credentials(self) -> Credentials:
        return Credentials(
            token=None,
            refresh_token=self._refresh_token,
            client_id=self._client_id,
            client_secret=self._client_secret,
            token_uri=self._token_uri,
            scopes=[FEEDS_SCOPE],
        )


class ServiceAccountAuthenticator(_GoogleCredentialsAuthenticator):
    """Obtains access tokens from a service account JSON key file."""

    def __init__(self, key_file: str | Path) -> None:
        self._key_file = Path(key_file)

    def _credentials(self) -> service_account.Credentials:
        if not self._key_file.exists():
            raise AuthenticationError(
                f"Service account file not found: {self._key_file}"
            )
        return service_account.Credentials.from_service_account_file(
            str(self._key_file), scopes=[FEEDS_SCOPE]
        )
