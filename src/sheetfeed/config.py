"""Configuration using pydantic and pydantic-settings.

``Settings`` holds process-wide defaults read from ``SHEETFEED_*`` environment
variables (or a ``.env`` file). ``SpreadsheetOptions`` describes one target
worksheet and the credentials used to reach it.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    feeds_host: str = "spreadsheets.google.com"
    use_https: bool = True
    use_cell_text_values: bool = True
    timeout: float = 60

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Credentials (any one mode is enough)
    access_token: str = ""
    oauth2_client_id: str = ""
    oauth2_client_secret: str = ""
    oauth2_refresh_token: str = ""
    service_account_path: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class OAuth2Config(BaseModel):
    """Installed-app OAuth2 credentials."""

    client_id: str
    client_secret: str
    refresh_token: str


class ServiceAccountConfig(BaseModel):
    """Service account key file."""

    key_file: str = Field(validation_alias=AliasChoices("key_file", "keyFile"))


class SpreadsheetOptions(BaseModel):
    """Options for ``sheetfeed.create``.

    Field names also accept the camelCase spelling (``spreadsheetId``,
    ``useHTTPS`` ...).
    """

    model_config = ConfigDict(extra="ignore")

    spreadsheet_id: str | None = Field(
        default=None, validation_alias=AliasChoices("spreadsheet_id", "spreadsheetId")
    )
    spreadsheet_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("spreadsheet_name", "spreadsheetName"),
    )
    worksheet_id: str | None = Field(
        default=None, validation_alias=AliasChoices("worksheet_id", "worksheetId")
    )
    worksheet_name: str | None = Field(
        default=None, validation_alias=AliasChoices("worksheet_name", "worksheetName")
    )
    use_cell_text_values: bool = Field(
        default=True,
        validation_alias=AliasChoices("use_cell_text_values", "useCellTextValues"),
    )
    use_https: bool = Field(
        default=True, validation_alias=AliasChoices("use_https", "useHTTPS")
    )

    access_token: str | None = Field(
        default=None, validation_alias=AliasChoices("access_token", "accessToken")
    )
    oauth2: OAuth2Config | None = None
    oauth: ServiceAccountConfig | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token or self.oauth2 or self.oauth)

    @property
    def protocol(self) -> str:
        return "https" if self.use_https else "http"
