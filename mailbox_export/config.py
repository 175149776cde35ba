"""Configuration for the mailbox export helpers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, Sequence

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()

DEFAULT_OUTPUT_DIR = Path("Output") / "EmailExport"


def _split_list(value: str | Sequence[str] | None) -> list[str]:
    """Turn delimiter-separated env strings into cleaned lists."""
    if value is None:
        return []
    if isinstance(value, str):
        items = re.split(r"[;,]", value)
    else:
        items = list(value)
    return [item.strip() for item in items if item.strip()]


class Settings(BaseSettings):
    """Graph connection settings derived from environment variables."""

    graph_tenant_id: str | None = Field(None, alias="GRAPH_TENANT_ID")
    graph_client_id: str = Field(..., alias="GRAPH_CLIENT_ID")
    graph_client_secret: str | None = Field(None, alias="GRAPH_CLIENT_SECRET")
    graph_auth_mode: Literal["client_credentials", "device_code"] = Field(
        "device_code", alias="GRAPH_AUTH_MODE"
    )
    graph_authority: str | None = Field(None, alias="GRAPH_AUTHORITY")
    graph_scopes_raw: str = Field("Mail.Read", alias="GRAPH_SCOPES")
    graph_token_cache: Path = Field(Path("data/msal_token_cache.bin"), alias="GRAPH_TOKEN_CACHE")

    export_ledger_db: Path | None = Field(None, alias="EXPORT_LEDGER_DB")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_authentication(self):
        if self.graph_auth_mode == "client_credentials":
            if not self.graph_client_secret:
                raise ValueError("GRAPH_CLIENT_SECRET is required for client_credentials mode.")
            if not (self.graph_tenant_id or self.graph_authority):
                raise ValueError(
                    "GRAPH_TENANT_ID or GRAPH_AUTHORITY must be provided for client_credentials mode."
                )
        return self

    @field_validator(
        "graph_tenant_id",
        "graph_client_secret",
        "graph_authority",
        "export_ledger_db",
        mode="before",
    )
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @property
    def authority_url(self) -> str:
        if self.graph_authority:
            return self.graph_authority.rstrip("/")
        if self.graph_tenant_id:
            return f"https://login.microsoftonline.com/{self.graph_tenant_id}"
        return "https://login.microsoftonline.com/organizations"

    @property
    def graph_scopes(self) -> list[str]:
        """Scopes requested for delegated Graph auth."""
        return _split_list(self.graph_scopes_raw) or ["Mail.Read"]


class ExportOptions(BaseModel):
    """Per-invocation export choices.

    ``output_dir`` left as ``None`` means :data:`DEFAULT_OUTPUT_DIR`, which is
    created on demand. An explicit directory must already exist.
    """

    output_format: Literal["eml", "txt"] = "eml"
    output_dir: Path | None = None
    include_attachments: bool = False

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_format(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def extension(self) -> str:
        return "txt" if self.output_format == "txt" else "eml"
