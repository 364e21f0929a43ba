from __future__ import annotations

import re
from pathlib import Path
from typing import Annotated

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigMissing

# Bookkeeping tables owned by the store; category tables may not shadow them.
RESERVED_TABLES = frozenset({"favorites", "position_seq", "sqlite_sequence"})

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Settings(BaseSettings):
    """Configuration for the record store, TUI and API.

    Values are loaded from environment variables and `.env`.

    Notes:
    - LOCFAV_TABLES is the table allow-list. Accepts a JSON list or a
      comma-separated string (``locations,cafes``).
    - LOCFAV_MAP_API_KEY is required by the TUI only. Restrict the key at the
      provider side (referrer/package) and keep it out of version control.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    LOCFAV_DB_PATH: Path = Field(default=Path("data/locfav.db"))
    LOCFAV_TABLES: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["locations"])
    LOCFAV_DEFAULT_TABLE: str | None = Field(default=None)
    # One retry after this delay when SQLite is unavailable (locked, missing, I/O).
    LOCFAV_STORE_RETRY_BACKOFF_SEC: float = Field(default=0.2, ge=0)
    LOCFAV_PAGE_SIZE: int = Field(default=25, ge=1)

    # Map provider (external)
    LOCFAV_MAP_API_KEY: SecretStr | None = Field(default=None)

    # API
    LOCFAV_API_HOST: str = Field(default="127.0.0.1")
    LOCFAV_API_PORT: int = Field(default=8140)
    LOCFAV_API_CORS_ALLOW_ALL: bool = Field(default=False)

    # Logging (rotating diagnostic log)
    LOCFAV_LOG_DIR: Path = Field(default=Path("_logs"))
    LOCFAV_LOG_LEVEL: str = Field(default="INFO")
    # If enabled, logs every API request.
    LOCFAV_LOG_ACCESS: bool = Field(default=False)
    # Timed rotation retention count (days).
    LOCFAV_LOG_BACKUP_COUNT: int = Field(default=14)

    @field_validator("LOCFAV_TABLES", mode="before")
    @classmethod
    def _split_tables(cls, v: object) -> object:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("LOCFAV_TABLES")
    @classmethod
    def _check_tables(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("LOCFAV_TABLES must name at least one table")
        seen: list[str] = []
        for name in v:
            if not _IDENT.match(name):
                raise ValueError(f"invalid table name: {name!r}")
            if name.lower() in RESERVED_TABLES or name.lower().startswith("sqlite_"):
                raise ValueError(f"table name {name!r} is reserved")
            if name not in seen:
                seen.append(name)
        return seen

    @model_validator(mode="after")
    def _default_table(self) -> Settings:
        if self.LOCFAV_DEFAULT_TABLE is None:
            self.LOCFAV_DEFAULT_TABLE = self.LOCFAV_TABLES[0]
        elif self.LOCFAV_DEFAULT_TABLE not in self.LOCFAV_TABLES:
            raise ValueError(
                f"LOCFAV_DEFAULT_TABLE {self.LOCFAV_DEFAULT_TABLE!r} is not in LOCFAV_TABLES"
            )
        return self


def load_settings() -> Settings:
    s = Settings()
    # Ensure parent dir exists
    s.LOCFAV_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return s


def require_map_api_key(settings: Settings) -> SecretStr:
    """Return the map key or fail fast before any screen is shown."""
    key = settings.LOCFAV_MAP_API_KEY
    if key is None or not key.get_secret_value().strip():
        raise ConfigMissing(
            "LOCFAV_MAP_API_KEY",
            hint="set it in the environment or .env (never commit it)",
        )
    return key
