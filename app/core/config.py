import os
from functools import lru_cache
from typing import Mapping
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DATABASE_URL_PLACEHOLDER = "REPLACE_WITH_STRONG_DB_PASSWORD"


def resolve_database_url(
    *,
    database_url: str | None,
    postgres_user: str | None,
    postgres_password: str | None,
    postgres_host: str | None = "db",
    postgres_port: int | str | None = "5432",
    postgres_db: str | None = "rondo",
) -> tuple[str, str]:
    raw_database_url = (database_url or "").strip()
    if raw_database_url and DATABASE_URL_PLACEHOLDER not in raw_database_url:
        return raw_database_url, "env"

    user = quote_plus((postgres_user or "rondo").strip())
    password = quote_plus((postgres_password or "rondo").strip())
    host = (postgres_host or "db").strip() or "db"
    port = str(postgres_port or "5432").strip() or "5432"
    db_name = (postgres_db or "rondo").strip() or "rondo"
    constructed = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
    return constructed, "postgres_fallback"


def resolve_database_url_from_env(
    env: Mapping[str, str] | None = None,
    *,
    default_database_url: str | None = None,
) -> tuple[str, str]:
    source_env = os.environ if env is None else env
    database_url = source_env.get("DATABASE_URL", default_database_url or "")
    return resolve_database_url(
        database_url=database_url,
        postgres_user=source_env.get("POSTGRES_USER"),
        postgres_password=source_env.get("POSTGRES_PASSWORD"),
        postgres_host=source_env.get("POSTGRES_HOST", "db"),
        postgres_port=source_env.get("POSTGRES_PORT", "5432"),
        postgres_db=source_env.get("POSTGRES_DB", "rondo"),
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @model_validator(mode="after")
    def _check_list_limits(self) -> "Settings":
        if self.admin_list_default_limit < 1 or self.admin_list_max_limit < 1:
            raise ValueError("ADMIN_LIST_DEFAULT_LIMIT and ADMIN_LIST_MAX_LIMIT must be positive")
        if self.admin_list_default_limit > self.admin_list_max_limit:
            raise ValueError("ADMIN_LIST_DEFAULT_LIMIT must not exceed ADMIN_LIST_MAX_LIMIT")
        if self.event_batch_max_tickets < 1:
            raise ValueError("EVENT_BATCH_MAX_TICKETS must be positive")
        return self

    app_env: str = "development"
    app_name: str = "Rondo Pricing API"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    cors_origins: str = "http://localhost:5173"

    database_url: str = ""
    postgres_user: str = "rondo"
    postgres_password: str = "rondo"
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_db: str = "rondo"
    database_echo: bool = False

    admin_list_default_limit: int = 50
    admin_list_max_limit: int = 200
    event_batch_max_tickets: int = 500

    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.1

    @property
    def cors_origins_list(self) -> list[str]:
        return [v.strip() for v in self.cors_origins.split(",") if v.strip()]

    @property
    def resolved_database_url(self) -> str:
        url, _source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return url

    @property
    def resolved_database_url_source(self) -> str:
        _url, source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return source


@lru_cache
def get_settings() -> Settings:
    return Settings()
