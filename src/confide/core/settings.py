"""Application settings and configuration.

Settings are loaded from environment variables (or a ``.env`` file) with
defaults suitable for local development.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="Confide", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Identity tokens issued by the external identity provider
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Document store backend
    store_backend: Literal["sql", "memory"] = Field(default="sql", alias="STORE_BACKEND")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./confide.db",
        alias="DATABASE_URL",
    )
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Feed and search behaviour
    feed_page_size: int = Field(default=50, ge=1, alias="FEED_PAGE_SIZE")
    recent_search_limit: int = Field(default=5, ge=1, alias="RECENT_SEARCH_LIMIT")
    notification_snippet_length: int = Field(
        default=100,
        ge=1,
        alias="NOTIFICATION_SNIPPET_LENGTH",
    )

    # CORS configuration for mobile/web clients
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def uses_sql_store(self) -> bool:
        """Return True when documents are persisted through SQLAlchemy."""
        return self.store_backend == "sql"


settings = Settings()
