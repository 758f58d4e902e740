# payroll_recon/core/config.py

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_ENVIRONMENTS = {"development", "staging", "production"}


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    If these appear in the URL query, SQLAlchemy can end up passing them to
    asyncpg.connect(), causing:
      TypeError: connect() got an unexpected keyword argument 'sslmode'
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # comma-separated
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # -----------------------------
    # DB
    # -----------------------------
    DATABASE_URL_ASYNC: str
    DATABASE_URL_SYNC: str

    # -----------------------------
    # Feeds
    # -----------------------------
    # utf-8-sig swallows the BOM spreadsheet exports like to prepend
    FEED_DELIMITER: str = ","
    FEED_ENCODING: str = "utf-8-sig"

    # -----------------------------
    # Payments
    # -----------------------------
    OVERDUE_THRESHOLD_DAYS: int = 90

    # -----------------------------
    # Users
    # -----------------------------
    DEFAULT_USER_PASSWORD: str | None = None

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        env = (self.ENVIRONMENT or "").strip().lower()
        if env not in ALLOWED_ENVIRONMENTS:
            raise ValueError(
                f"Unsupported ENVIRONMENT={self.ENVIRONMENT!r}. Allowed: {', '.join(sorted(ALLOWED_ENVIRONMENTS))}"
            )

        if self.OVERDUE_THRESHOLD_DAYS <= 0:
            raise ValueError("OVERDUE_THRESHOLD_DAYS must be a positive number of days.")

        if not self.FEED_DELIMITER:
            raise ValueError("FEED_DELIMITER must not be empty.")


settings = Settings()
