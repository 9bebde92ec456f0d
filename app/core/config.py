from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = "logs"  # None disables the file sink (read-only hosts)
    SLACK_WEBHOOK_URL: str | None = None
    SLACK_LOG_LEVEL: str = "ERROR"

    # Data folder (CSV datasets + monthly transaction feeds)
    DATA_DIR: str = "data"
    FEED_FILE_PREFIX: str = "transactions_"
    FEED_FIELD_NAME: str = "transactions"

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 6 * 60 * 60  # 6 hours

    # Access gate (Google ID tokens)
    GOOGLE_CLIENT_ID: str | None = None
    ALLOWED_EMAILS: str = ""  # comma separated
    AUTH_DEBUG_BYPASS: bool = False
    AUTH_TIMEOUT_SECONDS: float = 10.0
    TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"

    # In-process pre-cache scheduler (normally triggered externally)
    PRECACHE_ENABLED: bool = False
    PRECACHE_INTERVAL_SECONDS: int = 5 * 60 * 60  # refresh before the 6h TTL runs out

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development

    @property
    def allowed_email_set(self) -> frozenset[str]:
        """Allow-list entries, trimmed and lower-cased."""
        return frozenset(
            email.strip().lower() for email in self.ALLOWED_EMAILS.split(",") if email.strip()
        )


settings = Settings()
