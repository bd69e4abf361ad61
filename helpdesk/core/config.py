"""Application configuration with environment variables."""

from datetime import timedelta

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROUTING_TIEBREAKS = ("most_recently_updated", "least_recently_updated")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: major.minor.patch)
    VERSION: str = "0.2.0"

    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./helpdesk.db"
    DB_POOL_TIMEOUT_SECONDS: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 15000  # PostgreSQL only
    DB_LOCK_TIMEOUT_MS: int = 5000  # PostgreSQL lock wait; SQLite busy timeout

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Thread routing policy
    REOPEN_WINDOW_HOURS: float = 24.0
    ROUTING_TIEBREAK: str = "most_recently_updated"

    # Ticket display ids (TIX-1234)
    TICKET_CODE_PREFIX: str = "TIX"
    TICKET_CODE_DIGITS: int = 4
    TICKET_CODE_MAX_ATTEMPTS: int = 8

    # Reply drafting (text generation service)
    AI_PROVIDER: str = "anthropic"  # anthropic | openai
    AI_API_KEY: str = ""
    AI_MODEL: str = ""  # Empty uses the provider default
    AI_MAX_TOKENS: int = 1024
    AI_TIMEOUT_SECONDS: float = 30.0

    # Brand voice used in drafted replies
    BRAND_NAME: str = "TIPSY AF"
    AGENT_SIGNATURE: str = "Lauren"

    @field_validator("ROUTING_TIEBREAK")
    @classmethod
    def _check_tiebreak(cls, value: str) -> str:
        if value not in ROUTING_TIEBREAKS:
            raise ValueError(f"ROUTING_TIEBREAK must be one of {ROUTING_TIEBREAKS}, got {value!r}")
        return value

    @field_validator("REOPEN_WINDOW_HOURS")
    @classmethod
    def _check_reopen_window(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"REOPEN_WINDOW_HOURS must be > 0, got {value}")
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def reopen_window(self) -> timedelta:
        """Span after a ticket closes during which a new message reopens it."""
        return timedelta(hours=self.REOPEN_WINDOW_HOURS)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
