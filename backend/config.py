from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DAY_SECONDS = 24 * 60 * 60


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "Book Cover Resolver"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # "memory://" keeps entries in-process; anything else is a Redis URL.
    CACHE_URL: str = "redis://localhost:6379/0"

    # Upstream services
    OPENLIBRARY_SEARCH_URL: str = "https://openlibrary.org/search.json"
    COVER_URL_TEMPLATE: str = "https://covers.openlibrary.org/b/isbn/{identifier}-L.jpg?default=false"
    PLACEHOLDER_URL: str = "https://placehold.co/325x500"
    USER_AGENT: str = "BookCoverResolver/1.0"
    # None leaves timeouts to the transport.
    HTTP_TIMEOUT: Optional[float] = 5.0

    # Resolution policy
    COVER_CANDIDATE_LIMIT: int = Field(10, gt=0)
    RESOLVED_TTL_SECONDS: int = Field(30 * DAY_SECONDS, gt=0)
    PLACEHOLDER_TTL_SECONDS: int = Field(7 * DAY_SECONDS, gt=0)

    @field_validator("LOG_LEVEL", mode="before")
    def _normalize_log_level(cls, v):
        return str(v).strip().upper() if v else "INFO"

    @field_validator("HTTP_TIMEOUT", mode="before")
    def _parse_no_timeout(cls, v):
        """Allow HTTP_TIMEOUT= / none / null in the environment to mean no timeout."""
        if isinstance(v, str) and v.strip().lower() in ("", "none", "null"):
            return None
        return v

    @field_validator("HTTP_TIMEOUT")
    def _positive_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("HTTP_TIMEOUT must be positive or unset")
        return v


settings = Settings()
