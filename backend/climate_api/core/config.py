from functools import lru_cache
from typing import List, Literal

from json import loads as json_loads, JSONDecodeError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the climate dashboard API.

    All values come from environment variables or backend/.env.
    This is the single source of truth for:
    - environment (dev/staging/prod)
    - storage backend + database URL
    - CORS / allowed origins
    - docs toggle
    - auth / token settings
    - pagination bounds
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # High-level environment flags
    environment: str = Field(
        default="dev",
        description="Deployment environment identifier (dev|staging|prod)",
    )
    debug: bool = Field(default=True)
    version: str = Field(default="0.1.0")

    # Storage
    storage_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="'memory' keeps records in process-wide lists; 'sql' uses DATABASE_URL.",
    )
    database_url: str = Field(
        default="sqlite:///./climate.db",
        description="SQLAlchemy-style DB URL (SQLite for dev, Postgres in prod).",
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Seed demo users/stations/readings on start-up (SQL: only when empty).",
    )

    # Auth / tokens
    jwt_secret: str = Field(
        default="your-secret-key-change-in-production",
        description="JWT signing secret; override in all non-dev environments.",
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(
        default=24 * 60,
        description="Access token lifetime in minutes.",
    )

    # Rate limiting (login only)
    login_rate_limit: int = Field(default=5)
    login_rate_window: int = Field(default=60)
    trusted_proxy: bool = Field(
        default=False,
        description="Take the client IP from X-Forwarded-For. Only enable behind a proxy that sets it.",
    )

    # CORS / frontends
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description=(
            "Allowed frontend origins. Either a comma-separated string or a JSON list like "
            '["http://localhost:3000","http://127.0.0.1:3000"].'
        ),
    )

    # API docs toggle
    enable_docs: bool = Field(default=False)

    # Pagination
    default_page_limit: int = Field(default=10, ge=1)
    max_page_limit: int = Field(default=100, ge=1)

    # Request-level performance budget (warn on slow requests)
    slow_http_ms: int = Field(default=1500)

    def origins_list(self) -> List[str]:
        """
        Normalize ALLOWED_ORIGINS into a clean List[str] for CORSMiddleware.

        Supports two formats:
        - Comma-separated string:
            ALLOWED_ORIGINS=http://127.0.0.1:3000,http://localhost:3000
        - JSON array:
            ALLOWED_ORIGINS=["http://127.0.0.1:3000","http://localhost:3000"]
        """
        raw_str = (self.allowed_origins or "").strip()
        if not raw_str:
            return []

        if raw_str.startswith("[") and raw_str.endswith("]"):
            try:
                parsed = json_loads(raw_str)
                if isinstance(parsed, list):
                    return [str(o).strip() for o in parsed if str(o).strip()]
            except JSONDecodeError:
                # Fall back to naive split if JSON is malformed
                pass

        return [o.strip() for o in raw_str.split(",") if o.strip()]

    @property
    def is_prod(self) -> bool:
        return self.environment.lower() in {"prod", "production"}

    @property
    def access_token_lifetime_label(self) -> str:
        """Human label for the token lifetime, e.g. '24h' or '90m'."""
        minutes = self.access_token_expire_minutes
        if minutes % 60 == 0:
            return f"{minutes // 60}h"
        return f"{minutes}m"


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the app only parses env once.
    """
    return Settings()


settings = get_settings()
