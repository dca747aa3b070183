"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============== Environment ==============
    environment: Literal["development", "staging", "production"] = "development"

    # ============== Database ==============
    # Absent or blank means "unconfigured": every read is served from the demo dataset.
    database_url: str | None = None
    db_pool_size: int = Field(default=5, ge=1, le=10)
    db_max_overflow: int = Field(default=5, ge=0, le=10)
    db_connect_timeout: float = Field(default=10.0, gt=0)
    db_pool_recycle: int = Field(default=30, ge=1)
    db_echo: bool = False

    @property
    def has_database_config(self) -> bool:
        """Whether a live store connection string is present."""
        return bool(self.database_url and self.database_url.strip())

    @property
    def db_url(self) -> str:
        """Database URL normalised to the asyncpg driver."""
        if not self.has_database_config:
            return ""
        url = self.database_url.strip()
        for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    # ============== Seed Data ==============
    seed_path: str = "seeds/financial-history.seed.json"

    @property
    def seed_file(self) -> Path:
        """Absolute path of the main seed file."""
        path = Path(self.seed_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path.resolve()

    # ============== Auth Stubs ==============
    service_token: str | None = None

    # ============== API ==============
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False
    cors_origins_str: str = Field(default="http://localhost:3000,http://localhost:8000", alias="cors_origins")

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # ============== Logging ==============
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    # ============== Computed Properties ==============
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
