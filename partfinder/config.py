"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path
from typing import Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_STATIC_CATALOG = _PACKAGE_DIR / "data" / "cars_data.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document store
    supabase_url: str = Field(..., validation_alias="SUPABASE_URL")
    supabase_key: str = Field(..., validation_alias="SUPABASE_KEY")

    # NHTSA vPIC
    nhtsa_base_url: str = Field(
        default="https://vpic.nhtsa.dot.gov/api",
        validation_alias="NHTSA_BASE_URL",
    )
    nhtsa_timeout: float = Field(default=15.0, validation_alias="NHTSA_TIMEOUT")

    # Catalog
    static_catalog_path: Path = Field(
        default=DEFAULT_STATIC_CATALOG,
        validation_alias="STATIC_CATALOG_PATH",
    )
    catalog_cache_ttl: int = Field(default=300, validation_alias="CATALOG_CACHE_TTL")

    # Diagnosis assistant (disabled when no key is set)
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")
    openai_max_tokens: int = Field(default=512, validation_alias="OPENAI_MAX_TOKENS")

    # API settings
    # JSON list or comma-separated string
    allowed_origins: Union[list[str], str] = Field(
        default=["*"],
        validation_alias="ALLOWED_ORIGINS",
    )
    rate_limit: str = Field(default="30/minute", validation_alias="RATE_LIMIT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return value.split(",")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """ALLOWED_ORIGINS with blank entries dropped."""
        return [o.strip() for o in self.allowed_origins if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]


def validate_settings() -> None:
    """Validate that all required settings are present."""
    settings = get_settings()
    errors = []

    if not settings.supabase_url:
        errors.append("SUPABASE_URL is required")
    if not settings.supabase_key:
        errors.append("SUPABASE_KEY is required")
    if not settings.static_catalog_path.exists():
        errors.append(f"STATIC_CATALOG_PATH not found: {settings.static_catalog_path}")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
