"""Configuration management for tablemath."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    # Number formatting defaults (overridden by the persisted settings store)
    precision: int = int(os.getenv("PRECISION", "2"))
    locale: str = os.getenv("LOCALE", "en-US")

    # Document vault and persisted state
    vault_path: Path = Path(os.getenv("VAULT_PATH", "."))
    index_path: Path = Path(os.getenv("INDEX_PATH", "data/table-math/data.json"))
    settings_db_path: Path = Path(os.getenv("SETTINGS_DB_PATH", "data/tablemath.db"))

    # Recalculation behaviour
    debounce_seconds: float = float(os.getenv("DEBOUNCE_SECONDS", "0.5"))
    index_batch_size: int = int(os.getenv("INDEX_BATCH_SIZE", "50"))
    clear_stale_variables: bool = os.getenv("CLEAR_STALE_VARIABLES", "false").lower() == "true"

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    @field_validator("precision")
    @classmethod
    def _clamp_precision(cls, value: int) -> int:
        return max(0, min(10, value))

    @field_validator("index_batch_size")
    @classmethod
    def _positive_batch(cls, value: int) -> int:
        return max(1, value)


settings = Settings()
