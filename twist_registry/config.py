"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Deployment parameters (admin, supply cap, vesting window) come from the environment
    - get_settings() is cached (lru_cache) — single instance per process
    - vesting_duration_seconds > 0 and initial_supply <= max_supply

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults match the TWIST token economics (100M cap, 10M initial, 18 decimals)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TOKEN_UNIT = 10 ** 18


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://twist:twist@db:5432/twist"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = False

    # Deployment
    admin_identity: str = "0x00000000000000000000000000000000000000a1"
    max_supply: int = 100_000_000 * TOKEN_UNIT
    initial_supply: int = 10_000_000 * TOKEN_UNIT
    vesting_start: int | None = None  # None: deployment time
    vesting_duration_seconds: int = 730 * 24 * 3600

    @field_validator("vesting_duration_seconds", "max_supply")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def initial_within_cap(self) -> "Settings":
        if not 0 <= self.initial_supply <= self.max_supply:
            raise ValueError("initial_supply must be between 0 and max_supply")
        return self

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
