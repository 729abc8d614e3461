"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rebate_core.config.constants import (
    INVITE_CODE_DEFAULT_LENGTH,
    INVITE_CODE_MAX_ATTEMPTS,
    LEDGER_DEFAULT_PAGE_SIZE,
    LEDGER_MAX_PAGE_SIZE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str | None = "logs/rebate.log"
    log_rotation: str = "1 day"
    log_retention: str = "7 days"

    # Invite codes
    invite_code_length: int = Field(
        default=INVITE_CODE_DEFAULT_LENGTH,
        ge=4,
        le=32,
        description="Length of generated invite codes"
    )
    invite_code_max_attempts: int = Field(
        default=INVITE_CODE_MAX_ATTEMPTS,
        ge=1,
        description="Random attempts before falling back to a timestamp code"
    )

    # Ledger reporting
    ledger_default_page_size: int = Field(
        default=LEDGER_DEFAULT_PAGE_SIZE,
        gt=0,
        description="Page size used when the caller gives none"
    )
    ledger_max_page_size: int = Field(
        default=LEDGER_MAX_PAGE_SIZE,
        gt=0,
        description="Upper bound for ledger page size"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL and normalize to an async driver."""
        if v.startswith('postgres://'):
            return 'postgresql+asyncpg://' + v[len('postgres://'):]
        if v.startswith('postgresql://'):
            return 'postgresql+asyncpg://' + v[len('postgresql://'):]
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Upper-case the level name so loguru accepts it."""
        return v.strip().upper()

    @model_validator(mode='after')
    def validate_page_sizes(self) -> 'Settings':
        """Default page size cannot exceed the maximum."""
        if self.ledger_default_page_size > self.ledger_max_page_size:
            raise ValueError(
                "LEDGER_DEFAULT_PAGE_SIZE must not exceed LEDGER_MAX_PAGE_SIZE"
            )
        return self


# Global settings instance
settings = Settings()
