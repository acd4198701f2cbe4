"""Application configuration using Pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FIRE Tools"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, production

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # 'text' or 'json' (json for production)

    # Allocation engine
    DEFAULT_CURRENCY: str = "EUR"
    PERCENT_TOLERANCE: Decimal = Decimal("0.01")  # Allowed drift from 100% per scope
    ACTION_THRESHOLD: Decimal = Decimal("0.01")  # Deltas below this are HOLD
    ROUNDING_TOLERANCE: Decimal = Decimal("0.001")  # Drift corrected after an edit

    # Encrypted persistence
    # Generate a key with:
    #   python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    # When unset, a key is derived from STORAGE_PASSPHRASE so stored data stays readable
    # across restarts. Client-side encryption is obfuscation, not protection against
    # someone holding the passphrase.
    STORAGE_ENCRYPTION_KEY: Optional[str] = None
    STORAGE_PASSPHRASE: str = "fire-calculator-secret-key-v1-2024"
    STORAGE_BACKEND: str = "local"  # "local" (files under STORAGE_DIR) or "memory"
    STORAGE_KEY_VERSION: int = 1
    STORAGE_DIR: str = ".firetools"
    STORAGE_EXPIRY_DAYS: int = 365

    # Market data (DCA helper price lookups)
    MARKET_DATA_PROVIDER: str = "yahoo_finance"
    MARKET_DATA_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """LOG_FORMAT must be 'text' or 'json'."""
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got '{v}'")
        return v

    @field_validator("PERCENT_TOLERANCE", "ACTION_THRESHOLD", "ROUNDING_TOLERANCE")
    @classmethod
    def validate_tolerance(cls, v: Decimal) -> Decimal:
        """Tolerances are absolute amounts and cannot be negative."""
        if v < 0:
            raise ValueError(f"Tolerance must be non-negative, got {v}")
        return v

    @field_validator("STORAGE_EXPIRY_DAYS", "STORAGE_KEY_VERSION")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Expiry and key version must be positive integers."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
