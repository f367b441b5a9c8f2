from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Settings are loaded from environment variables with optional .env file override.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: affects logging and error handling."""

    DEBUG: bool = True
    """Enable debug mode: verbose logging and development features."""

    # DB
    DATABASE_URL: Optional[str] = None
    """Database connection URL. If None, uses SQLite for development."""

    # Block explorer
    ETHERSCAN_API_KEY: Optional[str] = None
    """Optional explorer API key, appended to every request when set."""

    EXPLORER_TIMEOUT_SECONDS: float = 30.0
    """Timeout for a single explorer request."""

    BLOCK_POLL_INTERVAL_SECONDS: float = 15.0
    """How often the polling block tracker asks the explorer for the chain head."""

    # Wallet collaborators (the service runs them locally)
    SELECTED_ADDRESS: Optional[str] = None
    """Address whose incoming transactions are tracked."""

    CHAIN_ID: str = "0x1"
    """Active chain identifier (0x-prefixed hex)."""

    SHOW_INCOMING_TRANSACTIONS: bool = True
    """Feature flag consulted by the trigger gate."""

    COMPLETED_ONBOARDING: bool = True
    """Onboarding flag consulted by the trigger gate."""

    AUTO_START: bool = True
    """Start listening for new blocks when the API server starts."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
