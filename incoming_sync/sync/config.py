"""
Incoming transaction sync configuration.

Defines explorer client settings, block polling and operational
parameters for the sync coordinator.
"""

from typing import Optional

from pydantic import BaseModel, Field

from incoming_sync.core.config import Settings, get_settings
from incoming_sync.core.networks import EXPLORER_SUPPORTED_NETWORKS


class SyncConfig(BaseModel):
    """Main sync engine configuration."""

    # Explorer client settings
    api_key: Optional[str] = Field(
        default=None, description="Explorer API key (sent as apikey when set)"
    )
    api_timeout: float = Field(
        default=30.0, gt=0, description="Explorer request timeout in seconds"
    )

    # Block observation
    block_poll_interval_seconds: float = Field(
        default=15.0, gt=0, description="Seconds between chain head checks"
    )

    # Chains the engine may sync against
    supported_chain_ids: Optional[list[str]] = Field(
        default=None,
        description="Restrict syncing to these chains (None = every explorer chain)",
    )

    # Metrics
    metrics_history_size: int = Field(
        default=100, ge=1, description="Completed cycles kept in memory"
    )

    def get_supported_chain_ids(self) -> frozenset[str]:
        """Chains supported by both the explorer table and this config."""
        known = frozenset(EXPLORER_SUPPORTED_NETWORKS)
        if self.supported_chain_ids is None:
            return known
        return known & frozenset(self.supported_chain_ids)


def get_sync_config(settings: Optional[Settings] = None) -> SyncConfig:
    """Build the sync configuration from process settings."""
    settings = settings or get_settings()
    return SyncConfig(
        api_key=settings.ETHERSCAN_API_KEY,
        api_timeout=settings.EXPLORER_TIMEOUT_SECONDS,
        block_poll_interval_seconds=settings.BLOCK_POLL_INTERVAL_SECONDS,
    )
