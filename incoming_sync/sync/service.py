"""
Wiring of the sync coordinator from process settings.

The service runs the wallet collaborators locally: the active chain, the
selected address and the flags come from settings, new blocks come from a
polling block tracker backed by the explorer.
"""

from typing import Optional

import structlog

from incoming_sync.core.config import Settings, get_settings
from incoming_sync.sync.clients.base import BaseExplorerClient
from incoming_sync.sync.clients.etherscan_client import EtherscanClient
from incoming_sync.sync.collaborators import (
    LocalNetworkController,
    LocalOnboardingStore,
    LocalPreferenceStore,
    PollingBlockTracker,
)
from incoming_sync.sync.config import get_sync_config
from incoming_sync.sync.coordinator import SyncCoordinator
from incoming_sync.sync.store import SqlStateStore, StateStore

logger = structlog.get_logger(__name__)


def build_coordinator(
    settings: Optional[Settings] = None,
    client: Optional[BaseExplorerClient] = None,
    store: Optional[StateStore] = None,
) -> SyncCoordinator:
    """
    Build a coordinator with local collaborators.

    Args:
        settings: Process settings (defaults to cached settings)
        client: Explorer client (defaults to an Etherscan client)
        store: State store (defaults to the SQL store)
    """
    settings = settings or get_settings()
    config = get_sync_config(settings)
    client = client or EtherscanClient(api_key=config.api_key, timeout=config.api_timeout)

    network = LocalNetworkController(settings.CHAIN_ID)
    block_tracker = PollingBlockTracker(
        client, network, interval_seconds=config.block_poll_interval_seconds
    )
    preferences = LocalPreferenceStore(
        selected_address=settings.SELECTED_ADDRESS,
        show_incoming_transactions=settings.SHOW_INCOMING_TRANSACTIONS,
    )
    onboarding = LocalOnboardingStore(settings.COMPLETED_ONBOARDING)

    return SyncCoordinator(
        client=client,
        block_tracker=block_tracker,
        network=network,
        preferences=preferences,
        onboarding=onboarding,
        store=store if store is not None else SqlStateStore(),
        config=config,
    )


# Global coordinator instance
_coordinator_instance: Optional[SyncCoordinator] = None


def get_coordinator() -> SyncCoordinator:
    """Get or create the global coordinator instance."""
    global _coordinator_instance
    if _coordinator_instance is None:
        _coordinator_instance = build_coordinator()
    return _coordinator_instance


def set_coordinator(coordinator: Optional[SyncCoordinator]) -> None:
    global _coordinator_instance
    _coordinator_instance = coordinator
