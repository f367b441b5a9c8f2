"""
Interfaces of the wallet subsystems the sync engine depends on.

The engine only needs a narrow slice of each: a block observer that calls a
listener with new block numbers, the active chain and its change callback,
the selected address and feature flag with a change stream, and the
onboarding flag. Local in-memory implementations back the service and tests.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

import structlog

from incoming_sync.core.errors import SyncError

if TYPE_CHECKING:
    from incoming_sync.sync.clients.base import BaseExplorerClient

logger = structlog.get_logger(__name__)

BlockListener = Callable[[int], None]
ChainListener = Callable[[str], None]


@dataclass(frozen=True)
class PreferenceState:
    """Snapshot delivered to preference subscribers."""

    selected_address: Optional[str]
    show_incoming_transactions: bool


PreferenceListener = Callable[[PreferenceState], None]


class BlockObserver(ABC):
    @abstractmethod
    def add_listener(self, listener: BlockListener) -> None:
        pass

    @abstractmethod
    def remove_listener(self, listener: BlockListener) -> None:
        pass

    @abstractmethod
    def get_current_block(self) -> Optional[int]:
        """Latest block seen so far, or None before the first one."""
        pass


class NetworkController(ABC):
    @abstractmethod
    def get_current_chain_id(self) -> str:
        pass

    @abstractmethod
    def on_network_did_change(self, listener: ChainListener) -> None:
        pass


class PreferenceStore(ABC):
    @abstractmethod
    def get_selected_address(self) -> Optional[str]:
        pass

    @abstractmethod
    def is_feature_enabled(self) -> bool:
        """Whether incoming transactions should be shown (and therefore synced)."""
        pass

    @abstractmethod
    def subscribe(self, listener: PreferenceListener) -> None:
        pass


class OnboardingStore(ABC):
    @abstractmethod
    def is_onboarding_complete(self) -> bool:
        pass


# ---------- local implementations ----------


class LocalBlockTracker(BlockObserver):
    """
    Block observer driven by explicit `emit` calls.

    Given a network controller, the tracker remembers which chain its
    current block came from and reports no current block on any other
    chain.
    """

    def __init__(
        self,
        current_block: Optional[int] = None,
        network: Optional[NetworkController] = None,
    ):
        self.network = network
        self._current_block = current_block
        self._block_chain_id = self._active_chain_id()
        self._listeners: List[BlockListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: BlockListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: BlockListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_current_block(self) -> Optional[int]:
        if self._active_chain_id() != self._block_chain_id:
            return None
        return self._current_block

    def emit(self, block_number: int) -> None:
        self._current_block = block_number
        self._block_chain_id = self._active_chain_id()
        for listener in list(self._listeners):
            listener(block_number)

    def _active_chain_id(self) -> Optional[str]:
        if self.network is None:
            return None
        return self.network.get_current_chain_id()


class PollingBlockTracker(LocalBlockTracker):
    """
    Block observer that polls the explorer for the chain head.

    Polling runs only while at least one listener is registered; listeners
    are called when the head advances. The head is forgotten as soon as the
    active chain changes, not at the next poll.
    """

    def __init__(
        self,
        client: "BaseExplorerClient",
        network: NetworkController,
        interval_seconds: float = 15.0,
    ):
        super().__init__(network=network)
        self.client = client
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def add_listener(self, listener: BlockListener) -> None:
        super().add_listener(listener)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._polling_loop())
            logger.info("block_tracker.started", interval_seconds=self.interval_seconds)

    def remove_listener(self, listener: BlockListener) -> None:
        super().remove_listener(listener)
        if self.listener_count == 0 and self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("block_tracker.stopped")

    async def poll_once(self) -> Optional[int]:
        """Fetch the head once and notify listeners if it moved."""
        chain_id = self.network.get_current_chain_id()
        head = await self.client.get_latest_block_number(chain_id)

        # A head fetched for a chain that is no longer active is dropped
        if self.network.get_current_chain_id() != chain_id:
            logger.debug("block_tracker.head_discarded", chain_id=chain_id, head=head)
            return None

        current = self.get_current_block()
        if current is None or head > current:
            self.emit(head)
        return head

    async def _polling_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except SyncError as e:
                logger.warning(
                    "block_tracker.poll_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
            await asyncio.sleep(self.interval_seconds)


class LocalNetworkController(NetworkController):
    def __init__(self, chain_id: str):
        self._chain_id = chain_id
        self._listeners: List[ChainListener] = []

    def get_current_chain_id(self) -> str:
        return self._chain_id

    def on_network_did_change(self, listener: ChainListener) -> None:
        self._listeners.append(listener)

    def switch_chain(self, chain_id: str) -> None:
        self._chain_id = chain_id
        logger.info("network.switched", chain_id=chain_id)
        for listener in list(self._listeners):
            listener(chain_id)


class LocalPreferenceStore(PreferenceStore):
    def __init__(
        self,
        selected_address: Optional[str] = None,
        show_incoming_transactions: bool = True,
    ):
        self._state = PreferenceState(
            selected_address=selected_address,
            show_incoming_transactions=show_incoming_transactions,
        )
        self._listeners: List[PreferenceListener] = []

    def get_selected_address(self) -> Optional[str]:
        return self._state.selected_address

    def is_feature_enabled(self) -> bool:
        return self._state.show_incoming_transactions

    def subscribe(self, listener: PreferenceListener) -> None:
        """Register a listener; it immediately receives the current snapshot."""
        self._listeners.append(listener)
        listener(self._state)

    def set_selected_address(self, address: Optional[str]) -> None:
        self._update(
            PreferenceState(
                selected_address=address,
                show_incoming_transactions=self._state.show_incoming_transactions,
            )
        )

    def set_show_incoming_transactions(self, enabled: bool) -> None:
        self._update(
            PreferenceState(
                selected_address=self._state.selected_address,
                show_incoming_transactions=enabled,
            )
        )

    def _update(self, state: PreferenceState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)


class LocalOnboardingStore(OnboardingStore):
    def __init__(self, completed_onboarding: bool = True):
        self.completed_onboarding = completed_onboarding

    def is_onboarding_complete(self) -> bool:
        return self.completed_onboarding
