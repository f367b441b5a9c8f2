"""
Incoming transaction sync coordinator.

Listens to new blocks, preference changes and chain switches, gates each
trigger, fetches from the explorer starting at the per-chain cursor and
commits the merged cursor and transaction map as a single state swap.
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import structlog

from incoming_sync.core.errors import ExplorerError, StateStoreError
from incoming_sync.normalization.models import IncomingTransaction
from incoming_sync.normalization.normalizer import normalize_explorer_transaction
from incoming_sync.sync.clients.base import BaseExplorerClient
from incoming_sync.sync.collaborators import (
    BlockObserver,
    NetworkController,
    OnboardingStore,
    PreferenceState,
    PreferenceStore,
)
from incoming_sync.sync.config import SyncConfig, get_sync_config
from incoming_sync.sync.gate import TriggerGate
from incoming_sync.sync.metrics import CycleStatus, SyncMetrics
from incoming_sync.sync.state import EngineState, merge_cycle
from incoming_sync.sync.store import StateStore
from incoming_sync.sync.triggers import (
    Trigger,
    TriggerChannel,
    TriggerSource,
    parse_block_number,
    skip_first,
)

logger = structlog.get_logger(__name__)

ErrorReporter = Callable[[Exception], None]

NO_SELECTED_ADDRESS = "no_selected_address"


class SyncPhase(str, Enum):
    IDLE = "idle"
    GATED = "gated"
    FETCHING = "fetching"
    MERGING = "merging"


class CycleOutcome(str, Enum):
    SYNCED = "synced"
    EMPTY = "empty"
    GATED = "gated"
    FAILED = "failed"
    STALE = "stale"


@dataclass(frozen=True)
class CycleResult:
    outcome: CycleOutcome
    trigger: TriggerSource
    chain_id: str
    address: Optional[str] = None
    from_block: Optional[int] = None
    cursor: Optional[int] = None
    fetched: int = 0
    new: int = 0
    updated: int = 0
    reason: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        data["trigger"] = self.trigger.value
        return data


def log_error_reporter(error: Exception) -> None:
    logger.error(
        "sync.error_reported",
        error=str(error),
        error_type=type(error).__name__,
    )


class SyncCoordinator:
    """
    Owns the engine state and runs sync cycles one at a time.

    Preference and chain subscriptions are made at construction and live as
    long as the coordinator; `start`/`stop` only attach and detach the block
    listener.
    """

    def __init__(
        self,
        client: BaseExplorerClient,
        block_tracker: BlockObserver,
        network: NetworkController,
        preferences: PreferenceStore,
        onboarding: OnboardingStore,
        store: Optional[StateStore] = None,
        config: Optional[SyncConfig] = None,
        initial_state: Optional[EngineState] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        """
        Args:
            client: Explorer client used for every fetch
            block_tracker: Source of new block notifications
            network: Active chain and chain switch notifications
            preferences: Selected address, feature flag and change stream
            onboarding: Onboarding flag consulted by the gate
            store: Where committed state is persisted (None = memory only)
            config: Engine configuration (defaults to loaded config)
            initial_state: State layered over the empty default
            error_reporter: Receives explorer and persistence failures
        """
        self.config = config or get_sync_config()
        self.client = client
        self.block_tracker = block_tracker
        self.network = network
        self.preferences = preferences
        self.store = store
        self.error_reporter = error_reporter or log_error_reporter

        supported = self.config.get_supported_chain_ids()
        self.gate = TriggerGate(preferences, onboarding, supported)
        self.metrics = SyncMetrics(history_size=self.config.metrics_history_size)

        self._default_state = EngineState.initial(supported)
        self._state = self._default_state.layered(initial_state)
        self._phase = SyncPhase.IDLE
        self._lock = asyncio.Lock()
        self._channel = TriggerChannel(self.run_cycle)
        self._listening = False
        self._last_result: Optional[CycleResult] = None

        preferences.subscribe(skip_first(self._on_preferences_changed))
        network.on_network_did_change(self._on_chain_changed)

        logger.info(
            "sync.coordinator.initialized",
            client_type=client.get_source_name(),
            supported_chains=len(supported),
            persistent=store is not None,
        )

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Begin listening for new blocks."""
        if self._listening:
            logger.warning("sync.coordinator.already_started")
            return
        self.block_tracker.add_listener(self._on_new_block)
        self._listening = True
        logger.info("sync.coordinator.started")

    def stop(self) -> None:
        """Stop listening for new blocks. An in-flight cycle is left to finish."""
        if not self._listening:
            logger.debug("sync.coordinator.not_started")
            return
        self.block_tracker.remove_listener(self._on_new_block)
        self._listening = False
        logger.info("sync.coordinator.stopped")

    async def restore(self) -> EngineState:
        """Layer the persisted state (if any) over the default state."""
        if self.store is None:
            return self._state
        persisted = await self.store.load()
        async with self._lock:
            self._state = self._default_state.layered(persisted)
        logger.info(
            "sync.coordinator.restored",
            found=persisted is not None,
            transactions=len(self._state.transactions),
        )
        return self._state

    async def wait_idle(self) -> None:
        """Wait until every published trigger has been handled."""
        await self._channel.join()

    async def shutdown(self) -> None:
        self.stop()
        await self.wait_idle()
        await self.client.aclose()

    @property
    def is_listening(self) -> bool:
        return self._listening

    # ---------- trigger producers ----------

    def _on_new_block(self, block_number: Any) -> None:
        self._channel.publish(
            Trigger(
                TriggerSource.NEW_BLOCK,
                parse_block_number(block_number),
                chain_id=self.network.get_current_chain_id(),
            )
        )

    def _on_preferences_changed(self, state: PreferenceState) -> None:
        logger.debug("sync.trigger.preferences_changed", address=state.selected_address)
        self._channel.publish(Trigger(TriggerSource.ADDRESS_CHANGED))

    def _on_chain_changed(self, chain_id: str) -> None:
        logger.debug("sync.trigger.chain_changed", chain_id=chain_id)
        self._channel.publish(Trigger(TriggerSource.CHAIN_CHANGED, chain_id=chain_id))

    def request_sync(self) -> None:
        """Queue a manual sync; the usual retry path after a failure."""
        self._channel.publish(Trigger(TriggerSource.MANUAL))

    # ---------- cycle ----------

    async def run_cycle(self, trigger: Optional[Trigger] = None) -> CycleResult:
        """
        Run one gated sync cycle and return what happened.

        Cycles never overlap: a call made while another cycle runs waits
        for it to finish.
        """
        trigger = trigger or Trigger(TriggerSource.MANUAL)
        async with self._lock:
            try:
                result = await self._run_cycle(trigger)
            finally:
                self._phase = SyncPhase.IDLE
        self._last_result = result
        return result

    async def _run_cycle(self, trigger: Trigger) -> CycleResult:
        chain_id = self.network.get_current_chain_id()
        address = self.preferences.get_selected_address()
        cycle_id = self.metrics.start_cycle(trigger.source.value, chain_id, address)
        log = logger.bind(cycle_id=cycle_id, chain_id=chain_id, trigger=trigger.source.value)

        reason = self.gate.rejection_reason(chain_id)
        if reason is None and not address:
            reason = NO_SELECTED_ADDRESS
        if reason is not None:
            self._phase = SyncPhase.GATED
            log.debug("sync.cycle.gated", reason=reason)
            self.metrics.end_cycle(CycleStatus.SKIPPED, skip_reason=reason)
            return CycleResult(
                outcome=CycleOutcome.GATED,
                trigger=trigger.source,
                chain_id=chain_id,
                address=address,
                reason=reason,
            )

        self._phase = SyncPhase.FETCHING
        from_block = self._state.cursor_for(chain_id)
        if from_block is None:
            from_block = trigger.block_for(chain_id)
        if from_block is None:
            from_block = self.block_tracker.get_current_block()

        log.info("sync.cycle.started", address=address, from_block=from_block)

        try:
            records = await self._fetch(address, from_block, chain_id)
        except ExplorerError as e:
            log.error(
                "sync.cycle.failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return self._fail(trigger, chain_id, address, from_block, e)

        if (
            self.network.get_current_chain_id() != chain_id
            or self.preferences.get_selected_address() != address
        ):
            log.info("sync.cycle.stale", fetched=len(records))
            self.metrics.record_transactions(fetched=len(records), new=0, updated=0)
            self.metrics.end_cycle(CycleStatus.DISCARDED, skip_reason="stale")
            return CycleResult(
                outcome=CycleOutcome.STALE,
                trigger=trigger.source,
                chain_id=chain_id,
                address=address,
                from_block=from_block,
                fetched=len(records),
            )

        self._phase = SyncPhase.MERGING
        merge = merge_cycle(self._state, chain_id, from_block, records)
        if self.store is not None:
            try:
                await self.store.commit(merge.state, merge.touched_hashes)
            except StateStoreError as e:
                log.error("sync.cycle.commit_failed", error=str(e), exc_info=True)
                return self._fail(trigger, chain_id, address, from_block, e)
        self._state = merge.state

        self.metrics.record_transactions(
            fetched=len(records), new=merge.new_count, updated=merge.updated_count
        )
        self.metrics.record_window(from_block, merge.cursor)
        self.metrics.end_cycle(CycleStatus.SUCCESS)

        outcome = CycleOutcome.SYNCED if records else CycleOutcome.EMPTY
        log.info(
            "sync.cycle.completed",
            outcome=outcome.value,
            fetched=len(records),
            new=merge.new_count,
            updated=merge.updated_count,
            cursor=merge.cursor,
        )
        return CycleResult(
            outcome=outcome,
            trigger=trigger.source,
            chain_id=chain_id,
            address=address,
            from_block=from_block,
            cursor=merge.cursor,
            fetched=len(records),
            new=merge.new_count,
            updated=merge.updated_count,
        )

    async def _fetch(
        self, address: str, from_block: Optional[int], chain_id: str
    ) -> List[IncomingTransaction]:
        started = time.monotonic()
        raw = await self.client.fetch_since(address, from_block, chain_id)
        self.metrics.record_api_call(time.monotonic() - started)
        return [normalize_explorer_transaction(r, chain_id) for r in raw]

    def _fail(
        self,
        trigger: Trigger,
        chain_id: str,
        address: Optional[str],
        from_block: Optional[int],
        error: Exception,
    ) -> CycleResult:
        self.metrics.record_error(f"{type(error).__name__}: {error}")
        self.metrics.end_cycle(CycleStatus.FAILED)
        self.error_reporter(error)
        return CycleResult(
            outcome=CycleOutcome.FAILED,
            trigger=trigger.source,
            chain_id=chain_id,
            address=address,
            from_block=from_block,
            error=str(error),
        )

    # ---------- accessors ----------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def last_result(self) -> Optional[CycleResult]:
        return self._last_result

    def get_status(self) -> Dict[str, Any]:
        chain_id = self.network.get_current_chain_id()
        pending = self._channel.pending
        return {
            "phase": self._phase.value,
            "listening": self._listening,
            "source": self.client.get_source_name(),
            "chain_id": chain_id,
            "selected_address": self.preferences.get_selected_address(),
            "gate_rejection": self.gate.rejection_reason(chain_id),
            "cursor": self._state.cursor_for(chain_id),
            "cursors": dict(self._state.cursors),
            "transaction_count": len(self._state.transactions),
            "pending_trigger": pending.source.value if pending else None,
            "triggers_published": self._channel.published,
            "triggers_coalesced": self._channel.coalesced,
            "last_result": self._last_result.to_dict() if self._last_result else None,
        }

    def get_metrics(self) -> Dict[str, Any]:
        last = self.metrics.get_last_cycle()
        return {
            "last_cycle": last.to_dict() if last else None,
            "aggregate": self.metrics.get_aggregate_metrics().to_dict(),
            "success_rate": self.metrics.get_success_rate(),
            "history": [c.to_dict() for c in self.metrics.get_history(limit=10)],
        }
