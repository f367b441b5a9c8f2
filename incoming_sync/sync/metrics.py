"""
Sync cycle metrics.

Tracks cycle outcomes, explorer latency and merge counts in memory so the
status API and CLI can report on recent activity.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class CycleStatus(str, Enum):
    """Status of a sync cycle as seen by metrics."""

    SUCCESS = "success"
    SKIPPED = "skipped"  # Gate rejected the trigger
    FAILED = "failed"
    DISCARDED = "discarded"  # Chain or address changed mid-cycle


@dataclass
class CycleMetrics:
    """Metrics for a single sync cycle."""

    cycle_id: str
    started_at: datetime
    trigger: str
    chain_id: Optional[str] = None
    address: Optional[str] = None
    ended_at: Optional[datetime] = None
    status: CycleStatus = CycleStatus.SUCCESS

    from_block: Optional[int] = None
    cursor_after: Optional[int] = None

    transactions_fetched: int = 0
    transactions_new: int = 0
    transactions_updated: int = 0

    duration_seconds: float = 0.0
    api_calls: int = 0
    api_latency_seconds: float = 0.0

    errors: List[str] = field(default_factory=list)
    error_count: int = 0
    skip_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["ended_at"] = self.ended_at.isoformat() if self.ended_at else None
        data["status"] = self.status.value
        return data


@dataclass
class AggregateMetrics:
    """Aggregated metrics across recent cycles."""

    total_cycles: int = 0
    successful_cycles: int = 0
    failed_cycles: int = 0
    skipped_cycles: int = 0
    discarded_cycles: int = 0

    total_transactions: int = 0
    total_new_transactions: int = 0
    total_updated_transactions: int = 0
    total_errors: int = 0

    avg_duration_seconds: float = 0.0
    avg_api_latency_seconds: float = 0.0

    first_cycle: Optional[datetime] = None
    last_cycle: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ["first_cycle", "last_cycle", "last_success", "last_failure"]:
            if data[key]:
                data[key] = data[key].isoformat()
        return data


class SyncMetrics:
    """
    In-memory metrics tracker for the sync coordinator.

    Cycles are serialized by the coordinator, so at most one cycle is
    current at a time.
    """

    def __init__(self, history_size: int = 100):
        """
        Args:
            history_size: Number of completed cycles to keep in memory
        """
        self.history_size = history_size
        self._current: Optional[CycleMetrics] = None
        self._history: List[CycleMetrics] = []
        self._counter = 0

    def start_cycle(
        self, trigger: str, chain_id: Optional[str] = None, address: Optional[str] = None
    ) -> str:
        """Start tracking a cycle and return its id."""
        self._counter += 1
        now = datetime.now(timezone.utc)
        cycle_id = f"sync-{now.strftime('%Y%m%d-%H%M%S')}-{self._counter}"
        self._current = CycleMetrics(
            cycle_id=cycle_id,
            started_at=now,
            trigger=trigger,
            chain_id=chain_id,
            address=address,
        )
        return cycle_id

    def end_cycle(
        self,
        status: CycleStatus = CycleStatus.SUCCESS,
        skip_reason: Optional[str] = None,
    ) -> Optional[CycleMetrics]:
        """Close the current cycle and move it to history."""
        current = self._current
        if current is None:
            return None

        current.ended_at = datetime.now(timezone.utc)
        current.status = status
        current.skip_reason = skip_reason
        current.duration_seconds = (current.ended_at - current.started_at).total_seconds()

        self._history.append(current)
        if len(self._history) > self.history_size:
            self._history = self._history[-self.history_size :]

        self._current = None
        return current

    def record_window(self, from_block: Optional[int], cursor_after: Optional[int]) -> None:
        if self._current:
            self._current.from_block = from_block
            self._current.cursor_after = cursor_after

    def record_api_call(self, latency_seconds: float) -> None:
        if self._current:
            self._current.api_calls += 1
            self._current.api_latency_seconds += latency_seconds

    def record_transactions(self, fetched: int, new: int, updated: int) -> None:
        if self._current:
            self._current.transactions_fetched += fetched
            self._current.transactions_new += new
            self._current.transactions_updated += updated

    def record_error(self, error: str) -> None:
        if self._current:
            self._current.errors.append(error)
            self._current.error_count += 1

    def get_current_cycle(self) -> Optional[CycleMetrics]:
        return self._current

    def get_last_cycle(self) -> Optional[CycleMetrics]:
        return self._history[-1] if self._history else None

    def get_history(self, limit: Optional[int] = None) -> List[CycleMetrics]:
        """Recent cycles, newest first."""
        history = list(reversed(self._history))
        if limit:
            history = history[:limit]
        return history

    def get_aggregate_metrics(self, hours: Optional[int] = None) -> AggregateMetrics:
        """
        Aggregate over recent cycles.

        Args:
            hours: Only include cycles from the last N hours (None = all history)
        """
        cycles = self._history
        if hours:
            cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
            cycles = [c for c in cycles if c.started_at >= cutoff]

        if not cycles:
            return AggregateMetrics()

        metrics = AggregateMetrics(total_cycles=len(cycles))
        for cycle in cycles:
            if cycle.status == CycleStatus.SUCCESS:
                metrics.successful_cycles += 1
            elif cycle.status == CycleStatus.FAILED:
                metrics.failed_cycles += 1
            elif cycle.status == CycleStatus.SKIPPED:
                metrics.skipped_cycles += 1
            elif cycle.status == CycleStatus.DISCARDED:
                metrics.discarded_cycles += 1

        metrics.total_transactions = sum(c.transactions_fetched for c in cycles)
        metrics.total_new_transactions = sum(c.transactions_new for c in cycles)
        metrics.total_updated_transactions = sum(c.transactions_updated for c in cycles)
        metrics.total_errors = sum(c.error_count for c in cycles)

        metrics.avg_duration_seconds = sum(c.duration_seconds for c in cycles) / len(cycles)
        metrics.avg_api_latency_seconds = (
            sum(c.api_latency_seconds for c in cycles) / len(cycles)
        )

        metrics.first_cycle = cycles[0].started_at
        metrics.last_cycle = cycles[-1].started_at

        for cycle in reversed(cycles):
            if cycle.status == CycleStatus.SUCCESS and not metrics.last_success:
                metrics.last_success = cycle.started_at
            if cycle.status == CycleStatus.FAILED and not metrics.last_failure:
                metrics.last_failure = cycle.started_at
            if metrics.last_success and metrics.last_failure:
                break

        return metrics

    def get_success_rate(self, hours: Optional[int] = None) -> float:
        """Share of cycles that completed successfully (0.0 to 1.0), skipped ones excluded."""
        agg = self.get_aggregate_metrics(hours)
        attempted = agg.total_cycles - agg.skipped_cycles
        if attempted <= 0:
            return 0.0
        return agg.successful_cycles / attempted
