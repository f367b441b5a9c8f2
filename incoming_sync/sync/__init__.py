"""
Incoming transaction sync engine.

Keeps a local record of a wallet address's incoming transactions up to
date by querying a block explorer whenever a new block is seen or the
active chain or address changes.
"""

from incoming_sync.sync.coordinator import CycleOutcome, CycleResult, SyncCoordinator, SyncPhase
from incoming_sync.sync.state import EngineState
from incoming_sync.sync.store import MemoryStateStore, SqlStateStore, StateStore
from incoming_sync.sync.triggers import Trigger, TriggerSource

__all__ = [
    "CycleOutcome",
    "CycleResult",
    "EngineState",
    "MemoryStateStore",
    "SqlStateStore",
    "StateStore",
    "SyncCoordinator",
    "SyncPhase",
    "Trigger",
    "TriggerSource",
]
