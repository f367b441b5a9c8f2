"""
Incoming transaction sync API routes.

Status, metrics, synced transactions and a manual sync trigger.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from incoming_sync.core.networks import is_supported_chain
from incoming_sync.sync.service import get_coordinator
from incoming_sync.sync.triggers import Trigger, TriggerSource

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/incoming", tags=["incoming"])


class SyncStatusResponse(BaseModel):
    phase: str
    listening: bool
    source: str
    chain_id: str
    selected_address: Optional[str]
    gate_rejection: Optional[str]
    cursor: Optional[int]
    cursors: Dict[str, Optional[int]]
    transaction_count: int
    pending_trigger: Optional[str]
    triggers_published: int
    triggers_coalesced: int
    last_result: Optional[Dict[str, Any]]


class MetricsResponse(BaseModel):
    last_cycle: Optional[Dict[str, Any]]
    aggregate: Dict[str, Any]
    success_rate: float
    history: List[Dict[str, Any]]


class SyncTriggerResponse(BaseModel):
    outcome: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TransactionListResponse(BaseModel):
    chain_id: Optional[str]
    count: int
    transactions: List[Dict[str, Any]]


@router.get("/status", response_model=SyncStatusResponse)
async def get_status():
    return get_coordinator().get_status()


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    return get_coordinator().get_metrics()


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(chain_id: Optional[str] = None):
    """
    List synced incoming transactions, newest block first.

    Without `chain_id`, transactions for every chain are returned.
    """
    if chain_id is not None and not is_supported_chain(chain_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chain {chain_id} is not supported",
        )

    state = get_coordinator().state
    if chain_id is not None:
        items = state.transactions_for_chain(chain_id)
    else:
        items = sorted(
            state.transactions.values(),
            key=lambda tx: (tx.block_number, tx.timestamp),
            reverse=True,
        )
    return TransactionListResponse(
        chain_id=chain_id,
        count=len(items),
        transactions=[tx.to_wire() for tx in items],
    )


@router.post("/sync", response_model=SyncTriggerResponse)
async def trigger_sync():
    """
    Run one sync cycle now.

    This is the retry path after a failed cycle; the engine itself never
    retries.
    """
    coordinator = get_coordinator()
    result = await coordinator.run_cycle(Trigger(TriggerSource.MANUAL))

    if result.error:
        logger.warning("sync.manual.failed", error=result.error)
        message = f"Sync failed: {result.error}"
    elif result.reason:
        message = f"Sync skipped: {result.reason}"
    else:
        message = f"Sync {result.outcome.value}"

    return SyncTriggerResponse(
        outcome=result.outcome.value,
        message=message,
        details=result.to_dict(),
    )
