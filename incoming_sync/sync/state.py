"""
Engine state: the per-chain cursor map and the transaction map.

State objects are immutable; a sync cycle produces a new state through
`merge_cycle` and the coordinator swaps it in after it has been persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from incoming_sync.normalization.models import IncomingTransaction


class EngineState(BaseModel):
    """Persisted shape: {transactions: {hash: record}, cursors: {chain_id: int | None}}."""

    model_config = ConfigDict(frozen=True)

    transactions: Dict[str, IncomingTransaction] = Field(default_factory=dict)
    cursors: Dict[str, Optional[int]] = Field(default_factory=dict)

    @classmethod
    def initial(cls, chain_ids: Iterable[str]) -> "EngineState":
        """Empty transaction map, every chain unsynchronized."""
        return cls(transactions={}, cursors={chain_id: None for chain_id in sorted(chain_ids)})

    @classmethod
    def from_persisted(cls, data: Mapping[str, Any]) -> "EngineState":
        return cls.model_validate(
            {
                "transactions": dict(data.get("transactions") or {}),
                "cursors": dict(data.get("cursors") or {}),
            }
        )

    def to_persisted(self) -> Dict[str, Any]:
        return {
            "transactions": {h: tx.to_wire() for h, tx in self.transactions.items()},
            "cursors": dict(self.cursors),
        }

    def layered(self, other: Optional["EngineState"]) -> "EngineState":
        """Overlay `other` (e.g. persisted state) on top of this state."""
        if other is None:
            return self
        return EngineState(
            transactions={**self.transactions, **other.transactions},
            cursors={**self.cursors, **other.cursors},
        )

    def cursor_for(self, chain_id: str) -> Optional[int]:
        return self.cursors.get(chain_id)

    def transactions_for_chain(self, chain_id: str) -> List[IncomingTransaction]:
        """Transactions on one chain, newest block first."""
        items = [tx for tx in self.transactions.values() if tx.chain_id == chain_id]
        items.sort(key=lambda tx: (tx.block_number, tx.timestamp), reverse=True)
        return items


@dataclass(frozen=True)
class MergeResult:
    state: EngineState
    touched_hashes: Tuple[str, ...]
    new_count: int
    updated_count: int
    cursor: Optional[int]


def next_cursor(
    from_block: Optional[int], records: Sequence[IncomingTransaction]
) -> Optional[int]:
    """
    Block to start from on the next cycle.

    One past the highest fetched block (never below the block this cycle
    started from); one past the start block when nothing was fetched.
    None when there is neither a start block nor a fetched record.
    """
    highest = max((tx.block_number for tx in records), default=None)
    if highest is None:
        return from_block + 1 if from_block is not None else None
    if from_block is not None:
        highest = max(highest, from_block)
    return highest + 1


def merge_transactions(
    existing: Mapping[str, IncomingTransaction],
    records: Sequence[IncomingTransaction],
) -> Tuple[Dict[str, IncomingTransaction], int, int]:
    """Fold records into the map by hash; a later record for a hash replaces the earlier one."""
    merged = dict(existing)
    new_count = 0
    updated_count = 0
    for tx in records:
        if tx.hash in merged:
            updated_count += 1
        else:
            new_count += 1
        merged[tx.hash] = tx
    return merged, new_count, updated_count


def merge_cycle(
    state: EngineState,
    chain_id: str,
    from_block: Optional[int],
    records: Sequence[IncomingTransaction],
) -> MergeResult:
    """Compute the post-cycle state for one chain."""
    transactions, new_count, updated_count = merge_transactions(state.transactions, records)

    previous = state.cursor_for(chain_id)
    cursor = next_cursor(from_block, records)
    if cursor is None:
        cursor = previous
    elif previous is not None:
        cursor = max(cursor, previous)

    cursors = dict(state.cursors)
    cursors[chain_id] = cursor

    touched = tuple(dict.fromkeys(tx.hash for tx in records))
    return MergeResult(
        state=EngineState(transactions=transactions, cursors=cursors),
        touched_hashes=touched,
        new_count=new_count,
        updated_count=updated_count,
        cursor=cursor,
    )
