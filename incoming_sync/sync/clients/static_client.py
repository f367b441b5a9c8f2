"""
Static explorer client for tests and offline development.

Serves a fixed set of explorer records per chain, filtered the way the
real `txlist` endpoint filters them, and records every call it receives.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from incoming_sync.core.errors import ExplorerConnectionError, ExplorerError
from incoming_sync.normalization.models import RawExplorerTransaction
from incoming_sync.normalization.normalizer import parse_raw_transaction
from incoming_sync.sync.clients.base import BaseExplorerClient


class StaticExplorerClient(BaseExplorerClient):
    """
    In-memory explorer.

    Records are provider-format dicts keyed by chain id. Setting `fail_with`
    makes every fetch raise that error until it is cleared.
    """

    def __init__(
        self,
        transactions: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None,
        head_blocks: Optional[Mapping[str, int]] = None,
        latency_ms: int = 0,
        fail_with: Optional[ExplorerError] = None,
    ):
        super().__init__(api_key=None, timeout=30.0)
        self._transactions: Dict[str, List[Mapping[str, Any]]] = {
            chain_id: list(items) for chain_id, items in (transactions or {}).items()
        }
        self._head_blocks: Dict[str, int] = dict(head_blocks or {})
        self.latency_ms = latency_ms
        self.fail_with = fail_with
        self.calls: List[Tuple[str, Optional[int], str]] = []

    def get_source_name(self) -> str:
        return "static"

    def set_head_block(self, chain_id: str, block_number: int) -> None:
        self._head_blocks[chain_id] = block_number

    async def fetch_since(
        self, address: str, from_block: Optional[int], chain_id: str
    ) -> List[RawExplorerTransaction]:
        self.calls.append((address, from_block, chain_id))
        await self._simulate_latency()

        if self.fail_with is not None:
            raise self.fail_with

        ad = address.lower()
        start = from_block or 0
        records = [parse_raw_transaction(r) for r in self._transactions.get(chain_id, [])]
        items = [
            r
            for r in records
            if r.to.lower() == ad and int(r.block_number) >= start
        ]
        items.sort(key=lambda r: int(r.block_number))
        return items

    async def get_latest_block_number(self, chain_id: str) -> int:
        await self._simulate_latency()
        if chain_id not in self._head_blocks:
            raise ExplorerConnectionError(f"No head block known for {chain_id}")
        return self._head_blocks[chain_id]

    async def _simulate_latency(self) -> None:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
