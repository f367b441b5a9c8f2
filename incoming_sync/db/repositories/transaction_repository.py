"""Incoming transaction repository."""

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select

from incoming_sync.db.models.incoming_transaction import IncomingTransactionRecord
from incoming_sync.db.repository import BaseRepository
from incoming_sync.normalization.models import IncomingTransaction


class IncomingTransactionRepository(BaseRepository[IncomingTransactionRecord]):
    """Repository for incoming transactions keyed by hash."""

    async def get_by_hash(self, tx_hash: str) -> Optional[IncomingTransactionRecord]:
        return await self.get_by_field("hash", tx_hash)

    async def upsert(self, tx: IncomingTransaction) -> Tuple[IncomingTransactionRecord, bool]:
        """
        Insert a transaction or overwrite the row with the same hash.

        Returns:
            (row, created) where created is False when an existing row was replaced
        """
        values = IncomingTransactionRecord.column_values(tx)
        existing = await self.get_by_hash(tx.hash)
        if existing is None:
            return await self.create(**values), True

        for key, value in values.items():
            setattr(existing, key, value)
        await self.session.flush()
        return existing, False

    async def upsert_many(self, transactions: Iterable[IncomingTransaction]) -> Tuple[int, int]:
        """Upsert several transactions; returns (created, updated) counts."""
        created = 0
        updated = 0
        for tx in transactions:
            _, was_created = await self.upsert(tx)
            if was_created:
                created += 1
            else:
                updated += 1
        return created, updated

    async def list_by_chain(
        self, chain_id: str, limit: Optional[int] = None
    ) -> List[IncomingTransactionRecord]:
        """
        Get transactions for one chain, newest block first.

        Args:
            chain_id: 0x-prefixed chain identifier
            limit: Maximum number of rows to return
        """
        query = (
            select(self.model)
            .where(self.model.chain_id == chain_id)
            .order_by(self.model.block_number.desc(), self.model.timestamp_ms.desc())
        )
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())
