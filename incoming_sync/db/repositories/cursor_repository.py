"""Per-chain cursor repository."""

from typing import Dict, Mapping, Optional

from incoming_sync.db.models.sync_cursor import SyncCursor
from incoming_sync.db.repository import BaseRepository


class CursorRepository(BaseRepository[SyncCursor]):
    async def get_all_cursors(self) -> Dict[str, Optional[int]]:
        rows = await self.get_all()
        return {row.chain_id: row.block_number for row in rows}

    async def set_cursor(self, chain_id: str, block_number: Optional[int]) -> SyncCursor:
        row = await self.get_by_field("chain_id", chain_id)
        if row is None:
            return await self.create(chain_id=chain_id, block_number=block_number)
        row.block_number = block_number
        await self.session.flush()
        return row

    async def set_cursors(self, cursors: Mapping[str, Optional[int]]) -> None:
        for chain_id, block_number in cursors.items():
            await self.set_cursor(chain_id, block_number)
