"""Per-chain sync cursor."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from incoming_sync.db.base import Base


class SyncCursor(Base):
    """
    Highest synchronized block per chain.

    A NULL block number means the chain has never been synced.
    """

    __tablename__ = "sync_cursors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    chain_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="0x-prefixed chain identifier",
    )
    block_number: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="Next block to fetch from; NULL when unsynchronized",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<SyncCursor(chain_id={self.chain_id}, block_number={self.block_number})>"
