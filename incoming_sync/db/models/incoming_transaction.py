"""Incoming transaction rows, one per transaction hash."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from incoming_sync.db.base import Base
from incoming_sync.normalization.models import IncomingTransaction


class IncomingTransactionRecord(Base):
    """
    Stores normalized incoming transactions fetched from block explorers.

    The hash is unique; re-fetching a hash overwrites the stored row.
    """

    __tablename__ = "incoming_transactions"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identification
    hash: Mapped[str] = mapped_column(
        String(80),
        unique=True,
        nullable=False,
        index=True,
        comment="Transaction hash",
    )
    local_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Id assigned at normalization time"
    )
    chain_id: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True, comment="0x-prefixed chain identifier"
    )
    network_id: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, comment="Decimal network id"
    )

    # Chain position
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    timestamp_ms: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Block time in milliseconds since epoch"
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="confirmed or failed"
    )
    direction: Mapped[str] = mapped_column(String(20), nullable=False, default="incoming")

    # Hex-encoded params including the fee variant, as JSON
    params: Mapped[str] = mapped_column(Text, nullable=False)

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_incoming_chain_block", "chain_id", "block_number"),
    )

    @staticmethod
    def column_values(tx: IncomingTransaction) -> Dict[str, Any]:
        return {
            "hash": tx.hash,
            "local_id": tx.id,
            "chain_id": tx.chain_id,
            "network_id": tx.network_id,
            "block_number": tx.block_number,
            "timestamp_ms": tx.timestamp,
            "status": tx.status.value,
            "direction": tx.direction.value,
            "params": json.dumps(tx.params.to_wire()),
        }

    def to_domain(self) -> IncomingTransaction:
        return IncomingTransaction.model_validate(
            {
                "id": self.local_id,
                "hash": self.hash,
                "chain_id": self.chain_id,
                "network_id": self.network_id,
                "block_number": self.block_number,
                "timestamp": self.timestamp_ms,
                "status": self.status,
                "direction": self.direction,
                "params": json.loads(self.params),
            }
        )

    def __repr__(self) -> str:
        return (
            f"<IncomingTransactionRecord(hash={self.hash}, chain_id={self.chain_id}, "
            f"block_number={self.block_number}, status={self.status})>"
        )
