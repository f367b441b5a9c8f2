"""Database models for the incoming transaction sync engine."""

from .incoming_transaction import IncomingTransactionRecord
from .sync_cursor import SyncCursor

__all__ = ["IncomingTransactionRecord", "SyncCursor"]
