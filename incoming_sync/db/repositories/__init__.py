"""Repository exports."""

from .cursor_repository import CursorRepository
from .transaction_repository import IncomingTransactionRepository

__all__ = ["CursorRepository", "IncomingTransactionRepository"]
