"""
Normalization of block explorer records.

Exports the canonical transaction models and the pure conversion
from provider-format records.
"""

from incoming_sync.normalization.models import (
    Eip1559Fee,
    IncomingTransaction,
    LegacyFee,
    RawExplorerTransaction,
    TransactionDirection,
    TransactionStatus,
    TxParams,
)
from incoming_sync.normalization.normalizer import (
    next_transaction_id,
    normalize_explorer_transaction,
    to_hex,
)

__all__ = [
    "Eip1559Fee",
    "IncomingTransaction",
    "LegacyFee",
    "RawExplorerTransaction",
    "TransactionDirection",
    "TransactionStatus",
    "TxParams",
    "next_transaction_id",
    "normalize_explorer_transaction",
    "to_hex",
]
