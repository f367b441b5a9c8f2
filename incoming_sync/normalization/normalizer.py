"""Convert explorer `txlist` records into canonical incoming transactions."""

from __future__ import annotations

import itertools
import random
from typing import Any, Callable, Iterator, Mapping, Union

from pydantic import ValidationError

from incoming_sync.core.errors import ExplorerPayloadError
from incoming_sync.core.networks import EXPLORER_SUPPORTED_NETWORKS
from incoming_sync.normalization.models import (
    Eip1559Fee,
    IncomingTransaction,
    LegacyFee,
    RawExplorerTransaction,
    TransactionDirection,
    TransactionStatus,
    TxParams,
)

MILLISECONDS_PER_SECOND = 1000

_FALSY_FLAGS = {"", "0", "false", "none", "null"}

# Random start so ids from separate processes rarely collide.
_id_counter: Iterator[int] = itertools.count(random.randint(1, 2**31))


def next_transaction_id() -> int:
    """Return a process-unique local transaction id."""
    return next(_id_counter)


def to_hex(value: str) -> str:
    """Convert a non-negative decimal string to 0x-prefixed hex ("15" -> "0xf")."""
    try:
        number = int(str(value).strip(), 10)
    except (TypeError, ValueError) as e:
        raise ExplorerPayloadError(f"Not a decimal number: {value!r}") from e
    if number < 0:
        raise ExplorerPayloadError(f"Negative quantity: {value!r}")
    return hex(number)


def parse_block_number(value: str) -> int:
    try:
        return int(str(value).strip(), 10)
    except (TypeError, ValueError) as e:
        raise ExplorerPayloadError(f"Invalid block number: {value!r}") from e


def is_error_flag_set(value: Any) -> bool:
    if value is None:
        return False
    return str(value).strip().lower() not in _FALSY_FLAGS


def parse_raw_transaction(
    raw: Union[RawExplorerTransaction, Mapping[str, Any]],
) -> RawExplorerTransaction:
    if isinstance(raw, RawExplorerTransaction):
        return raw
    try:
        return RawExplorerTransaction.model_validate(raw)
    except ValidationError as e:
        raise ExplorerPayloadError(f"Malformed explorer transaction: {e}") from e


def normalize_fee(raw: RawExplorerTransaction) -> Union[LegacyFee, Eip1559Fee]:
    """Pick exactly one fee variant for the record.

    EIP-1559 fields win when both are present; otherwise gasPrice is required.
    """
    if raw.uses_eip1559:
        return Eip1559Fee(
            max_fee_per_gas=to_hex(raw.max_fee_per_gas),  # type: ignore[arg-type]
            max_priority_fee_per_gas=to_hex(raw.max_priority_fee_per_gas),  # type: ignore[arg-type]
        )
    if raw.gas_price is not None and raw.gas_price != "":
        return LegacyFee(gas_price=to_hex(raw.gas_price))
    raise ExplorerPayloadError(f"Transaction {raw.hash} carries no fee fields")


def normalize_explorer_transaction(
    raw: Union[RawExplorerTransaction, Mapping[str, Any]],
    chain_id: str,
    id_factory: Callable[[], int] = next_transaction_id,
) -> IncomingTransaction:
    """
    Normalize one explorer record for the given chain.

    Args:
        raw: Parsed record or the provider's JSON object
        chain_id: Chain the record was fetched from
        id_factory: Source of local ids (overridable for tests)

    Returns:
        Canonical incoming transaction

    Raises:
        ExplorerPayloadError: If required fields are missing or not numeric
    """
    record = parse_raw_transaction(raw)

    try:
        timestamp_seconds = int(record.time_stamp, 10)
    except ValueError as e:
        raise ExplorerPayloadError(f"Invalid timestamp: {record.time_stamp!r}") from e

    network = EXPLORER_SUPPORTED_NETWORKS.get(chain_id)

    params = TxParams(
        from_address=record.from_address,
        to=record.to,
        value=to_hex(record.value),
        gas=to_hex(record.gas),
        nonce=to_hex(record.nonce),
        fee=normalize_fee(record),
    )

    return IncomingTransaction(
        id=id_factory(),
        hash=record.hash,
        chain_id=chain_id,
        network_id=network.network_id if network else None,
        block_number=parse_block_number(record.block_number),
        timestamp=timestamp_seconds * MILLISECONDS_PER_SECOND,
        status=(
            TransactionStatus.FAILED
            if is_error_flag_set(record.is_error)
            else TransactionStatus.CONFIRMED
        ),
        direction=TransactionDirection.INCOMING,
        params=params,
    )
