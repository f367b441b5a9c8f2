"""Data models for raw explorer records and normalized incoming transactions."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class TransactionStatus(str, Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransactionDirection(str, Enum):
    INCOMING = "incoming"


class RawExplorerTransaction(BaseModel):
    """One entry of an explorer `txlist` result, before normalization.

    Numeric fields arrive as decimal strings; ints are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    hash: str = Field(..., min_length=1)
    block_number: str = Field(..., alias="blockNumber")
    time_stamp: str = Field(..., alias="timeStamp")
    from_address: str = Field(..., alias="from")
    to: str
    value: str
    gas: str
    nonce: str
    is_error: Optional[str] = Field(default="0", alias="isError")
    gas_price: Optional[str] = Field(default=None, alias="gasPrice")
    max_fee_per_gas: Optional[str] = Field(default=None, alias="maxFeePerGas")
    max_priority_fee_per_gas: Optional[str] = Field(
        default=None, alias="maxPriorityFeePerGas"
    )

    @field_validator(
        "block_number",
        "time_stamp",
        "value",
        "gas",
        "nonce",
        "is_error",
        "gas_price",
        "max_fee_per_gas",
        "max_priority_fee_per_gas",
        mode="before",
    )
    @classmethod
    def _coerce_numbers(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return "1" if v else "0"
        if isinstance(v, int):
            return str(v)
        return v

    @property
    def uses_eip1559(self) -> bool:
        return bool(self.max_fee_per_gas) and bool(self.max_priority_fee_per_gas)


class LegacyFee(BaseModel):
    """Pre-London fee: a single gas price."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["legacy"] = "legacy"
    gas_price: str

    def to_wire(self) -> Dict[str, str]:
        return {"gasPrice": self.gas_price}


class Eip1559Fee(BaseModel):
    """EIP-1559 fee: fee cap plus priority tip."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["eip1559"] = "eip1559"
    max_fee_per_gas: str
    max_priority_fee_per_gas: str

    def to_wire(self) -> Dict[str, str]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


FeeParams = Annotated[Union[LegacyFee, Eip1559Fee], Field(discriminator="kind")]


class TxParams(BaseModel):
    """Hex-encoded transaction parameters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_address: str = Field(..., alias="from")
    to: str
    value: str
    gas: str
    nonce: str
    fee: FeeParams

    @model_validator(mode="before")
    @classmethod
    def _fold_fee_keys(cls, data: Any) -> Any:
        """Accept the flattened provider-style shape written by `to_wire`."""
        if not isinstance(data, dict) or "fee" in data:
            return data
        data = dict(data)
        if "maxFeePerGas" in data:
            data["fee"] = {
                "kind": "eip1559",
                "max_fee_per_gas": data.pop("maxFeePerGas"),
                "max_priority_fee_per_gas": data.pop("maxPriorityFeePerGas", None),
            }
        elif "gasPrice" in data:
            data["fee"] = {"kind": "legacy", "gas_price": data.pop("gasPrice")}
        return data

    def to_wire(self) -> Dict[str, str]:
        """Flatten to provider-style keys, fee variant keys included."""
        wire = {
            "from": self.from_address,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "nonce": self.nonce,
        }
        wire.update(self.fee.to_wire())
        return wire


class IncomingTransaction(BaseModel):
    """Canonical record of an externally initiated transfer to the tracked address.

    Fields are snake_case in Python and camelCase (`chainId`, `blockNumber`)
    once serialized; both spellings are accepted on input.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: int = Field(..., description="Locally generated id, independent of hash")
    hash: str = Field(..., description="Transaction hash, primary key of the store")
    chain_id: str = Field(..., description="0x-prefixed chain identifier")
    network_id: Optional[str] = Field(default=None, description="Decimal network id")
    block_number: int = Field(..., ge=0)
    timestamp: int = Field(..., description="Milliseconds since epoch")
    status: TransactionStatus
    direction: TransactionDirection = TransactionDirection.INCOMING
    params: TxParams

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys and flattened params; stored and served as is."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"params"})
        data["params"] = self.params.to_wire()
        return data
