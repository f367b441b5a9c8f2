"""
Tests for explorer record normalization.

Covers hex conversion, timestamps, status derivation and the mutually
exclusive fee variants.
"""

import pytest

from incoming_sync.core.errors import ExplorerPayloadError
from incoming_sync.normalization import (
    Eip1559Fee,
    LegacyFee,
    TransactionDirection,
    TransactionStatus,
    normalize_explorer_transaction,
    to_hex,
)
from incoming_sync.normalization.normalizer import is_error_flag_set


class TestToHex:
    def test_converts_decimal_strings(self):
        assert to_hex("0") == "0x0"
        assert to_hex("11") == "0xb"
        assert to_hex("100") == "0x64"
        assert to_hex("1000000000000000000") == "0xde0b6b3a7640000"

    def test_rejects_non_numeric(self):
        with pytest.raises(ExplorerPayloadError):
            to_hex("0x10")

    def test_rejects_negative(self):
        with pytest.raises(ExplorerPayloadError):
            to_hex("-1")


class TestNormalizeLegacy:
    def test_legacy_transaction(self, make_tx):
        tx = normalize_explorer_transaction(make_tx(), "0x5", id_factory=lambda: 7)

        assert tx.id == 7
        assert tx.hash == "0xfake"
        assert tx.chain_id == "0x5"
        assert tx.network_id == "5"
        assert tx.block_number == 10
        assert tx.timestamp == 16000000000000000
        assert tx.status == TransactionStatus.CONFIRMED
        assert tx.direction == TransactionDirection.INCOMING
        assert isinstance(tx.params.fee, LegacyFee)
        assert tx.params.to_wire() == {
            "from": "0xfake",
            "gas": "0x0",
            "gasPrice": "0x0",
            "nonce": "0x64",
            "to": "0x0101",
            "value": "0x0",
        }

    def test_numeric_fields_become_hex(self, make_tx):
        raw = make_tx(gas="11", gasPrice="12", nonce="13", value="14")
        params = normalize_explorer_transaction(raw, "0x1").params

        assert params.gas == "0xb"
        assert params.fee.gas_price == "0xc"
        assert params.nonce == "0xd"
        assert params.value == "0xe"

    def test_timestamp_is_milliseconds(self, make_tx):
        tx = normalize_explorer_transaction(make_tx(timeStamp="4444"), "0x1")
        assert tx.timestamp == 4444000

    def test_error_flag_marks_failed(self, make_tx):
        tx = normalize_explorer_transaction(make_tx(isError="1"), "0x1")
        assert tx.status == TransactionStatus.FAILED

    def test_integer_fields_are_accepted(self, make_tx):
        tx = normalize_explorer_transaction(make_tx(blockNumber=42, gas=21000), "0x1")
        assert tx.block_number == 42
        assert tx.params.gas == "0x5208"


class TestNormalizeEip1559:
    def test_eip1559_transaction(self, make_tx):
        tx = normalize_explorer_transaction(
            make_tx(hash="0xfakeeip1559", use_eip1559=True), "0x5"
        )

        assert isinstance(tx.params.fee, Eip1559Fee)
        assert tx.params.to_wire() == {
            "from": "0xfake",
            "gas": "0x0",
            "maxFeePerGas": "0xa",
            "maxPriorityFeePerGas": "0x1",
            "nonce": "0x64",
            "to": "0x0101",
            "value": "0x0",
        }

    def test_eip1559_wins_over_gas_price(self, make_tx):
        raw = make_tx(use_eip1559=True, gasPrice="5")
        wire = normalize_explorer_transaction(raw, "0x1").params.to_wire()

        assert "gasPrice" not in wire
        assert wire["maxFeePerGas"] == "0xa"

    def test_partial_eip1559_falls_back_to_gas_price(self, make_tx):
        raw = make_tx(maxFeePerGas="10")
        fee = normalize_explorer_transaction(raw, "0x1").params.fee
        assert isinstance(fee, LegacyFee)

    def test_no_fee_fields_is_payload_error(self, make_tx):
        raw = make_tx()
        del raw["gasPrice"]
        with pytest.raises(ExplorerPayloadError):
            normalize_explorer_transaction(raw, "0x1")


class TestMalformedRecords:
    @pytest.mark.parametrize("field", ["hash", "blockNumber", "timeStamp", "from", "to", "value"])
    def test_missing_field_is_payload_error(self, make_tx, field):
        raw = make_tx()
        del raw[field]
        with pytest.raises(ExplorerPayloadError):
            normalize_explorer_transaction(raw, "0x1")

    def test_non_numeric_block_is_payload_error(self, make_tx):
        with pytest.raises(ExplorerPayloadError):
            normalize_explorer_transaction(make_tx(blockNumber="ten"), "0x1")


class TestIds:
    def test_ids_are_unique(self, make_tx):
        ids = {normalize_explorer_transaction(make_tx(), "0x1").id for _ in range(100)}
        assert len(ids) == 100

    def test_unknown_chain_has_no_network_id(self, make_tx):
        tx = normalize_explorer_transaction(make_tx(), "0x539")
        assert tx.network_id is None


@pytest.mark.parametrize(
    "flag,expected",
    [("0", False), ("", False), (None, False), ("1", True), ("true", True)],
)
def test_is_error_flag_set(flag, expected):
    assert is_error_flag_set(flag) is expected
