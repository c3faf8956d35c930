"""Tests for transaction and receipt lookups."""

from __future__ import annotations

import pytest

from conftest import DEV_ADDRESS, RECIPIENT, TX_HASH, FakeNode, make_receipt
from ethtutorial.chain.query import (
    check_transaction_status,
    get_transaction_info,
    get_transaction_receipt,
    receipt_status,
)


def _transaction(**overrides) -> dict:
    tx = {
        "hash": TX_HASH,
        "from": DEV_ADDRESS,
        "to": RECIPIENT,
        "value": hex(10**18),
        "gas": hex(21_000),
        "maxFeePerGas": hex(4 * 10**9),
        "nonce": "0x3",
        "input": "0x",
        "chainId": "0x1",
        "blockNumber": "0x64",
        "type": "0x2",
    }
    tx.update(overrides)
    return tx


class TestGetTransaction:
    def test_dynamic_fee_transaction(self, node: FakeNode) -> None:
        node.on("eth_getTransactionByHash", _transaction())

        info = get_transaction_info(TX_HASH)

        assert info.sender == DEV_ADDRESS
        assert info.to == RECIPIENT
        assert info.value == 10**18
        assert info.gas_price == 4 * 10**9
        assert info.gas_limit == 21_000
        assert info.nonce == 3
        assert info.chain_id == 1
        assert info.type == 2
        assert not info.is_pending
        assert not info.is_contract_creation

    def test_legacy_prefers_gas_price(self, node: FakeNode) -> None:
        node.on("eth_getTransactionByHash", _transaction(gasPrice=hex(10**9), type="0x0"))
        assert get_transaction_info(TX_HASH).gas_price == 10**9

    def test_pending_contract_creation(self, node: FakeNode) -> None:
        node.on("eth_getTransactionByHash", _transaction(to=None, blockNumber=None))

        info = get_transaction_info(TX_HASH)

        assert info.is_pending
        assert info.is_contract_creation

    def test_not_found(self, node: FakeNode) -> None:
        node.on("eth_getTransactionByHash", None)
        with pytest.raises(LookupError):
            get_transaction_info(TX_HASH)


class TestReceipts:
    def test_receipt(self, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", make_receipt())
        assert get_transaction_receipt(TX_HASH)["gasUsed"] == hex(21_000)

    def test_receipt_not_found(self, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", None)
        with pytest.raises(LookupError):
            get_transaction_receipt(TX_HASH)

    @pytest.mark.parametrize(
        "receipt, expected",
        [
            ({"status": "0x1"}, "Successful"),
            ({"status": "0x0"}, "Failed"),
            ({"root": "0x" + "00" * 32}, "Unknown"),
        ],
    )
    def test_status(self, receipt: dict, expected: str) -> None:
        assert receipt_status(receipt) == expected

    def test_check_transaction_status(self, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", make_receipt(status=0))
        assert check_transaction_status(TX_HASH) == "Failed"
