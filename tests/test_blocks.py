"""Tests for block queries and new-block subscription."""

from __future__ import annotations

import pytest

from conftest import BLOCK_HASH, FakeNode, make_block
from ethtutorial.chain.blocks import (
    BlockSummary,
    get_block_by_number,
    get_latest_block,
    iter_new_blocks,
    wait_for_next_block,
)


def _sequence(*values):
    items = list(values)

    def next_value(params: list):
        return items.pop(0) if len(items) > 1 else items[0]

    return next_value


def _block_for(params: list) -> dict:
    return make_block(int(params[0], 16))


class TestQueries:
    def test_latest_block_reads_number_first(self, node: FakeNode) -> None:
        node.on("eth_getBlockByNumber", lambda params: make_block(100, txs=3))

        block = get_latest_block()

        assert BlockSummary.from_block(block).transaction_count == 3
        assert node.params("eth_getBlockByNumber") == [["latest", False], ["0x64", False]]

    def test_missing_block(self, node: FakeNode) -> None:
        node.on("eth_getBlockByNumber", None)
        with pytest.raises(LookupError):
            get_block_by_number(123)

    def test_summary(self) -> None:
        summary = BlockSummary.from_block(make_block(5, base_fee=7))
        assert summary.number == 5
        assert summary.timestamp == 1_700_000_060
        assert summary.gas_limit == 30_000_000
        assert summary.gas_used == 12_000_000
        assert summary.base_fee == 7

    def test_summary_pre_london(self) -> None:
        assert BlockSummary.from_block(make_block(5, base_fee=None)).base_fee is None


class TestSubscription:
    def test_block_filter(self, node: FakeNode) -> None:
        node.on("eth_newBlockFilter", "0xf")
        node.on("eth_getFilterChanges", _sequence([], [BLOCK_HASH], []))
        node.on("eth_getBlockByHash", make_block(101))
        node.on("eth_uninstallFilter", True)

        block = wait_for_next_block(timeout=5, poll_interval=0)

        assert block["number"] == "0x65"
        assert node.params("eth_getBlockByHash") == [[BLOCK_HASH, False]]
        assert node.params("eth_uninstallFilter") == [["0xf"]]

    def test_falls_back_to_block_number(self, node: FakeNode) -> None:
        node.on("eth_blockNumber", _sequence(hex(100), hex(100), hex(102)))
        node.on("eth_getBlockByNumber", _block_for)

        blocks = iter_new_blocks(poll_interval=0, timeout=5)
        numbers = [next(blocks)["number"], next(blocks)["number"]]
        blocks.close()

        assert numbers == ["0x65", "0x66"]

    def test_timeout(self, node: FakeNode) -> None:
        node.on("eth_newBlockFilter", "0xf")
        node.on("eth_getFilterChanges", [])
        node.on("eth_uninstallFilter", True)

        with pytest.raises(TimeoutError):
            wait_for_next_block(timeout=0, poll_interval=0)
        assert node.params("eth_uninstallFilter") == [["0xf"]]
