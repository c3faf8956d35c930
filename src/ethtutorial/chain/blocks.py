"""
Block queries and new-block subscription.

Subscriptions poll an ``eth_newBlockFilter`` over HTTP at a fixed
interval.  Nodes that do not implement filters are followed by polling
``eth_blockNumber`` instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import httpx

from ..errors import RpcError
from ..utils import to_int
from . import rpc

logger = logging.getLogger(__name__)

SUBSCRIPTION_POLL_INTERVAL = 2.0


@dataclass(frozen=True)
class BlockSummary:
    number: int
    hash: str
    timestamp: int
    transaction_count: int
    gas_limit: int
    gas_used: int
    base_fee: Optional[int] = None

    @classmethod
    def from_block(cls, block: dict) -> "BlockSummary":
        return cls(
            number=to_int(block.get("number")) or 0,
            hash=block.get("hash") or "",
            timestamp=to_int(block.get("timestamp")) or 0,
            transaction_count=len(block.get("transactions") or []),
            gas_limit=to_int(block.get("gasLimit")) or 0,
            gas_used=to_int(block.get("gasUsed")) or 0,
            base_fee=to_int(block.get("baseFeePerGas")),
        )


def get_block_by_number(number: int, full_transactions: bool = False, rpc_url: Optional[str] = None) -> dict:
    """
    Raises:
        LookupError: If the node has no block with that number
    """
    block = rpc.get_block(number, full_transactions=full_transactions, rpc_url=rpc_url)
    if block is None:
        raise LookupError(f"Block {number} not found")
    return block


def get_latest_block(full_transactions: bool = False, rpc_url: Optional[str] = None) -> dict:
    """Read the head number first, then fetch that block."""
    header = rpc.get_block("latest", rpc_url=rpc_url)
    if header is None:
        raise LookupError("Node returned no latest block")
    return get_block_by_number(
        to_int(header["number"]), full_transactions=full_transactions, rpc_url=rpc_url
    )


def _poll_block_numbers(
    start: int,
    poll_interval: float,
    deadline: Optional[float],
    rpc_url: Optional[str],
) -> Iterator[int]:
    last = start
    while deadline is None or time.monotonic() < deadline:
        current = rpc.block_number(rpc_url=rpc_url)
        for number in range(last + 1, current + 1):
            yield number
        last = max(last, current)
        time.sleep(poll_interval)


def _poll_block_filter(
    filter_id: str,
    poll_interval: float,
    deadline: Optional[float],
    rpc_url: Optional[str],
) -> Iterator[str]:
    while deadline is None or time.monotonic() < deadline:
        for block_hash in rpc.get_filter_changes(filter_id, rpc_url=rpc_url):
            yield block_hash
        time.sleep(poll_interval)


def iter_new_blocks(
    poll_interval: float = SUBSCRIPTION_POLL_INTERVAL,
    timeout: Optional[float] = None,
    rpc_url: Optional[str] = None,
) -> Iterator[dict]:
    """
    Yield each new block as it is produced.

    ``timeout`` bounds the whole iteration; ``None`` follows forever.
    The block filter is uninstalled when the generator is closed.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None

    try:
        filter_id = rpc.new_block_filter(rpc_url=rpc_url)
    except RpcError as exc:
        logger.warning("Block filters unsupported (%s), polling eth_blockNumber", exc)
        start = rpc.block_number(rpc_url=rpc_url)
        for number in _poll_block_numbers(start, poll_interval, deadline, rpc_url):
            yield get_block_by_number(number, rpc_url=rpc_url)
        return

    logger.info("Listening for new blocks (filter %s)", filter_id)
    try:
        for block_hash in _poll_block_filter(filter_id, poll_interval, deadline, rpc_url):
            block = rpc.get_block_by_hash(block_hash, rpc_url=rpc_url)
            if block is None:
                logger.debug("Block %s vanished before it could be fetched", block_hash)
                continue
            yield block
    finally:
        try:
            rpc.uninstall_filter(filter_id, rpc_url=rpc_url)
        except (RpcError, httpx.HTTPError) as exc:
            logger.debug("Could not uninstall filter %s: %s", filter_id, exc)


def wait_for_next_block(
    timeout: float = 60.0,
    poll_interval: float = SUBSCRIPTION_POLL_INTERVAL,
    rpc_url: Optional[str] = None,
) -> dict:
    """
    Block until the next block arrives and return it.

    Raises:
        TimeoutError: If no block is produced within ``timeout`` seconds
    """
    blocks = iter_new_blocks(poll_interval=poll_interval, timeout=timeout, rpc_url=rpc_url)
    try:
        block = next(blocks, None)
    finally:
        blocks.close()

    if block is None:
        raise TimeoutError(f"No new block within {timeout}s")
    summary = BlockSummary.from_block(block)
    logger.info(
        "New block #%d %s (%d transactions)",
        summary.number, summary.hash, summary.transaction_count,
    )
    return block
