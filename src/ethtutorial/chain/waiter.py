"""
Transaction confirmation waiter.

Fixed-interval polling: first until the receipt exists, then (for more
than one confirmation) until the chain head is far enough past the
inclusion block.  A single deadline covers both phases.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from ..errors import RpcError, TransactionFailedError, TransactionTimeoutError
from ..utils import to_int
from . import rpc

logger = logging.getLogger(__name__)

POLL_INTERVAL = 3.0


@dataclass
class TransactionStatus:
    success: bool
    block_number: int
    gas_used: int
    tx_hash: str
    receipt: dict = field(repr=False, default_factory=dict)
    confirmations: int = 1

    @classmethod
    def from_receipt(cls, tx_hash: str, receipt: dict) -> "TransactionStatus":
        return cls(
            success=to_int(receipt.get("status")) == 1,
            block_number=to_int(receipt.get("blockNumber")) or 0,
            gas_used=to_int(receipt.get("gasUsed")) or 0,
            tx_hash=tx_hash,
            receipt=receipt,
        )


def wait_for_transaction(
    tx_hash: str,
    confirmations: int = 1,
    timeout: float = 180.0,
    poll_interval: float = POLL_INTERVAL,
    rpc_url: Optional[str] = None,
) -> TransactionStatus:
    """
    Wait until a transaction is mined and has ``confirmations`` blocks.

    Args:
        tx_hash: Transaction hash
        confirmations: Required confirmations (inclusion block counts as 1)
        timeout: Overall deadline in seconds
        poll_interval: Seconds between polls

    Returns:
        TransactionStatus of the successful transaction. If the deadline
        passes while waiting for extra confirmations the status is still
        returned, since the transaction already succeeded.

    Raises:
        TransactionTimeoutError: If no receipt appears before the deadline
        TransactionFailedError: If the transaction reverted
    """
    logger.info(
        "Waiting for transaction %s (confirmations: %d, timeout: %ss)",
        tx_hash,
        confirmations,
        timeout,
    )
    deadline = time.monotonic() + timeout

    receipt = None
    while True:
        try:
            receipt = rpc.get_transaction_receipt(tx_hash, rpc_url=rpc_url)
        except (RpcError, httpx.HTTPError) as exc:
            logger.debug("Receipt lookup failed, retrying: %s", exc)
        if receipt is not None:
            break
        if time.monotonic() >= deadline:
            raise TransactionTimeoutError(
                f"Transaction {tx_hash} not mined within {timeout}s"
            )
        time.sleep(poll_interval)

    status = TransactionStatus.from_receipt(tx_hash, receipt)
    logger.info("Transaction included in block #%d", status.block_number)

    if not status.success:
        raise TransactionFailedError(f"Transaction {tx_hash} reverted", status=status)

    logger.info("Transaction succeeded, gas used: %d", status.gas_used)

    if confirmations <= 1:
        return status

    target_block = status.block_number + confirmations - 1
    while True:
        try:
            current = rpc.block_number(rpc_url=rpc_url)
        except (RpcError, httpx.HTTPError) as exc:
            logger.warning("Could not read current block number: %s", exc)
        else:
            status.confirmations = current - status.block_number + 1
            if current >= target_block:
                status.confirmations = confirmations
                logger.info("Reached %d confirmations (current block #%d)", confirmations, current)
                return status
            logger.info(
                "Confirmations: %d/%d (current block #%d)",
                status.confirmations,
                confirmations,
                current,
            )

        if time.monotonic() >= deadline:
            logger.warning("Timed out waiting for extra confirmations, but the transaction succeeded")
            return status
        time.sleep(poll_interval)


def wait_quick(tx_hash: str, rpc_url: Optional[str] = None, **kwargs) -> TransactionStatus:
    """One confirmation, 3 minute deadline."""
    return wait_for_transaction(tx_hash, 1, 180.0, rpc_url=rpc_url, **kwargs)


def wait_safe(tx_hash: str, rpc_url: Optional[str] = None, **kwargs) -> TransactionStatus:
    """Three confirmations, 10 minute deadline."""
    return wait_for_transaction(tx_hash, 3, 600.0, rpc_url=rpc_url, **kwargs)


def wait_deploy(tx_hash: str, rpc_url: Optional[str] = None, **kwargs) -> TransactionStatus:
    """Two confirmations, 8 minute deadline (contract creation)."""
    return wait_for_transaction(tx_hash, 2, 480.0, rpc_url=rpc_url, **kwargs)
