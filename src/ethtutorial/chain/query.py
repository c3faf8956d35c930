"""Transaction and receipt lookups."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..utils import to_int
from . import rpc

logger = logging.getLogger(__name__)

STATUS_SUCCESSFUL = "Successful"
STATUS_FAILED = "Failed"
STATUS_UNKNOWN = "Unknown"


@dataclass(frozen=True)
class TxInfo:
    hash: str
    sender: str
    to: str
    value: int
    gas_price: int
    gas_limit: int
    nonce: int
    data: str
    chain_id: Optional[int]
    block_number: Optional[int]
    type: int

    @property
    def is_contract_creation(self) -> bool:
        return not self.to

    @property
    def is_pending(self) -> bool:
        return self.block_number is None

    @classmethod
    def from_transaction(cls, tx: dict) -> "TxInfo":
        return cls(
            hash=tx.get("hash") or "",
            sender=tx.get("from") or "",
            to=tx.get("to") or "",
            value=to_int(tx.get("value")) or 0,
            # type-2 transactions report the effective price once mined
            gas_price=to_int(tx.get("gasPrice") or tx.get("maxFeePerGas")) or 0,
            gas_limit=to_int(tx.get("gas")) or 0,
            nonce=to_int(tx.get("nonce")) or 0,
            data=tx.get("input") or tx.get("data") or "0x",
            chain_id=to_int(tx.get("chainId")),
            block_number=to_int(tx.get("blockNumber")),
            type=to_int(tx.get("type")) or 0,
        )


def get_transaction(tx_hash: str, rpc_url: Optional[str] = None) -> dict:
    """
    Raises:
        LookupError: If the node does not know the transaction
    """
    tx = rpc.get_transaction(tx_hash, rpc_url=rpc_url)
    if tx is None:
        raise LookupError(f"Transaction {tx_hash} not found")
    if tx.get("blockNumber") is None:
        logger.info("Transaction %s is pending in mempool", tx_hash)
    return tx


def get_transaction_info(tx_hash: str, rpc_url: Optional[str] = None) -> TxInfo:
    return TxInfo.from_transaction(get_transaction(tx_hash, rpc_url=rpc_url))


def get_transaction_receipt(tx_hash: str, rpc_url: Optional[str] = None) -> dict:
    """
    Raises:
        LookupError: If no receipt exists yet
    """
    receipt = rpc.get_transaction_receipt(tx_hash, rpc_url=rpc_url)
    if receipt is None:
        raise LookupError(f"Receipt for transaction {tx_hash} not found")
    return receipt


def receipt_status(receipt: dict) -> str:
    status = to_int(receipt.get("status"))
    if status == 1:
        return STATUS_SUCCESSFUL
    if status == 0:
        return STATUS_FAILED
    return STATUS_UNKNOWN


def check_transaction_status(tx_hash: str, rpc_url: Optional[str] = None) -> str:
    """``Successful``, ``Failed`` or ``Unknown`` (e.g. pre-Byzantium receipts)."""
    return receipt_status(get_transaction_receipt(tx_hash, rpc_url=rpc_url))
