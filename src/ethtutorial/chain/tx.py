"""
Transaction Builder - Build, sign, and send transactions.

Uses eth-account for signing and the httpx JSON-RPC client for sending.
Two shapes are built: EIP-1559 dynamic-fee transactions (type 2) and
legacy EIP-155 transactions (type 0).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from eth_account.signers.local import LocalAccount

from ..errors import RpcError
from ..utils import strip_0x
from . import rpc
from .abi import keccak256
from .fees import FeeQuote

logger = logging.getLogger(__name__)

TX_TYPE_LEGACY = 0
TX_TYPE_DYNAMIC_FEE = 2


@dataclass(frozen=True)
class SentTransaction:
    tx_hash: str
    tx_type: int
    sender: str
    to: Optional[str]
    value: int
    nonce: int
    gas: int
    fee: dict[str, int]


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format.

    eth-account requires checksummed addresses in transaction fields.
    """
    addr = strip_0x(address).lower()
    addr_hash = keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def build_dynamic_fee_tx(
    chain_id: int,
    nonce: int,
    to: Optional[str],
    value: int,
    gas: int,
    fees: FeeQuote,
    data: str = "0x",
) -> dict[str, Any]:
    """Unsigned type-2 transaction. ``to=None`` creates a contract."""
    tx: dict[str, Any] = {
        "type": TX_TYPE_DYNAMIC_FEE,
        "chainId": chain_id,
        "nonce": nonce,
        "maxPriorityFeePerGas": fees.tip_cap,
        "maxFeePerGas": fees.fee_cap,
        "gas": gas,
        "value": value,
        "data": data,
    }
    if to is not None:
        tx["to"] = to_checksum_address(to)
    return tx


def build_legacy_tx(
    chain_id: int,
    nonce: int,
    to: Optional[str],
    value: int,
    gas: int,
    gas_price: int,
    data: str = "0x",
) -> dict[str, Any]:
    """Unsigned legacy transaction, replay-protected by EIP-155 chainId."""
    tx: dict[str, Any] = {
        "chainId": chain_id,
        "nonce": nonce,
        "gasPrice": gas_price,
        "gas": gas,
        "value": value,
        "data": data,
    }
    if to is not None:
        tx["to"] = to_checksum_address(to)
    return tx


def sign_transaction(account: LocalAccount, tx: dict) -> tuple[str, str]:
    """Sign ``tx``. Returns (raw_tx_hex, tx_hash_hex)."""
    signed = account.sign_transaction(tx)
    raw_tx = "0x" + strip_0x(signed.raw_transaction.hex())
    tx_hash = "0x" + strip_0x(signed.hash.hex())
    return raw_tx, tx_hash


def sign_and_send(account: LocalAccount, tx: dict, rpc_url: Optional[str] = None) -> str:
    """
    Sign a transaction and broadcast it.

    Returns:
        Transaction hash reported by the node
    """
    raw_tx, local_hash = sign_transaction(account, tx)
    logger.info("Signed transaction %s (type %s)", local_hash, tx.get("type", TX_TYPE_LEGACY))
    node_hash = rpc.send_raw_transaction(raw_tx, rpc_url=rpc_url)
    return node_hash or local_hash


def estimate_gas_or_default(
    tx: dict,
    default: int,
    buffer_percent: int = 0,
    rpc_url: Optional[str] = None,
) -> int:
    """eth_estimateGas plus an optional buffer; ``default`` when estimation fails."""
    try:
        estimated = rpc.estimate_gas(tx, rpc_url=rpc_url)
    except (RpcError, httpx.HTTPError) as exc:
        logger.warning("Gas estimation failed (%s), using default: %d", exc, default)
        return default
    gas = estimated + estimated * buffer_percent // 100
    logger.info("Estimated gas: %d (with %d%% buffer: %d)", estimated, buffer_percent, gas)
    return gas


def send_with_fees(
    account: LocalAccount,
    to: Optional[str],
    value: int,
    gas: int,
    fees: FeeQuote,
    data: str = "0x",
    nonce: Optional[int] = None,
    chain_id: Optional[int] = None,
    rpc_url: Optional[str] = None,
) -> SentTransaction:
    """Build, sign and send a type-2 transaction from ``account``."""
    if chain_id is None:
        chain_id = rpc.chain_id(rpc_url=rpc_url)
    if nonce is None:
        nonce = rpc.get_pending_nonce(account.address, rpc_url=rpc_url)

    tx = build_dynamic_fee_tx(chain_id, nonce, to, value, gas, fees, data)
    tx_hash = sign_and_send(account, tx, rpc_url=rpc_url)
    return SentTransaction(
        tx_hash=tx_hash,
        tx_type=TX_TYPE_DYNAMIC_FEE,
        sender=account.address,
        to=to,
        value=value,
        nonce=nonce,
        gas=gas,
        fee={
            "max_fee_per_gas": fees.fee_cap,
            "max_priority_fee_per_gas": fees.tip_cap,
            "base_fee": fees.base_fee,
        },
    )
