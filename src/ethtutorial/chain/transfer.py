"""
ETH and ERC-20 transfers.

Every path prefers an EIP-1559 transaction.  The ETH path falls back to
a legacy transaction (same nonce and gas limit) when the dynamic-fee
transaction cannot be signed or is rejected by the node, or when the
chain has no base fee at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx
from eth_abi.exceptions import DecodingError
from eth_account.signers.local import LocalAccount

from ..config import Config
from ..errors import RpcError, TransactionFailedError
from ..units import Number, ether_to_wei, token_to_wei
from ..utils import hex_to_bytes, left_pad_32
from ..wallet.eth import get_account
from . import rpc
from .abi import encode_function_call, function_selector, load_abi
from .fees import suggest_eip1559_fees, suggest_legacy_gas_price
from .tx import (
    TX_TYPE_LEGACY,
    SentTransaction,
    build_dynamic_fee_tx,
    build_legacy_tx,
    estimate_gas_or_default,
    send_with_fees,
    sign_and_send,
    sign_transaction,
)
from .waiter import TransactionStatus, wait_quick

logger = logging.getLogger(__name__)

ETH_TRANSFER_GAS = 21_000
ERC20_TRANSFER_GAS = 60_000
ABI_TRANSFER_GAS_BUFFER = 20
UINT256_MAX = 2**256 - 1


@dataclass
class TokenTransferResult:
    sent: SentTransaction
    raw_amount: int
    status: Optional[TransactionStatus] = None
    balances: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# ETH
# ---------------------------------------------------------------------------

def transfer_eth(
    private_key: str,
    to_address: str,
    amount: Number,
    config: Optional[Config] = None,
    rpc_url: Optional[str] = None,
) -> SentTransaction:
    """
    Send ``amount`` ETH to ``to_address``.

    The fee cap is scaled by ``GAS_PRICE_MULTIPLIER``; the gas limit is
    estimated, falling back to ``DEFAULT_GAS_LIMIT`` (21000 when unset).
    """
    config = config or Config.from_env()
    account = get_account(private_key)
    logger.info("Sender: %s, recipient: %s", account.address, to_address)

    chain = rpc.chain_id(rpc_url=rpc_url)
    nonce = rpc.get_pending_nonce(account.address, rpc_url=rpc_url)
    value = ether_to_wei(amount)
    if value > UINT256_MAX:
        raise ValueError("amount exceeds uint256")
    logger.info("Chain ID: %d, nonce: %d, value: %s ETH (%d wei)", chain, nonce, amount, value)

    fees = suggest_eip1559_fees(multiplier=config.gas_price_multiplier, rpc_url=rpc_url)

    gas = estimate_gas_or_default(
        {"from": account.address, "to": to_address, "value": value},
        default=config.default_gas_limit or ETH_TRANSFER_GAS,
        rpc_url=rpc_url,
    )

    if fees is None:
        return _send_legacy(account, chain, nonce, to_address, value, gas, config, rpc_url)

    tx = build_dynamic_fee_tx(chain, nonce, to_address, value, gas, fees)
    try:
        raw_tx, tx_hash = sign_transaction(account, tx)
    except (TypeError, ValueError) as exc:
        logger.warning("EIP-1559 signing failed (%s), trying legacy transaction", exc)
        return _send_legacy(account, chain, nonce, to_address, value, gas, config, rpc_url)

    try:
        tx_hash = rpc.send_raw_transaction(raw_tx, rpc_url=rpc_url) or tx_hash
    except (RpcError, httpx.HTTPError) as exc:
        logger.warning("EIP-1559 send failed (%s), trying legacy transaction", exc)
        return _send_legacy(account, chain, nonce, to_address, value, gas, config, rpc_url)

    logger.info("EIP-1559 transaction sent: %s", tx_hash)
    return SentTransaction(
        tx_hash=tx_hash,
        tx_type=tx["type"],
        sender=account.address,
        to=to_address,
        value=value,
        nonce=nonce,
        gas=gas,
        fee={
            "max_fee_per_gas": fees.fee_cap,
            "max_priority_fee_per_gas": fees.tip_cap,
            "base_fee": fees.base_fee,
        },
    )


def _send_legacy(
    account: LocalAccount,
    chain: int,
    nonce: int,
    to_address: str,
    value: int,
    gas: int,
    config: Config,
    rpc_url: Optional[str],
) -> SentTransaction:
    gas_price = suggest_legacy_gas_price(config.gas_price_multiplier, rpc_url=rpc_url)
    tx = build_legacy_tx(chain, nonce, to_address, value, gas, gas_price)
    tx_hash = sign_and_send(account, tx, rpc_url=rpc_url)
    logger.info("Legacy transaction sent: %s", tx_hash)
    return SentTransaction(
        tx_hash=tx_hash,
        tx_type=TX_TYPE_LEGACY,
        sender=account.address,
        to=to_address,
        value=value,
        nonce=nonce,
        gas=gas,
        fee={"gas_price": gas_price},
    )


# ---------------------------------------------------------------------------
# ERC-20, hand-built calldata
# ---------------------------------------------------------------------------

def build_transfer_calldata(to_address: str, amount: int) -> str:
    """``transfer(address,uint256)`` calldata without the ABI encoder."""
    if amount < 0:
        raise ValueError("amount must be non-negative")
    if amount > UINT256_MAX:
        raise ValueError("amount exceeds uint256")
    data = (
        function_selector("transfer(address,uint256)")
        + left_pad_32(hex_to_bytes(to_address))
        + amount.to_bytes(32, "big")
    )
    return "0x" + data.hex()


def erc20_transfer(
    private_key: str,
    to_address: str,
    token_address: str,
    amount: int,
    rpc_url: Optional[str] = None,
) -> SentTransaction:
    """Transfer ``amount`` raw token units with manually encoded calldata."""
    account = get_account(private_key)
    logger.info("Sender: %s, recipient: %s, token: %s", account.address, to_address, token_address)

    nonce = rpc.get_pending_nonce(account.address, rpc_url=rpc_url)
    data = build_transfer_calldata(to_address, amount)
    logger.info("Calldata: %s", data)

    gas = estimate_gas_or_default(
        {"from": account.address, "to": token_address, "data": data},
        default=ERC20_TRANSFER_GAS,
        rpc_url=rpc_url,
    )
    chain = rpc.chain_id(rpc_url=rpc_url)

    fees = suggest_eip1559_fees(rpc_url=rpc_url)
    if fees is None:
        gas_price = suggest_legacy_gas_price(rpc_url=rpc_url)
        tx = build_legacy_tx(chain, nonce, token_address, 0, gas, gas_price, data)
        tx_hash = sign_and_send(account, tx, rpc_url=rpc_url)
        return SentTransaction(
            tx_hash, TX_TYPE_LEGACY, account.address, token_address, 0, nonce, gas,
            {"gas_price": gas_price},
        )

    return send_with_fees(
        account, token_address, 0, gas, fees, data,
        nonce=nonce, chain_id=chain, rpc_url=rpc_url,
    )


def transfer_erc20_with_amount(
    private_key: str,
    to_address: str,
    token_address: str,
    amount: Number,
    decimals: int,
    rpc_url: Optional[str] = None,
) -> SentTransaction:
    return erc20_transfer(
        private_key, to_address, token_address, token_to_wei(amount, decimals), rpc_url=rpc_url
    )


# ---------------------------------------------------------------------------
# ERC-20, ABI-driven
# ---------------------------------------------------------------------------

def _safe_read(token_address: str, function_name: str, args: list, abi: list, rpc_url: Optional[str]):
    try:
        return rpc.read_contract(token_address, function_name, args, abi=abi, rpc_url=rpc_url)
    except (RpcError, httpx.HTTPError, DecodingError, ValueError) as exc:
        logger.debug("%s() failed: %s", function_name, exc)
        return None


def diagnose_failed_transfer(
    token_address: str,
    sender: str,
    raw_amount: int,
    abi: Optional[list] = None,
    rpc_url: Optional[str] = None,
) -> list[str]:
    """Explain a reverted transfer: sender balance and paused state."""
    abi = abi or load_abi()
    findings: list[str] = []

    balance = _safe_read(token_address, "balanceOf", [sender], abi, rpc_url)
    if balance is not None:
        if balance < raw_amount:
            findings.append(f"Insufficient balance: need {raw_amount}, have {balance}")
        else:
            findings.append(f"Balance sufficient: {balance} >= {raw_amount}")

    paused = _safe_read(token_address, "paused", [], abi, rpc_url)
    if paused is not None:
        findings.append("Contract is paused" if paused else "Contract is not paused")

    return findings


def transfer_erc20_with_abi(
    private_key: str,
    to_address: str,
    token_address: str,
    amount: Number,
    abi: Optional[list] = None,
    rpc_url: Optional[str] = None,
    wait: bool = True,
) -> TokenTransferResult:
    """
    ABI-driven transfer: decimals lookup, encoded call, wait for one
    confirmation, then read both balances.

    Raises:
        TransactionFailedError: If the transfer reverts; the message
            includes the diagnosis
    """
    abi = abi or load_abi()
    account = get_account(private_key)

    decimals = rpc.read_contract(token_address, "decimals", [], abi=abi, rpc_url=rpc_url)
    if decimals is None:
        raise ValueError(f"decimals() returned no data for {token_address}")
    raw_amount = token_to_wei(amount, int(decimals))
    if raw_amount > UINT256_MAX:
        raise ValueError("amount exceeds uint256")
    logger.info("Token decimals: %d, raw amount: %d (from %s)", decimals, raw_amount, amount)

    nonce = rpc.get_pending_nonce(account.address, rpc_url=rpc_url)
    chain = rpc.chain_id(rpc_url=rpc_url)
    fees = suggest_eip1559_fees(rpc_url=rpc_url)
    if fees is None:
        raise RpcError("eth_getBlockByNumber", None, "chain does not support EIP-1559 fees")

    data = encode_function_call(abi, "transfer", [to_address, raw_amount])
    gas = estimate_gas_or_default(
        {"from": account.address, "to": token_address, "data": data},
        default=ERC20_TRANSFER_GAS,
        buffer_percent=ABI_TRANSFER_GAS_BUFFER,
        rpc_url=rpc_url,
    )

    sent = send_with_fees(
        account, token_address, 0, gas, fees, data,
        nonce=nonce, chain_id=chain, rpc_url=rpc_url,
    )
    result = TokenTransferResult(sent=sent, raw_amount=raw_amount)
    if not wait:
        return result

    try:
        result.status = wait_quick(sent.tx_hash, rpc_url=rpc_url)
    except TransactionFailedError as exc:
        findings = diagnose_failed_transfer(
            token_address, account.address, raw_amount, abi=abi, rpc_url=rpc_url
        )
        detail = "; ".join(findings) if findings else "no diagnosis available"
        raise TransactionFailedError(
            f"Token transfer {sent.tx_hash} reverted: {detail}", status=exc.status
        ) from exc

    for label, address in (("sender", account.address), ("receiver", to_address)):
        balance = _safe_read(token_address, "balanceOf", [address], abi, rpc_url)
        if balance is not None:
            result.balances[label] = balance

    return result
