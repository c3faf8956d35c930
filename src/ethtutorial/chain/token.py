"""
ERC-20 reads: balances, token metadata and total supply.

``get_token_balance`` builds the ``balanceOf(address)`` calldata by hand
(selector + left-padded address) to show what the ABI layer does; the
metadata reads go through the ABI helpers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import httpx
from eth_abi.exceptions import DecodingError

from ..errors import RpcError
from ..units import format_token_amount, wei_to_token
from ..utils import hex_to_bytes, left_pad_32
from . import rpc
from .abi import ERC20_ABI, function_selector

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
DEFAULT_SYMBOL = "TOKEN"

ZERO_BALANCE_HINTS = [
    "The address really holds none of this token",
    "The token contract address is wrong",
    "Network connection problem",
    "The contract is not a standard ERC-20 token",
]


@dataclass(frozen=True)
class TokenInfo:
    name: str = ""
    symbol: str = ""
    decimals: Optional[int] = None


@dataclass
class TokenBalanceReport:
    token: str
    wallet: str
    info: TokenInfo
    balance: int
    formatted: str
    metadata_error: Optional[str] = None
    hints: list[str] = field(default_factory=list)


def get_token_balance(token_contract: str, wallet_address: str, rpc_url: Optional[str] = None) -> int:
    """
    Raw ``balanceOf(wallet)`` of an ERC-20 token.

    Raises:
        ValueError: If the contract does not return exactly one 32-byte word
    """
    selector = function_selector("balanceOf(address)")
    data = selector + left_pad_32(hex_to_bytes(wallet_address))

    result = rpc.eth_call({"to": token_contract, "data": "0x" + data.hex()}, rpc_url=rpc_url)
    raw = hex_to_bytes(result or "0x")
    if len(raw) != 32:
        raise ValueError(f"unexpected result length: got {len(raw)}, expected 32")
    return int.from_bytes(raw, "big")


def _read_optional(token_contract: str, function_name: str, rpc_url: Optional[str]):
    try:
        return rpc.read_contract(token_contract, function_name, [], abi=ERC20_ABI, rpc_url=rpc_url)
    except (RpcError, httpx.HTTPError, DecodingError, ValueError) as exc:
        logger.debug("%s() failed on %s: %s", function_name, token_contract, exc)
        return None


def get_token_info(token_contract: str, rpc_url: Optional[str] = None) -> TokenInfo:
    """Read name, symbol and decimals; each field is best-effort."""
    name = _read_optional(token_contract, "name", rpc_url)
    symbol = _read_optional(token_contract, "symbol", rpc_url)
    decimals = _read_optional(token_contract, "decimals", rpc_url)
    return TokenInfo(
        name=str(name) if name is not None else "",
        symbol=str(symbol) if symbol is not None else "",
        decimals=int(decimals) if decimals is not None else None,
    )


def format_token_balance(balance: Optional[int], decimals: int) -> Decimal:
    if balance is None:
        return Decimal(0)
    return wei_to_token(balance, decimals)


def check_token_balance(
    token_contract: str,
    wallet_address: str,
    rpc_url: Optional[str] = None,
) -> TokenBalanceReport:
    """
    Full balance lookup for display: metadata, raw and formatted balance.

    Missing metadata falls back to symbol ``TOKEN`` with 18 decimals. A
    zero balance carries the usual explanations in ``hints``.
    """
    metadata_error = None
    info = get_token_info(token_contract, rpc_url=rpc_url)
    if not info.symbol or info.decimals is None:
        metadata_error = "token metadata unavailable"
        info = TokenInfo(
            name=info.name,
            symbol=info.symbol or DEFAULT_SYMBOL,
            decimals=info.decimals if info.decimals is not None else DEFAULT_DECIMALS,
        )

    balance = get_token_balance(token_contract, wallet_address, rpc_url=rpc_url)
    report = TokenBalanceReport(
        token=token_contract,
        wallet=wallet_address,
        info=info,
        balance=balance,
        formatted=format_token_amount(balance, info.decimals, 6),
        metadata_error=metadata_error,
    )
    if balance == 0:
        report.hints = list(ZERO_BALANCE_HINTS)
    return report


def get_total_supply(
    token_contract: str,
    decimals: int = DEFAULT_DECIMALS,
    abi: Optional[list] = None,
    rpc_url: Optional[str] = None,
) -> tuple[int, Decimal]:
    """Returns (raw total supply, supply in whole tokens)."""
    supply = rpc.read_contract(
        token_contract, "totalSupply", [], abi=abi or ERC20_ABI, rpc_url=rpc_url
    )
    if supply is None:
        raise ValueError(f"totalSupply() returned no data for {token_contract}")
    logger.info("Total supply: %s", supply)
    return supply, wei_to_token(supply, decimals)
