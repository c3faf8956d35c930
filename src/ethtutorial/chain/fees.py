"""
Gas pricing for EIP-1559 (type 2) and legacy transactions.

The fee cap is ``2 * baseFee + tip``; the tip falls back to 2 gwei when
the node cannot suggest one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from ..errors import RpcError
from ..units import WEI_PER_GWEI, wei_to_gwei
from ..utils import to_int
from . import rpc

logger = logging.getLogger(__name__)

DEFAULT_TIP_CAP = 2 * WEI_PER_GWEI


@dataclass(frozen=True)
class FeeQuote:
    base_fee: int
    tip_cap: int
    fee_cap: int
    tip_defaulted: bool = False

    def describe(self) -> dict[str, Decimal]:
        """Gwei view for display."""
        return {
            "base_fee_gwei": wei_to_gwei(self.base_fee),
            "tip_cap_gwei": wei_to_gwei(self.tip_cap),
            "fee_cap_gwei": wei_to_gwei(self.fee_cap),
        }


def compute_fee_cap(base_fee: int, tip_cap: int, multiplier: float = 1.0) -> int:
    """``(base_fee * 2 + tip_cap) * multiplier``, truncated to wei."""
    fee_cap = base_fee * 2 + tip_cap
    if multiplier != 1.0:
        fee_cap = int(Decimal(fee_cap) * Decimal(str(multiplier)))
    return fee_cap


def suggest_tip_cap(rpc_url: Optional[str] = None) -> tuple[int, bool]:
    """Node-suggested tip, or (DEFAULT_TIP_CAP, True) when unavailable."""
    try:
        return rpc.get_max_priority_fee(rpc_url=rpc_url), False
    except (RpcError, httpx.HTTPError) as exc:
        logger.warning(
            "Could not fetch suggested tip (%s), using default: %s Gwei",
            exc,
            wei_to_gwei(DEFAULT_TIP_CAP),
        )
        return DEFAULT_TIP_CAP, True


def suggest_eip1559_fees(
    multiplier: float = 1.0,
    rpc_url: Optional[str] = None,
) -> Optional[FeeQuote]:
    """
    Build an EIP-1559 fee quote from the latest block.

    Returns:
        FeeQuote, or None when the latest block carries no base fee
        (pre-London chain); callers then fall back to legacy pricing.
    """
    header = rpc.get_block(None, rpc_url=rpc_url)
    if not header:
        raise RpcError("eth_getBlockByNumber", None, "latest block not available")

    base_fee = to_int(header.get("baseFeePerGas"))
    if base_fee is None:
        logger.info("Latest block has no baseFeePerGas; chain does not support EIP-1559")
        return None

    tip_cap, defaulted = suggest_tip_cap(rpc_url=rpc_url)
    quote = FeeQuote(
        base_fee=base_fee,
        tip_cap=tip_cap,
        fee_cap=compute_fee_cap(base_fee, tip_cap, multiplier),
        tip_defaulted=defaulted,
    )
    view = quote.describe()
    logger.info(
        "Base fee: %s Gwei, tip cap: %s Gwei, fee cap: %s Gwei",
        view["base_fee_gwei"],
        view["tip_cap_gwei"],
        view["fee_cap_gwei"],
    )
    return quote


def suggest_legacy_gas_price(multiplier: float = 1.0, rpc_url: Optional[str] = None) -> int:
    """eth_gasPrice scaled by ``multiplier``."""
    gas_price = rpc.get_gas_price(rpc_url=rpc_url)
    if multiplier != 1.0:
        gas_price = int(Decimal(gas_price) * Decimal(str(multiplier)))
    logger.info("Gas price: %s Gwei", wei_to_gwei(gas_price))
    return gas_price
