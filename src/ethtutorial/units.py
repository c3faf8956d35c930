"""
Unit conversions between human amounts and on-chain integers.

All arithmetic is done with :class:`decimal.Decimal` so 18-decimal
tokens never lose precision to binary floats.  Conversions to integers
truncate toward zero.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Decimal, localcontext
from typing import Union

Number = Union[int, float, str, Decimal]

WEI_PER_ETHER = 10**18
WEI_PER_GWEI = 10**9


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # str() keeps the shortest repr, so 0.001 stays 0.001
        return Decimal(str(amount))
    return Decimal(amount)


def token_to_wei(amount: Number, decimals: int) -> int:
    """Convert a token amount to its smallest unit (10**decimals)."""
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    if decimals == 0:
        return int(_to_decimal(amount))
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = _to_decimal(amount) * (Decimal(10) ** decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def ether_to_wei(amount: Number) -> int:
    return token_to_wei(amount, 18)


def wei_to_token(wei: int, decimals: int) -> Decimal:
    if decimals == 0:
        return Decimal(wei)
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(wei) / (Decimal(10) ** decimals)


def wei_to_ether(wei: int) -> Decimal:
    return wei_to_token(wei, 18)


def wei_to_gwei(wei: int) -> Decimal:
    return wei_to_token(wei, 9)


def format_token_amount(wei: int, decimals: int, precision: int) -> str:
    """Render ``wei`` as a fixed-point string rounded to ``precision`` places."""
    value = wei_to_token(wei, decimals)
    quantum = Decimal(1).scaleb(-precision) if precision > 0 else Decimal(1)
    with localcontext() as ctx:
        ctx.prec = 100
        return f"{value.quantize(quantum, rounding=ROUND_HALF_EVEN):f}"
