"""
CLMM Math Utilities

Fixed-point decoding, tick conversion and trade-bound quoting.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import NamedTuple, Optional


Q64 = 1 << 64
I32_SIGN_BIT = 1 << 31
U32_RANGE = 1 << 32
BPS_DENOMINATOR = 10000


def decode_sqrt_price(raw: int, fraction_bits: int = 64) -> Decimal:
    """
    Decode a fixed-point sqrt price

    Args:
        raw: Integer as stored on chain
        fraction_bits: Fractional bits (64 for Q64.64, 0 if already plain)

    Returns:
        sqrt price as Decimal
    """
    if fraction_bits <= 0:
        return Decimal(raw)
    return Decimal(raw) / Decimal(1 << fraction_bits)


def decode_i32(bits: int) -> int:
    """Two's complement u32 -> i32 (Move I32 { bits })"""
    bits = int(bits) % U32_RANGE
    if bits & I32_SIGN_BIT:
        return bits - U32_RANGE
    return bits


def tick_to_price(tick: int) -> Decimal:
    """price = 1.0001 ** tick"""
    return Decimal("1.0001") ** tick


def price_from_sqrt(sqrt_price: Decimal) -> Decimal:
    return sqrt_price * sqrt_price


def apply_slippage_floor(amount: int, slippage_bps: int) -> int:
    """Minimum acceptable amount: floor(amount * (1 - bps / 10000))"""
    value = Decimal(amount) * Decimal(BPS_DENOMINATOR - slippage_bps) / Decimal(BPS_DENOMINATOR)
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def apply_slippage_ceiling(amount: int, slippage_bps: int) -> int:
    """Maximum acceptable amount: ceil(amount * (1 + bps / 10000))"""
    value = Decimal(amount) * Decimal(BPS_DENOMINATOR + slippage_bps) / Decimal(BPS_DENOMINATOR)
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def virtual_reserves(liquidity: int, sqrt_price: Decimal) -> tuple:
    """
    Virtual reserves of a concentrated-liquidity pool at the current price

    x = L / sqrtP, y = L * sqrtP

    Returns:
        (reserve_a, reserve_b) as Decimals
    """
    if liquidity <= 0 or sqrt_price <= 0:
        return Decimal(0), Decimal(0)
    L = Decimal(liquidity)
    return L / sqrt_price, L * sqrt_price


class TradeBounds(NamedTuple):
    expected_output: int
    price_impact: Decimal
    minimum_received: int
    maximum_spent: int


def quote_trade_bounds(
    amount_in: int,
    reserve_in: Decimal,
    reserve_out: Decimal,
    fee: Decimal,
    slippage_bps: int,
    spot_price: Optional[Decimal] = None,
) -> TradeBounds:
    """
    Constant-product quote for a trade of amount_in

    With fee-adjusted input a = amount_in * (1 - fee):
        expected_output = reserve_out * a / (reserve_in + a)
        price_impact = a / (reserve_in + a)
    When reserves are unknown the spot price is used with zero impact.

    Args:
        amount_in: Input amount in base units
        reserve_in: Input-side reserve
        reserve_out: Output-side reserve
        fee: Fee as a fraction (0.003 = 30 bps)
        slippage_bps: Slippage tolerance in basis points
        spot_price: Output per input, used when reserves are zero

    Returns:
        TradeBounds(expected_output, price_impact, minimum_received, maximum_spent)
    """
    amount = Decimal(amount_in)
    effective_in = amount * (Decimal(1) - fee)
    reserve_in = Decimal(reserve_in)
    reserve_out = Decimal(reserve_out)

    if reserve_in > 0 and reserve_out > 0:
        out = reserve_out * effective_in / (reserve_in + effective_in)
        impact = effective_in / (reserve_in + effective_in)
    elif spot_price is not None and spot_price > 0:
        out = effective_in * spot_price
        impact = Decimal(0)
    else:
        out = Decimal(0)
        impact = Decimal(0)

    expected = int(out.to_integral_value(rounding=ROUND_FLOOR))
    return TradeBounds(
        expected_output=expected,
        price_impact=impact,
        minimum_received=apply_slippage_floor(expected, slippage_bps),
        maximum_spent=apply_slippage_ceiling(amount_in, slippage_bps),
    )
