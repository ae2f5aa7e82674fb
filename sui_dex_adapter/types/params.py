"""
Request parameter types

All amounts are raw integer base units (MIST for SUI). Validation happens at
construction, so an instance that exists is always well-formed.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Union

from ..errors import InvalidParameters
from .address import Address, CoinType


def slippage_to_bps(slippage_percent: Union[float, int, str, Decimal]) -> int:
    """
    Convert a slippage percentage to basis points

    bps = floor(slippage * 100), computed in Decimal so that 1.5 -> 150
    (not 149 through float error).

    Raises:
        InvalidParameters: slippage outside [0, 100]
    """
    try:
        value = Decimal(str(slippage_percent))
    except ArithmeticError:
        raise InvalidParameters(f"Slippage is not a number: {slippage_percent!r}", field="slippage")
    if not value.is_finite() or value < 0 or value > 100:
        raise InvalidParameters(
            f"Slippage must be within [0, 100] percent, got {slippage_percent}",
            field="slippage",
        )
    return int((value * 100).to_integral_value(rounding=ROUND_FLOOR))


def require_positive(value: int, name: str):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameters(f"{name} must be an integer amount in base units", field=name)
    if value <= 0:
        raise InvalidParameters(f"{name} must be positive, got {value}", field=name)


def _require_non_negative(value: int, name: str):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameters(f"{name} must be an integer amount in base units", field=name)
    if value < 0:
        raise InvalidParameters(f"{name} must not be negative, got {value}", field=name)


@dataclass(frozen=True)
class SwapRequest:
    """
    Swap parameters

    Attributes:
        coin_in: Coin type to sell
        coin_out: Coin type to buy
        amount: Input amount in base units
        slippage: Slippage tolerance in percent (1.5 = 1.5%)
        pool_id: Explicit pool; best-pool selection runs when omitted
        recipient: Output recipient; defaults to the signer address
        expected_output: Quoted output, carried into the built step
    """
    coin_in: CoinType
    coin_out: CoinType
    amount: int
    slippage: Decimal = Decimal("1.5")
    pool_id: Optional[Address] = None
    recipient: Optional[Address] = None
    expected_output: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "coin_in", CoinType(self.coin_in))
        object.__setattr__(self, "coin_out", CoinType(self.coin_out))
        if self.coin_in == self.coin_out:
            raise InvalidParameters("coin_in and coin_out must differ", field="coin_out")
        require_positive(self.amount, "amount")
        # Validates the range
        slippage_to_bps(self.slippage)
        if self.pool_id is not None:
            object.__setattr__(self, "pool_id", Address(self.pool_id))
        if self.recipient is not None:
            object.__setattr__(self, "recipient", Address(self.recipient))
        if self.expected_output is not None:
            _require_non_negative(self.expected_output, "expected_output")

    @property
    def slippage_bps(self) -> int:
        return slippage_to_bps(self.slippage)


@dataclass(frozen=True)
class LiquidityParams:
    """
    Add-liquidity parameters for a concentrated range

    lower_tick must be strictly below upper_tick.
    """
    coin_a: CoinType
    coin_b: CoinType
    amount_a: int
    amount_b: int
    lower_tick: int
    upper_tick: int
    pool_id: Optional[Address] = None

    def __post_init__(self):
        object.__setattr__(self, "coin_a", CoinType(self.coin_a))
        object.__setattr__(self, "coin_b", CoinType(self.coin_b))
        require_positive(self.amount_a, "amount_a")
        require_positive(self.amount_b, "amount_b")
        if self.lower_tick >= self.upper_tick:
            raise InvalidParameters(
                f"lower_tick ({self.lower_tick}) must be below upper_tick ({self.upper_tick})",
                field="lower_tick",
            )
        if self.pool_id is not None:
            object.__setattr__(self, "pool_id", Address(self.pool_id))


@dataclass(frozen=True)
class RemoveLiquidityParams:
    """Remove-liquidity parameters"""
    pool_id: Address
    lp_amount: int
    min_amount_a: int = 0
    min_amount_b: int = 0

    def __post_init__(self):
        object.__setattr__(self, "pool_id", Address(self.pool_id))
        require_positive(self.lp_amount, "lp_amount")
        _require_non_negative(self.min_amount_a, "min_amount_a")
        _require_non_negative(self.min_amount_b, "min_amount_b")
