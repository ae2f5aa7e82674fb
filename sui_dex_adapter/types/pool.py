"""
Pool type definitions
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .address import Address, CoinType


@dataclass
class Pool:
    """
    DEX liquidity pool information

    Discovered from the program's pool-creation events only.

    Attributes:
        pool_id: Pool object id
        dex: DEX protocol name ("cetus" | "turbos" | "momentum")
        coin_a: Coin type A
        coin_b: Coin type B
        fee_tier: Fee tier in basis points (e.g., 30 for 0.30%)
        created_at_ms: Creation timestamp in milliseconds
        liquidity: Total liquidity if already known
        volume_24h: 24h volume if reported by the event source
    """
    pool_id: Address
    dex: str
    coin_a: CoinType
    coin_b: CoinType
    fee_tier: int = 0
    created_at_ms: int = 0
    liquidity: Optional[int] = None
    volume_24h: Optional[Decimal] = None

    # Raw event payload
    metadata: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.coin_a.symbol}/{self.coin_b.symbol} ({self.dex})"

    def __repr__(self) -> str:
        return f"Pool({self.dex}, {self.pool_id[:10]}...)"

    @property
    def fee_rate(self) -> Decimal:
        """Fee as a fraction (30 bps -> 0.003)"""
        return Decimal(self.fee_tier) / Decimal(10000)

    def matches_pair(self, coin_x: CoinType, coin_y: CoinType) -> bool:
        """Pair match in either order"""
        return {self.coin_a, self.coin_b} == {coin_x, coin_y}

    def is_coin_a(self, coin_type: CoinType) -> bool:
        return self.coin_a == coin_type


@dataclass
class LiquiditySnapshot:
    """
    Point-in-time pool state

    Attributes:
        pool_id: Pool object id
        total_liquidity: Active liquidity (L)
        current_tick: Current tick index
        sqrt_price: Square root of price (already decoded, not fixed-point)
        reserve_a / reserve_b: Token balances held by the pool (raw units)
        decimals_a / decimals_b: Token decimals if known
        fee_tier: Fee tier in basis points
        tvl: Total value locked as reported, 0 if unknown
        fetched_at: Unix timestamp of the fetch
    """
    pool_id: Address
    total_liquidity: int
    current_tick: int = 0
    sqrt_price: Decimal = Decimal(0)
    reserve_a: int = 0
    reserve_b: int = 0
    decimals_a: int = 9
    decimals_b: int = 9
    fee_tier: int = 0
    tvl: Decimal = Decimal(0)
    fetched_at: float = field(default_factory=time.time)

    @property
    def price(self) -> Decimal:
        """Price of coin A in coin B = sqrt_price ** 2"""
        return self.sqrt_price * self.sqrt_price

    @property
    def fee(self) -> Decimal:
        return Decimal(self.fee_tier) / Decimal(10000)


@dataclass
class PriceData:
    """
    Pool price with optional trade bounds

    price_impact, minimum_received and maximum_spent stay zero unless a
    trade size was supplied when quoting.
    """
    pool_id: Address
    price: Decimal
    fee: Decimal
    price_impact: Decimal = Decimal(0)
    minimum_received: int = 0
    maximum_spent: int = 0
    amount_in: Optional[int] = None
    expected_output: Optional[int] = None

    @property
    def has_trade_bounds(self) -> bool:
        return self.amount_in is not None
