"""
Move CLMM pool parsers

Maps pool-creation events and pool objects (sui_getObject with
showContent) onto Pool and LiquiditySnapshot. Programs name the same
fields differently, so each lookup goes through a list of aliases.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from ..errors import InvalidAddress, PoolNotFound
from ..types import Address, CoinType, LiquiditySnapshot, Pool
from .math import decode_i32, decode_sqrt_price

logger = logging.getLogger(__name__)

# (field name, divisor to convert the stored value to basis points)
FeeAlias = Tuple[str, int]


@dataclass(frozen=True)
class PoolFieldMap:
    """
    Field aliases for one program's pool objects and events

    Earlier aliases win when several are present.
    """
    liquidity: Tuple[str, ...] = ("liquidity", "total_liquidity")
    sqrt_price: Tuple[str, ...] = ("current_sqrt_price", "sqrt_price")
    tick: Tuple[str, ...] = ("current_tick_index", "tick_current_index", "current_tick")
    # fee_rate/fee are parts per million on chain, fee_tier is already bps
    fee: Tuple[FeeAlias, ...] = (("fee_tier", 1), ("fee_rate", 100), ("fee", 100))
    reserve_a: Tuple[str, ...] = ("coin_a", "reserve_a", "balance_a")
    reserve_b: Tuple[str, ...] = ("coin_b", "reserve_b", "balance_b")
    decimals_a: Tuple[str, ...] = ("decimals_a",)
    decimals_b: Tuple[str, ...] = ("decimals_b",)
    tvl: Tuple[str, ...] = ("tvl",)

    # Event payload (parsedJson)
    event_pool_id: Tuple[str, ...] = ("pool_id", "pool")
    event_coin_a: Tuple[str, ...] = ("coin_a", "coin_type_a", "type_a")
    event_coin_b: Tuple[str, ...] = ("coin_b", "coin_type_b", "type_b")
    event_volume: Tuple[str, ...] = ("volume_24h",)


DEFAULT_FIELD_MAP = PoolFieldMap()


def _first(fields: Dict[str, Any], aliases: Tuple[str, ...]) -> Any:
    for name in aliases:
        if name in fields and fields[name] is not None:
            return fields[name]
    return None


def _unwrap(value: Any) -> Any:
    """Strip Move struct wrappers: {"fields": {...}}, {"bits": n}, {"name": "..."}, {"id": "..."}"""
    while isinstance(value, dict):
        if "fields" in value:
            value = value["fields"]
        elif "bits" in value:
            value = value["bits"]
        elif "name" in value:
            value = value["name"]
        elif "id" in value:
            value = value["id"]
        elif "value" in value:
            value = value["value"]
        else:
            break
    return value


def _as_int(value: Any, default: int = 0) -> int:
    value = _unwrap(value)
    if value is None or value == "":
        return default
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return default


def _as_decimal(value: Any) -> Decimal:
    value = _unwrap(value)
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def _as_sqrt_price(value: Any, fraction_bits: int) -> Decimal:
    """
    Stored sqrt price as Decimal

    Integers are fixed-point (u128 on chain) and get decoded; values with a
    fractional part are already plain sqrt prices.
    """
    value = _unwrap(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return decode_sqrt_price(value, fraction_bits)
    raw = _as_decimal(value)
    if isinstance(value, str) and value.strip().isdigit():
        return decode_sqrt_price(int(raw), fraction_bits)
    return raw


def _as_coin_type(value: Any) -> CoinType:
    value = _unwrap(value)
    if isinstance(value, str) and not value.startswith(("0x", "0X")):
        # TypeName renders without the 0x prefix
        value = "0x" + value
    return CoinType(value)


def _fee_bps(fields: Dict[str, Any], aliases: Tuple[FeeAlias, ...]) -> int:
    for name, divisor in aliases:
        if name in fields and fields[name] is not None:
            return _as_int(fields[name]) // divisor
    return 0


def parse_pool_event(
    event: Dict[str, Any],
    dex: str,
    field_map: PoolFieldMap = DEFAULT_FIELD_MAP,
) -> Optional[Pool]:
    """
    Map one pool-creation event to a Pool

    Returns:
        Pool, or None when the event lacks a pool id or coin types
    """
    payload = event.get("parsedJson") or {}
    try:
        pool_id = Address(_unwrap(_first(payload, field_map.event_pool_id)))
        coin_a = _as_coin_type(_first(payload, field_map.event_coin_a))
        coin_b = _as_coin_type(_first(payload, field_map.event_coin_b))
    except InvalidAddress as e:
        logger.debug(f"Skipping malformed {dex} pool event {event.get('id')}: {e}")
        return None

    volume = _first(payload, field_map.event_volume)
    return Pool(
        pool_id=pool_id,
        dex=dex,
        coin_a=coin_a,
        coin_b=coin_b,
        fee_tier=_fee_bps(payload, field_map.fee),
        created_at_ms=_as_int(event.get("timestampMs")),
        volume_24h=_as_decimal(volume) if volume is not None else None,
        metadata=payload,
    )


def parse_liquidity(
    pool_id: Address,
    object_data: Dict[str, Any],
    field_map: PoolFieldMap = DEFAULT_FIELD_MAP,
    sqrt_price_fraction_bits: int = 64,
) -> LiquiditySnapshot:
    """
    Map a pool object to a LiquiditySnapshot

    Args:
        pool_id: Pool object id
        object_data: "data" member of a sui_getObject response
        field_map: Program field aliases
        sqrt_price_fraction_bits: Fixed-point fraction bits of the stored sqrt price

    Raises:
        PoolNotFound: the object is missing or has no parseable pool content
    """
    content = (object_data or {}).get("content")
    if not content:
        raise PoolNotFound.not_found(pool_id)

    fields = content.get("fields")
    if not isinstance(fields, dict):
        raise PoolNotFound(f"Pool {pool_id} content has no fields", pool_address=pool_id)

    liquidity_raw = _first(fields, field_map.liquidity)
    sqrt_raw = _first(fields, field_map.sqrt_price)
    if liquidity_raw is None and sqrt_raw is None:
        raise PoolNotFound(
            f"Object {pool_id} ({content.get('type', '?')}) has no liquidity or price fields",
            pool_address=pool_id,
        )

    return LiquiditySnapshot(
        pool_id=pool_id,
        total_liquidity=_as_int(liquidity_raw),
        current_tick=decode_i32(_as_int(_first(fields, field_map.tick))),
        sqrt_price=_as_sqrt_price(sqrt_raw, sqrt_price_fraction_bits),
        reserve_a=_as_int(_first(fields, field_map.reserve_a)),
        reserve_b=_as_int(_first(fields, field_map.reserve_b)),
        decimals_a=_as_int(_first(fields, field_map.decimals_a), default=9),
        decimals_b=_as_int(_first(fields, field_map.decimals_b), default=9),
        fee_tier=_fee_bps(fields, field_map.fee),
        tvl=_as_decimal(_first(fields, field_map.tvl)),
    )
