"""
Turbos Finance CLMM Protocol Adapter

Pools live in the `pool` module. Fields follow the Turbos pool object:
sqrt_price (Q64.64), tick_current_index (I32 bits), fee in parts per million.
"""

from ..clmm import MoveClmmAdapter
from ..pool_parser import PoolFieldMap

TURBOS_PACKAGE_ID = "0x91bfbc386a41af6d3f9c8c308dcaa68c2540e725"

TURBOS_FIELD_MAP = PoolFieldMap(
    liquidity=("liquidity",),
    sqrt_price=("sqrt_price",),
    tick=("tick_current_index",),
    fee=(("fee", 100),),
    reserve_a=("coin_a",),
    reserve_b=("coin_b",),
    event_pool_id=("pool", "pool_id"),
    event_coin_a=("coin_type_a", "coin_a"),
    event_coin_b=("coin_type_b", "coin_b"),
)


class TurbosAdapter(MoveClmmAdapter):
    """Turbos Finance CLMM adapter"""

    name = "turbos"
    default_package_id = TURBOS_PACKAGE_ID
    package_env_var = "TURBOS_PACKAGE_ID"
    module = "pool"
    field_map = TURBOS_FIELD_MAP
    sqrt_price_fraction_bits = 64
