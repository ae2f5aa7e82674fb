"""
Cetus CLMM Protocol Adapter

Pools live in the `clmm` module. Sqrt prices are stored as Q64.64 and
fee rates in parts per million.
"""

from ..clmm import MoveClmmAdapter
from ..pool_parser import PoolFieldMap

CETUS_PACKAGE_ID = "0x1eabed72c53feb3805120a081dc15963c204dc8d091542592abaf7a35689b2fb"

CETUS_FIELD_MAP = PoolFieldMap(
    liquidity=("liquidity",),
    sqrt_price=("current_sqrt_price",),
    tick=("current_tick_index",),
    fee=(("fee_rate", 100),),
    reserve_a=("coin_a",),
    reserve_b=("coin_b",),
    event_pool_id=("pool_id", "pool"),
    event_coin_a=("coin_type_a", "coin_a"),
    event_coin_b=("coin_type_b", "coin_b"),
)


class CetusAdapter(MoveClmmAdapter):
    """
    Cetus CLMM adapter

    Usage:
        cetus = CetusAdapter(rpc, owner=signer.address)
        await cetus.initialize()
        step = await cetus.swap(SwapRequest(SUI, USDC, 1_000_000_000, slippage=0.5))
    """

    name = "cetus"
    default_package_id = CETUS_PACKAGE_ID
    package_env_var = "CETUS_PACKAGE_ID"
    module = "clmm"
    field_map = CETUS_FIELD_MAP
    sqrt_price_fraction_bits = 64
