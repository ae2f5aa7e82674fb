"""
Momentum CLMM Protocol Adapter

Momentum publishes no stable package id, so one must be configured
through MOMENTUM_PACKAGE_ID (or passed explicitly).
"""

from ..clmm import MoveClmmAdapter
from ..pool_parser import DEFAULT_FIELD_MAP


class MomentumAdapter(MoveClmmAdapter):
    """Momentum CLMM adapter"""

    name = "momentum"
    default_package_id = None
    package_env_var = "MOMENTUM_PACKAGE_ID"
    module = "trade"
    field_map = DEFAULT_FIELD_MAP
    sqrt_price_fraction_bits = 64
