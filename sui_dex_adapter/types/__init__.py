"""
Type definitions for Sui DEX Adapter
"""

from .address import (
    Address,
    CoinType,
    normalize,
    normalize_coin_type,
    is_valid,
    is_valid_coin_type,
    is_zero,
    equals,
    shorten,
    extract_package_id,
    is_package_address,
    SUI_FRAMEWORK_ADDRESS,
    CLOCK_OBJECT_ID,
    SUI_COIN_TYPE,
)
from .pool import Pool, LiquiditySnapshot, PriceData
from .params import SwapRequest, LiquidityParams, RemoveLiquidityParams, require_positive, slippage_to_bps
from .transaction import TransactionAction, TransactionStep, TransactionBlock
from .result import ExecutionResult, GasUsed, TxStatus, WaitMode

__all__ = [
    # Address codec
    "Address",
    "CoinType",
    "normalize",
    "normalize_coin_type",
    "is_valid",
    "is_valid_coin_type",
    "is_zero",
    "equals",
    "shorten",
    "extract_package_id",
    "is_package_address",
    "SUI_FRAMEWORK_ADDRESS",
    "CLOCK_OBJECT_ID",
    "SUI_COIN_TYPE",
    # Pools
    "Pool",
    "LiquiditySnapshot",
    "PriceData",
    # Requests
    "SwapRequest",
    "LiquidityParams",
    "RemoveLiquidityParams",
    "slippage_to_bps",
    "require_positive",
    # Transactions
    "TransactionAction",
    "TransactionStep",
    "TransactionBlock",
    "ExecutionResult",
    "GasUsed",
    "TxStatus",
    "WaitMode",
]
