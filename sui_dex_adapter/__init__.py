"""
Sui DEX Adapter - Unified interface for Sui DEX protocols

Provides transaction steps and execution for:
- Cetus CLMM
- Turbos Finance CLMM
- Momentum CLMM

Around the network boundary:
- Retry with exponential backoff and jitter
- Namespaced TTL cache with in-flight collapsing
- Local Ed25519 signing and submission
"""

from .client import SuiDexClient
from .types import (
    Address,
    CoinType,
    Pool,
    LiquiditySnapshot,
    PriceData,
    SwapRequest,
    LiquidityParams,
    RemoveLiquidityParams,
    TransactionStep,
    TransactionBlock,
    ExecutionResult,
    TxStatus,
    WaitMode,
    SUI_COIN_TYPE,
)
from .errors import (
    DexAdapterError,
    ErrorCode,
    RpcError,
    InvalidAddress,
    InvalidParameters,
    AdapterInitError,
    NotInitialized,
    PoolNotFound,
    LiquidityFetchError,
    InsufficientBalance,
    SubmissionError,
    ExecutionFailed,
    InvalidKeyFormat,
    RetryExhausted,
)
from .protocols import CetusAdapter, TurbosAdapter, MomentumAdapter, AdapterRegistry

__all__ = [
    # Client
    "SuiDexClient",
    # Types
    "Address",
    "CoinType",
    "Pool",
    "LiquiditySnapshot",
    "PriceData",
    "SwapRequest",
    "LiquidityParams",
    "RemoveLiquidityParams",
    "TransactionStep",
    "TransactionBlock",
    "ExecutionResult",
    "TxStatus",
    "WaitMode",
    "SUI_COIN_TYPE",
    # Errors
    "DexAdapterError",
    "ErrorCode",
    "RpcError",
    "InvalidAddress",
    "InvalidParameters",
    "AdapterInitError",
    "NotInitialized",
    "PoolNotFound",
    "LiquidityFetchError",
    "InsufficientBalance",
    "SubmissionError",
    "ExecutionFailed",
    "InvalidKeyFormat",
    "RetryExhausted",
    # Protocols
    "CetusAdapter",
    "TurbosAdapter",
    "MomentumAdapter",
    "AdapterRegistry",
]

__version__ = "0.1.0"
