"""
Error definitions for Sui DEX Adapter
"""

from .exceptions import (
    ErrorCode,
    DexAdapterError,
    RpcError,
    InvalidAddress,
    InvalidParameters,
    AdapterInitError,
    NotInitialized,
    PoolUnavailable,
    PoolNotFound,
    LiquidityFetchError,
    InsufficientBalance,
    TransactionError,
    SubmissionError,
    ExecutionFailed,
    SignerError,
    InvalidKeyFormat,
    RetryExhausted,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "DexAdapterError",
    "RpcError",
    "InvalidAddress",
    "InvalidParameters",
    "AdapterInitError",
    "NotInitialized",
    "PoolUnavailable",
    "PoolNotFound",
    "LiquidityFetchError",
    "InsufficientBalance",
    "TransactionError",
    "SubmissionError",
    "ExecutionFailed",
    "SignerError",
    "InvalidKeyFormat",
    "RetryExhausted",
    "ConfigurationError",
]
