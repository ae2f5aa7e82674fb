"""
Exception definitions for Sui DEX Adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for DEX operations

    1xxx - RPC errors
    2xxx - Transaction errors
    4xxx - Pool errors
    6xxx - Signer errors
    7xxx - Operation errors
    8xxx - Adapter/address errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"
    RPC_REQUEST_REJECTED = "1005"

    # Transaction errors
    TX_DRY_RUN_FAILED = "2001"
    TX_SEND_FAILED = "2002"
    TX_EXECUTION_FAILED = "2003"
    TX_INSUFFICIENT_FUNDS = "2004"
    TX_GAS_ESTIMATION_FAILED = "2005"
    TX_OBJECT_LOCKED = "2006"
    TX_NETWORK_CONGESTED = "2007"
    TX_VALIDATION_FAILED = "2008"

    # Pool errors
    POOL_NOT_FOUND = "4001"
    POOL_INVALID_STATE = "4003"
    POOL_STATE_FETCH_FAILED = "4004"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"
    SIGNER_INVALID_KEY = "6004"

    # Operation errors
    OPERATION_FAILED = "7002"
    INVALID_PARAMETERS = "7003"
    RETRY_EXHAUSTED = "7004"

    # Adapter/address errors
    ADDRESS_INVALID = "8001"
    ADAPTER_INIT_FAILED = "8002"
    ADAPTER_NOT_INITIALIZED = "8003"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class DexAdapterError(Exception):
    """
    Base exception for all DEX adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(DexAdapterError):
    """
    RPC-related errors

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node rejects the request (JSON-RPC error object)

    The code is assigned once, where the failure is first observed, so that
    retry predicates never need to look at the message text.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
        rpc_code: Optional[int] = None,
        recoverable: bool = True,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"endpoint": endpoint, "rpc_code": rpc_code},
        )
        self.endpoint = endpoint
        self.rpc_code = rpc_code

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class InvalidAddress(DexAdapterError):
    """Raised when a raw value cannot be parsed as a Sui address or coin type"""

    def __init__(self, raw: object, reason: str = "not a valid Sui address"):
        super().__init__(
            f"Invalid address {raw!r}: {reason}",
            ErrorCode.ADDRESS_INVALID,
            recoverable=False,
            details={"raw": str(raw)},
        )
        self.raw = raw
        self.reason = reason


class InvalidParameters(DexAdapterError):
    """
    Construction-time validation failure (amounts, slippage, tick ordering)

    Never retried.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.INVALID_PARAMETERS,
            recoverable=False,
            details={"field": field},
        )
        self.field = field


class AdapterInitError(DexAdapterError):
    """Raised when the target program cannot be found on chain"""

    def __init__(
        self,
        dex: str,
        package_id: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            f"Failed to initialize {dex} adapter: package {package_id} not reachable"
            + (f" ({original_error})" if original_error else ""),
            ErrorCode.ADAPTER_INIT_FAILED,
            recoverable=False,
            original_error=original_error,
            details={"dex": dex, "package_id": package_id},
        )
        self.dex = dex
        self.package_id = package_id


class NotInitialized(DexAdapterError):
    """Raised when a construction method is called before initialize()"""

    def __init__(self, dex: str):
        super().__init__(
            f"{dex} adapter not initialized",
            ErrorCode.ADAPTER_NOT_INITIALIZED,
            recoverable=False,
            details={"dex": dex},
        )
        self.dex = dex


class PoolUnavailable(DexAdapterError):
    """
    Pool not available - not recoverable

    Raised when:
    - Pool object not found on chain
    - Pool has invalid state
    """

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        code: ErrorCode = ErrorCode.POOL_INVALID_STATE,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address

    @classmethod
    def invalid_state(cls, pool_address: str, reason: str) -> "PoolUnavailable":
        return cls(
            f"Pool has invalid state: {reason}",
            pool_address=pool_address,
        )


class PoolNotFound(PoolUnavailable):
    """
    No pool exists for the requested id or coin pair

    Raised when:
    - The pool object has no parseable content
    - Best-pool selection finds no candidate for a pair
    """

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        coin_pair: Optional[tuple] = None,
    ):
        super().__init__(message, pool_address=pool_address, code=ErrorCode.POOL_NOT_FOUND)
        self.coin_pair = coin_pair
        if coin_pair:
            self.details["coin_pair"] = [str(c) for c in coin_pair]

    @classmethod
    def not_found(cls, pool_address: str) -> "PoolNotFound":
        return cls(f"Pool not found: {pool_address}", pool_address=pool_address)

    @classmethod
    def for_pair(cls, dex: str, coin_a: str, coin_b: str) -> "PoolNotFound":
        return cls(
            f"No {dex} pool found for {coin_a}/{coin_b} pair",
            coin_pair=(coin_a, coin_b),
        )


class LiquidityFetchError(DexAdapterError):
    """Raised when pool state cannot be fetched or mapped"""

    def __init__(self, pool_address: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Liquidity check failed for pool {pool_address}: {original_error}",
            ErrorCode.POOL_STATE_FETCH_FAILED,
            recoverable=False,
            original_error=original_error,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address


class InsufficientBalance(DexAdapterError):
    """
    Insufficient balance - not recoverable without deposit

    Raised when no spendable coin object covers the requested amount.
    """

    def __init__(
        self,
        message: str,
        coin_type: Optional[str] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(
            message,
            ErrorCode.TX_INSUFFICIENT_FUNDS,
            recoverable=False,
            details={
                "coin_type": coin_type,
                "required": required,
                "available": available,
            },
        )
        self.coin_type = coin_type
        self.required = required
        self.available = available

    @classmethod
    def no_coin_covers(cls, coin_type: str, required: int, largest: int) -> "InsufficientBalance":
        return cls(
            f"Insufficient balance for {coin_type}: need a coin with {required}, largest is {largest}",
            coin_type=coin_type,
            required=required,
            available=largest,
        )


class TransactionError(DexAdapterError):
    """
    Transaction execution errors

    Raised when:
    - The node refuses to build or execute the transaction
    - Dry run fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SEND_FAILED,
        digest: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"digest": digest},
        )
        self.digest = digest


class SubmissionError(TransactionError):
    """Raised when a transaction cannot be signed or handed to the node"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Transaction submission failed: {message}",
            ErrorCode.TX_SEND_FAILED,
            original_error=original_error,
        )


class ExecutionFailed(TransactionError):
    """
    The chain reported a failed effects status

    Never retried automatically: resubmitting after an on-chain rejection
    is a policy-layer decision.
    """

    def __init__(self, reason: str, digest: Optional[str] = None, result=None):
        super().__init__(
            f"Transaction {digest or '<unknown>'} failed on-chain: {reason}",
            ErrorCode.TX_EXECUTION_FAILED,
            digest=digest,
        )
        self.reason = reason
        self.result = result


class SignerError(DexAdapterError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide SUI_PRIVATE_KEY or SUI_KEYSTORE_PATH.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )


class InvalidKeyFormat(SignerError):
    """Key material does not match a recognized encoding"""

    def __init__(self, reason: str):
        super().__init__(f"Invalid private key format: {reason}", ErrorCode.SIGNER_INVALID_KEY)
        self.reason = reason


class RetryExhausted(DexAdapterError):
    """All retry attempts failed; wraps the last error"""

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        super().__init__(
            f"{operation} failed after {attempts} attempts. Last error: {last_error}",
            ErrorCode.RETRY_EXHAUSTED,
            recoverable=False,
            original_error=last_error,
            details={"operation": operation, "attempts": attempts},
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class ConfigurationError(DexAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
