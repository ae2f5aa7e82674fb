"""
Retry Logic Helper Module

Async retry with bounded exponential backoff and jitter. Whether an error
is retried depends only on its ErrorCode, assigned once where the error
was raised (see infra.rpc.classify_rpc_error).

Two presets cover the network boundary:
- rpc_policy(): read calls (rate limits, timeouts, dropped connections)
- submission_policy(): transaction submission (gas estimation, object locks, congestion)
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, FrozenSet, Optional, TypeVar

import httpx

from ..errors import DexAdapterError, ErrorCode, RetryExhausted
from ..config import config as global_config
from .events import EventSink, get_correlation_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_LOW = 0.75
JITTER_HIGH = 1.25

RPC_RETRYABLE_CODES: FrozenSet[ErrorCode] = frozenset({
    ErrorCode.RPC_CONNECTION_FAILED,
    ErrorCode.RPC_TIMEOUT,
    ErrorCode.RPC_RATE_LIMITED,
    ErrorCode.RPC_INVALID_RESPONSE,
})

# Never insufficient funds or validation failures
SUBMISSION_RETRYABLE_CODES: FrozenSet[ErrorCode] = frozenset({
    ErrorCode.TX_GAS_ESTIMATION_FAILED,
    ErrorCode.TX_OBJECT_LOCKED,
    ErrorCode.TX_NETWORK_CONGESTED,
})


def classify_error(error: BaseException) -> Optional[ErrorCode]:
    """
    Error code of an exception

    DexAdapterError carries its own code. Raw transport exceptions that
    escaped the RPC layer are classified by type.

    Returns:
        ErrorCode, or None for anything unrecognized
    """
    if isinstance(error, DexAdapterError):
        return error.code
    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
        return ErrorCode.RPC_TIMEOUT
    if isinstance(error, httpx.TransportError):
        return ErrorCode.RPC_CONNECTION_FAILED
    return None


def retry_on_codes(codes: FrozenSet[ErrorCode]) -> Callable[[BaseException], bool]:
    """Build a should_retry predicate from a set of codes"""
    def should_retry(error: BaseException) -> bool:
        return classify_error(error) in codes
    return should_retry


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound on any single delay
        backoff_multiplier: Growth factor per attempt
        jitter: Scale each delay by a uniform factor in [0.75, 1.25]
        should_retry: Predicate deciding whether an error is transient
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    should_retry: Callable[[BaseException], bool] = field(
        default=retry_on_codes(RPC_RETRYABLE_CODES), compare=False
    )

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")


def rpc_policy(**overrides) -> RetryPolicy:
    """Preset for read calls against the node"""
    cfg = global_config.retry
    params = dict(
        max_attempts=cfg.rpc_max_attempts,
        base_delay=cfg.rpc_base_delay,
        max_delay=cfg.rpc_max_delay,
        backoff_multiplier=cfg.backoff_multiplier,
        jitter=cfg.jitter,
        should_retry=retry_on_codes(RPC_RETRYABLE_CODES),
    )
    params.update(overrides)
    return RetryPolicy(**params)


def submission_policy(**overrides) -> RetryPolicy:
    """Preset for transaction submission"""
    cfg = global_config.retry
    params = dict(
        max_attempts=cfg.tx_max_attempts,
        base_delay=cfg.tx_base_delay,
        max_delay=cfg.tx_max_delay,
        backoff_multiplier=cfg.backoff_multiplier,
        jitter=cfg.jitter,
        should_retry=retry_on_codes(SUBMISSION_RETRYABLE_CODES),
    )
    params.update(overrides)
    return RetryPolicy(**params)


def compute_delay(attempt: int, policy: RetryPolicy, rng: Optional[random.Random] = None) -> float:
    """
    Delay before retrying after the given (1-indexed) failed attempt

    min(base * multiplier ** (attempt - 1) * jitter_factor, max_delay)

    Pure given the rng state.
    """
    delay = policy.base_delay * (policy.backoff_multiplier ** (attempt - 1))
    if policy.jitter:
        rng = rng or random.Random()
        delay *= rng.uniform(JITTER_LOW, JITTER_HIGH)
    return min(delay, policy.max_delay)


class RetryInvoker:
    """
    Runs async operations under a RetryPolicy

    Usage:
        invoker = RetryInvoker(events=sink)
        data = await invoker.invoke(lambda: rpc.get_object(pool_id), rpc_policy(), "get_object")
    """

    def __init__(
        self,
        events: Optional[EventSink] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            events: Event sink for retry_attempt / retry_exhausted
            sleep: Async sleep function (asyncio.sleep by default)
            rng: Random source for jitter
        """
        self._events = events or EventSink()
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

    async def invoke(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        operation_name: str = "operation",
    ) -> T:
        """
        Execute an operation with automatic retry for transient errors.

        Args:
            operation: Zero-argument coroutine function
            policy: Retry policy (rpc_policy() if omitted)
            operation_name: Name for logging purposes

        Returns:
            The operation's result

        Raises:
            The original error when it is not retryable
            RetryExhausted: when every attempt failed with a retryable error
        """
        policy = policy or rpc_policy()

        for attempt in range(1, policy.max_attempts + 1):
            try:
                result = await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not policy.should_retry(e):
                    raise

                code = classify_error(e)
                if attempt >= policy.max_attempts:
                    self._events.emit(
                        "retry_exhausted",
                        operation=operation_name,
                        attempts=attempt,
                        error=str(e),
                        code=code.name if code else None,
                    )
                    raise RetryExhausted(operation_name, attempt, e) from e

                delay = compute_delay(attempt, policy, self._rng)
                self._events.emit(
                    "retry_attempt",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    delay=round(delay, 3),
                    error=str(e),
                    code=code.name if code else None,
                )
                # CancelledError during the sleep propagates
                await self._sleep(delay)
                continue

            if attempt > 1:
                cid = get_correlation_id()
                prefix = f"[{cid}] " if cid else ""
                logger.info(f"{prefix}[{operation_name}] Succeeded after {attempt} attempts")
            return result

        # Unreachable: the loop returns or raises
        raise RuntimeError("retry loop exited without result")
