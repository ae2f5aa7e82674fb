"""
Base protocol adapter interface

All DEX protocol adapters implement this interface so the pipeline and
callers can treat Cetus, Turbos and Momentum uniformly. Adapters build
TransactionSteps; they never sign or submit.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Union

from ..errors import NotInitialized
from ..infra import EventSink, ResultCache, RetryInvoker, SuiRpcClient
from ..types import (
    Address,
    CoinType,
    LiquidityParams,
    LiquiditySnapshot,
    Pool,
    PriceData,
    RemoveLiquidityParams,
    SwapRequest,
    TransactionStep,
)


class ProtocolAdapter(ABC):
    """
    Abstract base class for DEX protocol adapters

    Each adapter provides:
    - Pool discovery from on-chain events
    - Pool liquidity and price queries
    - Step building for swap / add / remove liquidity

    An adapter is bound to exactly one package id for its lifetime.
    """

    # Protocol identifier (e.g., "cetus", "turbos")
    name: str = "base"

    def __init__(
        self,
        rpc: SuiRpcClient,
        package_id: Union[str, Address],
        owner: Optional[Union[str, Address]] = None,
        cache: Optional[ResultCache] = None,
        invoker: Optional[RetryInvoker] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Initialize adapter

        Args:
            rpc: RPC client for chain queries
            package_id: Package the adapter's Move calls target
            owner: Default recipient (normally the signer address)
            cache: Result cache (a private one is created if omitted)
            invoker: Retry invoker for RPC reads
            events: Event sink
        """
        self._rpc = rpc
        self._package_id = Address(package_id)
        self._owner = Address(owner) if owner is not None else None
        self._events = events or EventSink()
        self._cache = cache or ResultCache(events=self._events)
        self._invoker = invoker or RetryInvoker(events=self._events)
        self._initialized = False

    @property
    def rpc(self) -> SuiRpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def package_id(self) -> Address:
        return self._package_id

    @property
    def owner(self) -> Optional[Address]:
        return self._owner

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self):
        if not self._initialized:
            raise NotInitialized(self.name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._package_id[:10]}...)"

    # ========== Lifecycle ==========

    @abstractmethod
    async def initialize(self):
        """
        Verify the package exists on chain

        Idempotent: a second call after success does nothing.

        Raises:
            AdapterInitError: package lookup failed
        """
        ...

    # ========== Pool Operations ==========

    @abstractmethod
    async def monitor_new_pools(self) -> List[Pool]:
        """
        Most recent pools created on this program, newest first

        Never raises: failures are logged and yield [].
        """
        ...

    @abstractmethod
    async def list_pools_for_pair(self, coin_a: CoinType, coin_b: CoinType) -> List[Pool]:
        """Candidate pools for an unordered coin pair"""
        ...

    @abstractmethod
    async def select_best_pool(self, coin_a: CoinType, coin_b: CoinType) -> Address:
        """
        Pool with the greatest total liquidity for the pair

        Raises:
            PoolNotFound: no candidate exists
        """
        ...

    @abstractmethod
    async def get_pool_liquidity(self, pool_id: Union[str, Address]) -> LiquiditySnapshot:
        """
        Current pool state

        Raises:
            PoolNotFound: object has no parseable pool content
            LiquidityFetchError: any other failure
        """
        ...

    @abstractmethod
    async def get_pool_price(
        self,
        pool_id: Union[str, Address],
        amount_in: Optional[int] = None,
        slippage: Optional[Union[float, Decimal]] = None,
        a_to_b: bool = True,
    ) -> PriceData:
        """
        Pool price, with trade bounds when amount_in is given

        Raises:
            PoolNotFound / LiquidityFetchError: as get_pool_liquidity
        """
        ...

    # ========== Step Building ==========

    @abstractmethod
    async def swap(self, request: SwapRequest) -> TransactionStep:
        """
        Build a swap step

        Raises:
            NotInitialized: initialize() has not succeeded
            PoolNotFound: no pool for the pair when pool_id is omitted
        """
        ...

    @abstractmethod
    async def add_liquidity(self, params: LiquidityParams) -> TransactionStep:
        ...

    @abstractmethod
    async def remove_liquidity(self, params: RemoveLiquidityParams) -> TransactionStep:
        ...
