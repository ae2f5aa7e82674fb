"""
Shared Move concentrated-liquidity adapter

Cetus, Turbos and Momentum expose the same call shapes (swap, add/remove
liquidity taking the shared Clock) and announce pools through a
PoolCreated event. They differ in package id, module name and pool
object field names, which subclasses set as class attributes.
"""

import asyncio
import logging
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from ..config import config as global_config
from ..errors import (
    AdapterInitError,
    ConfigurationError,
    DexAdapterError,
    InvalidParameters,
    LiquidityFetchError,
    PoolNotFound,
)
from ..infra import CacheNamespace, rpc_policy
from ..types import (
    Address,
    CoinType,
    LiquidityParams,
    LiquiditySnapshot,
    Pool,
    PriceData,
    RemoveLiquidityParams,
    SwapRequest,
    TransactionAction,
    TransactionStep,
    CLOCK_OBJECT_ID,
    slippage_to_bps,
)
from .base import ProtocolAdapter
from .math import quote_trade_bounds, virtual_reserves
from .pool_parser import DEFAULT_FIELD_MAP, PoolFieldMap, parse_liquidity, parse_pool_event

logger = logging.getLogger(__name__)


class MoveClmmAdapter(ProtocolAdapter):
    """
    Move CLMM adapter bound to one package

    Subclasses set:
        name: Adapter name
        default_package_id: Package used when none is configured (None = required)
        module: Move module holding swap / add_liquidity / remove_liquidity
        field_map: Pool object and event field aliases
        sqrt_price_fraction_bits: Fixed-point bits of the stored sqrt price
    """

    name: str = "clmm"
    default_package_id: Optional[str] = None
    package_env_var: str = ""
    module: str = "pool"
    pool_created_event: str = "PoolCreated"
    swap_function: str = "swap"
    add_liquidity_function: str = "add_liquidity"
    remove_liquidity_function: str = "remove_liquidity"
    field_map: PoolFieldMap = DEFAULT_FIELD_MAP
    sqrt_price_fraction_bits: int = 64

    def __init__(self, rpc, package_id=None, owner=None, cache=None, invoker=None, events=None,
                 monitor_limit: Optional[int] = None, scan_limit: Optional[int] = None):
        package_id = package_id or self.default_package_id
        if not package_id:
            raise ConfigurationError.missing(self.package_env_var or f"{self.name} package id")
        super().__init__(rpc, package_id, owner=owner, cache=cache, invoker=invoker, events=events)
        self._monitor_limit = monitor_limit or global_config.dex.pool_monitor_limit
        self._scan_limit = scan_limit or global_config.dex.pool_scan_limit

    @property
    def pool_created_event_type(self) -> str:
        return f"{self._package_id}::{self.module}::{self.pool_created_event}"

    def _target(self, function: str) -> Tuple[Address, str, str]:
        return self._package_id, self.module, function

    # ========== Lifecycle ==========

    async def initialize(self):
        if self._initialized:
            return
        try:
            modules = await self._invoker.invoke(
                lambda: self._rpc.get_normalized_modules(self._package_id),
                rpc_policy(),
                f"{self.name}.initialize",
            )
        except DexAdapterError as e:
            logger.error(f"{self.name} initialization failed: {e}")
            raise AdapterInitError(self.name, self._package_id, e) from e
        if not modules:
            raise AdapterInitError(self.name, self._package_id)

        self._initialized = True
        self._events.emit(
            "adapter_initialized",
            dex=self.name,
            package_id=str(self._package_id),
            modules=len(modules),
        )
        logger.info(f"{self.name} adapter initialized ({self._package_id})")

    # ========== Pool Discovery ==========

    async def _query_pool_events(self, limit: int, cursor=None) -> dict:
        return await self._invoker.invoke(
            lambda: self._rpc.query_events(self.pool_created_event_type, cursor, limit, True),
            rpc_policy(),
            f"{self.name}.query_events",
        )

    async def monitor_new_pools(self) -> List[Pool]:
        pools = []
        try:
            page = await self._query_pool_events(self._monitor_limit)
            for event in page.get("data", []):
                pool = parse_pool_event(event, self.name, self.field_map)
                if pool is not None:
                    pools.append(pool)
        except Exception as e:
            logger.error(f"Failed to fetch {self.name} new pools: {e}")
            self._events.emit("pool_scan_failed", dex=self.name, error=str(e))
            return []
        return pools

    async def list_pools_for_pair(self, coin_a: CoinType, coin_b: CoinType) -> List[Pool]:
        """
        Pools for the pair found in the most recent pool-creation events

        Scans at most scan_limit events, newest first. Pair order is ignored.
        """
        coin_a, coin_b = CoinType(coin_a), CoinType(coin_b)
        key = f"{self.name}:{':'.join(sorted((coin_a, coin_b)))}"

        async def _scan() -> List[Pool]:
            found = {}
            scanned = 0
            cursor = None
            while scanned < self._scan_limit:
                page = await self._query_pool_events(min(50, self._scan_limit - scanned), cursor)
                events = page.get("data", [])
                scanned += len(events)
                for event in events:
                    pool = parse_pool_event(event, self.name, self.field_map)
                    if pool is not None and pool.matches_pair(coin_a, coin_b):
                        found.setdefault(pool.pool_id, pool)
                if not events or not page.get("hasNextPage"):
                    break
                cursor = page.get("nextCursor")
            logger.debug(f"{self.name}: {len(found)} pool(s) for pair after scanning {scanned} events")
            return list(found.values())

        return await self._cache.get_or_populate(CacheNamespace.POOL, key, _scan)

    async def select_best_pool(self, coin_a: CoinType, coin_b: CoinType) -> Address:
        """
        Deepest pool for the pair

        One liquidity fetch per candidate (cached, concurrent), so cost
        grows linearly with the number of pools for the pair. Candidates
        whose state cannot be read are skipped.
        """
        candidates = await self.list_pools_for_pair(coin_a, coin_b)
        if not candidates:
            raise PoolNotFound.for_pair(self.name, str(coin_a), str(coin_b))

        results = await asyncio.gather(
            *(self.get_pool_liquidity(pool.pool_id) for pool in candidates),
            return_exceptions=True,
        )

        ranked = []
        for pool, result in zip(candidates, results):
            if isinstance(result, DexAdapterError):
                logger.warning(f"Skipping {self.name} pool {pool.pool_id}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            ranked.append((pool.pool_id, result.total_liquidity))

        if not ranked:
            raise PoolNotFound.for_pair(self.name, str(coin_a), str(coin_b))

        ranked.sort(key=lambda item: item[1], reverse=True)
        best, liquidity = ranked[0]
        logger.info(f"Selected {self.name} pool {best} (liquidity={liquidity}) from {len(ranked)} candidate(s)")
        return best

    # ========== Pool State ==========

    async def get_pool_liquidity(self, pool_id: Union[str, Address]) -> LiquiditySnapshot:
        pool_id = Address(pool_id)

        async def _fetch() -> LiquiditySnapshot:
            data = await self._invoker.invoke(
                lambda: self._rpc.get_object(pool_id),
                rpc_policy(),
                f"{self.name}.get_object",
            )
            return parse_liquidity(pool_id, data, self.field_map, self.sqrt_price_fraction_bits)

        try:
            return await self._cache.get_or_populate(CacheNamespace.LIQUIDITY, pool_id, _fetch)
        except PoolNotFound:
            raise
        except Exception as e:
            logger.error(f"Failed to get {self.name} liquidity for pool {pool_id}: {e}")
            raise LiquidityFetchError(pool_id, e) from e

    async def get_pool_price(
        self,
        pool_id: Union[str, Address],
        amount_in: Optional[int] = None,
        slippage: Optional[Union[float, Decimal]] = None,
        a_to_b: bool = True,
    ) -> PriceData:
        pool_id = Address(pool_id)

        if amount_in is None:
            async def _spot() -> PriceData:
                snapshot = await self.get_pool_liquidity(pool_id)
                return PriceData(pool_id=pool_id, price=snapshot.price, fee=snapshot.fee)

            return await self._cache.get_or_populate(CacheNamespace.PRICE, pool_id, _spot)

        if isinstance(amount_in, bool) or not isinstance(amount_in, int) or amount_in <= 0:
            raise InvalidParameters(f"amount_in must be a positive integer, got {amount_in!r}", field="amount_in")

        slippage_bps = slippage_to_bps(
            slippage if slippage is not None else global_config.trading.default_slippage
        )
        snapshot = await self.get_pool_liquidity(pool_id)
        return self.quote(snapshot, amount_in, slippage_bps, a_to_b)

    def quote(self, snapshot: LiquiditySnapshot, amount_in: int, slippage_bps: int, a_to_b: bool = True) -> PriceData:
        """Trade bounds for amount_in against a snapshot"""
        if snapshot.reserve_a > 0 and snapshot.reserve_b > 0:
            reserve_a, reserve_b = Decimal(snapshot.reserve_a), Decimal(snapshot.reserve_b)
        else:
            reserve_a, reserve_b = virtual_reserves(snapshot.total_liquidity, snapshot.sqrt_price)

        price = snapshot.price
        if a_to_b:
            reserve_in, reserve_out, spot = reserve_a, reserve_b, price
        else:
            reserve_in, reserve_out = reserve_b, reserve_a
            spot = Decimal(1) / price if price > 0 else Decimal(0)

        bounds = quote_trade_bounds(amount_in, reserve_in, reserve_out, snapshot.fee, slippage_bps, spot)
        return PriceData(
            pool_id=snapshot.pool_id,
            price=price,
            fee=snapshot.fee,
            price_impact=bounds.price_impact,
            minimum_received=bounds.minimum_received,
            maximum_spent=bounds.maximum_spent,
            amount_in=amount_in,
            expected_output=bounds.expected_output,
        )

    # ========== Step Building ==========

    async def swap(self, request: SwapRequest) -> TransactionStep:
        self._require_initialized()

        pool_id = request.pool_id or await self.select_best_pool(request.coin_in, request.coin_out)
        recipient = request.recipient or self._owner
        if recipient is None:
            raise InvalidParameters("Swap needs a recipient: none given and adapter has no owner", field="recipient")

        package_id, module, function = self._target(self.swap_function)
        slippage_bps = request.slippage_bps
        step = TransactionStep(
            action=TransactionAction.SWAP,
            dex=self.name,
            package_id=package_id,
            module=module,
            function=function,
            type_arguments=(request.coin_in, request.coin_out),
            arguments=(pool_id, str(request.amount), slippage_bps, recipient, CLOCK_OBJECT_ID),
            pool_id=pool_id,
            coins=(request.coin_in, request.coin_out),
            amounts=(request.amount,),
            expected_output=request.expected_output,
            slippage_bps=slippage_bps,
        )

        self._events.emit(
            "swap_configured",
            dex=self.name,
            coin_in=str(request.coin_in),
            coin_out=str(request.coin_out),
            amount=request.amount,
            slippage_bps=slippage_bps,
            pool_id=str(pool_id),
        )
        return step

    async def add_liquidity(self, params: LiquidityParams) -> TransactionStep:
        self._require_initialized()

        pool_id = params.pool_id or await self.select_best_pool(params.coin_a, params.coin_b)
        package_id, module, function = self._target(self.add_liquidity_function)
        step = TransactionStep(
            action=TransactionAction.ADD_LIQUIDITY,
            dex=self.name,
            package_id=package_id,
            module=module,
            function=function,
            type_arguments=(params.coin_a, params.coin_b),
            arguments=(
                pool_id,
                str(params.amount_a),
                str(params.amount_b),
                params.lower_tick,
                params.upper_tick,
                CLOCK_OBJECT_ID,
            ),
            pool_id=pool_id,
            coins=(params.coin_a, params.coin_b),
            amounts=(params.amount_a, params.amount_b),
        )

        self._events.emit(
            "liquidity_added",
            dex=self.name,
            pool_id=str(pool_id),
            amount_a=params.amount_a,
            amount_b=params.amount_b,
            lower_tick=params.lower_tick,
            upper_tick=params.upper_tick,
        )
        return step

    async def remove_liquidity(self, params: RemoveLiquidityParams) -> TransactionStep:
        self._require_initialized()

        package_id, module, function = self._target(self.remove_liquidity_function)
        step = TransactionStep(
            action=TransactionAction.REMOVE_LIQUIDITY,
            dex=self.name,
            package_id=package_id,
            module=module,
            function=function,
            arguments=(
                params.pool_id,
                str(params.lp_amount),
                str(params.min_amount_a),
                str(params.min_amount_b),
                CLOCK_OBJECT_ID,
            ),
            pool_id=params.pool_id,
            amounts=(params.lp_amount, params.min_amount_a, params.min_amount_b),
        )

        self._events.emit(
            "liquidity_removed",
            dex=self.name,
            pool_id=str(params.pool_id),
            lp_amount=params.lp_amount,
        )
        return step
