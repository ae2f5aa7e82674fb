"""
Namespaced TTL result cache

Each entry lives in a namespace with its own TTL. Expired entries are
never returned; they are dropped lazily on access or by purge_expired().

Concurrent misses on the same (namespace, key) share one in-flight fetch.
A failed fetch stores nothing and every waiter sees the same error.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config import config as global_config
from .events import EventSink

logger = logging.getLogger(__name__)


class CacheNamespace(Enum):
    POOL = "pool"
    PRICE = "price"
    LIQUIDITY = "liquidity"
    BALANCE = "balance"
    OPPORTUNITY = "opportunity"


DEFAULT_TTLS: Dict[CacheNamespace, float] = {
    CacheNamespace.POOL: 60.0,
    CacheNamespace.PRICE: 30.0,
    CacheNamespace.LIQUIDITY: 120.0,
    CacheNamespace.BALANCE: 300.0,
    CacheNamespace.OPPORTUNITY: 10.0,
}

NamespaceLike = Union[CacheNamespace, str]


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl


@dataclass(frozen=True)
class CacheMetrics:
    hits: int
    misses: int
    keys: int

    @property
    def hit_rate(self) -> float:
        """hits / (hits + misses) as a fraction, 0.0 when nothing was looked up"""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    @property
    def hit_rate_percent(self) -> float:
        return self.hit_rate * 100.0


def _ns(namespace: NamespaceLike) -> CacheNamespace:
    if isinstance(namespace, CacheNamespace):
        return namespace
    return CacheNamespace(namespace)


class ResultCache:
    """
    Async TTL cache keyed by (namespace, key)

    Usage:
        cache = ResultCache(events=sink)
        snapshot = await cache.get_or_populate(
            CacheNamespace.LIQUIDITY, pool_id, lambda: fetch_liquidity(pool_id)
        )
    """

    def __init__(
        self,
        ttls: Optional[Dict[NamespaceLike, float]] = None,
        clock: Optional[Callable[[], float]] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Args:
            ttls: Per-namespace TTL overrides in seconds (config values otherwise)
            clock: Monotonic clock returning seconds
            events: Event sink for cache_hit / cache_miss
        """
        self._ttls: Dict[CacheNamespace, float] = dict(DEFAULT_TTLS)
        for name, ttl in global_config.cache.as_dict().items():
            self._ttls[CacheNamespace(name)] = ttl
        for name, ttl in (ttls or {}).items():
            self._ttls[_ns(name)] = ttl

        self._clock = clock or time.monotonic
        self._events = events or EventSink()
        self._entries: Dict[Tuple[CacheNamespace, str], CacheEntry] = {}
        self._inflight: Dict[Tuple[CacheNamespace, str], asyncio.Future] = {}
        self._hits = 0
        self._misses = 0

    def ttl_for(self, namespace: NamespaceLike) -> float:
        return self._ttls[_ns(namespace)]

    # ========== Lookups ==========

    def _lookup(self, ns: CacheNamespace, key: str) -> Tuple[bool, Any]:
        entry = self._entries.get((ns, key))
        if entry is None:
            return False, None
        if entry.is_expired(self._clock()):
            del self._entries[(ns, key)]
            return False, None
        return True, entry.value

    def _record(self, ns: CacheNamespace, key: str, hit: bool):
        if hit:
            self._hits += 1
            self._events.emit("cache_hit", namespace=ns.value, key=key)
        else:
            self._misses += 1
            self._events.emit("cache_miss", namespace=ns.value, key=key)

    def get(self, namespace: NamespaceLike, key: str, default: Any = None) -> Any:
        """Get a live value, or default"""
        ns = _ns(namespace)
        key = str(key)
        found, value = self._lookup(ns, key)
        self._record(ns, key, found)
        return value if found else default

    def has(self, namespace: NamespaceLike, key: str) -> bool:
        """Live-entry check; does not count as a lookup"""
        found, _ = self._lookup(_ns(namespace), str(key))
        return found

    def get_multiple(self, namespace: NamespaceLike, keys: Iterable[str]) -> Dict[str, Any]:
        """Live values for the given keys; missing keys are absent from the result"""
        ns = _ns(namespace)
        result = {}
        for key in keys:
            key = str(key)
            found, value = self._lookup(ns, key)
            self._record(ns, key, found)
            if found:
                result[key] = value
        return result

    async def get_or_populate(
        self,
        namespace: NamespaceLike,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value or fetch, store and return it

        Concurrent callers for the same key await a single fetch. If the
        caller running that fetch is cancelled, a waiting caller runs the
        fetch itself instead of seeing the cancellation.

        Raises:
            Whatever fetch raises; nothing is stored in that case
        """
        ns = _ns(namespace)
        key = str(key)
        found, value = self._lookup(ns, key)
        if found:
            self._record(ns, key, True)
            return value

        self._record(ns, key, False)

        while (ns, key) in self._inflight:
            pending = self._inflight[(ns, key)]
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                logger.debug(f"Shared fetch for {ns.value}:{key} was cancelled, retrying")
            found, value = self._lookup(ns, key)
            if found:
                return value

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._inflight[(ns, key)] = future
        try:
            value = await fetch()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Retrieve so an unawaited future does not log "exception never retrieved"
            future.exception()
            raise
        else:
            self.set(ns, key, value, ttl)
            future.set_result(value)
            return value
        finally:
            self._inflight.pop((ns, key), None)

    # ========== Writes ==========

    def set(self, namespace: NamespaceLike, key: str, value: Any, ttl: Optional[float] = None):
        ns = _ns(namespace)
        self._entries[(ns, str(key))] = CacheEntry(
            value=value,
            inserted_at=self._clock(),
            ttl=ttl if ttl is not None else self._ttls[ns],
        )

    def set_multiple(self, namespace: NamespaceLike, values: Dict[str, Any], ttl: Optional[float] = None):
        for key, value in values.items():
            self.set(namespace, key, value, ttl)

    async def warm(
        self,
        namespace: NamespaceLike,
        keys: Iterable[str],
        fetch: Callable[[str], Awaitable[Any]],
    ) -> int:
        """
        Pre-populate keys concurrently

        Best effort: failures are logged and skipped.

        Returns:
            Number of keys populated
        """
        ns = _ns(namespace)
        keys = [str(k) for k in keys]

        async def _one(k: str):
            return await fetch(k)

        results = await asyncio.gather(*(_one(k) for k in keys), return_exceptions=True)
        populated = 0
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning(f"Cache warm failed for {ns.value}:{key}: {result}")
                continue
            self.set(ns, key, result)
            populated += 1
        return populated

    # ========== Invalidation ==========

    def delete(self, namespace: NamespaceLike, key: str) -> bool:
        return self._entries.pop((_ns(namespace), str(key)), None) is not None

    invalidate = delete

    def invalidate_all(self, namespace: NamespaceLike) -> int:
        ns = _ns(namespace)
        doomed = [k for k in self._entries if k[0] == ns]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def invalidate_pool_data(self, pool_id: str) -> int:
        """Drop pool, price and liquidity entries for one pool"""
        removed = 0
        for ns in (CacheNamespace.POOL, CacheNamespace.PRICE, CacheNamespace.LIQUIDITY):
            removed += self._drop_matching(ns, str(pool_id))
        return removed

    def invalidate_wallet_data(self, address: str) -> int:
        """Drop balance entries for one address"""
        return self._drop_matching(CacheNamespace.BALANCE, str(address))

    def _drop_matching(self, ns: CacheNamespace, ident: str) -> int:
        # Keys are either the id itself or "<id>:<suffix>"
        doomed = [
            k for k in self._entries
            if k[0] == ns and (k[1] == ident or k[1].startswith(ident + ":"))
        ]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def flush(self):
        """Drop every entry and reset counters"""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def purge_expired(self) -> int:
        now = self._clock()
        doomed = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    # ========== Introspection ==========

    def keys(self, namespace: Optional[NamespaceLike] = None) -> List[str]:
        """Live keys, optionally for one namespace"""
        now = self._clock()
        ns = _ns(namespace) if namespace is not None else None
        return [
            k[1] if ns is not None else f"{k[0].value}:{k[1]}"
            for k, entry in self._entries.items()
            if (ns is None or k[0] == ns) and not entry.is_expired(now)
        ]

    def metrics(self) -> CacheMetrics:
        return CacheMetrics(hits=self._hits, misses=self._misses, keys=len(self.keys()))
