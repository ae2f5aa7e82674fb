"""
SuiDexClient - Unified entry point for Sui DEX operations

Wires the RPC client, signer, cache, retry invoker, event sink, adapter
registry and execution pipeline from configuration.
"""

import logging
from typing import Dict, List, Optional, Union

from .config import config as global_config
from .errors import SignerError
from .infra import (
    EventSink,
    ExecutionPipeline,
    PipelineConfig,
    ResultCache,
    RetryInvoker,
    RpcClientConfig,
    SuiRpcClient,
    SuiSigner,
    create_signer,
)
from .protocols import AdapterRegistry, ProtocolAdapter
from .types import ExecutionResult, LiquidityParams, RemoveLiquidityParams, SwapRequest

logger = logging.getLogger(__name__)


class SuiDexClient:
    """
    Unified Sui DEX adapter client

    Provides:
    - adapters: Cetus / Turbos / Momentum, by name or package id
    - signer: balances, coin management, signing
    - pipeline: multi-step transaction execution

    Usage:
        async with SuiDexClient(private_key=key) as client:
            await client.initialize()
            result = await client.swap("cetus", SwapRequest(SUI, USDC, 1_000_000_000))

            # Several steps in one transaction
            cetus, turbos = client.adapter("cetus"), client.adapter("turbos")
            result = await client.pipeline.execute([
                lambda: cetus.swap(SwapRequest(SUI, USDC, 1_000_000_000)),
                lambda: turbos.swap(SwapRequest(USDC, SUI, 500_000)),
            ])
    """

    def __init__(
        self,
        rpc_url: Optional[Union[str, List[str]]] = None,
        private_key: Optional[str] = None,
        keystore_path: Optional[str] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        pipeline_config: Optional[PipelineConfig] = None,
        cache_ttls: Optional[Dict[str, float]] = None,
        events: Optional[EventSink] = None,
        rpc: Optional[SuiRpcClient] = None,
        require_signer: bool = True,
    ):
        """
        Initialize SuiDexClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs (SUI_RPC_URL otherwise)
            private_key: Key material for local signing
            keystore_path: Path to a sui.keystore file
            rpc_config: Optional RPC configuration
            pipeline_config: Optional pipeline configuration
            cache_ttls: Per-namespace TTL overrides
            events: Event sink shared by all components
            rpc: Pre-built RPC client (rpc_url/rpc_config ignored)
            require_signer: Raise when no key is configured; otherwise run read-only
        """
        self._events = events or EventSink()
        self._rpc = rpc or SuiRpcClient(rpc_url or global_config.rpc.url, config=rpc_config)
        self._cache = ResultCache(ttls=cache_ttls, events=self._events)
        self._invoker = RetryInvoker(events=self._events)

        self._signer: Optional[SuiSigner] = None
        try:
            self._signer = create_signer(
                self._rpc,
                private_key=private_key,
                keystore_path=keystore_path,
                cache=self._cache,
                events=self._events,
                invoker=self._invoker,
            )
        except SignerError:
            if require_signer:
                raise
            logger.info("No signer configured, client is read-only")

        self._registry = AdapterRegistry.from_config(
            self._rpc,
            owner=self._signer.address if self._signer else None,
            cache=self._cache,
            invoker=self._invoker,
            events=self._events,
        )

        self._pipeline: Optional[ExecutionPipeline] = None
        self._pipeline_config = pipeline_config

    @property
    def rpc(self) -> SuiRpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> SuiSigner:
        """Access to signer"""
        if self._signer is None:
            raise SignerError.not_configured()
        return self._signer

    @property
    def address(self) -> str:
        """Owner's address"""
        return self.signer.address

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def events(self) -> EventSink:
        return self._events

    @property
    def invoker(self) -> RetryInvoker:
        return self._invoker

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    @property
    def pipeline(self) -> ExecutionPipeline:
        """Execution pipeline (requires a signer)"""
        if self._pipeline is None:
            self._pipeline = ExecutionPipeline(self.signer, self._invoker, config=self._pipeline_config)
        return self._pipeline

    def adapter(self, name_or_package: str) -> ProtocolAdapter:
        """
        Get protocol adapter

        Args:
            name_or_package: Protocol name ("cetus") or package id
        """
        if name_or_package.lower() in self._registry.names():
            return self._registry.by_name(name_or_package)
        return self._registry.get(name_or_package)

    async def initialize(self):
        """Verify every registered package exists on chain"""
        await self._registry.initialize_all()

    # ========== Single-step shortcuts ==========

    async def swap(self, dex: str, request: SwapRequest) -> ExecutionResult:
        adapter = self.adapter(dex)
        return await self.pipeline.execute([lambda: adapter.swap(request)])

    async def add_liquidity(self, dex: str, params: LiquidityParams) -> ExecutionResult:
        adapter = self.adapter(dex)
        return await self.pipeline.execute([lambda: adapter.add_liquidity(params)])

    async def remove_liquidity(self, dex: str, params: RemoveLiquidityParams) -> ExecutionResult:
        adapter = self.adapter(dex)
        return await self.pipeline.execute([lambda: adapter.remove_liquidity(params)])

    async def close(self):
        """Close client connections and release resources"""
        await self._rpc.close()

    async def __aenter__(self) -> "SuiDexClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        owner = self._signer.address[:10] + "..." if self._signer else "read-only"
        return f"SuiDexClient({owner}, adapters={self._registry.names()})"
