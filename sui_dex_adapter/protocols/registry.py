"""
Protocol adapter registry

Explicit registry populated once at startup. Adapters are looked up by
normalized package id or by name.
"""

import logging
from typing import Dict, Iterator, List, Optional, Type

from ..config import DexConfig, config as global_config
from ..errors import ConfigurationError, InvalidAddress
from ..infra import EventSink, ResultCache, RetryInvoker, SuiRpcClient
from ..types import Address
from .base import ProtocolAdapter
from .cetus import CetusAdapter
from .momentum import MomentumAdapter
from .turbos import TurbosAdapter

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: Dict[str, Type[ProtocolAdapter]] = {
    "cetus": CetusAdapter,
    "turbos": TurbosAdapter,
    "momentum": MomentumAdapter,
}


class AdapterRegistry:
    """
    Registry of adapter instances

    Usage:
        registry = AdapterRegistry.from_config(rpc, owner=signer.address, cache=cache)
        await registry.initialize_all()

        cetus = registry.by_name("cetus")
        same = registry.get("0x1eabed72...")
    """

    def __init__(self):
        self._by_package: Dict[Address, ProtocolAdapter] = {}
        self._by_name: Dict[str, ProtocolAdapter] = {}

    def register(self, adapter: ProtocolAdapter):
        """
        Add an adapter

        Raises:
            ConfigurationError: name or package id already registered
        """
        name = adapter.name.lower()
        if adapter.package_id in self._by_package:
            raise ConfigurationError.invalid(
                "package_id", f"{adapter.package_id} already registered for {self._by_package[adapter.package_id].name}"
            )
        if name in self._by_name:
            raise ConfigurationError.invalid("adapter", f"Adapter '{name}' already registered")
        self._by_package[adapter.package_id] = adapter
        self._by_name[name] = adapter
        logger.debug(f"Registered protocol adapter: {name} ({adapter.package_id})")

    def get(self, package_id: str) -> ProtocolAdapter:
        """
        Adapter bound to a package id (any accepted address spelling)

        Raises:
            ConfigurationError: unknown or malformed package id
        """
        try:
            key = Address(package_id)
        except InvalidAddress as e:
            raise ConfigurationError.invalid("package_id", str(e))
        if key not in self._by_package:
            raise ConfigurationError.invalid(
                "package_id", f"No adapter registered for {key}. Registered: {self.names() or 'none'}"
            )
        return self._by_package[key]

    def by_name(self, name: str) -> ProtocolAdapter:
        name_lower = name.lower()
        if name_lower not in self._by_name:
            available = ", ".join(self._by_name) or "none"
            raise ConfigurationError.invalid(
                "protocol", f"Unknown protocol: {name}. Available protocols: {available}"
            )
        return self._by_name[name_lower]

    def find(self, package_id: str) -> Optional[ProtocolAdapter]:
        try:
            return self._by_package.get(Address(package_id))
        except InvalidAddress:
            return None

    def names(self) -> List[str]:
        return list(self._by_name)

    def __contains__(self, package_id: str) -> bool:
        return self.find(package_id) is not None

    def __iter__(self) -> Iterator[ProtocolAdapter]:
        return iter(list(self._by_name.values()))

    def __len__(self) -> int:
        return len(self._by_name)

    async def initialize_all(self):
        """Initialize every adapter; the first failure propagates"""
        for adapter in self:
            await adapter.initialize()

    @classmethod
    def from_config(
        cls,
        rpc: SuiRpcClient,
        owner: Optional[str] = None,
        cache: Optional[ResultCache] = None,
        invoker: Optional[RetryInvoker] = None,
        events: Optional[EventSink] = None,
        dex_config: Optional[DexConfig] = None,
    ) -> "AdapterRegistry":
        """
        Build adapters for every DEX with a package id

        Momentum has no default package id and is skipped unless
        MOMENTUM_PACKAGE_ID is set.
        """
        dex_config = dex_config or global_config.dex
        registry = cls()
        for name, package_id in dex_config.package_ids().items():
            adapter_class = ADAPTER_CLASSES[name]
            if not package_id and adapter_class.default_package_id is None:
                logger.info(f"Skipping {name} adapter: no package id configured")
                continue
            registry.register(adapter_class(
                rpc,
                package_id=package_id or None,
                owner=owner,
                cache=cache,
                invoker=invoker,
                events=events,
                monitor_limit=dex_config.pool_monitor_limit,
                scan_limit=dex_config.pool_scan_limit,
            ))
        return registry
