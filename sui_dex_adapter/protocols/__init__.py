"""
DEX protocol adapters
"""

from .base import ProtocolAdapter
from .clmm import MoveClmmAdapter
from .cetus import CetusAdapter
from .turbos import TurbosAdapter
from .momentum import MomentumAdapter
from .registry import AdapterRegistry, ADAPTER_CLASSES

__all__ = [
    "ProtocolAdapter",
    "MoveClmmAdapter",
    "CetusAdapter",
    "TurbosAdapter",
    "MomentumAdapter",
    "AdapterRegistry",
    "ADAPTER_CLASSES",
]
