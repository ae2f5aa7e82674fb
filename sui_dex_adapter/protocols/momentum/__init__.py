"""
Momentum CLMM protocol
"""

from .adapter import MomentumAdapter

__all__ = ["MomentumAdapter"]
