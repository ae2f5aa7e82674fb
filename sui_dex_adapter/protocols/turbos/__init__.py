"""
Turbos Finance CLMM protocol
"""

from .adapter import TurbosAdapter, TURBOS_PACKAGE_ID

__all__ = ["TurbosAdapter", "TURBOS_PACKAGE_ID"]
