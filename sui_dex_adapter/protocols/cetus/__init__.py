"""
Cetus CLMM protocol
"""

from .adapter import CetusAdapter, CETUS_PACKAGE_ID

__all__ = ["CetusAdapter", "CETUS_PACKAGE_ID"]
