"""
Asset

This package provides data access for tradable assets.
"""

from copytrader.asset.repository import AssetRepository

__all__ = ["AssetRepository"]
