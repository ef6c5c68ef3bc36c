"""
Copy trading

This package provides data access for lead/follower wallet relationships.
"""

from copytrader.copy_trading.repository import CopyTradingRepository

__all__ = ["CopyTradingRepository"]
