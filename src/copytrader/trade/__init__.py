"""
Trade

This package provides data access for executed trades.
"""

from copytrader.trade.repository import TradeRepository

__all__ = ["TradeRepository"]
