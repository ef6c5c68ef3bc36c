"""
Order

This package provides data access for orders placed from wallets.
"""

from copytrader.order.repository import OrderRepository

__all__ = ["OrderRepository"]
