"""
User

This package provides data access for application users.
"""

from copytrader.user.repository import UserRepository

__all__ = ["UserRepository"]
