"""
Wallet

This package provides data access for Hyperliquid wallets.
"""

from copytrader.wallet.repository import WalletRepository

__all__ = ["WalletRepository"]
