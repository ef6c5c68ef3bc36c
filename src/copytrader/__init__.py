"""copytrader: PostgreSQL persistence layer for Hyperliquid copy trading."""

__version__ = "0.1.0"
