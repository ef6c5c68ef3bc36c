"""
Row-shaped records for the copy-trading schema.

Identifiers and server-assigned timestamps are None until the row has been
inserted; the repositories fill them in from RETURNING clauses.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"
    STOP_MARKET = "StopMarket"
    STOP_LIMIT = "StopLimit"


class OrderSide(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    FILLED = "Filled"
    CANCELLED = "Cancelled"


class Entity:
    @classmethod
    def from_row(cls, row: dict):
        """Build an entity from a dict row, ignoring columns it doesn't declare."""
        return cls(**{f.name: row[f.name] for f in fields(cls) if f.name in row})


@dataclass
class User(Entity):
    username: str
    email: str
    user_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


@dataclass
class Wallet(Entity):
    hyperliquid_address: str
    user_id: Optional[UUID] = None
    hyperliquid_api_key: Optional[str] = None
    balance_usdc: Decimal = Decimal("0")
    is_owned: bool = False
    wallet_id: Optional[UUID] = None
    updated_at: Optional[datetime] = None


@dataclass
class Asset(Entity):
    symbol: str
    base_currency: str
    quote_currency: str
    is_perpetual: bool = True
    asset_id: Optional[UUID] = None


@dataclass
class Order(Entity):
    wallet_id: UUID
    asset_id: UUID
    order_type: OrderType
    side: OrderSide
    quantity: Decimal
    price: Optional[Decimal] = None
    leverage: Decimal = Decimal("1.0")
    status: OrderStatus = OrderStatus.PENDING
    hyperliquid_order_id: Optional[str] = None
    is_copied: bool = False
    order_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        # Enum columns come back from the driver as plain strings
        self.order_type = OrderType(self.order_type)
        self.side = OrderSide(self.side)
        self.status = OrderStatus(self.status)


@dataclass
class Trade(Entity):
    order_id: UUID
    asset_id: UUID
    executed_price: Decimal
    executed_quantity: Decimal
    fee: Decimal = Decimal("0")
    trade_id: Optional[UUID] = None
    executed_at: Optional[datetime] = None


@dataclass
class CopyTradingRelationship(Entity):
    lead_wallet_id: UUID
    follower_wallet_id: UUID
    profit_share_percentage: Decimal = Decimal("0")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    relationship_id: Optional[UUID] = None
