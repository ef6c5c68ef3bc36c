from uuid import UUID

from copytrader.db import Database
from copytrader.entities import Trade
from copytrader.errors import NotFoundError, storage_errors


class TradeRepository:
    """
    Repository for executed trades.
    Encapsulates all SQL and queries for the trades table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, trade: Trade) -> Trade:
        """Insert a fill and populate trade_id and executed_at."""
        with storage_errors("insert trade", duplicate="trade already exists"):
            row = self.db.fetch_one(
                """
                INSERT INTO trades (
                    order_id, asset_id, executed_price, executed_quantity, fee
                ) VALUES (%s, %s, %s, %s, %s)
                RETURNING trade_id, executed_at
                """,
                (
                    trade.order_id,
                    trade.asset_id,
                    trade.executed_price,
                    trade.executed_quantity,
                    trade.fee,
                ),
            )
        trade.trade_id = row["trade_id"]
        trade.executed_at = row["executed_at"]
        return trade

    def get_by_id(self, trade_id: UUID) -> Trade:
        with storage_errors("get trade by ID"):
            row = self.db.fetch_one("SELECT * FROM trades WHERE trade_id = %s", (trade_id,))
        if row is None:
            raise NotFoundError(f"trade {trade_id} not found")
        return Trade.from_row(row)

    def delete(self, trade_id: UUID) -> None:
        with storage_errors("delete trade"):
            deleted = self.db.execute("DELETE FROM trades WHERE trade_id = %s", (trade_id,))
        if deleted == 0:
            raise NotFoundError(f"trade {trade_id} not found")
