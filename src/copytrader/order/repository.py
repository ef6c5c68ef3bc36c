from uuid import UUID

from copytrader.db import Database
from copytrader.entities import Order, OrderStatus
from copytrader.errors import NotFoundError, StorageError, storage_errors


class OrderRepository:
    """
    Repository for order data access.
    Encapsulates all SQL and queries for the orders table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, order: Order) -> Order:
        """
        Insert an order and populate its order_id and created_at.

        The storage layer rejects a price on Market orders and leverage
        outside [1.0, 50.0]; both surface as StorageError.
        """
        with storage_errors("insert order", duplicate="order already exists"):
            row = self.db.fetch_one(
                """
                INSERT INTO orders (
                    wallet_id, asset_id, order_type, side, quantity, price, leverage,
                    status, hyperliquid_order_id, is_copied
                ) VALUES (%s, %s, %s::order_type, %s::order_side, %s, %s, %s, %s::order_status, %s, %s)
                RETURNING order_id, created_at
                """,
                (
                    order.wallet_id,
                    order.asset_id,
                    order.order_type.value,
                    order.side.value,
                    order.quantity,
                    order.price,
                    order.leverage,
                    order.status.value,
                    order.hyperliquid_order_id,
                    order.is_copied,
                ),
            )
        order.order_id = row["order_id"]
        order.created_at = row["created_at"]
        return order

    def get_by_id(self, order_id: UUID) -> Order:
        """Get order by ID."""
        with storage_errors("get order by ID"):
            row = self.db.fetch_one(
                """
                SELECT order_id, wallet_id, asset_id, order_type::text AS order_type,
                       side::text AS side, quantity, price, leverage,
                       status::text AS status, created_at, hyperliquid_order_id, is_copied
                FROM orders
                WHERE order_id = %s
                """,
                (order_id,),
            )
        if row is None:
            raise NotFoundError(f"order {order_id} not found")
        return Order.from_row(row)

    def update_status(self, order_id: UUID, status: OrderStatus) -> None:
        try:
            label = OrderStatus(status).value
        except ValueError as e:
            raise StorageError(f"failed to update order status: {e}") from e

        with storage_errors("update order status"):
            updated = self.db.execute(
                "UPDATE orders SET status = %s::order_status WHERE order_id = %s",
                (label, order_id),
            )
        if updated == 0:
            raise NotFoundError(f"order {order_id} not found")

    def delete(self, order_id: UUID) -> None:
        """Delete an order; its trades cascade."""
        with storage_errors("delete order"):
            deleted = self.db.execute("DELETE FROM orders WHERE order_id = %s", (order_id,))
        if deleted == 0:
            raise NotFoundError(f"order {order_id} not found")
