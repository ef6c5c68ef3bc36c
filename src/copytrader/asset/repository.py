from uuid import UUID

from copytrader.db import Database
from copytrader.entities import Asset
from copytrader.errors import NotFoundError, storage_errors


class AssetRepository:
    """
    Repository for asset-related data access.
    Encapsulates all SQL and queries for the assets table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, asset: Asset) -> Asset:
        """Insert an asset and populate its generated asset_id."""
        with storage_errors("insert asset", duplicate=f"asset {asset.symbol} already exists"):
            row = self.db.fetch_one(
                """
                INSERT INTO assets (
                    symbol, base_currency, quote_currency, is_perpetual
                ) VALUES (%s, %s, %s, %s)
                RETURNING asset_id
                """,
                (asset.symbol, asset.base_currency, asset.quote_currency, asset.is_perpetual),
            )
        asset.asset_id = row["asset_id"]
        return asset

    def get_by_id(self, asset_id: UUID) -> Asset:
        """Get asset by ID."""
        with storage_errors("get asset by ID"):
            row = self.db.fetch_one("SELECT * FROM assets WHERE asset_id = %s", (asset_id,))
        if row is None:
            raise NotFoundError(f"asset {asset_id} not found")
        return Asset.from_row(row)

    def get_by_symbol(self, symbol: str) -> Asset:
        """Get asset by symbol."""
        with storage_errors("get asset by symbol"):
            row = self.db.fetch_one("SELECT * FROM assets WHERE symbol = %s", (symbol,))
        if row is None:
            raise NotFoundError(f"asset {symbol} not found")
        return Asset.from_row(row)

    def delete(self, asset_id: UUID) -> None:
        """
        Delete an asset.

        Rejected with StorageError while orders or trades still reference it.
        """
        with storage_errors("delete asset"):
            deleted = self.db.execute("DELETE FROM assets WHERE asset_id = %s", (asset_id,))
        if deleted == 0:
            raise NotFoundError(f"asset {asset_id} not found")
