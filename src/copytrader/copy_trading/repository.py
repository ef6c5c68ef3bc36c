from datetime import datetime
from typing import Optional
from uuid import UUID

from copytrader.db import Database
from copytrader.entities import CopyTradingRelationship
from copytrader.errors import NotFoundError, storage_errors


class CopyTradingRepository:
    """
    Repository for lead/follower relationships.
    Encapsulates all SQL and queries for the copy_trading_relationships table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, relationship: CopyTradingRelationship) -> CopyTradingRelationship:
        """
        Link a follower wallet to a lead wallet.

        start_date defaults to now when unset. A wallet following itself or a
        profit share outside [0, 100] raises StorageError; an existing pair
        raises DuplicateError.
        """
        with storage_errors(
            "insert copy-trading relationship",
            duplicate=(
                f"wallet {relationship.follower_wallet_id} already follows "
                f"{relationship.lead_wallet_id}"
            ),
        ):
            row = self.db.fetch_one(
                """
                INSERT INTO copy_trading_relationships (
                    lead_wallet_id, follower_wallet_id, start_date, end_date,
                    profit_share_percentage
                ) VALUES (%s, %s, COALESCE(%s, NOW()), %s, %s)
                RETURNING relationship_id, start_date
                """,
                (
                    relationship.lead_wallet_id,
                    relationship.follower_wallet_id,
                    relationship.start_date,
                    relationship.end_date,
                    relationship.profit_share_percentage,
                ),
            )
        relationship.relationship_id = row["relationship_id"]
        relationship.start_date = row["start_date"]
        return relationship

    def get_by_id(self, relationship_id: UUID) -> CopyTradingRelationship:
        with storage_errors("get copy-trading relationship by ID"):
            row = self.db.fetch_one(
                "SELECT * FROM copy_trading_relationships WHERE relationship_id = %s",
                (relationship_id,),
            )
        if row is None:
            raise NotFoundError(f"relationship {relationship_id} not found")
        return CopyTradingRelationship.from_row(row)

    def get_by_pair(self, lead_wallet_id: UUID, follower_wallet_id: UUID) -> CopyTradingRelationship:
        with storage_errors("get copy-trading relationship by wallets"):
            row = self.db.fetch_one(
                """
                SELECT * FROM copy_trading_relationships
                WHERE lead_wallet_id = %s AND follower_wallet_id = %s
                """,
                (lead_wallet_id, follower_wallet_id),
            )
        if row is None:
            raise NotFoundError(
                f"wallet {follower_wallet_id} does not follow {lead_wallet_id}"
            )
        return CopyTradingRelationship.from_row(row)

    def end(self, relationship_id: UUID, end_date: Optional[datetime] = None) -> None:
        """Close the validity window, at end_date or now."""
        with storage_errors("end copy-trading relationship"):
            updated = self.db.execute(
                """
                UPDATE copy_trading_relationships
                SET end_date = COALESCE(%s, NOW())
                WHERE relationship_id = %s
                """,
                (end_date, relationship_id),
            )
        if updated == 0:
            raise NotFoundError(f"relationship {relationship_id} not found")

    def delete(self, relationship_id: UUID) -> None:
        with storage_errors("delete copy-trading relationship"):
            deleted = self.db.execute(
                "DELETE FROM copy_trading_relationships WHERE relationship_id = %s",
                (relationship_id,),
            )
        if deleted == 0:
            raise NotFoundError(f"relationship {relationship_id} not found")
