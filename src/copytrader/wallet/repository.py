from decimal import Decimal
from typing import Optional
from uuid import UUID

from copytrader.db import Database
from copytrader.entities import Wallet
from copytrader.errors import NotFoundError, storage_errors

WALLET_COLUMNS = """
    wallet_id, user_id, hyperliquid_address, hyperliquid_api_key,
    balance_usdc, is_owned, updated_at
"""


class WalletRepository:
    """
    Repository for wallet data access.
    Encapsulates all SQL and queries for the wallets table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, wallet: Wallet) -> Wallet:
        """Insert a wallet and populate its generated wallet_id."""
        with storage_errors(
            "insert wallet",
            duplicate=f"wallet {wallet.hyperliquid_address} already exists",
        ):
            row = self.db.fetch_one(
                """
                INSERT INTO wallets (
                    user_id, hyperliquid_address, hyperliquid_api_key, balance_usdc, is_owned
                ) VALUES (%s, %s, %s, %s, %s)
                RETURNING wallet_id
                """,
                (
                    wallet.user_id,
                    wallet.hyperliquid_address,
                    wallet.hyperliquid_api_key,
                    wallet.balance_usdc,
                    wallet.is_owned,
                ),
            )
        wallet.wallet_id = row["wallet_id"]
        return wallet

    def get_by_id(self, wallet_id: UUID) -> Wallet:
        """Get wallet by ID."""
        with storage_errors("get wallet by ID"):
            row = self.db.fetch_one(
                f"SELECT {WALLET_COLUMNS} FROM wallets WHERE wallet_id = %s",
                (wallet_id,),
            )
        if row is None:
            raise NotFoundError(f"wallet {wallet_id} not found")
        return Wallet.from_row(row)

    def get_by_address(self, address: str) -> Wallet:
        """Get wallet by its Hyperliquid address."""
        with storage_errors("get wallet by address"):
            row = self.db.fetch_one(
                f"SELECT {WALLET_COLUMNS} FROM wallets WHERE hyperliquid_address = %s",
                (address,),
            )
        if row is None:
            raise NotFoundError(f"wallet {address} not found")
        return Wallet.from_row(row)

    def update_balance(self, wallet_id: UUID, balance: Decimal) -> None:
        with storage_errors("update wallet balance"):
            updated = self.db.execute(
                """
                UPDATE wallets
                SET balance_usdc = %s, updated_at = NOW()
                WHERE wallet_id = %s
                """,
                (balance, wallet_id),
            )
        if updated == 0:
            raise NotFoundError(f"wallet {wallet_id} not found")

    def update_api_key(self, wallet_id: UUID, api_key: Optional[str]) -> None:
        """
        Replace (or clear, with None) the wallet's API key.

        Last writer wins. Setting a key on a wallet that is not owned
        violates chk_api_key_owned and raises StorageError.
        """
        with storage_errors("update wallet API key"):
            updated = self.db.execute(
                """
                UPDATE wallets
                SET hyperliquid_api_key = %s, updated_at = NOW()
                WHERE wallet_id = %s
                """,
                (api_key, wallet_id),
            )
        if updated == 0:
            raise NotFoundError(f"wallet {wallet_id} not found")

    def delete(self, wallet_id: UUID) -> None:
        """Delete a wallet; its orders, trades and relationships cascade."""
        with storage_errors("delete wallet"):
            deleted = self.db.execute(
                "DELETE FROM wallets WHERE wallet_id = %s",
                (wallet_id,),
            )
        if deleted == 0:
            raise NotFoundError(f"wallet {wallet_id} not found")
