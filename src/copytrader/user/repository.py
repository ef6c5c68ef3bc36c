from uuid import UUID

from copytrader.db import Database
from copytrader.entities import User
from copytrader.errors import NotFoundError, storage_errors


class UserRepository:
    """
    Repository for user data access.
    Encapsulates all SQL and queries for the users table.
    """

    def __init__(self, database: Database):
        self.db = database

    def insert(self, user: User) -> User:
        """Insert a user and populate user_id and created_at."""
        with storage_errors("insert user", duplicate=f"user {user.username} already exists"):
            row = self.db.fetch_one(
                """
                INSERT INTO users (username, email)
                VALUES (%s, %s)
                RETURNING user_id, created_at
                """,
                (user.username, user.email),
            )
        user.user_id = row["user_id"]
        user.created_at = row["created_at"]
        return user

    def get_by_id(self, user_id: UUID) -> User:
        with storage_errors("get user by ID"):
            row = self.db.fetch_one("SELECT * FROM users WHERE user_id = %s", (user_id,))
        if row is None:
            raise NotFoundError(f"user {user_id} not found")
        return User.from_row(row)

    def get_by_username(self, username: str) -> User:
        with storage_errors("get user by username"):
            row = self.db.fetch_one("SELECT * FROM users WHERE username = %s", (username,))
        if row is None:
            raise NotFoundError(f"user {username} not found")
        return User.from_row(row)

    def delete(self, user_id: UUID) -> None:
        """Delete a user; their wallets are kept with user_id set to NULL."""
        with storage_errors("delete user"):
            deleted = self.db.execute("DELETE FROM users WHERE user_id = %s", (user_id,))
        if deleted == 0:
            raise NotFoundError(f"user {user_id} not found")
