"""
Database connection and query utilities.

A Database wraps a psycopg connection pool and is created once per
application, then handed to every repository:

    database = initialize(Config.from_env())
    wallets = WalletRepository(database)

For testing, use set_connection_override() to inject a connection
that will be used instead of borrowing one from the pool. This enables
transaction rollback between tests.
"""

import logging
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from copytrader.config import ADMIN_DATABASE, Config
from copytrader.errors import InitializationError
from copytrader.migrations import ensure_schema

logger = logging.getLogger(__name__)


class Database:
    """
    Owns a psycopg connection pool.

    The pool is thread-safe; repositories sharing one Database need no
    extra locking.
    """

    def __init__(self, conninfo: str, min_size: int = 1, max_size: int = 10):
        self._pool = ConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            open=False,
        )
        self._connection_override: psycopg.Connection | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self, wait: bool = True, timeout: float = 30.0) -> None:
        """Open the pool, optionally waiting until min_size connections are ready."""
        self._pool.open(wait=wait, timeout=timeout)
        logger.debug("Connection pool opened")

    def close(self) -> None:
        self._pool.close()
        logger.debug("Connection pool closed")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # =========================================================================
    # Connection Override (for testing)
    # =========================================================================

    def set_connection_override(self, conn: psycopg.Connection) -> None:
        """
        Set a connection to use instead of borrowing from the pool.

        Used by test fixtures to ensure all database operations run
        within a single transaction that can be rolled back.

        Args:
            conn: The connection to use for all subsequent operations
        """
        self._connection_override = conn

    def clear_connection_override(self) -> None:
        """Clear the connection override, restoring normal behavior."""
        self._connection_override = None

    @property
    def overridden(self) -> bool:
        """True while a caller-owned connection replaces the pool."""
        return self._connection_override is not None

    # =========================================================================
    # Connection Management
    # =========================================================================

    @contextmanager
    def connection(self):
        """
        Context manager for database connections.

        In normal operation:
            - Borrows a connection from the pool
            - Commits on successful exit
            - Rolls back on exception
            - Returns the connection to the pool

        With override set (testing):
            - Returns the override connection
            - Does NOT commit, rollback, or close
            - Caller (test fixture) manages the transaction
        """
        if self._connection_override is not None:
            yield self._connection_override
            return

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def cursor(self):
        """
        Context manager for a cursor with dict rows.

        The work runs inside conn.transaction(), which becomes a savepoint
        when a transaction is already open, so a failed statement does not
        abort the surrounding transaction.

        Usage:
            with database.cursor() as cur:
                cur.execute("SELECT * FROM wallets")
                rows = cur.fetchall()  # List of dicts
        """
        with self.connection() as conn:
            with conn.transaction():
                with conn.cursor(row_factory=dict_row) as cur:
                    yield cur

    # =========================================================================
    # Query Helpers
    # =========================================================================

    def execute(self, query, params: tuple = None) -> int:
        """
        Execute a query without returning results.

        Use for UPDATE and DELETE.

        Args:
            query: SQL query with %s placeholders
            params: Tuple of parameter values

        Returns:
            Number of rows affected
        """
        with self.cursor() as cur:
            cur.execute(query, params)
            return cur.rowcount

    def fetch_one(self, query, params: tuple = None) -> dict[str, Any] | None:
        """
        Execute a query and return a single row as dict.

        Returns:
            Dict of column names to values, or None if no row found
        """
        with self.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchone()

    def fetch_all(self, query, params: tuple = None) -> list[dict[str, Any]]:
        """
        Execute a query and return all rows as list of dicts.

        Returns:
            List of dicts, empty list if no rows found
        """
        with self.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def ping(self) -> None:
        """Round-trip a trivial query; raises if the server is unreachable."""
        self.fetch_one("SELECT 1 AS ok")


# =============================================================================
# Bootstrap
# =============================================================================


def database_exists(conn: psycopg.Connection, dbname: str) -> bool:
    row = conn.execute(
        "SELECT EXISTS(SELECT 1 FROM pg_database WHERE datname = %s)",
        (dbname,),
    ).fetchone()
    return row[0]


def ensure_database(config: Config) -> None:
    """
    Create the target database if it does not exist yet.

    Runs against the administrative database with autocommit, since
    CREATE DATABASE cannot run inside a transaction.
    """
    try:
        admin = psycopg.connect(config.conninfo(ADMIN_DATABASE), autocommit=True)
    except psycopg.Error as e:
        raise InitializationError(f"error opening postgres database: {e}") from e

    with admin:
        try:
            exists = database_exists(admin, config.dbname)
        except psycopg.Error as e:
            raise InitializationError(f"error checking database existence: {e}") from e

        if exists:
            logger.info(f"Database {config.dbname} already exists, proceeding")
            return

        try:
            admin.execute(
                sql.SQL("CREATE DATABASE {}").format(sql.Identifier(config.dbname))
            )
        except psycopg.errors.DuplicateDatabase:
            # Another process created it between the check and the create
            logger.info(f"Database {config.dbname} already exists, proceeding")
            return
        except psycopg.Error as e:
            raise InitializationError(f"error creating database: {e}") from e

        logger.info(f"Database {config.dbname} created")


def initialize(config: Config) -> Database:
    """
    Bootstrap the database and return an open Database handle.

    Steps:
    1. Create the target database if it is missing
    2. Open a connection pool scoped to it
    3. Verify connectivity
    4. Enable the uuid-ossp extension
    5. Apply pending schema migrations

    Every failure raises InitializationError naming the step. Earlier steps
    are not undone, but re-running detects the state they left behind.

    Args:
        config: Connection settings

    Returns:
        The open Database; the caller owns it and closes it when done
    """
    ensure_database(config)

    database = Database(
        config.conninfo(),
        min_size=config.min_pool_size,
        max_size=config.max_pool_size,
    )
    try:
        try:
            database.open()
        except psycopg.Error as e:
            # PoolTimeout is an OperationalError
            raise InitializationError(f"error opening database: {e}") from e

        try:
            database.ping()
        except psycopg.Error as e:
            raise InitializationError(f"error pinging database: {e}") from e

        try:
            database.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
        except psycopg.Error as e:
            raise InitializationError(f"error enabling uuid-ossp extension: {e}") from e

        try:
            ensure_schema(database)
        except psycopg.Error as e:
            raise InitializationError(f"error creating schema: {e}") from e
    except InitializationError:
        database.close()
        raise

    logger.info("Database initialized successfully")
    return database
