"""
Schema management.

Lightweight migration system:
- Tracks applied versions in a `schema_version` table
- Only runs migrations that haven't been applied yet
- Each migration is a (version, description, SQL) tuple
- Every statement is idempotent, so databases provisioned before version
  tracking existed migrate cleanly
- Safe for concurrent startup (uses advisory lock)

Usage:
    database = Database(config.conninfo())
    database.open()
    ensure_schema(database)
"""

import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)

# =============================================================================
# Migration registry
#
# Append-only. Never modify or delete existing entries.
# =============================================================================

MIGRATIONS: List[Tuple[int, str, str]] = [
    (
        1,
        "Create order enum types",
        """
        DO $$ BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'order_type') THEN
                CREATE TYPE order_type AS ENUM ('Market', 'Limit', 'StopMarket', 'StopLimit');
            END IF;
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'order_side') THEN
                CREATE TYPE order_side AS ENUM ('Buy', 'Sell');
            END IF;
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'order_status') THEN
                CREATE TYPE order_status AS ENUM ('Pending', 'Filled', 'Cancelled');
            END IF;
        END $$;
        """,
    ),
    (
        2,
        "Create users table",
        """
        CREATE TABLE IF NOT EXISTS users (
            user_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            username VARCHAR(50) NOT NULL UNIQUE,
            email VARCHAR(255) NOT NULL UNIQUE,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        );
        """,
    ),
    (
        3,
        "Create wallets table",
        """
        CREATE TABLE IF NOT EXISTS wallets (
            wallet_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id UUID REFERENCES users(user_id) ON DELETE SET NULL,
            hyperliquid_address VARCHAR(66) NOT NULL UNIQUE,
            hyperliquid_api_key VARCHAR(255),
            balance_usdc DECIMAL(18, 6) DEFAULT 0.0,
            is_owned BOOLEAN NOT NULL DEFAULT FALSE,
            updated_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT chk_api_key_owned CHECK (is_owned = TRUE OR hyperliquid_api_key IS NULL)
        );
        """,
    ),
    (
        4,
        "Create assets table",
        """
        CREATE TABLE IF NOT EXISTS assets (
            asset_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            symbol VARCHAR(20) NOT NULL UNIQUE,
            base_currency VARCHAR(10) NOT NULL,
            quote_currency VARCHAR(10) NOT NULL,
            is_perpetual BOOLEAN NOT NULL DEFAULT TRUE
        );
        """,
    ),
    (
        5,
        "Create orders table",
        """
        CREATE TABLE IF NOT EXISTS orders (
            order_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            wallet_id UUID NOT NULL REFERENCES wallets(wallet_id) ON DELETE CASCADE,
            asset_id UUID NOT NULL REFERENCES assets(asset_id) ON DELETE RESTRICT,
            order_type order_type NOT NULL,
            side order_side NOT NULL,
            quantity DECIMAL(18, 8) NOT NULL,
            price DECIMAL(18, 6),
            leverage DECIMAL(5, 2) DEFAULT 1.0 CHECK (leverage >= 1.0 AND leverage <= 50.0),
            status order_status NOT NULL DEFAULT 'Pending',
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
            hyperliquid_order_id VARCHAR(64),
            is_copied BOOLEAN NOT NULL DEFAULT FALSE,
            CONSTRAINT chk_price_order_type CHECK (order_type != 'Market' OR price IS NULL)
        );
        """,
    ),
    (
        6,
        "Create trades table",
        """
        CREATE TABLE IF NOT EXISTS trades (
            trade_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            order_id UUID NOT NULL REFERENCES orders(order_id) ON DELETE CASCADE,
            asset_id UUID NOT NULL REFERENCES assets(asset_id) ON DELETE RESTRICT,
            executed_price DECIMAL(18, 6) NOT NULL,
            executed_quantity DECIMAL(18, 8) NOT NULL,
            fee DECIMAL(18, 8) NOT NULL DEFAULT 0.0,
            executed_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        );
        """,
    ),
    (
        7,
        "Create copy_trading_relationships table",
        """
        CREATE TABLE IF NOT EXISTS copy_trading_relationships (
            relationship_id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            lead_wallet_id UUID NOT NULL REFERENCES wallets(wallet_id) ON DELETE CASCADE,
            follower_wallet_id UUID NOT NULL REFERENCES wallets(wallet_id) ON DELETE CASCADE,
            start_date TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
            end_date TIMESTAMP WITH TIME ZONE,
            profit_share_percentage DECIMAL(5, 2) DEFAULT 0.0 CHECK (profit_share_percentage >= 0.0 AND profit_share_percentage <= 100.0),
            CONSTRAINT unique_relationship UNIQUE (lead_wallet_id, follower_wallet_id),
            CONSTRAINT chk_different_wallets CHECK (lead_wallet_id != follower_wallet_id)
        );
        """,
    ),
    (
        8,
        "Create lookup indexes",
        """
        CREATE INDEX IF NOT EXISTS idx_orders_wallet_id ON orders(wallet_id);
        CREATE INDEX IF NOT EXISTS idx_orders_asset_id ON orders(asset_id);
        CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);
        CREATE INDEX IF NOT EXISTS idx_trades_order_id ON trades(order_id);
        CREATE INDEX IF NOT EXISTS idx_trades_executed_at ON trades(executed_at);
        CREATE INDEX IF NOT EXISTS idx_copy_trading_lead_wallet_id ON copy_trading_relationships(lead_wallet_id);
        CREATE INDEX IF NOT EXISTS idx_copy_trading_follower_wallet_id ON copy_trading_relationships(follower_wallet_id);
        """,
    ),
    # Future migrations go here, e.g.:
    # (9, "Add index on wallets.user_id", "CREATE INDEX IF NOT EXISTS ..."),
]


# =============================================================================
# Schema management
# =============================================================================

_BOOTSTRAP_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    description TEXT NOT NULL,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

# PostgreSQL advisory lock ID (arbitrary constant, unique to this app)
_LOCK_ID = 4_8127_3301


def current_version(database) -> int:
    """Highest applied migration version, 0 on a fresh database."""
    with database.connection() as conn:
        exists = conn.execute("SELECT to_regclass('schema_version') IS NOT NULL").fetchone()[0]
        if not exists:
            return 0
        row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
        return row[0]


def ensure_schema(database) -> None:
    """Apply any pending migrations.

    - Creates the ``schema_version`` tracking table if needed
    - Uses a PostgreSQL advisory lock to prevent concurrent migration runs
    - Skips migrations that have already been applied
    - Each migration runs in its own transaction (a savepoint under a
      connection override, whose transaction is left to the caller)

    Args:
        database: Open Database instance.
    """
    with database.connection() as conn:
        # Advisory lock, only one process migrates at a time
        conn.execute("SELECT pg_advisory_lock(%s)", (_LOCK_ID,))
        if not database.overridden:
            # Session-level lock survives the commit; each migration below
            # then gets a real transaction instead of a savepoint
            conn.commit()
        try:
            with conn.transaction():
                conn.execute(_BOOTSTRAP_SQL)
                row = conn.execute(
                    "SELECT COALESCE(MAX(version), 0) FROM schema_version"
                ).fetchone()
            current = row[0]

            pending = [(v, d, s) for v, d, s in MIGRATIONS if v > current]
            if not pending:
                logger.debug(f"Schema up to date (version {current})")
                return

            for version, description, statement in pending:
                with conn.transaction():
                    conn.execute(statement)
                    conn.execute(
                        "INSERT INTO schema_version (version, description) VALUES (%s, %s)",
                        (version, description),
                    )
                logger.info(f"Migration {version}: {description}")

            logger.info(
                f"Schema migrated {current} -> {pending[-1][0]} "
                f"({len(pending)} migration(s))"
            )
        finally:
            # A dead connection already released the lock; unlocking would
            # only mask the original error
            if not (conn.closed or conn.broken):
                conn.execute("SELECT pg_advisory_unlock(%s)", (_LOCK_ID,))
