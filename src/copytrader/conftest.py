# src/copytrader/conftest.py
"""
Pytest configuration and shared fixtures for integration tests.

Tests are co-located with implementation files using the *_test.py suffix.
This file provides fixtures available to all tests in the package.

Database-backed tests need a reachable PostgreSQL server (DB_HOST, DB_PORT,
DB_USER, DB_PASSWORD); they are skipped when none is available.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["COPYTRADER_ENV"] = "test"
# Never point the suite at a real database: it is dropped on every run
os.environ["DB_NAME"] = os.environ.get("TEST_DB_NAME", "copytrader_test")

from decimal import Decimal

import psycopg
import pytest
from psycopg import sql

from copytrader.config import ADMIN_DATABASE, Config
from copytrader.db import initialize
from copytrader.entities import (
    Asset,
    Order,
    OrderSide,
    OrderType,
    Trade,
    User,
    Wallet,
)

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_config() -> Config:
    return Config.from_env()


@pytest.fixture(scope="session")
def test_db(test_config):
    """
    Create test database and schema once per test session.

    This fixture:
    1. Drops the test database if it exists (clean slate)
    2. Runs the regular bootstrap, which recreates it and applies all migrations

    Runs once at the start of the test session.
    """
    try:
        admin = psycopg.connect(test_config.conninfo(ADMIN_DATABASE), autocommit=True)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    with admin:
        # Terminate existing connections to test database
        admin.execute(
            """
            SELECT pg_terminate_backend(pg_stat_activity.pid)
            FROM pg_stat_activity
            WHERE pg_stat_activity.datname = %s
            AND pid <> pg_backend_pid()
            """,
            (test_config.dbname,),
        )
        admin.execute(
            sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(test_config.dbname))
        )

    database = initialize(test_config)

    yield database

    database.close()


@pytest.fixture
def database(test_db):
    """The session Database handle, without any connection override."""
    return test_db


@pytest.fixture
def db_connection(test_db, test_config):
    """
    Provide a database connection with transaction rollback.

    Each test runs in a transaction that is rolled back at the end,
    ensuring tests don't affect each other. Repository statements run in
    savepoints inside it, so an expected constraint violation doesn't abort
    the rest of the test.
    """
    conn = psycopg.connect(test_config.conninfo())

    # Clean slate; this also opens the test transaction
    conn.execute(
        """
        TRUNCATE users, wallets, assets, orders, trades,
                 copy_trading_relationships
        CASCADE
        """
    )

    # Route the shared Database through this connection
    test_db.set_connection_override(conn)

    yield conn

    # Rollback any changes made during the test
    conn.rollback()
    test_db.clear_connection_override()
    conn.close()


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def user_repo(test_db, db_connection):
    from copytrader.user import UserRepository

    return UserRepository(test_db)


@pytest.fixture
def wallet_repo(test_db, db_connection):
    from copytrader.wallet import WalletRepository

    return WalletRepository(test_db)


@pytest.fixture
def asset_repo(test_db, db_connection):
    from copytrader.asset import AssetRepository

    return AssetRepository(test_db)


@pytest.fixture
def order_repo(test_db, db_connection):
    from copytrader.order import OrderRepository

    return OrderRepository(test_db)


@pytest.fixture
def trade_repo(test_db, db_connection):
    from copytrader.trade import TradeRepository

    return TradeRepository(test_db)


@pytest.fixture
def copy_trading_repo(test_db, db_connection):
    from copytrader.copy_trading import CopyTradingRepository

    return CopyTradingRepository(test_db)


# =============================================================================
# Seed Data Fixtures
# =============================================================================


@pytest.fixture
def sample_user(user_repo) -> User:
    return user_repo.insert(User(username="trader1", email="trader1@example.com"))


@pytest.fixture
def sample_wallet(wallet_repo) -> Wallet:
    """An owned wallet with an API key and 1000 USDC."""
    return wallet_repo.insert(
        Wallet(
            hyperliquid_address="0xABC",
            hyperliquid_api_key="test-api-key",
            balance_usdc=Decimal("1000.0"),
            is_owned=True,
        )
    )


@pytest.fixture
def sample_follower_wallet(wallet_repo) -> Wallet:
    """A tracked, non-owned wallet."""
    return wallet_repo.insert(Wallet(hyperliquid_address="0xDEF"))


@pytest.fixture
def sample_asset(asset_repo) -> Asset:
    return asset_repo.insert(
        Asset(symbol="BTC-PERP", base_currency="BTC", quote_currency="USDC")
    )


@pytest.fixture
def sample_order(order_repo, sample_wallet, sample_asset) -> Order:
    """A pending Limit buy of 0.5 BTC at 60000 with 5x leverage."""
    return order_repo.insert(
        Order(
            wallet_id=sample_wallet.wallet_id,
            asset_id=sample_asset.asset_id,
            order_type=OrderType.LIMIT,
            side=OrderSide.BUY,
            quantity=Decimal("0.5"),
            price=Decimal("60000"),
            leverage=Decimal("5.0"),
        )
    )


@pytest.fixture
def sample_trade(trade_repo, sample_order) -> Trade:
    return trade_repo.insert(
        Trade(
            order_id=sample_order.order_id,
            asset_id=sample_order.asset_id,
            executed_price=Decimal("59990.5"),
            executed_quantity=Decimal("0.5"),
            fee=Decimal("0.0125"),
        )
    )
