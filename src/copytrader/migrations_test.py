"""
Tests for schema migrations.

Run with: COPYTRADER_ENV=test pytest src/copytrader/migrations_test.py -v
"""
from unittest.mock import MagicMock

import psycopg
import pytest

from copytrader.db import Database
from copytrader.migrations import MIGRATIONS, current_version, ensure_schema

TABLES = [
    "users",
    "wallets",
    "assets",
    "orders",
    "trades",
    "copy_trading_relationships",
]

INDEXES = [
    "idx_orders_wallet_id",
    "idx_orders_asset_id",
    "idx_orders_created_at",
    "idx_trades_order_id",
    "idx_trades_executed_at",
    "idx_copy_trading_lead_wallet_id",
    "idx_copy_trading_follower_wallet_id",
]


class TestMigrationRegistry:
    def test_versions_are_contiguous_from_one(self):
        versions = [version for version, _, _ in MIGRATIONS]

        assert versions == list(range(1, len(MIGRATIONS) + 1))

    def test_descriptions_are_unique(self):
        descriptions = [description for _, description, _ in MIGRATIONS]

        assert len(set(descriptions)) == len(descriptions)

    @pytest.mark.parametrize(
        "version,description,statement", MIGRATIONS, ids=[d for _, d, _ in MIGRATIONS]
    )
    def test_statements_are_guarded(self, version, description, statement):
        for line in statement.splitlines():
            line = line.strip()
            if line.startswith(("CREATE TABLE", "CREATE INDEX")):
                assert "IF NOT EXISTS" in line, f"migration {version}: {line}"
            if line.startswith("CREATE TYPE"):
                assert "IF NOT EXISTS (SELECT 1 FROM pg_type" in statement


class TestEnsureSchema:
    """Tests for ensure_schema() against a live database"""

    def test_all_migrations_applied(self, database):
        assert current_version(database) == MIGRATIONS[-1][0]

    def test_rerun_is_a_no_op(self, database):
        before = database.fetch_all("SELECT version, applied_at FROM schema_version ORDER BY version")

        ensure_schema(database)
        ensure_schema(database)

        after = database.fetch_all("SELECT version, applied_at FROM schema_version ORDER BY version")
        assert after == before

    def test_tables_exist(self, database):
        rows = database.fetch_all(
            """
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = 'public'
            """
        )

        assert set(TABLES) <= {row["table_name"] for row in rows}

    def test_indexes_exist(self, database):
        rows = database.fetch_all("SELECT indexname FROM pg_indexes WHERE schemaname = 'public'")

        assert set(INDEXES) <= {row["indexname"] for row in rows}

    @pytest.mark.parametrize("type_name,labels", [
        ("order_type", ["Market", "Limit", "StopMarket", "StopLimit"]),
        ("order_side", ["Buy", "Sell"]),
        ("order_status", ["Pending", "Filled", "Cancelled"]),
    ])
    def test_enum_types(self, database, type_name, labels):
        rows = database.fetch_all(
            """
            SELECT e.enumlabel
            FROM pg_enum e JOIN pg_type t ON t.oid = e.enumtypid
            WHERE t.typname = %s
            ORDER BY e.enumsortorder
            """,
            (type_name,),
        )

        assert [row["enumlabel"] for row in rows] == labels

    @pytest.mark.parametrize("constraint", [
        "chk_api_key_owned",
        "chk_price_order_type",
        "unique_relationship",
        "chk_different_wallets",
        "wallets_hyperliquid_address_key",
    ])
    def test_named_constraints(self, database, constraint):
        row = database.fetch_one("SELECT 1 AS found FROM pg_constraint WHERE conname = %s", (constraint,))

        assert row is not None


def make_connection(version: int) -> MagicMock:
    """Fake psycopg connection whose queries all return (version,)."""
    conn = MagicMock()
    conn.closed = False
    conn.broken = False
    conn.execute.return_value.fetchone.return_value = (version,)
    return conn


def executed_sql(conn: MagicMock) -> list[str]:
    return [str(c.args[0]) for c in conn.execute.call_args_list]


@pytest.fixture
def unopened_database():
    database = Database("host=nowhere")
    yield database
    database.clear_connection_override()


class TestEnsureSchemaConnectionHandling:
    """Connection handling in ensure_schema(), without a server"""

    def test_override_connection_is_not_committed(self, unopened_database):
        conn = make_connection(MIGRATIONS[-1][0])
        unopened_database.set_connection_override(conn)

        ensure_schema(unopened_database)

        assert not conn.commit.called
        assert not conn.rollback.called
        assert not conn.close.called
        assert "pg_advisory_unlock" in executed_sql(conn)[-1]

    def test_broken_connection_keeps_original_error(self, unopened_database):
        conn = make_connection(0)
        result = conn.execute.return_value

        def execute(query, params=None):
            if "CREATE TYPE" in str(query):
                conn.broken = True
                raise psycopg.OperationalError("server closed the connection unexpectedly")
            return result

        conn.execute.side_effect = execute
        unopened_database.set_connection_override(conn)

        with pytest.raises(psycopg.OperationalError, match="server closed the connection"):
            ensure_schema(unopened_database)

        assert not any("pg_advisory_unlock" in q for q in executed_sql(conn))

    def test_current_version_without_tracking_table(self, unopened_database):
        conn = make_connection(False)
        unopened_database.set_connection_override(conn)

        assert current_version(unopened_database) == 0
        assert not any("CREATE TABLE" in q for q in executed_sql(conn))
