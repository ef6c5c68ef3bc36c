import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from psycopg.conninfo import make_conninfo

# Load the appropriate .env file on module import
env = os.environ.get("COPYTRADER_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()

ADMIN_DATABASE = "postgres"


@dataclass
class Config:
    host: str
    port: int
    user: str
    password: str
    dbname: str
    min_pool_size: int = 1
    max_pool_size: int = 10

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            host=os.environ.get("DB_HOST", "localhost"),
            port=int(os.environ.get("DB_PORT", "5432")),
            user=os.environ.get("DB_USER", "postgres"),
            password=os.environ.get("DB_PASSWORD", ""),
            dbname=os.environ.get("DB_NAME", "hyperliquid_copy_trading"),
            min_pool_size=int(os.environ.get("DB_POOL_MIN", "1")),
            max_pool_size=int(os.environ.get("DB_POOL_MAX", "10")),
        )

    def conninfo(self, dbname: Optional[str] = None) -> str:
        """
        Build a libpq connection string.

        Args:
            dbname: Database to connect to instead of the configured one
                (the administrative database during bootstrap)
        """
        return make_conninfo(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password or None,
            dbname=dbname or self.dbname,
            sslmode="disable",
        )
