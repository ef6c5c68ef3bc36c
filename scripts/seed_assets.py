"""Seed initial perpetual assets into the database."""
from copytrader.asset import AssetRepository
from copytrader.config import Config
from copytrader.db import initialize
from copytrader.entities import Asset
from copytrader.errors import NotFoundError

INITIAL_ASSETS = [
    {"symbol": "BTC-PERP", "base_currency": "BTC", "quote_currency": "USDC"},
    {"symbol": "ETH-PERP", "base_currency": "ETH", "quote_currency": "USDC"},
    {"symbol": "SOL-PERP", "base_currency": "SOL", "quote_currency": "USDC"},
    {"symbol": "HYPE-PERP", "base_currency": "HYPE", "quote_currency": "USDC"},
]


def main():
    with initialize(Config.from_env()) as database:
        assets_repo = AssetRepository(database)

        for asset in INITIAL_ASSETS:
            try:
                existing = assets_repo.get_by_symbol(asset["symbol"])
            except NotFoundError:
                existing = None
            if existing:
                print(f"Skipping {asset['symbol']} - already exists")
                continue

            result = assets_repo.insert(Asset(**asset))
            print(f"Created: {result.symbol} (id={result.asset_id})")


if __name__ == "__main__":
    main()
