#!/usr/bin/env python3
"""copytrader CLI: bootstrap the database and walk a wallet through its lifecycle."""

import argparse
import logging
import sys
import time
from dataclasses import replace
from decimal import Decimal

import questionary
from rich.console import Console

from copytrader.config import Config
from copytrader.db import initialize
from copytrader.entities import Wallet
from copytrader.errors import CopyTraderError
from copytrader.wallet import WalletRepository

console = Console()


def parse_args(argv=None) -> argparse.Namespace:
    defaults = Config.from_env()

    parser = argparse.ArgumentParser(description="copytrader database demo")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--user", default=defaults.user)
    parser.add_argument("--password", default=defaults.password)
    parser.add_argument("--dbname", default=defaults.dbname)
    parser.add_argument("--rotate-key", action="store_true", help="Replace the wallet API key")
    parser.add_argument("--cleanup", action="store_true", help="Delete the demo wallet at the end")
    parser.add_argument("--yes", action="store_true", help="Don't ask before deleting")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def run_demo(wallets: WalletRepository, rotate_key: bool, cleanup: bool, assume_yes: bool) -> None:
    """Insert, read, update and optionally delete one wallet. Raises on first error."""
    address = f"0xTestWallet{time.time_ns()}"
    wallet = wallets.insert(
        Wallet(
            hyperliquid_address=address,
            hyperliquid_api_key="test-api-key",
            balance_usdc=Decimal("1000.0"),
            is_owned=True,
        )
    )
    console.print(f"[green]Wallet created with ID:[/] {wallet.wallet_id}")

    fetched = wallets.get_by_id(wallet.wallet_id)
    console.print(
        f"Fetched wallet by ID: Address={fetched.hyperliquid_address}, "
        f"Balance={fetched.balance_usdc:.2f}"
    )

    by_address = wallets.get_by_address(address)
    console.print(f"Fetched by address: ID={by_address.wallet_id}")

    wallets.update_balance(wallet.wallet_id, Decimal("1500.0"))
    updated = wallets.get_by_id(wallet.wallet_id)
    console.print(f"[green]Wallet balance updated to[/] {updated.balance_usdc:.2f}")

    if rotate_key:
        wallets.update_api_key(wallet.wallet_id, "new-api-key")
        console.print("[green]Wallet API key updated[/]")

    if cleanup:
        if not assume_yes and not questionary.confirm(f"Delete wallet {address}?").ask():
            console.print("[dim]Keeping wallet.[/]")
            return
        wallets.delete(wallet.wallet_id)
        console.print("[green]Wallet deleted[/]")


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    # Pool bounds have no flags; keep the environment values
    config = replace(
        Config.from_env(),
        host=args.host,
        port=args.port,
        user=args.user,
        password=args.password,
        dbname=args.dbname,
    )

    try:
        database = initialize(config)
    except CopyTraderError as e:
        console.print(f"[red]Error initializing DB:[/] {e}")
        return 1

    with database:
        try:
            run_demo(
                WalletRepository(database),
                rotate_key=args.rotate_key,
                cleanup=args.cleanup,
                assume_yes=args.yes,
            )
        except CopyTraderError as e:
            console.print(f"[red]Error:[/] {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
