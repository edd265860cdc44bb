"""Console entry point for the satgate package.

After ``pip install .`` the ``satgate`` command is available:

    satgate address 5                      derive the address of keychain id 5
    satgate order 25 --keychain-id 5 --currency USD
    satgate balance 1BoatSLRHtKNngkdXEeobR76b53LETtpyT
    satgate transactions <address>
    satgate tx <txid> [--address <address>]
    satgate watch 0.001 --keychain-id 5 --currency BTC --denomination btc

Settings come from ``config/default.yaml`` and the environment (``.env``).
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from rich.text import Text

from core.config import load_config
from core.errors import GatewayError
from core.types import OrderStatus, Transaction
from gateway.factory import create_gateway

log = logging.getLogger("satgate")

STATUS_STYLES = {
    OrderStatus.NEW: "dim",
    OrderStatus.UNCONFIRMED: "yellow",
    OrderStatus.PAID: "green",
    OrderStatus.UNDERPAID: "red",
    OrderStatus.OVERPAID: "cyan",
    OrderStatus.EXPIRED: "red",
    OrderStatus.CANCELED: "dim",
}


def setup_logging(level: str = "INFO") -> None:
    fmt = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="satgate", description="Bitcoin payment gateway")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("address", help="Derive the receiving address of a keychain id")
    p.add_argument("keychain_id", type=int)

    for cmd, help_text in (("order", "Create an order and show it"),
                           ("watch", "Create an order and poll it until paid or expired")):
        p = sub.add_parser(cmd, help=help_text)
        p.add_argument("amount", help="Amount in --currency (or in --denomination for BTC)")
        p.add_argument("--keychain-id", type=int, required=True)
        p.add_argument("--currency", default=None,
                       help="Currency code (default: configured default_currency)")
        p.add_argument("--denomination", default=None,
                       help="BTC unit of the amount: btc, mbtc, bit, satoshi (default)")

    p = sub.add_parser("balance", help="Balance of an address in satoshis")
    p.add_argument("address")

    p = sub.add_parser("transactions", help="Transactions paying an address")
    p.add_argument("address")

    p = sub.add_parser("tx", help="Look up one transaction")
    p.add_argument("tid")
    p.add_argument("--address", default=None, help="Only count outputs paying this address")

    return parser


def transactions_table(transactions: List[Transaction], title: str = "TRANSACTIONS") -> Table:
    table = Table(title=title, title_justify="left", header_style="bold dim", box=None,
                  padding=(0, 1))
    table.add_column("TxID", min_width=20)
    table.add_column("Amount (sat)", justify="right")
    table.add_column("Conf", justify="right")
    table.add_column("Block", justify="right")
    for t in transactions:
        conf_style = "green" if t.confirmations > 0 else "yellow"
        table.add_row(
            t.tid,
            f"{t.amount:,}",
            Text(str(t.confirmations), style=conf_style),
            str(t.block_height) if t.block_height is not None else "-",
        )
    return table


def order_table(order) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold dim")
    table.add_column()
    table.add_row("Keychain id", str(order.keychain_id))
    table.add_row("Address", order.address)
    table.add_row("Amount", f"{order.amount:,} sat")
    status = getattr(order, "status", None)
    if status is not None:
        status = OrderStatus(status)
        table.add_row("Status", Text(status.name, style=STATUS_STYLES.get(status, "")))
    return table


def run(args: argparse.Namespace, config: dict, console: Console) -> int:
    gateway = create_gateway(config)

    if args.command == "address":
        console.print(gateway.address_for_keychain_id(args.keychain_id))
    elif args.command in ("order", "watch"):
        order = gateway.order_for_keychain_id(
            args.amount, args.keychain_id,
            currency=args.currency, btc_denomination=args.denomination,
        )
        console.print(order_table(order))
        if args.command == "watch":
            status_check = config["status_check"]
            console.print(f"Waiting for payment to {order.address} ...")
            order.check_status_on_schedule(
                period=status_check["period_s"], duration=status_check["duration_s"],
            )
            console.print(order_table(order))
            return 0 if order.status == OrderStatus.PAID else 1
    elif args.command == "balance":
        console.print(f"{gateway.fetch_balance_for(args.address):,} sat")
    elif args.command == "transactions":
        console.print(transactions_table(gateway.fetch_transactions_for(args.address)))
    elif args.command == "tx":
        console.print(transactions_table([gateway.fetch_transaction(args.tid, address=args.address)]))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``satgate`` console command."""
    args = build_parser().parse_args(argv)
    load_dotenv()
    console = Console()
    try:
        config = load_config(args.config)
        setup_logging(args.log_level or config.get("log_level", "INFO"))
        return run(args, config, console)
    except (GatewayError, ValueError, ArithmeticError) as e:
        log.debug("Command failed", exc_info=True)
        console.print(Text(f"error: {e}", style="bold red"))
        return 2


if __name__ == "__main__":
    sys.exit(main())
