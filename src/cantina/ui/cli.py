from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cantina.app import (
    initialise_database,
    run_balance_reconciliation,
    run_sale_year_month_backfill,
)
from cantina.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cantina point-of-sale administration")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log commit details at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create or upgrade the database schema")
    init_db.add_argument(
        "--database-uri",
        type=str,
        help="Database to initialise (defaults to DATABASE_URI or the data directory)",
    )

    backfill = subparsers.add_parser(
        "backfill-year-month",
        help="Set the year-month partition on sales that lack it",
    )
    backfill.add_argument(
        "--apply",
        action="store_true",
        help="Write the changes (default is a dry run)",
    )

    reconcile = subparsers.add_parser(
        "reconcile-balances",
        help="Reset customer balances that drifted from their ledger",
    )
    reconcile.add_argument(
        "--apply",
        action="store_true",
        help="Write the corrections (default is a dry run)",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "init-db":
            initialise_database(database_uri=parsed_args.database_uri)
        elif parsed_args.command == "backfill-year-month":
            run_sale_year_month_backfill(apply=parsed_args.apply)
        elif parsed_args.command == "reconcile-balances":
            run_balance_reconciliation(apply=parsed_args.apply)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
