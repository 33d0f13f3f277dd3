"""
Command-line interface for PayStream.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal

from paystream import (
    ALL,
    PayStreamEngine,
    PayStreamError,
    accrued,
    load_config,
    rate_per_second,
    salary_projection,
)
from paystream.analytics import export_feed_csv
from paystream.core.errors import ConfigError


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that renders Decimal amounts as strings."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def _dump(data) -> None:
    json.dump(data, sys.stdout, indent=2, cls=DecimalEncoder)
    sys.stdout.write("\n")


def cmd_example(_) -> int:
    """Print a minimal engine configuration JSON."""
    example = {
        "currency": "HLUSD",
        "token_decimals": 18,
        "display_decimals": 3,
        "tax_percent": "10",
        "ledger_timeout": 10.0,
        "default_mode": "simulated",
        "simulation": {
            "party": "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
            "principal_per_year": "50000",
            "started_seconds_ago": 86400,
        },
    }
    _dump(example)
    return 0


def cmd_accrue(args) -> int:
    """Print the amount accrued for a salary over an elapsed time."""
    try:
        amount = accrued(args.salary, args.elapsed)
        rate = rate_per_second(args.salary)
    except (ArithmeticError, TypeError, ValueError) as e:
        print(f"Error computing accrual: {e}", file=sys.stderr)
        return 1

    if args.json:
        _dump(
            {
                "principal_per_year": args.salary,
                "elapsed_seconds": args.elapsed,
                "accrued": amount,
                "rate_per_second": rate,
            }
        )
    else:
        print(f"Accrued after {args.elapsed}s: {amount}")
        print(f"Rate per second: {rate}")
    return 0


def cmd_simulate(args) -> int:
    """Run a simulated session, optionally claim, and show the result."""
    try:
        config = load_config(args.config)
        with PayStreamEngine(config=config, mode="simulated") as engine:
            record = None
            if args.claim is not None:
                record = engine.request_claim(args.claim)
            snap = engine.get_snapshot()
            feed = engine.get_feed()

            if args.export:
                rows = export_feed_csv(args.export, feed, config.display_decimals)
                print(f"Exported {rows} records to {args.export}", file=sys.stderr)

        if args.json:
            _dump(
                {
                    "snapshot": snap.to_dict(),
                    "claim": record.to_dict() if record else None,
                    "feed": [r.to_dict() for r in feed],
                }
            )
            return 0

        view = snap.display(engine.currency, config.display_decimals)
        print(f"Party: {view['party']}")
        print(f"Salary: {view['principal_per_year']} {engine.currency}/year")
        print(f"Claimable: {view['claimable']} {engine.currency}")
        print(f"Claimed to date: {view['cumulative_claimed']} {engine.currency}")
        print(f"Rate: {view['rate_per_second']} {engine.currency}/s")
        if record:
            print(
                f"Claimed {engine.currency.display(record.amount, config.display_decimals)}"
                f" (tax {engine.currency.display(record.tax_withheld, config.display_decimals)})"
            )
        print()
        print("Transactions:")
        for r in feed:
            amount = engine.currency.display(r.amount, config.display_decimals)
            print(
                f"  {r.occurred_at:%Y-%m-%d %H:%M:%S}  {r.kind.value:<9} {amount:>14}"
                f"  {r.reference[:10]}..."
            )
        return 0

    except (ConfigError, FileNotFoundError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1
    except PayStreamError as e:
        print(f"Claim failed: {e}", file=sys.stderr)
        return 1


def cmd_project(args) -> int:
    """Print a cumulative salary projection by month."""
    try:
        df = salary_projection(args.salary, months=args.months)
    except ValueError as e:
        print(f"Error projecting salary: {e}", file=sys.stderr)
        return 1

    if args.json:
        _dump(
            [
                {"period": str(period), "month": row.month, "amount": row.amount}
                for period, row in df.iterrows()
            ]
        )
    else:
        for period, row in df.iterrows():
            print(f"{period}  {row.month}  {row.amount:,.2f}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="paystream", description="PayStream - Continuous salary streaming engine"
    )

    # Version argument
    parser.add_argument("--version", action="version", version="PayStream 0.1.0")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log engine activity to stderr"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a minimal engine configuration JSON"
    )
    example_parser.set_defaults(func=cmd_example)

    # Accrue command
    accrue_parser = subparsers.add_parser(
        "accrue", help="Compute the amount accrued for a salary"
    )
    accrue_parser.add_argument(
        "--salary", type=Decimal, required=True, help="Annual salary"
    )
    accrue_parser.add_argument(
        "--elapsed", type=Decimal, default=Decimal("86400"), help="Elapsed seconds"
    )
    accrue_parser.add_argument(
        "--json", action="store_true", help="Output in JSON format"
    )
    accrue_parser.set_defaults(func=cmd_accrue)

    # Simulate command
    simulate_parser = subparsers.add_parser(
        "simulate", help="Run a simulated session from a config file"
    )
    simulate_parser.add_argument(
        "-c", "--config", help="Engine configuration (YAML or JSON)"
    )
    simulate_parser.add_argument(
        "--claim",
        nargs="?",
        const=ALL,
        help="Claim an amount before reporting ('all' when no amount is given)",
    )
    simulate_parser.add_argument(
        "--export", metavar="CSV", help="Export the transaction feed to CSV"
    )
    simulate_parser.add_argument(
        "--json", action="store_true", help="Output in JSON format"
    )
    simulate_parser.set_defaults(func=cmd_simulate)

    # Project command
    project_parser = subparsers.add_parser(
        "project", help="Project cumulative salary over the coming months"
    )
    project_parser.add_argument(
        "--salary", type=Decimal, required=True, help="Annual salary"
    )
    project_parser.add_argument(
        "--months", type=int, default=6, help="Number of months to project"
    )
    project_parser.add_argument(
        "--json", action="store_true", help="Output in JSON format"
    )
    project_parser.set_defaults(func=cmd_project)

    # Parse arguments and execute
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
