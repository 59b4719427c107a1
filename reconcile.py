"""squad-dues-matcher – CLI to reconcile roster, payments and registry exports."""

import argparse
import datetime
import logging
from pathlib import Path

from recon.mappers import map_payments, map_registry, map_roster
from recon.matching import DEFAULT_MIN_PAID, build_comparison
from recon.reader import read_rows
from recon.reporter import print_summary, write_csv_report, write_html_report

DEFAULT_SUGGEST_THRESHOLD = 0.88


def _iso_date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date (YYYY-MM-DD): {value!r}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Match a club roster against payments and registry memberships.',
        prog='squad-dues-matcher',
    )
    parser.add_argument(
        '--roster', required=True, type=Path,
        help='Roster export (CSV or XLSX)',
    )
    parser.add_argument(
        '--payments', required=True, type=Path,
        help='Payments export (CSV or XLSX)',
    )
    parser.add_argument(
        '--registry', required=True, type=Path,
        help='Membership registry export (CSV or XLSX)',
    )
    parser.add_argument(
        '--output', required=True, type=Path,
        help='Path for the CSV report',
    )
    parser.add_argument(
        '--html', action='store_true',
        help='Also write an HTML report next to the CSV',
    )
    parser.add_argument(
        '--summary', action='store_true',
        help='Print a summary to stdout',
    )
    parser.add_argument(
        '--min-paid', type=float, default=DEFAULT_MIN_PAID,
        help=f'Amount that must be exceeded to count as paid (default: {DEFAULT_MIN_PAID:g})',
    )
    parser.add_argument(
        '--today', type=_iso_date, default=None,
        help='Evaluation date for membership expiry (default: today)',
    )
    parser.add_argument(
        '--suggest-threshold', type=float, default=DEFAULT_SUGGEST_THRESHOLD,
        help=(
            'Name similarity for suggesting registry entries to unmatched '
            f'players, 0 disables (default: {DEFAULT_SUGGEST_THRESHOLD})'
        ),
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Read the three exports, reconcile them and write the reports.

    Returns:
        Number of report rows written.
    """
    members = map_roster(read_rows(args.roster))
    payments = map_payments(read_rows(args.payments))
    registry = map_registry(read_rows(args.registry))

    rows = build_comparison(
        members, payments, registry,
        min_paid=args.min_paid,
        today=args.today,
        suggest_threshold=args.suggest_threshold or None,
    )

    write_csv_report(rows, args.output)

    if args.html:
        write_html_report(rows, args.output.with_suffix('.html'), args.roster.stem)

    if args.summary:
        print_summary(rows, args.roster.stem)

    return len(rows)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.min_paid < 0:
        parser.error('--min-paid must not be negative.')
    if not 0 <= args.suggest_threshold <= 1:
        parser.error('--suggest-threshold must be between 0 and 1.')

    for path in (args.roster, args.payments, args.registry):
        if not path.exists():
            parser.error(f'File not found: {path}')

    run(args)


if __name__ == '__main__':
    main()
