"""Report generation for comparison rows (CSV, HTML, summary)."""

import csv
import io
import logging
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from recon import MATCH_METHODS, MATCH_UNMATCHED, ComparisonRow

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

CSV_COLUMNS = [
    'Name',
    'Squad',
    'Paid (Amount)',
    'Membership Active',
    'Membership Status',
    'Membership Expiry',
    'Match Method',
]


def format_amount(amount: float) -> str:
    """Render an amount without a trailing ``.0`` for whole numbers."""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def _row_values(row: ComparisonRow) -> list[str]:
    """Convert a ComparisonRow to display values in CSV_COLUMNS order."""
    paid_flag = 'YES' if row.paid else 'NO'
    return [
        row.name,
        row.squad or '',
        f"{paid_flag} ({format_amount(row.paid_amount)})",
        'YES' if row.membership_active else 'NO',
        row.membership_status or '',
        row.membership_expiry or '',
        row.match_method,
    ]


def to_csv_text(rows: Sequence[ComparisonRow]) -> str:
    """Serialize comparison rows to CSV text.

    The header line is written as-is; every data value is quoted, with
    embedded quotes doubled. Lines are separated by ``\\n`` without a
    trailing newline.

    Args:
        rows: Comparison rows in report order.

    Returns:
        CSV text.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator='\n')
    for row in rows:
        writer.writerow(_row_values(row))

    lines = [','.join(CSV_COLUMNS)]
    body = buf.getvalue()
    if body:
        lines.append(body[:-1])
    return '\n'.join(lines)


def write_csv_report(rows: Sequence[ComparisonRow], output_path: Path) -> None:
    """Write comparison rows as a CSV report.

    Uses UTF-8 with BOM (utf-8-sig) so spreadsheet applications pick up
    the encoding.

    Args:
        rows: Comparison rows in report order.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(to_csv_text(rows), encoding='utf-8-sig')
    log.info("CSV report written: %s (%d rows)", output_path, len(rows))


def compute_stats(rows: Sequence[ComparisonRow]) -> dict:
    """Compute summary statistics from comparison rows.

    People are counted once even when they appear in several squads; two
    players who share a name but not a date of birth are counted apart.
    """
    people: dict[tuple[str, Optional[str]], ComparisonRow] = {}
    for row in rows:
        people.setdefault((row.name, row.dob), row)

    stats = {
        'rows': len(rows),
        'people': len(people),
        'squads': len({r.squad for r in rows if r.squad}),
        'paid': sum(1 for r in people.values() if r.paid),
        'active': sum(1 for r in people.values() if r.membership_active),
        'paid_and_active': sum(
            1 for r in people.values() if r.paid and r.membership_active
        ),
        'suggestions': sum(1 for r in people.values() if r.suggested_match),
    }
    for method in MATCH_METHODS:
        stats[method.lower()] = sum(1 for r in people.values() if r.match_method == method)
    return stats


def write_html_report(
    rows: Sequence[ComparisonRow],
    output_path: Path,
    title: str = '',
) -> None:
    """Write comparison rows as an HTML report using Jinja2.

    Args:
        rows: Comparison rows in report order.
        output_path: Path for the output HTML file.
        title: Report title, e.g. the season or roster file name.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    html = template.render(
        title=title,
        columns=CSV_COLUMNS,
        rows=[(r, _row_values(r)) for r in rows],
        stats=compute_stats(rows),
        unmatched=MATCH_UNMATCHED,
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML report written: %s", output_path)


def print_summary(rows: Sequence[ComparisonRow], title: str = '') -> None:
    """Print a summary of comparison rows to stdout.

    Args:
        rows: Comparison rows.
        title: Report title.
    """
    stats = compute_stats(rows)

    print(f"\n=== Membership report: {title} ===")
    print(f"Players:                   {stats['people']:>5}")
    print(f"Report rows:               {stats['rows']:>5}")
    print(f"Squads:                    {stats['squads']:>5}")
    print(f"Paid:                      {stats['paid']:>5}")
    print(f"Membership active:         {stats['active']:>5}")
    print(f"Paid and active:           {stats['paid_and_active']:>5}")
    print("---")
    print(f"Matched by MID:            {stats['mid']:>5}")
    print(f"Matched by name + dob:     {stats['name_dob']:>5}")
    print(f"Matched by name only:      {stats['name_only']:>5}")
    print(f"Unmatched:                 {stats['unmatched']:>5}")
    print(f"  - with suggestion:       {stats['suggestions']:>5}")
    print()
