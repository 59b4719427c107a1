"""Tabular source reader for CSV and XLSX exports.

Produces generic rows (header text -> raw cell value) for the record
mappers. The header row is located heuristically because the exports carry
title lines above the real header.
"""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Any, Sequence

from openpyxl import load_workbook

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+00A0)
_WHITESPACE_RE = re.compile(r'\s+')

CSV_SUFFIXES = {'.csv', '.txt'}
XLSX_SUFFIXES = {'.xlsx', '.xlsm'}
CSV_DELIMITERS = (',', ';', '\t')
SNIFF_LINES = 10

# Title cell above the header, e.g. "Player Membership 2024/25"
_TITLE_RE = re.compile(r'player membership|20\d{2}/\d{2}', re.I)
_HEADER_RE = re.compile(
    r'participant.*first.*name|member.*first.*name|firstname|mid|membership',
    re.I,
)
HEADER_SCAN_ROWS = 3


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs into a single space and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def detect_delimiter(content: str) -> str:
    """Sniff the delimiter from the first delimited lines of a CSV text.

    Lines without any candidate delimiter (a title above the header) are
    left out of the sample. Falls back to the comma.
    """
    delimiters = ''.join(CSV_DELIMITERS)
    lines = [line for line in content.splitlines() if any(d in line for d in delimiters)]
    sample = '\n'.join(lines[:SNIFF_LINES])
    if not sample:
        return ','
    try:
        return csv.Sniffer().sniff(sample, delimiters=delimiters).delimiter
    except csv.Error:
        return ','


def _cell_str(value: Any) -> str:
    return '' if value is None else str(value)


def find_header_row(grid: Sequence[Sequence[Any]]) -> int:
    """Locate the header row of a cell grid.

    A single leading title cell is skipped. The next few rows are scanned
    for header-like text; the first row that looks like a header wins.

    Args:
        grid: Rows of raw cell values.

    Returns:
        Index of the header row.
    """
    if not grid:
        return 0

    start = 0
    first = [c for c in grid[0] if _cell_str(c).strip()]
    if len(first) == 1 and _TITLE_RE.search(_cell_str(first[0])):
        start = 1

    for i in range(start, min(start + HEADER_SCAN_ROWS, len(grid))):
        joined = '|'.join(_cell_str(c) for c in grid[i]).lower()
        if _HEADER_RE.search(joined):
            return i
    return start


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def grid_to_rows(grid: Sequence[Sequence[Any]]) -> list[dict[str, Any]]:
    """Turn a cell grid into rows keyed by trimmed header text.

    Columns without a header are ignored and fully blank rows dropped.
    """
    if not grid:
        return []

    header_idx = find_header_row(grid)
    headers = [normalize_whitespace(_cell_str(h)) for h in grid[header_idx]]
    log.debug("Header row %d: %s", header_idx, headers)

    rows: list[dict[str, Any]] = []
    for raw in grid[header_idx + 1:]:
        row = {h: raw[i] if i < len(raw) else None for i, h in enumerate(headers) if h}
        if any(not _is_blank(v) for v in row.values()):
            rows.append(row)
    return rows


def _read_csv_grid(path: Path) -> list[list[str]]:
    encoding = detect_encoding(path)
    with open(path, 'r', encoding=encoding, newline='') as f:
        content = f.read()

    # Strip BOM if present
    content = content.lstrip('\ufeff')

    delimiter = detect_delimiter(content)
    return list(csv.reader(io.StringIO(content), delimiter=delimiter))


def _read_xlsx_grid(path: Path) -> list[list[Any]]:
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        return [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """Read an export file into generic rows.

    CSV files are decoded as UTF-16LE (with BOM) or UTF-8 and their
    delimiter is detected. XLSX files are read from the first worksheet with
    cached formula values.

    Args:
        path: Path to a .csv/.txt or .xlsx/.xlsm file.

    Returns:
        List of rows keyed by header text.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file type is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")

    suffix = path.suffix.lower()
    if suffix in CSV_SUFFIXES:
        grid = _read_csv_grid(path)
    elif suffix in XLSX_SUFFIXES:
        grid = _read_xlsx_grid(path)
    else:
        raise ValueError(f"Unsupported file type for {path}: {suffix or 'none'}")

    rows = grid_to_rows(grid)
    log.info("%d rows read from %s", len(rows), path)
    return rows
