"""Tests for recon.reporter module."""

from recon import ComparisonRow
from recon.reporter import (
    CSV_COLUMNS,
    compute_stats,
    format_amount,
    print_summary,
    to_csv_text,
    write_csv_report,
    write_html_report,
)

HEADER = 'Name,Squad,Paid (Amount),Membership Active,Membership Status,Membership Expiry,Match Method'


def _row(**kwargs) -> ComparisonRow:
    """Create a ComparisonRow with defaults."""
    defaults = dict(
        name='Jane Doe', squad='U12', paid=True, paid_amount=120.0,
        membership_active=True, membership_status='Active',
        membership_expiry='2025-08-31', match_method='NAME_DOB',
    )
    defaults.update(kwargs)
    return ComparisonRow(**defaults)


class TestFormatAmount:
    """Tests for amount rendering."""

    def test_whole_number(self):
        assert format_amount(120.0) == '120'

    def test_fraction(self):
        assert format_amount(96.5) == '96.5'

    def test_zero(self):
        assert format_amount(0.0) == '0'


class TestToCsvText:
    """Tests for CSV serialization."""

    def test_header(self):
        assert ','.join(CSV_COLUMNS) == HEADER

    def test_empty_rows_only_header(self):
        assert to_csv_text([]) == HEADER

    def test_row_fully_quoted(self):
        text = to_csv_text([_row()])
        assert text == (
            HEADER + '\n'
            '"Jane Doe","U12","YES (120)","YES","Active","2025-08-31","NAME_DOB"'
        )

    def test_unpaid_unmatched_row(self):
        row = _row(
            paid=False, paid_amount=40.5, membership_active=False,
            membership_status=None, membership_expiry=None, match_method='UNMATCHED',
            squad='',
        )
        assert to_csv_text([row]).splitlines()[1] == (
            '"Jane Doe","","NO (40.5)","NO","","","UNMATCHED"'
        )

    def test_quotes_doubled(self):
        text = to_csv_text([_row(name='Sean O"Brien')])
        assert '"Sean O""Brien"' in text

    def test_commas_stay_inside_field(self):
        text = to_csv_text([_row(squad='Ignite, U12')])
        assert '"Ignite, U12"' in text

    def test_no_trailing_newline(self):
        text = to_csv_text([_row(), _row(name='Tom Doe')])
        assert not text.endswith('\n')
        assert len(text.split('\n')) == 3

    def test_suggestion_not_exported(self):
        text = to_csv_text([_row(suggested_match='Jane Dough (MID 1)')])
        assert 'Dough' not in text


class TestWriteReports:
    """Tests for report files."""

    def test_csv_report_utf8_bom(self, tmp_path):
        out = tmp_path / 'nested' / 'report.csv'
        write_csv_report([_row(name='Zoë Doe')], out)
        raw = out.read_bytes()
        assert raw.startswith(b'\xef\xbb\xbf')
        assert out.read_text(encoding='utf-8-sig') == to_csv_text([_row(name='Zoë Doe')])

    def test_html_report(self, tmp_path):
        out = tmp_path / 'report.html'
        rows = [
            _row(name='Sean <O"Brien>'),
            _row(name='Jan Doe', match_method='UNMATCHED', suggested_match='Jane Doe (MID 1001)'),
        ]
        write_html_report(rows, out, 'Season 2024')
        html = out.read_text(encoding='utf-8')
        assert 'Season 2024' in html
        assert '&lt;O&#34;Brien&gt;' in html
        assert 'Did you mean Jane Doe (MID 1001)?' in html
        assert 'class="unmatched"' in html


class TestStats:
    """Tests for summary statistics."""

    def test_people_counted_once(self):
        rows = [
            _row(squad='U12'),
            _row(squad='U14'),
            _row(name='Tom Doe', paid=False, membership_active=False, match_method='UNMATCHED'),
        ]
        stats = compute_stats(rows)
        assert stats['rows'] == 3
        assert stats['people'] == 2
        assert stats['squads'] == 2
        assert stats['paid'] == 1
        assert stats['active'] == 1
        assert stats['name_dob'] == 1
        assert stats['unmatched'] == 1

    def test_namesakes_with_different_dob_counted_apart(self):
        rows = [
            _row(squad='U12', dob='2010-01-01'),
            _row(squad='U14', dob='2010-01-01'),
            _row(squad='U16', dob='2008-05-05', paid=False),
        ]
        stats = compute_stats(rows)
        assert stats['people'] == 2
        assert stats['paid'] == 1
        assert stats['name_dob'] == 2

    def test_empty(self):
        stats = compute_stats([])
        assert stats['rows'] == 0
        assert stats['mid'] == 0

    def test_print_summary(self, capsys):
        print_summary([_row()], 'roster')
        out = capsys.readouterr().out
        assert 'Membership report: roster' in out
        line = next(l for l in out.splitlines() if l.startswith('Matched by name + dob:'))
        assert line.split()[-1] == '1'
