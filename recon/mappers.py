"""Mapping of generic spreadsheet rows onto roster, payment and registry records.

Every mapper takes an ordered sequence of mappings from header text to raw
cell value. Header variants are resolved through a case- and
whitespace-normalized lookup and an ordered list of synonyms per field.
Malformed cells degrade to the field default instead of aborting the batch.
"""

import logging
import math
import re
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Sequence

from recon import PaymentRecord, RegistryRecord, RosterMember
from recon.dates import to_iso_date
from recon.keys import name_dob_key

log = logging.getLogger(__name__)

Row = Mapping[str, Any]

_WHITESPACE_RE = re.compile(r'\s+')
_NON_DIGIT_RE = re.compile(r'\D')
_GROUP_SPLIT_RE = re.compile(r'[,;/\n\r]+')
_AMOUNT_STRIP_RE = re.compile(r'[£,]')
_AMOUNT_RE = re.compile(r'\s*([-+]?\d*\.?\d+)')

# Header synonyms per logical field, highest priority first
ROSTER_FIRST_NAME = ('member first name', 'first name', 'firstname')
ROSTER_LAST_NAME = ('member last name', 'last name', 'lastname', 'surname')
ROSTER_DOB = ('date of birth', 'dob', 'birth date')
ROSTER_MEMBER_TYPE = ('member type',)
ROSTER_GROUPS = ('groups', 'group')
ROSTER_SUB_GROUP = ('sub group', 'subgroup', 'sub groups')
ROSTER_REGISTRY_ID = (
    'basketball scot no',
    'basketball scotland no',
    'basketball scotland number',
    'bs number',
)

PAYMENT_FIRST_NAME = ('participant first name', 'first name', 'firstname', 'member first name')
PAYMENT_LAST_NAME = ('participant last name', 'last name', 'lastname', 'surname', 'member last name')
PAYMENT_DOB = ('date of birth', 'dob', 'birth date')
PAYMENT_AMOUNT = ('paid amount', 'amount', 'total paid', 'paid')

REGISTRY_ID = ('mid', 'membership id', 'membership number')
REGISTRY_FIRST_NAME = ('firstname', 'first name', 'member first name')
REGISTRY_LAST_NAME = ('surname', 'last name', 'lastname', 'member last name')
REGISTRY_DOB = ('dob', 'date of birth', 'birth date')
REGISTRY_STATUS = ('club member status', 'status', 'membership status')
REGISTRY_EXPIRY = ('expiry date', 'expires', 'expiry')

PLAYER_MEMBER_TYPE = 'player'
IGNITE_MARKER = 'ignite'


def normalize_header(header: Any) -> str:
    """Normalize header text for lookup: lowercase, single-spaced, trimmed."""
    return _WHITESPACE_RE.sub(' ', str(header if header is not None else '')).strip().lower()


def build_lookup(row: Row) -> dict[str, Any]:
    """Build a normalized header -> value lookup for one row.

    If two headers normalize to the same text, the first one wins.
    """
    lookup: dict[str, Any] = {}
    for header, value in row.items():
        lookup.setdefault(normalize_header(header), value)
    return lookup


def pick(lookup: Mapping[str, Any], synonyms: Iterable[str]) -> Any:
    """Return the value under the first synonym whose header is present.

    The header decides, not the value: a blank cell under a higher-priority
    header is returned as-is and degrades to the field default later.
    """
    for name in synonyms:
        if name in lookup:
            return lookup[name]
    return None


def cell_text(value: Any) -> str:
    """Render a raw cell as trimmed text.

    Whole floats (as spreadsheets store numeric IDs) lose their ``.0``.
    """
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).replace('\u00a0', ' ').strip()


def digits_only(value: Any) -> Optional[str]:
    """Strip every non-digit character; None if nothing is left."""
    digits = _NON_DIGIT_RE.sub('', cell_text(value))
    return digits or None


def split_tokens(value: Any, pattern: re.Pattern = _GROUP_SPLIT_RE) -> list[str]:
    """Split a delimited cell into trimmed, non-empty tokens."""
    return [t.strip() for t in pattern.split(cell_text(value)) if t.strip()]


def parse_amount(value: Any) -> float:
    """Parse a paid amount such as ``'£1,096.00'``.

    Text after the leading number is ignored (``'96 (card)'`` is 96).
    Returns 0.0 for anything unparseable, non-finite or negative.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        match = _AMOUNT_RE.match(_AMOUNT_STRIP_RE.sub('', str(value)))
        if match is None:
            return 0.0
        amount = float(match.group(1))
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def derive_squad(groups: Any, sub_group: Any) -> str:
    """Join group tokens into a squad label.

    Members of an Ignite group also carry their sub groups, deduplicated
    with group order preserved.
    """
    group_list = split_tokens(groups)
    if any(IGNITE_MARKER in g.lower() for g in group_list):
        group_list = list(dict.fromkeys(group_list + split_tokens(sub_group)))
    return ', '.join(group_list)


def map_roster(rows: Sequence[Row]) -> list[RosterMember]:
    """Map roster export rows to players.

    Rows carrying a member type other than "player" (coaches, parents,
    volunteers) are dropped.

    Args:
        rows: Generic rows keyed by header text.

    Returns:
        List of RosterMember, in input order.
    """
    members: list[RosterMember] = []
    for row_num, row in enumerate(rows, start=1):
        lookup = build_lookup(row)

        member_type = cell_text(pick(lookup, ROSTER_MEMBER_TYPE)).lower()
        if member_type and member_type != PLAYER_MEMBER_TYPE:
            log.debug("Roster row %d skipped: member type %r", row_num, member_type)
            continue

        groups = cell_text(pick(lookup, ROSTER_GROUPS))
        sub_group = cell_text(pick(lookup, ROSTER_SUB_GROUP))
        members.append(RosterMember(
            first_name=cell_text(pick(lookup, ROSTER_FIRST_NAME)),
            last_name=cell_text(pick(lookup, ROSTER_LAST_NAME)),
            dob=to_iso_date(pick(lookup, ROSTER_DOB)),
            groups=groups,
            sub_group=sub_group,
            squad=derive_squad(groups, sub_group),
            registry_id=digits_only(pick(lookup, ROSTER_REGISTRY_ID)),
        ))

    log.info("%d roster players mapped from %d rows", len(members), len(rows))
    return members


def merge_payments(payments: Iterable[PaymentRecord]) -> list[PaymentRecord]:
    """Sum payments that share a name + dob key.

    The first record seen for a key keeps its name and dob; later amounts
    are added onto it.
    """
    merged: dict[str, PaymentRecord] = {}
    for payment in payments:
        key = name_dob_key(payment.first_name, payment.last_name, payment.dob)
        existing = merged.get(key)
        if existing is None:
            merged[key] = payment
        else:
            merged[key] = replace(
                existing, paid_amount=existing.paid_amount + payment.paid_amount,
            )
    return list(merged.values())


def map_payments(rows: Sequence[Row]) -> list[PaymentRecord]:
    """Map payment export rows and merge duplicates per person."""
    payments = []
    for row in rows:
        lookup = build_lookup(row)
        payments.append(PaymentRecord(
            first_name=cell_text(pick(lookup, PAYMENT_FIRST_NAME)),
            last_name=cell_text(pick(lookup, PAYMENT_LAST_NAME)),
            dob=to_iso_date(pick(lookup, PAYMENT_DOB)),
            paid_amount=parse_amount(pick(lookup, PAYMENT_AMOUNT)),
        ))

    merged = merge_payments(payments)
    log.info("%d payment rows merged into %d records", len(payments), len(merged))
    return merged


def map_registry(rows: Sequence[Row]) -> list[RegistryRecord]:
    """Map national registry export rows to membership records."""
    records = []
    for row in rows:
        lookup = build_lookup(row)
        records.append(RegistryRecord(
            registry_id=digits_only(pick(lookup, REGISTRY_ID)),
            first_name=cell_text(pick(lookup, REGISTRY_FIRST_NAME)),
            last_name=cell_text(pick(lookup, REGISTRY_LAST_NAME)),
            dob=to_iso_date(pick(lookup, REGISTRY_DOB)),
            status=cell_text(pick(lookup, REGISTRY_STATUS)),
            expiry_date=to_iso_date(pick(lookup, REGISTRY_EXPIRY)),
        ))

    log.info("%d registry records mapped", len(records))
    return records
