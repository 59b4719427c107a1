"""Reconciliation of roster members against payments and the membership registry."""

import datetime
import logging
import re
from collections import Counter, defaultdict
from typing import Optional, Sequence

from recon import (
    MATCH_METHODS,
    MATCH_MID,
    MATCH_NAME_DOB,
    MATCH_NAME_ONLY,
    MATCH_UNMATCHED,
    ComparisonRow,
    PaymentRecord,
    RegistryRecord,
    RosterMember,
)
from recon.dates import to_iso_date
from recon.keys import name_dob_key, name_key
from recon.mappers import digits_only, split_tokens
from recon.similarity import describe_record, suggest_registry_match

log = logging.getLogger(__name__)

DEFAULT_MIN_PAID = 100.0
ACTIVE_STATUS = 'active'

_SQUAD_SPLIT_RE = re.compile(r'[,;/]+')


def split_squads(value: str) -> list[str]:
    """Split a squad cell on ``,``, ``;`` or ``/`` into trimmed names."""
    return split_tokens(value, _SQUAD_SPLIT_RE)


def is_membership_active(record: Optional[RegistryRecord], today_iso: str) -> bool:
    """Check whether a registry record counts as an active membership.

    The status must read "active" (any case) and the expiry date, if set,
    must not lie before the evaluation date. ISO strings compare in date
    order.
    """
    if record is None:
        return False
    if record.status.strip().lower() != ACTIVE_STATUS:
        return False
    return not record.expiry_date or record.expiry_date >= today_iso


def _build_registry_indexes(
    registry: Sequence[RegistryRecord],
) -> tuple[
    dict[str, RegistryRecord],
    dict[str, list[RegistryRecord]],
    dict[str, list[RegistryRecord]],
]:
    """Index registry records by MID, name + dob and name.

    A repeated MID keeps the last record; name indexes keep every candidate
    in input order.
    """
    by_id: dict[str, RegistryRecord] = {}
    by_name_dob: dict[str, list[RegistryRecord]] = defaultdict(list)
    by_name: dict[str, list[RegistryRecord]] = defaultdict(list)
    for record in registry:
        if record.registry_id:
            by_id[record.registry_id] = record
        by_name_dob[name_dob_key(record.first_name, record.last_name, record.dob)].append(record)
        by_name[name_key(record.first_name, record.last_name)].append(record)
    return by_id, dict(by_name_dob), dict(by_name)


def _build_payment_indexes(
    payments: Sequence[PaymentRecord],
) -> tuple[dict[str, float], dict[str, float]]:
    """Index the largest paid amount per name + dob key and per name key."""
    by_name_dob: dict[str, float] = {}
    by_name: dict[str, float] = {}
    for payment in payments:
        amount = payment.paid_amount or 0.0
        k_nd = name_dob_key(payment.first_name, payment.last_name, payment.dob)
        by_name_dob[k_nd] = max(amount, by_name_dob.get(k_nd, 0.0))
        k_n = name_key(payment.first_name, payment.last_name)
        by_name[k_n] = max(amount, by_name.get(k_n, 0.0))
    return by_name_dob, by_name


def _resolve_today(today: datetime.date | str | None) -> str:
    if today is None:
        return datetime.date.today().isoformat()
    today_iso = to_iso_date(today)
    if today_iso is None:
        log.warning("Evaluation date %r not understood, using the current date", today)
        return datetime.date.today().isoformat()
    return today_iso


def build_comparison(
    members: Sequence[RosterMember],
    payments: Sequence[PaymentRecord],
    registry: Sequence[RegistryRecord],
    min_paid: float = DEFAULT_MIN_PAID,
    today: datetime.date | str | None = None,
    suggest_threshold: Optional[float] = None,
) -> list[ComparisonRow]:
    """Reconcile roster members against payments and registry memberships.

    Registry matching uses a priority cascade:
    1. Membership ID (MID) lookup
    2. Name + date of birth (only when the member has a dob)
    3. Name only, taking the first registry entry for the name
    4. Unmatched

    Payments are looked up independently by name + dob and by name, keeping
    the larger amount. A member counts as paid only above ``min_paid``.

    Args:
        members: Players from the roster export.
        payments: Merged payment records.
        registry: Membership records from the registry export.
        min_paid: Amount that must be exceeded to count as paid.
        today: Evaluation date for membership expiry; defaults to today.
        suggest_threshold: If set, unmatched members get the closest
            registry name at or above this similarity as a suggestion.

    Returns:
        One ComparisonRow per member per squad, sorted by squad then name.
    """
    today_iso = _resolve_today(today)

    by_id, reg_by_name_dob, reg_by_name = _build_registry_indexes(registry)
    paid_by_name_dob, paid_by_name = _build_payment_indexes(payments)

    rows: list[ComparisonRow] = []
    methods: Counter = Counter()

    for member in members:
        display_name = f"{member.first_name} {member.last_name}".strip()
        k_nd = name_dob_key(member.first_name, member.last_name, member.dob)
        k_n = name_key(member.first_name, member.last_name)

        paid_amount = paid_by_name_dob.get(k_nd, 0.0)
        if k_n in paid_by_name:
            paid_amount = max(paid_amount, paid_by_name[k_n])
        paid = paid_amount > min_paid

        membership: Optional[RegistryRecord] = None
        match_method = MATCH_UNMATCHED

        mid = digits_only(member.registry_id)
        if mid and mid in by_id:
            membership = by_id[mid]
            match_method = MATCH_MID
        elif member.dob and reg_by_name_dob.get(k_nd):
            membership = reg_by_name_dob[k_nd][0]
            match_method = MATCH_NAME_DOB
        elif reg_by_name.get(k_n):
            membership = reg_by_name[k_n][0]
            match_method = MATCH_NAME_ONLY

        suggestion = None
        if membership is None and suggest_threshold is not None:
            candidate = suggest_registry_match(member, registry, suggest_threshold)
            if candidate is not None:
                suggestion = describe_record(candidate)

        membership_active = is_membership_active(membership, today_iso)
        methods[match_method] += 1

        squads = split_squads(member.sub_group or member.groups) or ['']
        for squad in squads:
            rows.append(ComparisonRow(
                name=display_name,
                squad=squad,
                paid=paid,
                paid_amount=paid_amount,
                membership_active=membership_active,
                membership_status=membership.status if membership else None,
                membership_expiry=membership.expiry_date if membership else None,
                match_method=match_method,
                suggested_match=suggestion,
                dob=member.dob,
            ))

    # sorted() is stable, so equal (squad, name) pairs keep roster order
    rows = sorted(rows, key=lambda r: (r.squad, r.name))

    log.info(
        "Matching finished: %d members, %d rows (%s)",
        len(members), len(rows),
        ', '.join(f"{m}={methods[m]}" for m in MATCH_METHODS),
    )
    return rows
