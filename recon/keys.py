"""Comparison keys used to line up people across the three exports."""

import re

_WHITESPACE_RE = re.compile(r'\s+')

KEY_SEPARATOR = '|'


def normalize_name(value: str | None) -> str:
    """Lowercase a name and collapse whitespace runs into single spaces."""
    return _WHITESPACE_RE.sub(' ', (value or '').lower()).strip()


def name_key(first: str | None, last: str | None) -> str:
    """Build the name-only key, e.g. ``'jane|doe'``."""
    return f"{normalize_name(first)}{KEY_SEPARATOR}{normalize_name(last)}"


def name_dob_key(first: str | None, last: str | None, dob: str | None) -> str:
    """Build the name + date of birth key, e.g. ``'jane|doe|2010-01-01'``.

    A missing date of birth yields an empty trailing component, so two
    records without a dob still share a key.
    """
    return f"{name_key(first, last)}{KEY_SEPARATOR}{dob or ''}"
