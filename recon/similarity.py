"""Near-miss suggestions for roster members with no registry match."""

import unicodedata
from typing import Iterable, Optional

from rapidfuzz.distance import JaroWinkler

from recon import RegistryRecord, RosterMember


def normalize_for_tolerant_comparison(text: str) -> str:
    """Normalize text for tolerant name comparison.

    Removes accents/diacritics via NFD decomposition, strips spaces,
    hyphens, apostrophes, dots, commas and semicolons, then uppercases.

    Args:
        text: Raw name string.

    Returns:
        Normalized string for comparison.
    """
    decomposed = unicodedata.normalize('NFD', text or '')
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    for ch in (' ', '-', "'", '.', ',', ';'):
        stripped = stripped.replace(ch, '')
    return stripped.upper()


def name_similarity(first_a: str, last_a: str, first_b: str, last_b: str) -> float:
    """Jaro-Winkler similarity of two full names, weighting last names higher.

    Returns:
        Similarity between 0.0 and 1.0.
    """
    ln_sim = JaroWinkler.similarity(
        normalize_for_tolerant_comparison(last_a),
        normalize_for_tolerant_comparison(last_b),
    )
    fn_sim = JaroWinkler.similarity(
        normalize_for_tolerant_comparison(first_a),
        normalize_for_tolerant_comparison(first_b),
    )
    return round(0.6 * ln_sim + 0.4 * fn_sim, 4)


def describe_record(record: RegistryRecord) -> str:
    """Render a registry record as ``'First Last (MID 123)'``."""
    label = f"{record.first_name} {record.last_name}".strip()
    if record.registry_id:
        label = f"{label} (MID {record.registry_id})"
    return label


def suggest_registry_match(
    member: RosterMember,
    registry: Iterable[RegistryRecord],
    threshold: float,
) -> Optional[RegistryRecord]:
    """Find the registry record whose name most resembles the member's.

    Only advisory: callers use it to hint at typos for members that the
    exact key cascade could not place. Ties keep the earliest record.

    Args:
        member: The unmatched roster member.
        registry: All registry records.
        threshold: Minimum similarity (0–1) for a suggestion.

    Returns:
        Best RegistryRecord at or above the threshold, None otherwise.
    """
    best: Optional[RegistryRecord] = None
    best_score = -1.0
    for record in registry:
        score = name_similarity(
            member.first_name, member.last_name,
            record.first_name, record.last_name,
        )
        if score >= threshold and score > best_score:
            best = record
            best_score = score
    return best
