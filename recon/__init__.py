"""Core module for squad-dues-matcher."""

from dataclasses import dataclass
from typing import Optional

MATCH_MID = 'MID'
MATCH_NAME_DOB = 'NAME_DOB'
MATCH_NAME_ONLY = 'NAME_ONLY'
MATCH_UNMATCHED = 'UNMATCHED'

# Priority order, strongest first
MATCH_METHODS = (MATCH_MID, MATCH_NAME_DOB, MATCH_NAME_ONLY, MATCH_UNMATCHED)


@dataclass(frozen=True)
class RosterMember:
    """A player from the club roster export."""

    first_name: str
    last_name: str
    dob: Optional[str] = None         # ISO date
    groups: str = ''
    sub_group: str = ''
    squad: str = ''                   # Derived, comma-joined group list
    registry_id: Optional[str] = None  # Digits only


@dataclass(frozen=True)
class PaymentRecord:
    """Total paid by one person, merged by name and date of birth."""

    first_name: str
    last_name: str
    dob: Optional[str] = None
    paid_amount: float = 0.0


@dataclass(frozen=True)
class RegistryRecord:
    """A membership entry from the national registry export."""

    registry_id: Optional[str]
    first_name: str
    last_name: str
    dob: Optional[str] = None
    status: str = ''
    expiry_date: Optional[str] = None


@dataclass(frozen=True)
class ComparisonRow:
    """One output line: a roster member within a single squad."""

    name: str
    squad: str
    paid: bool
    paid_amount: float
    membership_active: bool
    membership_status: Optional[str]
    membership_expiry: Optional[str]
    match_method: str     # MID, NAME_DOB, NAME_ONLY, UNMATCHED
    suggested_match: Optional[str] = None
    dob: Optional[str] = None     # roster member's ISO date of birth
