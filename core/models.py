"""
core/models.py -- Domain entities for the staff directory.

Employee is the aggregate root: it owns its Phones and enforces its own
invariants. Construction validates every field at once in __post_init__, so
an Employee that exists is always a valid one. Mutation goes through named
methods that re-check only the invariant they can break.

The phone requirement is deliberately NOT checked at construction. Phones
arrive in a separate step of the calling workflow, and the caller asserts
completeness with ensure_at_least_one_phone() before persisting.

Uniqueness (email, doc_number) is not a property of a single entity and lives
in directory/service.py, which has repository access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from core.errors import AgeViolation, MissingPhoneViolation, SelfManagementViolation, ValidationError

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
_EMAIL_RE = re.compile(EMAIL_PATTERN)

MINIMUM_AGE = 18


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """Seniority ladder. Declaration order IS the ordering: lowest first."""

    EMPLOYEE = "Employee"
    LEADER = "Leader"
    DIRECTOR = "Director"

    @property
    def rank(self) -> int:
        return list(Role).index(self)


class PhoneType(str, Enum):
    MOBILE = "Mobile"
    HOME = "Home"
    WORK = "Work"


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def require_text(value: Optional[str], field_name: str) -> str:
    """Return value trimmed, or raise ValidationError if it is blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required.")
    return value.strip()


def require_email(value: Optional[str], field_name: str = "email") -> str:
    cleaned = require_text(value, field_name)
    if not _EMAIL_RE.match(cleaned):
        raise ValidationError(f"{field_name} is not a valid email.")
    return cleaned


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _years_before(day: date, years: int) -> date:
    # Feb 29 has no counterpart in a non-leap year; fall back to Feb 28.
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def ensure_adult(birth_date: date) -> None:
    """Raise AgeViolation unless birth_date is at least MINIMUM_AGE years ago (UTC)."""
    if birth_date > _years_before(_utc_today(), MINIMUM_AGE):
        raise AgeViolation(f"Employee must be at least {MINIMUM_AGE} years old.")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class Phone:
    """A phone number owned by exactly one Employee."""

    number: str
    type: PhoneType
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        self.number = require_text(self.number, "number")
        self.type = PhoneType(self.type)


@dataclass
class Employee:
    """Aggregate root of the directory.

    id and created_at are generated on construction. The store passes the
    persisted values back in when it rehydrates a row, which re-runs the same
    validation: a stored record was valid when written and age only grows.

    password_hash is opaque to the domain. It is never part of any projection
    returned to callers (see api/models.EmployeeResponse).
    """

    first_name: str
    last_name: str
    email: str
    doc_number: str
    birth_date: date
    role: Role
    password_hash: str = field(repr=False)
    manager_id: Optional[UUID] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    phones: list[Phone] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.first_name = require_text(self.first_name, "first_name")
        self.last_name = require_text(self.last_name, "last_name")
        self.email = require_email(self.email)
        self.doc_number = require_text(self.doc_number, "doc_number")
        self.password_hash = require_text(self.password_hash, "password_hash")
        self.role = Role(self.role)
        ensure_adult(self.birth_date)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def change_manager(self, manager_id: Optional[UUID]) -> None:
        """Replace the manager reference. Existence of the target is the caller's job."""
        if manager_id is not None and manager_id == self.id:
            raise SelfManagementViolation("Employee cannot be their own manager.")
        self.manager_id = manager_id

    def change_role(self, role: Role) -> None:
        # RBAC gating happens in directory/service.py, not here.
        self.role = Role(role)

    def change_birth_date(self, birth_date: date) -> None:
        ensure_adult(birth_date)
        self.birth_date = birth_date

    def change_names(self, first_name: str, last_name: str) -> None:
        first = require_text(first_name, "first_name")
        last = require_text(last_name, "last_name")
        self.first_name, self.last_name = first, last

    def add_phone(self, phone: Phone) -> None:
        self.phones.append(phone)

    def reset_phones(self) -> None:
        self.phones.clear()

    def ensure_at_least_one_phone(self) -> None:
        if not self.phones:
            raise MissingPhoneViolation("Employee must have at least one phone.")
