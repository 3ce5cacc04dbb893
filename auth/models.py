"""
auth/models.py -- Identity dataclasses.

Pattern: Data class (pure data container, zero logic). The Employee aggregate
in core/models.py is the account record; Caller is what a verified token says
about whoever is making the current request.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from core.models import Employee, Role


@dataclass(frozen=True)
class Caller:
    """The acting principal, recovered from a verified bearer token.

    subject_id is the token's `sub` claim. It is the ONLY source of truth for
    "is the caller editing their own record" -- request bodies never are.
    """

    subject_id: UUID
    email: str
    role: Role

    def owns(self, employee: Employee) -> bool:
        return self.subject_id == employee.id


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login or registration."""

    token: str
    employee: Employee
