"""
core/rbac.py -- Role-based access policy for the staff directory.

A flat seniority ladder instead of a permission matrix: the same comparison
answers "may I create someone at this level" and "may I touch someone at this
level". A caller acts freely at or below their own rank and never above it.

can_edit is applied to the target's EXISTING role. When an edit also asks for
a new role, the service checks can_create against the new role as well, so
promoting someone above the caller's own rank is impossible in one step.
"""

from __future__ import annotations

from typing import Optional

from core.models import Role


def can_create(current: Role, target: Role) -> bool:
    """True iff current is senior to or level with the role being assigned."""
    return current.rank >= target.rank


def can_edit(current: Role, target: Role) -> bool:
    """True iff current is senior to or level with the employee's current role."""
    return current.rank >= target.rank


def parse_role(value: Optional[str]) -> Role:
    """Parse a role claim by name, case-insensitively.

    Absent or unrecognised values fall back to the lowest-privilege role so a
    malformed claim can never grant more than the minimum.
    """
    if not value:
        return Role.EMPLOYEE
    wanted = str(value).strip().lower()
    for role in Role:
        if role.value.lower() == wanted or role.name.lower() == wanted:
            return role
    return Role.EMPLOYEE
