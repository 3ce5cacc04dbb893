"""
directory/service.py -- Employee lifecycle: register, login, create, update, delete.

This is where RBAC meets the domain. Every mutating operation follows the same
shape:

  1. resolve the target (NotFound)
  2. evaluate RBAC against the caller's role (Forbidden)
  3. construct or mutate ONE Employee aggregate (domain errors raise here)
  4. flush it through EmployeeStore in a single transaction

Domain errors are raised at the point of violation and propagate untouched to
the API boundary. Nothing here retries or downgrades a failure.

Inputs are plain dataclasses (NewEmployee, EmployeeChanges) rather than
Pydantic models, so the service has no dependency on the HTTP layer and can be
driven from the CLI or tests directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from auth.models import AuthResult, Caller
from auth.tokens import MAX_PASSWORD_BYTES, authenticate, hash_password, issue_token, password_fits
from core.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationError
from core.models import Employee, Phone, PhoneType, Role
from core.rbac import can_create, can_edit
from directory.store import EmployeeStore

logger = logging.getLogger("staffdir.directory")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass
class PhoneEntry:
    number: str
    type: PhoneType


@dataclass
class NewEmployee:
    """Everything needed to create an employee. password is plaintext here only."""

    first_name: str
    last_name: str
    email: str
    doc_number: str
    birth_date: date
    role: Role
    password: str = field(repr=False)
    manager_id: Optional[UUID] = None
    phones: list[PhoneEntry] = field(default_factory=list)


@dataclass
class EmployeeChanges:
    """Full replacement of the editable fields (PUT semantics).

    manager_id=None clears the manager. new_role=None leaves the role alone.
    phones replaces the whole phone set.
    """

    first_name: str
    last_name: str
    birth_date: date
    phones: list[PhoneEntry]
    manager_id: Optional[UUID] = None
    new_role: Optional[Role] = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class EmployeeService:
    """Orchestrates the employee lifecycle over an EmployeeStore.

    Holds no mutable state of its own; one instance is shared by every
    request. The store is the only shared resource.
    """

    def __init__(self, store: EmployeeStore, self_registration_enabled: bool = True) -> None:
        self.store = store
        self.self_registration_enabled = self_registration_enabled

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, employee_id: UUID) -> Employee:
        employee = self.store.get_by_id(employee_id)
        if employee is None:
            raise NotFound("Employee not found.")
        return employee

    def list_all(self) -> list[Employee]:
        return self.store.get_all()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def register(self, payload: NewEmployee) -> AuthResult:
        """Public self-registration. No caller, so no RBAC gate."""
        if not self.self_registration_enabled:
            raise Forbidden("Self-registration is disabled.")
        employee = self._create(payload, caller=None)
        return AuthResult(token=issue_token(employee), employee=employee)

    def create(self, payload: NewEmployee, caller: Caller) -> Employee:
        """Authenticated create: the caller may only assign roles at or below their own."""
        return self._create(payload, caller=caller)

    def _create(self, payload: NewEmployee, caller: Optional[Caller]) -> Employee:
        if caller is not None and not can_create(caller.role, payload.role):
            logger.warning(
                "Denied create: caller %s (%s) tried to assign role %s",
                caller.subject_id,
                caller.role.value,
                payload.role.value,
            )
            raise Forbidden("You are not allowed to create an employee with this role.")

        if self.store.exists_by_email(payload.email.strip()):
            raise Conflict("An employee with this email already exists.")
        if self.store.exists_by_doc_number(payload.doc_number.strip()):
            raise Conflict("An employee with this document number already exists.")
        if not payload.phones:
            raise ValidationError("At least one phone is required.")
        if not payload.password or not payload.password.strip():
            raise ValidationError("password is required.")
        if not password_fits(payload.password):
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes.")

        employee = Employee(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            doc_number=payload.doc_number,
            birth_date=payload.birth_date,
            role=payload.role,
            password_hash=hash_password(payload.password),
            manager_id=payload.manager_id,
        )
        for entry in payload.phones:
            employee.add_phone(Phone(number=entry.number, type=entry.type))
        employee.ensure_at_least_one_phone()

        if employee.manager_id is not None:
            self._require_manager(employee.manager_id)

        try:
            self.store.add(employee)
        except IntegrityError as exc:
            # A concurrent request won the race past the exists_by_* checks.
            raise Conflict("An employee with this email or document number already exists.") from exc

        logger.info("Created employee %s with role %s", employee.id, employee.role.value)
        return employee

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, doc_number: str, password: str) -> AuthResult:
        """Exchange credentials for a token.

        Unknown document number and wrong password raise the same error with
        the same message; authenticate() also equalizes their timing.
        """
        employee = authenticate(self.store, doc_number, password)
        if employee is None:
            raise Unauthenticated("Invalid document number or password.")
        return AuthResult(token=issue_token(employee), employee=employee)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, employee_id: UUID, changes: EmployeeChanges, caller: Caller) -> Employee:
        """Apply an edit as `caller`.

        Seniority gate: the caller must rank at or above the employee's
        CURRENT role, unless the token subject is the employee themself.

        A requested role the caller could not create is skipped, not refused:
        the rest of the edit still goes through.
        """
        employee = self.get(employee_id)

        if not (caller.owns(employee) or can_edit(caller.role, employee.role)):
            logger.warning(
                "Denied update: caller %s (%s) on employee %s (%s)",
                caller.subject_id,
                caller.role.value,
                employee.id,
                employee.role.value,
            )
            raise Forbidden("You are not allowed to edit this employee.")

        employee.change_manager(changes.manager_id)
        if changes.manager_id is not None:
            self._require_manager(changes.manager_id)

        if changes.new_role is not None and changes.new_role != employee.role:
            if can_create(caller.role, changes.new_role):
                employee.change_role(changes.new_role)
            else:
                logger.warning(
                    "Ignored role change on employee %s: caller %s (%s) cannot assign %s",
                    employee.id,
                    caller.subject_id,
                    caller.role.value,
                    changes.new_role.value,
                )

        employee.change_birth_date(changes.birth_date)
        employee.change_names(changes.first_name, changes.last_name)

        employee.reset_phones()
        for entry in changes.phones:
            employee.add_phone(Phone(number=entry.number, type=entry.type))
        employee.ensure_at_least_one_phone()

        try:
            self.store.update(employee)
        except IntegrityError as exc:
            # The new manager was deleted after _require_manager looked.
            raise ValidationError("manager_id does not reference an existing employee.") from exc
        logger.info("Updated employee %s", employee.id)
        return employee

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, employee_id: UUID, caller: Caller) -> None:
        employee = self.get(employee_id)
        if not can_edit(caller.role, employee.role):
            logger.warning(
                "Denied delete: caller %s (%s) on employee %s (%s)",
                caller.subject_id,
                caller.role.value,
                employee.id,
                employee.role.value,
            )
            raise Forbidden("You are not allowed to delete this employee.")
        if not self.store.delete(employee):
            raise NotFound("Employee not found.")
        logger.info("Deleted employee %s", employee.id)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def bootstrap_director(
        self,
        password: str,
        email: str = "director@company.com",
        doc_number: str = "00000000000",
    ) -> Employee | None:
        """Seed a System Director when the directory has none.

        Returns the new Director, or None if one already exists. Idempotent,
        so it is safe to call on every startup.
        """
        if self.store.has_role(Role.DIRECTOR):
            return None
        today = datetime.now(timezone.utc).date()
        director = self._create(
            NewEmployee(
                first_name="System",
                last_name="Director",
                email=email,
                doc_number=doc_number,
                birth_date=today.replace(year=today.year - 30, day=1),
                role=Role.DIRECTOR,
                password=password,
                phones=[PhoneEntry(number="999999999", type=PhoneType.MOBILE)],
            ),
            caller=None,
        )
        logger.info("Bootstrapped System Director %s", director.id)
        return director

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_manager(self, manager_id: UUID) -> None:
        if not self.store.exists_by_id(manager_id):
            raise ValidationError("manager_id does not reference an existing employee.")
