"""
API request and response models for the staff directory REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in core/models.py, which own the
domain representation. Request models convert themselves into service
commands; response models build themselves from domain entities.

Separation of concerns: core/ models = domain truth; api/ models = API contract.

Request models only check shape (types, lengths). Domain rules -- blank names,
email format, age, phone count -- are left to the domain so they surface as
400 responses with a domain error code instead of a generic 422.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.tokens import MAX_PASSWORD_BYTES, password_fits
from core.models import Employee, PhoneType, Role
from directory.service import EmployeeChanges, NewEmployee, PhoneEntry


def _password_within_bcrypt_limit(value: str) -> str:
    # Measured in UTF-8 bytes: 40 accented letters already overflow.
    if not password_fits(value):
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PhoneIn(BaseModel):
    number: str = Field(max_length=20)
    type: PhoneType = PhoneType.MOBILE

    def to_entry(self) -> PhoneEntry:
        return PhoneEntry(number=self.number, type=self.type)


class EmployeeCreate(BaseModel):
    """Request body for POST /api/v1/auth/register and POST /api/v1/employees."""

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    doc_number: str = Field(max_length=20)
    birth_date: date
    role: Role = Role.EMPLOYEE
    password: str = Field(min_length=1)
    manager_id: Optional[UUID] = None
    phones: list[PhoneIn] = Field(default_factory=list, max_length=10)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        return _password_within_bcrypt_limit(value)

    def to_command(self) -> NewEmployee:
        return NewEmployee(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            doc_number=self.doc_number,
            birth_date=self.birth_date,
            role=self.role,
            password=self.password,
            manager_id=self.manager_id,
            phones=[p.to_entry() for p in self.phones],
        )


class EmployeeUpdate(BaseModel):
    """Request body for PUT /api/v1/employees/{id}.

    Full replacement of the editable fields. manager_id omitted or null clears
    the manager; new_role omitted or null keeps the current role.
    """

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    birth_date: date
    phones: list[PhoneIn] = Field(max_length=10)
    manager_id: Optional[UUID] = None
    new_role: Optional[Role] = None

    def to_command(self) -> EmployeeChanges:
        return EmployeeChanges(
            first_name=self.first_name,
            last_name=self.last_name,
            birth_date=self.birth_date,
            phones=[p.to_entry() for p in self.phones],
            manager_id=self.manager_id,
            new_role=self.new_role,
        )


class LoginRequest(BaseModel):
    doc_number: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        return _password_within_bcrypt_limit(value)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PhoneOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: str
    type: PhoneType


class EmployeeResponse(BaseModel):
    """Public projection of an Employee. There is no password_hash field, by construction."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    full_name: str
    email: str
    doc_number: str
    role: Role
    manager_id: Optional[UUID]
    phones: list[PhoneOut]

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeResponse":
        """Factory Method: the projection lives next to the output model, not in route handlers."""
        return cls(
            id=employee.id,
            full_name=employee.full_name,
            email=employee.email,
            doc_number=employee.doc_number,
            role=employee.role,
            manager_id=employee.manager_id,
            phones=[PhoneOut(number=p.number, type=p.type) for p in employee.phones],
        )


class AuthResponse(BaseModel):
    """Response for POST /auth/login and POST /auth/register."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    employee: EmployeeResponse


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee_id: UUID
    email: str
    role: Role


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
