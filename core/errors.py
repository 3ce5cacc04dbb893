"""
core/errors.py -- Error taxonomy for the staff directory.

Every failure the lifecycle can raise on purpose is a DirectoryError. Each
class carries a machine-readable `code`; the API layer maps the class to an
HTTP status and wraps code + message in the ErrorResponse envelope.

Domain invariant violations (age, self-management, missing phone) are
ValidationError subclasses so callers that only care about "the input was
bad" can catch the parent.

Layer rule: core/ is the kernel. No imports from api/, auth/, or directory/.
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for expected, caller-facing failures."""

    code = "directory_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DirectoryError):
    """Malformed input: blank required field, bad email, empty phone list."""

    code = "validation_error"


class AgeViolation(ValidationError):
    code = "age_violation"


class SelfManagementViolation(ValidationError):
    code = "self_management"


class MissingPhoneViolation(ValidationError):
    code = "missing_phone"


class Conflict(DirectoryError):
    """Email or document number already belongs to another employee."""

    code = "conflict"


class Forbidden(DirectoryError):
    """RBAC denial. Distinct from Unauthenticated: the caller is known."""

    code = "forbidden"


class Unauthenticated(DirectoryError):
    """Bad credentials. Unknown document number and wrong password look the same."""

    code = "bad_credentials"


class NotFound(DirectoryError):
    code = "not_found"
