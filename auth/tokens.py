"""
auth/tokens.py -- JWT issuance, password hashing, and credential checks.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (employee id), email, role, iss, aud and exp. Verification returns
       None on any failure -- the route layer turns that into a 401.

  Passwords: bcrypt, salted, with a configurable cost factor. The same
       password and the same salt always yield the same hash, so verification
       is recompute-and-compare (bcrypt.checkpw). The _DUMMY_HASH constant
       enables timing equalization in authenticate() so response time does
       not reveal whether a document number exists.

  Roles: the role claim is parsed with core.rbac.parse_role. An absent or
       garbled claim degrades to the lowest-privilege role, never to an error
       that might be mishandled upstream.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses to start
       in production without one and rejects keys shorter than 32 chars.

Layer rule: no imports from api/ or directory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from auth.models import Caller
from core.config import get_settings
from core.models import Employee
from core.rbac import parse_role

if TYPE_CHECKING:
    from directory.store import EmployeeStore

logger = logging.getLogger("staffdir.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt hashes at most 72 bytes of input, and bcrypt>=5 raises on anything longer.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, salt: Optional[bytes] = None) -> str:
    """Return a bcrypt hash of the given plaintext password.

    A fresh salt is generated unless one is passed in. Passing the salt of an
    existing hash reproduces that hash exactly, which is what checkpw does
    internally.

    The limit is MAX_PASSWORD_BYTES of UTF-8, not characters: "é" counts
    twice. Callers check password_fits() first; the request models and
    EmployeeService both do.
    """
    if salt is None:
        salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def password_fits(plain: str) -> bool:
    """Return True if the UTF-8 encoding of plain is short enough for bcrypt."""
    return len(plain.encode("utf-8")) <= MAX_PASSWORD_BYTES


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error, so one
    corrupt row cannot turn a login attempt into a 500.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash. Computed once at module load so the first
# login attempt is not measurably slower than subsequent ones.
_DUMMY_HASH: str = hash_password("staffdir_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def issue_token(employee: Employee, expire_seconds: int = 0) -> str:
    """Encode a signed JWT asserting the employee's id, email and role.

    Args:
        employee:       The principal the token speaks for.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(employee.id),
        "email": employee.email,
        "role": employee.role.value,
        "iss": _settings.jwt_issuer,
        "aud": _settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Signature, expiry, issuer and audience are all checked. A token without a
    subject is useless to every caller, so it is rejected here too.
    """
    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[_ALGORITHM],
            audience=_settings.jwt_audience,
            issuer=_settings.jwt_issuer,
        )
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload


def resolve_caller(payload: dict) -> Caller | None:
    """Build a Caller from a decoded token payload.

    Returns None if the subject is not a valid employee id. The role claim
    never fails: parse_role falls back to the lowest privilege.
    """
    try:
        subject_id = UUID(str(payload.get("sub")))
    except ValueError:
        return None
    return Caller(
        subject_id=subject_id,
        email=str(payload.get("email", "")),
        role=parse_role(payload.get("role")),
    )


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate(store: EmployeeStore, doc_number: str, password: str) -> Employee | None:
    """Check a document number / password pair with timing equalization.

    Always runs bcrypt whether or not the employee exists:
    - Unknown doc number: bcrypt runs against _DUMMY_HASH (same cost)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the Employee on success, None on any failure.
    """
    employee = store.get_by_doc_number(doc_number.strip())
    if employee is None:
        # Equalize timing -- do NOT return before running bcrypt.
        verify_password(password, _DUMMY_HASH)
        logger.info("Login failed: unknown document number")
        return None
    if not verify_password(password, employee.password_hash):
        logger.info("Login failed: wrong password for employee %s", employee.id)
        return None
    return employee
