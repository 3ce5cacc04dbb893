"""Unit tests for auth/tokens.py -- password hashing, JWT round trip, caller resolution.

Covers:
- bcrypt hash is deterministic for a fixed salt, distinct across passwords
- verify_password accepts the right password, rejects wrong or malformed input
- issue_token / decode_token round trip with sub, email, role claims
- decode_token rejects foreign keys, wrong audience, expired tokens
- resolve_caller degrades an unknown role claim to Employee
- authenticate() returns None for unknown doc number and wrong password alike
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import bcrypt
import pytest
from jose import jwt

from auth.tokens import (
    MAX_PASSWORD_BYTES,
    authenticate,
    decode_token,
    hash_password,
    issue_token,
    password_fits,
    resolve_caller,
    verify_password,
)
from core.config import get_settings
from core.models import Employee, Role


def _employee(role: Role = Role.LEADER) -> Employee:
    return Employee(
        first_name="Token",
        last_name="Holder",
        email="holder@company.com",
        doc_number="55544433322",
        birth_date=datetime(1990, 5, 17).date(),
        role=role,
        password_hash="irrelevant",
    )


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_same_password_same_salt_same_hash(self):
        salt = bcrypt.gensalt(rounds=4)
        assert hash_password("Admin@123", salt) == hash_password("Admin@123", salt)

    def test_different_passwords_different_hashes(self):
        salt = bcrypt.gensalt(rounds=4)
        assert hash_password("password1", salt) != hash_password("password2", salt)

    def test_fresh_salt_per_call(self):
        h1 = hash_password("Admin@123")
        h2 = hash_password("Admin@123")
        assert h1 != h2
        assert verify_password("Admin@123", h1)
        assert verify_password("Admin@123", h2)

    def test_hash_is_not_plaintext(self):
        assert "Admin@123" not in hash_password("Admin@123")

    def test_verify_rejects_wrong_password(self):
        assert not verify_password("wrong", hash_password("right"))

    def test_verify_rejects_malformed_hash(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")

    @pytest.mark.parametrize(
        "password, fits",
        [
            ("a" * MAX_PASSWORD_BYTES, True),
            ("a" * (MAX_PASSWORD_BYTES + 1), False),
            ("é" * 36, True),
            ("é" * 37, False),
            ("é" * 40, False),
        ],
    )
    def test_password_fits_counts_utf8_bytes(self, password, fits):
        assert password_fits(password) is fits

    def test_longest_multibyte_password_hashes_and_verifies(self):
        password = "é" * 36
        assert verify_password(password, hash_password(password))


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------


class TestTokens:
    def test_round_trip_carries_identity(self):
        emp = _employee(Role.DIRECTOR)
        payload = decode_token(issue_token(emp))
        assert payload is not None
        assert payload["sub"] == str(emp.id)
        assert payload["email"] == "holder@company.com"
        assert payload["role"] == "Director"

    def test_resolve_caller(self):
        emp = _employee(Role.LEADER)
        caller = resolve_caller(decode_token(issue_token(emp)))
        assert caller.subject_id == emp.id
        assert caller.role is Role.LEADER
        assert caller.owns(emp)

    def test_foreign_signing_key_rejected(self):
        settings = get_settings()
        forged = jwt.encode(
            {
                "sub": str(uuid4()),
                "role": "Director",
                "iss": settings.jwt_issuer,
                "aud": settings.jwt_audience,
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            "x" * 64,
            algorithm="HS256",
        )
        assert decode_token(forged) is None

    def test_wrong_audience_rejected(self):
        settings = get_settings()
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "role": "Director",
                "iss": settings.jwt_issuer,
                "aud": "some-other-service",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.secret_key,
            algorithm="HS256",
        )
        assert decode_token(token) is None

    def test_expired_token_rejected(self):
        settings = get_settings()
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "role": "Director",
                "iss": settings.jwt_issuer,
                "aud": settings.jwt_audience,
                "exp": datetime.now(timezone.utc) - timedelta(minutes=5),
            },
            settings.secret_key,
            algorithm="HS256",
        )
        assert decode_token(token) is None

    def test_garbage_rejected(self):
        assert decode_token("not.a.jwt") is None

    def test_unknown_role_claim_degrades_to_employee(self):
        caller = resolve_caller({"sub": str(uuid4()), "email": "x@y.z", "role": "superuser"})
        assert caller.role is Role.EMPLOYEE

    def test_missing_role_claim_degrades_to_employee(self):
        caller = resolve_caller({"sub": str(uuid4())})
        assert caller.role is Role.EMPLOYEE

    def test_non_uuid_subject_rejected(self):
        assert resolve_caller({"sub": "42", "role": "Director"}) is None


# ---------------------------------------------------------------------------
# authenticate()
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_correct_credentials(self, service, new_employee):
        emp = service.register(new_employee(doc_number="11122233344", password="s3cret!")).employee
        found = authenticate(service.store, "11122233344", "s3cret!")
        assert found is not None
        assert found.id == emp.id

    def test_doc_number_is_trimmed(self, service, new_employee):
        service.register(new_employee(doc_number="11122233344", password="s3cret!"))
        assert authenticate(service.store, " 11122233344 ", "s3cret!") is not None

    def test_wrong_password(self, service, new_employee):
        service.register(new_employee(doc_number="11122233344", password="s3cret!"))
        assert authenticate(service.store, "11122233344", "nope") is None

    def test_unknown_doc_number(self, store):
        assert authenticate(store, "00000000001", "s3cret!") is None
