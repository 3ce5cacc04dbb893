"""
tests/conftest.py -- Shared test fixtures for the staff directory.

This module provides:
  - store / service: a fresh in-memory EmployeeStore and EmployeeService per test
  - make_payload(): builds a valid NewEmployee with unique email/doc number
  - api: TestClient + one seeded account per role, with bearer tokens

Design: The API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment variables must be set before any core/auth import:
  DEBUG=true        -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4   -- minimum bcrypt cost, keeps the suite fast
  ALLOWED_HOSTS     -- TestClient sends Host: testserver
"""

from __future__ import annotations

import os

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import itertools
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.tokens import issue_token
from core.models import PhoneType, Role, _years_before
from directory.service import EmployeeService, NewEmployee, PhoneEntry
from directory.store import EmployeeStore

DEFAULT_PASSWORD = "Admin@123"

_counter = itertools.count(1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def years_ago(years: int) -> date:
    """Today's UTC date shifted back by whole calendar years."""
    return _years_before(datetime.now(timezone.utc).date(), years)


def make_payload(role: Role = Role.EMPLOYEE, **overrides) -> NewEmployee:
    """Return a valid NewEmployee whose email and doc number are unique per call."""
    n = next(_counter)
    fields = {
        "first_name": "Test",
        "last_name": f"Person{n}",
        "email": f"person{n}@company.com",
        "doc_number": f"{n:011d}",
        "birth_date": years_ago(30),
        "role": role,
        "password": DEFAULT_PASSWORD,
        "phones": [PhoneEntry(number="555-0100", type=PhoneType.MOBILE)],
    }
    fields.update(overrides)
    return NewEmployee(**fields)


def make_body(role: Role = Role.EMPLOYEE, **overrides) -> dict:
    """JSON body for POST /employees and /auth/register, unique per call."""
    payload = make_payload(role)
    body = {
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "email": payload.email,
        "doc_number": payload.doc_number,
        "birth_date": payload.birth_date.isoformat(),
        "role": role.value,
        "password": DEFAULT_PASSWORD,
        "phones": [{"number": "555-0100", "type": "Mobile"}],
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def new_employee():
    """Factory fixture: new_employee(role, **overrides) -> NewEmployee."""
    return make_payload


@pytest.fixture
def employee_body():
    """Factory fixture: employee_body(role, **overrides) -> JSON dict."""
    return make_body


@pytest.fixture
def store() -> Generator[EmployeeStore, None, None]:
    s = EmployeeStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: EmployeeStore) -> EmployeeService:
    return EmployeeService(store)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    service: EmployeeService
    ids: dict[Role, UUID]
    tokens: dict[Role, str]

    def headers(self, role: Role) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[role]}"}


def _patch_lifespan(store: EmployeeStore, service: EmployeeService):
    """Return a lifespan that wires the test store into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.employee_store = store
        app.state.employees = service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api(request) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness with one Director, Leader and Employee account.

    One TestClient per test module for speed. The DB name includes the module
    name so modules never see each other's rows.
    """
    db_name = request.module.__name__.replace(".", "_")
    store = EmployeeStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    service = EmployeeService(store)

    ids: dict[Role, UUID] = {}
    tokens: dict[Role, str] = {}
    for role in Role:
        employee = service.register(make_payload(role, first_name=role.value)).employee
        ids[role] = employee.id
        tokens[role] = issue_token(employee)

    app.router.lifespan_context = _patch_lifespan(store, service)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, service=service, ids=ids, tokens=tokens)

    limiter.enabled = True
    store.close()
