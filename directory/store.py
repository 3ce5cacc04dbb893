"""
directory/store.py -- SQLAlchemy Core persistence layer for employees.

Uses SQLAlchemy Core (not ORM) so the dataclasses in core/models.py remain the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. EmployeeStore is the repository;
_row_to_employee / _row_to_phone are the mappers. The lifecycle service and
route code never touch SQL directly.

Uniqueness:
  UNIQUE(email) and UNIQUE(doc_number) are enforced in SQL. The service runs
  an exists_by_* pre-check first for a friendly error, but only the index
  closes the check-then-insert race between concurrent registrations. add()
  lets IntegrityError propagate so the service can translate it.

Ownership:
  phones.employee_id  -> employees.id  ON DELETE CASCADE
  employees.manager_id -> employees.id ON DELETE SET NULL
  delete() also performs both steps explicitly inside its transaction, so the
  outcome does not depend on the engine honouring FK actions.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = EmployeeStore()                               # SQLite default
    store = EmployeeStore("postgresql://user:pw@host/db") # PostgreSQL
    store.add(employee)
    employee = store.get_by_doc_number("12345678900")
    store.close()
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    exists,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine

from core.models import Employee, Phone, PhoneType, Role

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'staffdir.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_employees = Table(
    "employees",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("doc_number", String(20), nullable=False, unique=True),
    Column("birth_date", String(10), nullable=False),  # YYYY-MM-DD
    Column("role", String(20), nullable=False, server_default=Role.EMPLOYEE.value),
    Column("manager_id", String(36), ForeignKey("employees.id", ondelete="SET NULL")),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),  # ISO 8601, UTC
)

_phones = Table(
    "phones",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("employee_id", String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("number", String(20), nullable=False),
    Column("type", String(20), nullable=False),
    Column("position", Integer, nullable=False, server_default="0"),  # preserves phone order
)


# ---------------------------------------------------------------------------
# SQLite pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journaling and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. foreign_keys is OFF by default in SQLite, so
    without it the manager reference would accept ids that do not exist.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EmployeeStore:
    """Repository for the Employee aggregate (employees + their phones)."""

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_id(self, employee_id: UUID) -> Optional[Employee]:
        return self._get_one(_employees.c.id == str(employee_id))

    def get_by_email(self, email: str) -> Optional[Employee]:
        """Exact match on the stored (trimmed) email."""
        return self._get_one(_employees.c.email == email)

    def get_by_doc_number(self, doc_number: str) -> Optional[Employee]:
        return self._get_one(_employees.c.doc_number == doc_number)

    def exists_by_id(self, employee_id: UUID) -> bool:
        return self._exists(_employees.c.id == str(employee_id))

    def exists_by_email(self, email: str) -> bool:
        return self._exists(_employees.c.email == email)

    def exists_by_doc_number(self, doc_number: str) -> bool:
        return self._exists(_employees.c.doc_number == doc_number)

    def has_role(self, role: Role) -> bool:
        """Return True if any employee holds the given role. Used by bootstrap."""
        return self._exists(_employees.c.role == role.value)

    def get_all(self) -> list[Employee]:
        """Return every employee ordered by last name, then first name."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _employees.select().order_by(_employees.c.last_name, _employees.c.first_name)
            ).fetchall()
            phones = self._phones_for(conn, [row.id for row in rows])
        return [_row_to_employee(row, phones.get(row.id, [])) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, employee: Employee) -> None:
        """Insert an employee and its phones in one transaction.

        Raises sqlalchemy.exc.IntegrityError on a duplicate email or doc
        number, or when manager_id references a missing employee.
        """
        with self.engine.connect() as conn:
            conn.execute(_employees.insert().values(id=str(employee.id), **_employee_values(employee)))
            self._insert_phones(conn, employee)
            conn.commit()

    def update(self, employee: Employee) -> None:
        """Rewrite the employee row and replace its phone rows in one transaction."""
        with self.engine.connect() as conn:
            conn.execute(
                _employees.update().where(_employees.c.id == str(employee.id)).values(**_employee_values(employee))
            )
            conn.execute(_phones.delete().where(_phones.c.employee_id == str(employee.id)))
            self._insert_phones(conn, employee)
            conn.commit()

    def delete(self, employee: Employee) -> bool:
        """Hard-delete an employee and its phones. Returns False if the row was already gone.

        Subordinates keep existing; their manager_id is cleared.
        """
        key = str(employee.id)
        with self.engine.connect() as conn:
            conn.execute(_phones.delete().where(_phones.c.employee_id == key))
            conn.execute(_employees.update().where(_employees.c.manager_id == key).values(manager_id=None))
            result = conn.execute(_employees.delete().where(_employees.c.id == key))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_one(self, clause) -> Optional[Employee]:
        with self.engine.connect() as conn:
            row = conn.execute(_employees.select().where(clause)).fetchone()
            if row is None:
                return None
            phones = self._phones_for(conn, [row.id])
        return _row_to_employee(row, phones.get(row.id, []))

    def _exists(self, clause) -> bool:
        with self.engine.connect() as conn:
            return bool(conn.execute(select(exists().where(clause))).scalar())

    @staticmethod
    def _phones_for(conn: Connection, employee_ids: list[str]) -> dict[str, list[Phone]]:
        if not employee_ids:
            return {}
        rows = conn.execute(
            _phones.select()
            .where(_phones.c.employee_id.in_(employee_ids))
            .order_by(_phones.c.employee_id, _phones.c.position)
        ).fetchall()
        grouped: dict[str, list[Phone]] = {}
        for row in rows:
            grouped.setdefault(row.employee_id, []).append(_row_to_phone(row))
        return grouped

    @staticmethod
    def _insert_phones(conn: Connection, employee: Employee) -> None:
        if not employee.phones:
            return
        conn.execute(
            _phones.insert(),
            [
                {
                    "id": str(phone.id),
                    "employee_id": str(employee.id),
                    "number": phone.number,
                    "type": phone.type.value,
                    "position": position,
                }
                for position, phone in enumerate(employee.phones)
            ],
        )


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _employee_values(employee: Employee) -> dict:
    return {
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "email": employee.email,
        "doc_number": employee.doc_number,
        "birth_date": employee.birth_date.isoformat(),
        "role": employee.role.value,
        "manager_id": str(employee.manager_id) if employee.manager_id else None,
        "password_hash": employee.password_hash,
        "created_at": employee.created_at.isoformat(),
    }


def _row_to_employee(row, phones: list[Phone]) -> Employee:
    return Employee(
        id=UUID(row.id),
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        doc_number=row.doc_number,
        birth_date=date.fromisoformat(row.birth_date),
        role=Role(row.role),
        manager_id=UUID(row.manager_id) if row.manager_id else None,
        password_hash=row.password_hash,
        created_at=datetime.fromisoformat(row.created_at),
        phones=phones,
    )


def _row_to_phone(row) -> Phone:
    return Phone(id=UUID(row.id), number=row.number, type=PhoneType(row.type))
