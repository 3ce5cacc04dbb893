"""Unit tests for core/models.py -- Employee and Phone invariants.

Covers:
- Construction validates and trims every field, assigns id and created_at
- Age rule at construction and on change_birth_date (18 years, UTC today)
- Self-management is rejected; any other manager id is accepted
- ensure_at_least_one_phone fails iff the phone list is empty
- Phone number is required and trimmed
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from core.errors import AgeViolation, MissingPhoneViolation, SelfManagementViolation, ValidationError
from core.models import Employee, Phone, PhoneType, Role, _years_before

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def years_ago(years: int) -> date:
    return _years_before(datetime.now(timezone.utc).date(), years)


def _employee(**overrides) -> Employee:
    fields = {
        "first_name": "John",
        "last_name": "Doe",
        "email": "john@test.com",
        "doc_number": "12345678900",
        "birth_date": years_ago(25),
        "role": Role.EMPLOYEE,
        "password_hash": "hash_password",
    }
    fields.update(overrides)
    return Employee(**fields)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestEmployeeConstruction:
    def test_valid_employee(self):
        emp = _employee()
        assert emp.first_name == "John"
        assert emp.role is Role.EMPLOYEE
        assert emp.full_name == "John Doe"
        assert emp.id is not None
        assert emp.created_at.tzinfo is not None
        assert emp.phones == []

    def test_fields_are_trimmed(self):
        emp = _employee(first_name="  Ada ", last_name=" Lovelace", email=" ada@test.com ", doc_number=" 42 ")
        assert emp.first_name == "Ada"
        assert emp.last_name == "Lovelace"
        assert emp.email == "ada@test.com"
        assert emp.doc_number == "42"

    def test_each_construction_gets_a_fresh_id(self):
        assert _employee().id != _employee().id

    def test_role_accepts_name_string(self):
        assert _employee(role="Director").role is Role.DIRECTOR

    @pytest.mark.parametrize("field", ["first_name", "last_name", "doc_number", "password_hash"])
    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_required_field_rejected(self, field, blank):
        with pytest.raises(ValidationError, match=f"{field} is required"):
            _employee(**{field: blank})

    @pytest.mark.parametrize("email", ["", "invalid", "no-at-sign.com", "user@nodot", "two words@x.com"])
    def test_invalid_email_rejected(self, email):
        with pytest.raises(ValidationError):
            _employee(email=email)

    def test_password_hash_not_in_repr(self):
        assert "hash_password" not in repr(_employee())


# ---------------------------------------------------------------------------
# Age
# ---------------------------------------------------------------------------


class TestAgeRule:
    def test_under_18_rejected(self):
        with pytest.raises(AgeViolation, match="at least 18 years old"):
            _employee(birth_date=years_ago(17))

    def test_one_day_short_of_18_rejected(self):
        with pytest.raises(AgeViolation):
            _employee(birth_date=years_ago(18) + timedelta(days=1))

    def test_exactly_18_today_accepted(self):
        assert _employee(birth_date=years_ago(18)).birth_date == years_ago(18)

    def test_age_violation_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            _employee(birth_date=years_ago(10))

    def test_change_birth_date_to_minor_rejected(self):
        emp = _employee()
        with pytest.raises(AgeViolation):
            emp.change_birth_date(years_ago(16))
        assert emp.birth_date == years_ago(25)

    def test_change_birth_date_adult_accepted(self):
        emp = _employee()
        emp.change_birth_date(years_ago(40))
        assert emp.birth_date == years_ago(40)

    def test_leap_day_shifts_to_feb_28(self):
        assert _years_before(date(2024, 2, 29), 18) == date(2006, 2, 28)
        assert _years_before(date(2024, 3, 1), 18) == date(2006, 3, 1)


# ---------------------------------------------------------------------------
# Manager, role, names
# ---------------------------------------------------------------------------


class TestMutators:
    def test_self_manager_rejected(self):
        emp = _employee()
        with pytest.raises(SelfManagementViolation, match="cannot be their own manager"):
            emp.change_manager(emp.id)
        assert emp.manager_id is None

    def test_other_manager_accepted(self):
        emp = _employee()
        boss = uuid4()
        emp.change_manager(boss)
        assert emp.manager_id == boss

    def test_manager_can_be_cleared(self):
        emp = _employee(manager_id=uuid4())
        emp.change_manager(None)
        assert emp.manager_id is None

    def test_change_role_is_unconditional(self):
        emp = _employee()
        emp.change_role(Role.DIRECTOR)
        assert emp.role is Role.DIRECTOR

    def test_change_names(self):
        emp = _employee()
        emp.change_names(" Jane ", "Roe")
        assert emp.full_name == "Jane Roe"

    def test_change_names_blank_rejected_and_unchanged(self):
        emp = _employee()
        with pytest.raises(ValidationError):
            emp.change_names("Jane", " ")
        assert emp.full_name == "John Doe"


# ---------------------------------------------------------------------------
# Phones
# ---------------------------------------------------------------------------


class TestPhones:
    def test_ensure_phone_fails_when_empty(self):
        with pytest.raises(MissingPhoneViolation, match="at least one phone"):
            _employee().ensure_at_least_one_phone()

    def test_ensure_phone_passes_with_one(self):
        emp = _employee()
        emp.add_phone(Phone("99999999", PhoneType.MOBILE))
        emp.ensure_at_least_one_phone()

    def test_add_phone_keeps_duplicates_and_order(self):
        emp = _employee()
        emp.add_phone(Phone("111", PhoneType.HOME))
        emp.add_phone(Phone("111", PhoneType.HOME))
        emp.add_phone(Phone("222", PhoneType.WORK))
        assert [p.number for p in emp.phones] == ["111", "111", "222"]

    def test_reset_phones_empties_the_list(self):
        emp = _employee()
        emp.add_phone(Phone("111", PhoneType.HOME))
        emp.reset_phones()
        with pytest.raises(MissingPhoneViolation):
            emp.ensure_at_least_one_phone()

    def test_phone_number_trimmed(self):
        phone = Phone(" 99999999 ", PhoneType.MOBILE)
        assert phone.number == "99999999"
        assert phone.type is PhoneType.MOBILE

    def test_phone_type_from_string(self):
        assert Phone("1", "Home").type is PhoneType.HOME

    def test_empty_phone_number_rejected(self):
        with pytest.raises(ValidationError, match="number is required"):
            Phone("", PhoneType.HOME)
