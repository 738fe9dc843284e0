"""Shared fixtures for the payroll-core test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_core.banking.gateway import FakeBankGateway
from payroll_core.core.clock import FixedClock
from payroll_core.domain.bank_details import BankDetails
from payroll_core.domain.department import Department, DepartmentTree
from payroll_core.domain.employee import Employee
from payroll_core.domain.values import DateRange, Money
from payroll_core.infrastructure.event_store import InMemoryEventStore
from payroll_core.services.payroll_service import PayrollService

#: Published example UK account.
GB_IBAN = "GB82 WEST 1234 5698 7654 32"
GB_BIC = "NWBKGB2L"


def _gbp(amount: str | int) -> Money:
    return Money(Decimal(str(amount)), "GBP")


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FixedClock:
    """Thursday 15 January 2026, 10:00 UTC."""
    return FixedClock(datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------

@pytest.fixture
def dept_it(clock) -> Department:
    dept = Department.create("IT", clock=clock).unwrap()
    dept.drain_events()
    return dept


@pytest.fixture
def dept_hr(clock) -> Department:
    dept = Department.create("HR", clock=clock).unwrap()
    dept.drain_events()
    return dept


@pytest.fixture
def tree(dept_it, dept_hr) -> DepartmentTree:
    return DepartmentTree([dept_it, dept_hr])


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

@pytest.fixture
def alice(dept_it, clock) -> Employee:
    """Full-time, £50,000, in IT."""
    return Employee.create_full_time(
        "Alice Smith", _gbp(50000), dept_it, clock=clock,
    ).unwrap()


@pytest.fixture
def bob(dept_it, clock) -> Employee:
    """Part-time at 60%, £30,000, in IT."""
    return Employee.create_part_time(
        "Bob Jones", _gbp(30000), dept_it, Decimal("0.6"), clock=clock,
    ).unwrap()


@pytest.fixture
def march_2026() -> DateRange:
    return DateRange(date(2026, 3, 1), date(2026, 3, 31))


@pytest.fixture
def carol(dept_it, clock, march_2026) -> Employee:
    """Contractor at £400/day for March 2026."""
    return Employee.create_contractor(
        "Carol White", _gbp(400), march_2026, dept_it, clock=clock,
    ).unwrap()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@pytest.fixture
def gateway() -> FakeBankGateway:
    return FakeBankGateway()


@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def service(gateway, event_store, clock) -> PayrollService:
    return PayrollService(gateway, event_store, clock=clock)


@pytest.fixture
def verified_details(clock):
    """Factory: verified GB bank details for an employee."""

    def _make(employee: Employee) -> BankDetails:
        details = BankDetails.create(
            employee.id, str(employee.name), GB_IBAN, GB_BIC, clock=clock,
        ).unwrap()
        details.verify().unwrap()
        details.drain_events()
        return details

    return _make
