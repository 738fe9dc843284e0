"""Domain events emitted by the payroll aggregates.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  Every event type has exactly **one writer** aggregate (see
    ``WRITE_OWNERSHIP``).
3.  ``event_id`` is a UUID4 generated at creation time; it serves as the
    idempotency / dedup key in the event store.
4.  ``aggregate_id`` is the id of the aggregate that queued the event.
5.  ``correlation_id`` links events that originate from the same caller
    operation (e.g. one pay run); ``causation_id`` points to the
    ``event_id`` that directly caused this one.

Money is carried as ``amount`` + ``currency`` primitives so events stay
trivially serializable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from payroll_core.core.ids import new_id as _uuid
from payroll_core.core.ids import utc_now as _now

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).  Idempotency key.
    timestamp       UTC creation time.
    aggregate_id    Id of the aggregate that queued the event.
    correlation_id  Groups events from the same caller operation.
    causation_id    The ``event_id`` that directly caused this event.
    source          Writer aggregate that produced this event.
    """

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    aggregate_id: str = ""
    correlation_id: str = ""
    causation_id: str = ""
    source: str = ""


# =========================================================================
# Employee  (writer: employee)
# =========================================================================

@dataclass(frozen=True)
class EmployeeCreated(DomainEvent):
    name: str = ""
    contract_type: str = ""
    department_id: str = ""
    annual_pay: Decimal = Decimal("0")
    currency: str = ""


@dataclass(frozen=True)
class EmployeeNameUpdated(DomainEvent):
    old_name: str = ""
    new_name: str = ""


@dataclass(frozen=True)
class EmployeeSalaryUpdated(DomainEvent):
    """Annual pay changed.  For contractors ``daily_rate`` is also set."""

    old_annual_pay: Decimal = Decimal("0")
    new_annual_pay: Decimal = Decimal("0")
    daily_rate: Decimal | None = None
    currency: str = ""


@dataclass(frozen=True)
class EmployeeDepartmentChanged(DomainEvent):
    old_department_id: str = ""
    new_department_id: str = ""


@dataclass(frozen=True)
class PaymentAdded(DomainEvent):
    payment_id: str = ""
    period_start: date | None = None
    period_end: date | None = None
    amount: Decimal = Decimal("0")
    currency: str = ""
    reference: str = ""


@dataclass(frozen=True)
class HolidayAllowanceAdjusted(DomainEvent):
    days: int = 0
    reason: str = ""
    new_allowance: int = 0


@dataclass(frozen=True)
class ContractExtended(DomainEvent):
    old_end: date | None = None
    new_end: date | None = None


# =========================================================================
# Department  (writer: department)
# =========================================================================

@dataclass(frozen=True)
class DepartmentCreated(DomainEvent):
    name: str = ""
    parent_id: str | None = None


@dataclass(frozen=True)
class DepartmentRenamed(DomainEvent):
    old_name: str = ""
    new_name: str = ""


@dataclass(frozen=True)
class EmployeeAssigned(DomainEvent):
    employee_id: str = ""


@dataclass(frozen=True)
class EmployeeUnassigned(DomainEvent):
    employee_id: str = ""


@dataclass(frozen=True)
class SubDepartmentAdded(DomainEvent):
    sub_department_id: str = ""
    previous_parent_id: str | None = None


@dataclass(frozen=True)
class SubDepartmentRemoved(DomainEvent):
    sub_department_id: str = ""


@dataclass(frozen=True)
class DepartmentActivated(DomainEvent):
    pass


@dataclass(frozen=True)
class DepartmentDeactivated(DomainEvent):
    pass


# =========================================================================
# Payment history  (writer: payment)
# =========================================================================

@dataclass(frozen=True)
class PaymentCreated(DomainEvent):
    employee_id: str = ""
    period_start: date | None = None
    period_end: date | None = None
    amount: Decimal = Decimal("0")
    currency: str = ""
    reference: str = ""


@dataclass(frozen=True)
class PaymentSucceeded(DomainEvent):
    employee_id: str = ""
    reference: str = ""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    employee_id: str = ""
    reference: str = ""
    reason: str = ""


# =========================================================================
# Salary  (writer: salary)
# =========================================================================

@dataclass(frozen=True)
class SalaryScheduled(DomainEvent):
    employee_id: str = ""
    amount: Decimal = Decimal("0")
    currency: str = ""
    effective_date: date | None = None
    reason: str = ""


@dataclass(frozen=True)
class SalaryChangeDeferred(DomainEvent):
    old_effective_date: date | None = None
    new_effective_date: date | None = None


@dataclass(frozen=True)
class SalaryNotesUpdated(DomainEvent):
    notes: str = ""


# =========================================================================
# Bank details  (writer: bank_details)
# =========================================================================

@dataclass(frozen=True)
class BankDetailsCreated(DomainEvent):
    """Only the masked IBAN travels in the event."""

    employee_id: str = ""
    masked_iban: str = ""
    bic: str = ""


@dataclass(frozen=True)
class BankDetailsVerified(DomainEvent):
    employee_id: str = ""


@dataclass(frozen=True)
class BankDetailsRejected(DomainEvent):
    employee_id: str = ""
    reason: str = ""


# =========================================================================
# Write-ownership registry
# =========================================================================

#: Maps each event type to the only ``source`` value allowed to produce it.
WRITE_OWNERSHIP: dict[type[DomainEvent], str] = {
    # Employee
    EmployeeCreated: "employee",
    EmployeeNameUpdated: "employee",
    EmployeeSalaryUpdated: "employee",
    EmployeeDepartmentChanged: "employee",
    PaymentAdded: "employee",
    HolidayAllowanceAdjusted: "employee",
    ContractExtended: "employee",
    # Department
    DepartmentCreated: "department",
    DepartmentRenamed: "department",
    EmployeeAssigned: "department",
    EmployeeUnassigned: "department",
    SubDepartmentAdded: "department",
    SubDepartmentRemoved: "department",
    DepartmentActivated: "department",
    DepartmentDeactivated: "department",
    # Payment history
    PaymentCreated: "payment",
    PaymentSucceeded: "payment",
    PaymentFailed: "payment",
    # Salary
    SalaryScheduled: "salary",
    SalaryChangeDeferred: "salary",
    SalaryNotesUpdated: "salary",
    # Bank details
    BankDetailsCreated: "bank_details",
    BankDetailsVerified: "bank_details",
    BankDetailsRejected: "bank_details",
}


#: All event types in a deterministic order.
ALL_DOMAIN_EVENTS: tuple[type[DomainEvent], ...] = tuple(WRITE_OWNERSHIP.keys())
