"""Employee aggregate.

The contract variant is a closed tagged union held in ``Employee.terms``:

* ``FullTimeTerms``: base allowance plus signed holiday adjustments
* ``PartTimeTerms``: allowance and pay pro-rated by working-hours share
* ``ContractorTerms``: day-rate pay inside a fixed contract period, no
  holiday allowance

Variant behaviour (allowance, pay for a period, variant-only mutators) is
dispatched with ``match`` on the terms rather than by subclass override.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

from payroll_core.core.clock import WALL_CLOCK, IClock
from payroll_core.core.enums import ContractType, NegativeAllowancePolicy, PaymentStatus
from payroll_core.core.ids import content_hash, new_id
from payroll_core.core.result import Result

from .aggregate import AggregateRoot
from .department import Department
from .events import (
    ContractExtended,
    EmployeeCreated,
    EmployeeDepartmentChanged,
    EmployeeNameUpdated,
    EmployeeSalaryUpdated,
    HolidayAllowanceAdjusted,
    PaymentAdded,
)
from .payment import PaymentHistory
from .policy import DEFAULT_POLICY, PayrollPolicy
from .values import DateRange, EmployeeName, Money


# ---------------------------------------------------------------------------
# Variant terms
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HolidayAdjustment:
    days: int
    reason: str
    recorded_at: datetime


@dataclass(frozen=True)
class FullTimeTerms:
    adjustments: tuple[HolidayAdjustment, ...] = ()

    @property
    def adjustment_total(self) -> int:
        return sum(a.days for a in self.adjustments)


@dataclass(frozen=True)
class PartTimeTerms:
    working_hours_percentage: Decimal


@dataclass(frozen=True)
class ContractorTerms:
    contract_period: DateRange
    daily_rate: Money


EmploymentTerms = Union[FullTimeTerms, PartTimeTerms, ContractorTerms]


def _percentage(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        pct = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return pct if pct.is_finite() else None


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

class Employee(AggregateRoot):
    """An employee of any contract type.

    Construct through ``create_full_time`` / ``create_part_time`` /
    ``create_contractor`` (validated, queue ``EmployeeCreated``) or
    ``rehydrate`` (stored state, no validation, no events).
    """

    SOURCE = "employee"

    def __init__(
        self,
        id: str,
        name: EmployeeName,
        annual_pay: Money,
        department_id: str,
        terms: EmploymentTerms,
        *,
        payments: list[PaymentHistory] | None = None,
        policy: PayrollPolicy = DEFAULT_POLICY,
        member_of: str | None = None,
        version: int = 0,
        clock: IClock | None = None,
    ) -> None:
        super().__init__(id, version=version, clock=clock)
        self._name = name
        self._annual_pay = annual_pay
        self._department_id = department_id
        # Written only by Department.add_employee / remove_employee.
        self._member_of = member_of
        self._terms: EmploymentTerms = terms
        self._payments: list[PaymentHistory] = list(payments or [])
        self._policy = policy

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def _validate_common(
        cls,
        name: str,
        pay: Money,
        department: Department | None,
        pay_label: str,
    ) -> Result[EmployeeName]:
        name_result = EmployeeName.create(name)
        if not name_result.ok:
            return name_result
        if not isinstance(pay, Money) or not pay.is_positive:
            return Result.failure(f"{pay_label} must be greater than zero")
        if department is None:
            return Result.failure("Department is required")
        if not department.is_active:
            return Result.failure(f"Department {department.name} is inactive")
        return name_result

    @classmethod
    def _build(
        cls,
        name: EmployeeName,
        annual_pay: Money,
        department: Department,
        terms: EmploymentTerms,
        policy: PayrollPolicy,
        clock: IClock | None,
    ) -> Employee:
        employee = cls(
            new_id(), name, annual_pay, department.id, terms,
            policy=policy, clock=clock,
        )
        employee._record(EmployeeCreated(
            **employee._event_kwargs(),
            name=name.value,
            contract_type=employee.contract_type.value,
            department_id=department.id,
            annual_pay=annual_pay.amount,
            currency=annual_pay.currency,
        ))
        return employee

    @classmethod
    def create_full_time(
        cls,
        name: str,
        annual_pay: Money,
        department: Department | None,
        *,
        policy: PayrollPolicy = DEFAULT_POLICY,
        clock: IClock | None = None,
    ) -> Result[Employee]:
        checked = cls._validate_common(name, annual_pay, department, "Annual pay")
        if not checked.ok:
            return Result.failure(checked.error)
        return Result.success(cls._build(
            checked.unwrap(), annual_pay, department, FullTimeTerms(), policy, clock,
        ))

    @classmethod
    def create_part_time(
        cls,
        name: str,
        annual_pay: Money,
        department: Department | None,
        working_hours_percentage: Decimal | float | str,
        *,
        policy: PayrollPolicy = DEFAULT_POLICY,
        clock: IClock | None = None,
    ) -> Result[Employee]:
        checked = cls._validate_common(name, annual_pay, department, "Annual pay")
        if not checked.ok:
            return Result.failure(checked.error)
        pct = _percentage(working_hours_percentage)
        if pct is None or not (0 < pct < 1):
            return Result.failure(
                "Working hours percentage must be between 0 and 1 (exclusive)"
            )
        return Result.success(cls._build(
            checked.unwrap(), annual_pay, department, PartTimeTerms(pct), policy, clock,
        ))

    @classmethod
    def create_contractor(
        cls,
        name: str,
        daily_rate: Money,
        contract_period: DateRange,
        department: Department | None,
        *,
        policy: PayrollPolicy = DEFAULT_POLICY,
        clock: IClock | None = None,
    ) -> Result[Employee]:
        """Create a contractor.  Annual pay is derived from the day rate."""
        checked = cls._validate_common(name, daily_rate, department, "Daily rate")
        if not checked.ok:
            return Result.failure(checked.error)
        if not isinstance(contract_period, DateRange):
            return Result.failure("Contract period is required")

        today = (clock or WALL_CLOCK).today()
        if contract_period.start < today:
            return Result.failure("Contract cannot start in the past")

        annual_pay = daily_rate * policy.contractor_working_days
        terms = ContractorTerms(contract_period=contract_period, daily_rate=daily_rate)
        return Result.success(cls._build(
            checked.unwrap(), annual_pay, department, terms, policy, clock,
        ))

    @classmethod
    def rehydrate(cls, **state) -> Employee:
        """Rebuild from stored state.  No validation, no events."""
        return cls(**state)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def name(self) -> EmployeeName:
        return self._name

    @property
    def annual_pay(self) -> Money:
        return self._annual_pay

    @property
    def department_id(self) -> str:
        return self._department_id

    @property
    def member_of(self) -> str | None:
        """Id of the department whose member set holds this employee."""
        return self._member_of

    @property
    def terms(self) -> EmploymentTerms:
        return self._terms

    @property
    def policy(self) -> PayrollPolicy:
        return self._policy

    @property
    def payments(self) -> tuple[PaymentHistory, ...]:
        return tuple(self._payments)

    @property
    def contract_type(self) -> ContractType:
        match self._terms:
            case FullTimeTerms():
                return ContractType.FULL_TIME
            case PartTimeTerms():
                return ContractType.PART_TIME
            case ContractorTerms():
                return ContractType.CONTRACTOR
        raise TypeError(f"Unknown employment terms: {self._terms!r}")

    @property
    def annual_holiday_allowance(self) -> int:
        base = self._policy.base_holiday_days
        match self._terms:
            case FullTimeTerms() as t:
                return max(0, base + t.adjustment_total)
            case PartTimeTerms(working_hours_percentage=pct):
                scaled = Decimal(base) * pct
                return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
            case ContractorTerms():
                return 0
        raise TypeError(f"Unknown employment terms: {self._terms!r}")

    # ------------------------------------------------------------------
    # Common mutators
    # ------------------------------------------------------------------

    def update_name(self, new_name: str) -> Result[None]:
        name_result = EmployeeName.create(new_name)
        if not name_result.ok:
            return Result.failure(name_result.error)
        old = self._name
        self._name = name_result.unwrap()
        self._record(EmployeeNameUpdated(
            **self._event_kwargs(),
            old_name=old.value,
            new_name=self._name.value,
        ))
        return Result.success()

    def update_salary(self, new_amount: Money) -> Result[None]:
        """Change pay.

        For contractors *new_amount* is the new day rate and annual pay is
        re-derived from it.
        """
        if not isinstance(new_amount, Money) or not new_amount.is_positive:
            return Result.failure("Salary must be greater than zero")
        if new_amount.currency != self._annual_pay.currency:
            return Result.failure(
                f"Salary currency {new_amount.currency} does not match "
                f"{self._annual_pay.currency}"
            )

        old_pay = self._annual_pay
        daily_rate: Decimal | None = None
        match self._terms:
            case ContractorTerms() as t:
                self._terms = replace(t, daily_rate=new_amount)
                self._annual_pay = new_amount * self._policy.contractor_working_days
                daily_rate = new_amount.amount
            case _:
                self._annual_pay = new_amount

        self._record(EmployeeSalaryUpdated(
            **self._event_kwargs(),
            old_annual_pay=old_pay.amount,
            new_annual_pay=self._annual_pay.amount,
            daily_rate=daily_rate,
            currency=self._annual_pay.currency,
        ))
        return Result.success()

    def update_department(self, department: Department | None) -> Result[None]:
        if department is None:
            return Result.failure("Department is required")
        if department.id == self._department_id:
            return Result.failure("Employee is already in this department")
        if not department.is_active:
            return Result.failure(f"Department {department.name} is inactive")
        old = self._department_id
        self._department_id = department.id
        self._record(EmployeeDepartmentChanged(
            **self._event_kwargs(),
            old_department_id=old,
            new_department_id=department.id,
        ))
        return Result.success()

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def default_payment_reference(self, period: DateRange) -> str:
        """Deterministic reference for a period, stable across retries."""
        return "PAY-" + content_hash(
            self.id, period.start.isoformat(), period.end.isoformat(), length=12,
        ).upper()

    def add_payment(
        self,
        period: DateRange,
        amount: Money,
        reference: str | None = None,
    ) -> Result[PaymentHistory]:
        """Record a pending payment for *period*.

        Overlap with any payment that has not failed is rejected.
        """
        if not isinstance(period, DateRange):
            return Result.failure("Payment period is required")
        for existing in self._payments:
            if existing.status is PaymentStatus.FAILED:
                continue
            if existing.period.overlaps(period):
                return Result.failure(
                    f"Period {period} overlaps existing payment for {existing.period}"
                )
        if isinstance(amount, Money) and amount.currency != self._annual_pay.currency:
            return Result.failure(
                f"Payment currency {amount.currency} does not match "
                f"{self._annual_pay.currency}"
            )

        if reference is None:
            reference = self.default_payment_reference(period)
        created = PaymentHistory.create(
            self.id, period, amount, reference, clock=self._clock,
        )
        if not created.ok:
            return created
        payment = created.unwrap()
        self._payments.append(payment)
        self._record(PaymentAdded(
            **self._event_kwargs(),
            payment_id=payment.id,
            period_start=period.start,
            period_end=period.end,
            amount=amount.amount,
            currency=amount.currency,
            reference=payment.reference,
        ))
        return Result.success(payment)

    def calculate_pay_for_period(self, period: DateRange) -> Result[Money]:
        """Gross pay for *period*, rounded half-up to minor units."""
        if not isinstance(period, DateRange):
            return Result.failure("Pay period is required")

        match self._terms:
            case FullTimeTerms():
                pay = self._pro_rata(period)
            case PartTimeTerms(working_hours_percentage=pct):
                pay = self._pro_rata(period) * pct
            case ContractorTerms(contract_period=contract, daily_rate=rate):
                if not contract.contains(period):
                    return Result.failure(
                        f"Period {period} is outside the contract period {contract}"
                    )
                pay = rate * period.weekdays()
            case _:
                raise TypeError(f"Unknown employment terms: {self._terms!r}")
        return Result.success(pay.quantize())

    def _pro_rata(self, period: DateRange) -> Money:
        share = Decimal(period.total_days) / Decimal(self._policy.days_in_year)
        return self._annual_pay * share

    # ------------------------------------------------------------------
    # Variant-only mutators
    # ------------------------------------------------------------------

    def add_holiday_adjustment(self, days: int, reason: str) -> Result[None]:
        t = self._terms
        if not isinstance(t, FullTimeTerms):
            return Result.failure(
                "Holiday adjustments only apply to full-time employees"
            )
        if isinstance(days, bool) or not isinstance(days, int):
            return Result.failure("Adjustment days must be a whole number")
        if days == 0:
            return Result.failure("Adjustment days cannot be zero")
        if not isinstance(reason, str) or not reason.strip():
            return Result.failure("An adjustment reason is required")

        total = self._policy.base_holiday_days + t.adjustment_total + days
        if total < 0 and self._policy.negative_allowance is NegativeAllowancePolicy.REJECT:
            return Result.failure(
                f"Adjustment would make the holiday allowance negative ({total})"
            )

        adjustment = HolidayAdjustment(days, reason.strip(), self._clock.now())
        self._terms = replace(t, adjustments=t.adjustments + (adjustment,))
        self._record(HolidayAllowanceAdjusted(
            **self._event_kwargs(),
            days=days,
            reason=adjustment.reason,
            new_allowance=self.annual_holiday_allowance,
        ))
        return Result.success()

    def extend_contract(self, new_period: DateRange) -> Result[None]:
        """Extend a contractor's contract with a directly following period.

        *new_period* may start on the current end date or the day after;
        anything earlier overlaps, anything later leaves a gap.
        """
        t = self._terms
        if not isinstance(t, ContractorTerms):
            return Result.failure("Only contractors have a contract to extend")
        if not isinstance(new_period, DateRange):
            return Result.failure("Extension period is required")

        current = t.contract_period
        if new_period.start < current.end:
            return Result.failure(
                f"Extension {new_period} overlaps the current contract {current}"
            )
        if new_period.start > current.end + timedelta(days=1):
            return Result.failure(
                f"Extension {new_period} leaves a gap after {current.end}"
            )

        self._terms = replace(t, contract_period=DateRange(current.start, new_period.end))
        self._record(ContractExtended(
            **self._event_kwargs(),
            old_end=current.end,
            new_end=new_period.end,
        ))
        return Result.success()
