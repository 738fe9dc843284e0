"""Scheduled salary records."""

from __future__ import annotations

from datetime import date

from payroll_core.core.clock import IClock
from payroll_core.core.enums import SalaryChangeReason
from payroll_core.core.ids import new_id
from payroll_core.core.result import Result

from .aggregate import AggregateRoot
from .events import SalaryChangeDeferred, SalaryNotesUpdated, SalaryScheduled
from .values import Money

MAX_NOTES_LENGTH = 500


class Salary(AggregateRoot):
    """A salary amount that takes effect on a given date.

    A salary is active once its effective date is reached.  Until then the
    change can be deferred; afterwards it is history.
    """

    SOURCE = "salary"

    def __init__(
        self,
        id: str,
        employee_id: str,
        amount: Money,
        effective_date: date,
        reason: SalaryChangeReason,
        *,
        notes: str | None = None,
        version: int = 0,
        clock: IClock | None = None,
    ) -> None:
        super().__init__(id, version=version, clock=clock)
        self._employee_id = employee_id
        self._amount = amount
        self._effective_date = effective_date
        self._reason = reason
        self._notes = notes

    @classmethod
    def create(
        cls,
        employee_id: str,
        amount: Money,
        effective_date: date,
        reason: SalaryChangeReason,
        notes: str | None = None,
        *,
        clock: IClock | None = None,
    ) -> Result[Salary]:
        if not employee_id:
            return Result.failure("Salary requires an employee")
        if not isinstance(amount, Money) or not amount.is_positive:
            return Result.failure("Salary amount must be greater than zero")
        if not isinstance(effective_date, date):
            return Result.failure("Effective date is required")
        try:
            reason = SalaryChangeReason(reason)
        except ValueError:
            return Result.failure(f"Unknown salary change reason: {reason!r}")
        if notes is not None and not isinstance(notes, str):
            return Result.failure("Notes must be text")
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            return Result.failure(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")

        salary = cls(new_id(), employee_id, amount, effective_date, reason,
                     notes=notes, clock=clock)
        if effective_date < salary._today():
            return Result.failure("Effective date cannot be in the past")
        salary._record(SalaryScheduled(
            **salary._event_kwargs(),
            employee_id=employee_id,
            amount=amount.amount,
            currency=amount.currency,
            effective_date=effective_date,
            reason=reason.value,
        ))
        return Result.success(salary)

    @classmethod
    def rehydrate(cls, **state) -> Salary:
        """Rebuild from stored state.  No validation, no events."""
        return cls(**state)

    def _today(self) -> date:
        return self._clock.today()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def employee_id(self) -> str:
        return self._employee_id

    @property
    def amount(self) -> Money:
        return self._amount

    @property
    def effective_date(self) -> date:
        return self._effective_date

    @property
    def reason(self) -> SalaryChangeReason:
        return self._reason

    @property
    def notes(self) -> str | None:
        return self._notes

    @property
    def is_active(self) -> bool:
        return self._effective_date <= self._today()

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def defer_change(self, new_date: date) -> Result[None]:
        if self.is_active:
            return Result.failure("Cannot defer a salary change that is already in effect")
        if not isinstance(new_date, date):
            return Result.failure("New effective date is required")
        if new_date < self._today():
            return Result.failure("New effective date cannot be in the past")
        old = self._effective_date
        self._effective_date = new_date
        self._record(SalaryChangeDeferred(
            **self._event_kwargs(),
            old_effective_date=old,
            new_effective_date=new_date,
        ))
        return Result.success()

    def update_notes(self, notes: str) -> Result[None]:
        if not isinstance(notes, str) or not notes.strip():
            return Result.failure("Notes cannot be empty")
        if len(notes) > MAX_NOTES_LENGTH:
            return Result.failure(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
        self._notes = notes.strip()
        self._record(SalaryNotesUpdated(**self._event_kwargs(), notes=self._notes))
        return Result.success()
