"""Payment history record and its one-shot status machine."""

from __future__ import annotations

from datetime import datetime

from payroll_core.core.clock import IClock
from payroll_core.core.enums import PaymentStatus
from payroll_core.core.ids import new_id
from payroll_core.core.result import Result

from .aggregate import AggregateRoot
from .events import PaymentCreated, PaymentFailed, PaymentSucceeded
from .values import DateRange, Money

# ---------------------------------------------------------------------------
# Valid state transitions
# ---------------------------------------------------------------------------

_VALID_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.SUCCESSFUL, PaymentStatus.FAILED}
    ),
    # Terminal states -- no further transitions allowed.
    PaymentStatus.SUCCESSFUL: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}

TRANSITION_ERROR = "Payment can only transition from Pending"


class PaymentHistory(AggregateRoot):
    """An append-only record of one payment to one employee for one period."""

    SOURCE = "payment"

    def __init__(
        self,
        id: str,
        employee_id: str,
        period: DateRange,
        amount: Money,
        reference: str,
        *,
        status: PaymentStatus = PaymentStatus.PENDING,
        failure_reason: str | None = None,
        created_at: datetime | None = None,
        processed_at: datetime | None = None,
        version: int = 0,
        clock: IClock | None = None,
    ) -> None:
        super().__init__(id, version=version, clock=clock)
        self._employee_id = employee_id
        self._period = period
        self._amount = amount
        self._reference = reference
        self._status = status
        self._failure_reason = failure_reason
        self._created_at = created_at or self._clock.now()
        self._processed_at = processed_at

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        employee_id: str,
        period: DateRange,
        amount: Money,
        reference: str,
        *,
        clock: IClock | None = None,
    ) -> Result[PaymentHistory]:
        if not employee_id:
            return Result.failure("Payment requires an employee")
        if not isinstance(period, DateRange):
            return Result.failure("Payment requires a period")
        if not isinstance(amount, Money) or not amount.is_positive:
            return Result.failure("Payment amount must be greater than zero")
        if not isinstance(reference, str) or not reference.strip():
            return Result.failure("Payment reference cannot be empty")

        payment = cls(
            new_id(), employee_id, period, amount, reference.strip(), clock=clock,
        )
        payment._record(PaymentCreated(
            **payment._event_kwargs(),
            employee_id=employee_id,
            period_start=period.start,
            period_end=period.end,
            amount=amount.amount,
            currency=amount.currency,
            reference=payment._reference,
        ))
        return Result.success(payment)

    @classmethod
    def rehydrate(cls, **state) -> PaymentHistory:
        """Rebuild from stored state.  No validation, no events."""
        return cls(**state)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def employee_id(self) -> str:
        return self._employee_id

    @property
    def period(self) -> DateRange:
        return self._period

    @property
    def amount(self) -> Money:
        return self._amount

    @property
    def reference(self) -> str:
        return self._reference

    @property
    def status(self) -> PaymentStatus:
        return self._status

    @property
    def failure_reason(self) -> str | None:
        return self._failure_reason

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def processed_at(self) -> datetime | None:
        return self._processed_at

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self._status]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _can_move_to(self, target: PaymentStatus) -> bool:
        return target in _VALID_TRANSITIONS[self._status]

    def mark_as_successful(self) -> Result[None]:
        if not self._can_move_to(PaymentStatus.SUCCESSFUL):
            return Result.failure(TRANSITION_ERROR)
        self._status = PaymentStatus.SUCCESSFUL
        self._processed_at = self._clock.now()
        self._record(PaymentSucceeded(
            **self._event_kwargs(),
            employee_id=self._employee_id,
            reference=self._reference,
        ))
        return Result.success()

    def mark_as_failed(self, reason: str) -> Result[None]:
        if not self._can_move_to(PaymentStatus.FAILED):
            return Result.failure(TRANSITION_ERROR)
        if not isinstance(reason, str) or not reason.strip():
            return Result.failure("A failure reason is required")
        self._status = PaymentStatus.FAILED
        self._failure_reason = reason.strip()
        self._processed_at = self._clock.now()
        self._record(PaymentFailed(
            **self._event_kwargs(),
            employee_id=self._employee_id,
            reference=self._reference,
            reason=self._failure_reason,
        ))
        return Result.success()
