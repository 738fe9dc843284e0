"""Immutable, self-validating value objects.

Constructors raise ``ValidationError`` on bad input.  Each type also offers
a ``create`` classmethod that returns a ``Result`` for callers that treat
bad input as an expected business failure (the aggregates do).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterator

from payroll_core.core.errors import CurrencyMismatchError, ValidationError
from payroll_core.core.result import Result

MAX_NAME_LENGTH = 100

_CENT = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Not a monetary amount: {value!r}")
    try:
        # str() keeps floats like 0.1 from dragging binary noise along
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Not a monetary amount: {value!r}") from exc


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Money:
    """A non-negative amount in a single currency.

    Arithmetic and ordering are only defined between equal currencies;
    anything else raises ``CurrencyMismatchError``.  Equality compares both
    fields and never raises.
    """

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        amount = _to_decimal(self.amount)
        if not amount.is_finite():
            raise ValidationError(f"Amount must be finite, got {amount}")
        if amount < 0:
            raise ValidationError(f"Amount cannot be negative, got {amount}")
        if not isinstance(self.currency, str):
            raise ValidationError(f"Currency must be a string, got {self.currency!r}")
        currency = self.currency.strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Not an ISO 4217 currency code: {self.currency!r}")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", currency)

    @classmethod
    def create(cls, amount: Any, currency: str) -> Result[Money]:
        try:
            return Result.success(cls(amount, currency))
        except ValidationError as exc:
            return Result.failure(str(exc))

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(Decimal("0"), currency)

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def quantize(self) -> Money:
        """Round half-up to minor units (2 dp)."""
        return Money(self.amount.quantize(_CENT, rounding=ROUND_HALF_UP), self.currency)

    def _check(self, other: object) -> Money:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return other

    # Arithmetic ---------------------------------------------------------

    def __add__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: int | Decimal) -> Money:
        if isinstance(factor, (bool, float)) or not isinstance(factor, (int, Decimal)):
            return NotImplemented
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    # Ordering -----------------------------------------------------------

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._check(other).amount

    def __le__(self, other: Money) -> bool:
        return self.amount <= self._check(other).amount

    def __gt__(self, other: Money) -> bool:
        return self.amount > self._check(other).amount

    def __ge__(self, other: Money) -> bool:
        return self.amount >= self._check(other).amount

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


# ---------------------------------------------------------------------------
# DateRange
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range with ``end >= start``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise ValidationError("DateRange bounds must be dates")
        if self.end < self.start:
            raise ValidationError(
                f"DateRange end {self.end} is before start {self.start}"
            )

    @classmethod
    def create(cls, start: date, end: date) -> Result[DateRange]:
        try:
            return Result.success(cls(start, end))
        except ValidationError as exc:
            return Result.failure(str(exc))

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: DateRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: DateRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def contains_date(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    def weekdays(self) -> int:
        """Count Monday-Friday dates in the range."""
        full_weeks, remainder = divmod(self.total_days, 7)
        count = full_weeks * 5
        first = self.start.weekday()
        for offset in range(remainder):
            if (first + offset) % 7 < 5:
                count += 1
        return count

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def _clean_name(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(f"{label} cannot be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{label} cannot exceed {MAX_NAME_LENGTH} characters"
        )
    return cleaned


@dataclass(frozen=True)
class EmployeeName:
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _clean_name(self.value, "Employee name"))

    @classmethod
    def create(cls, value: Any) -> Result[EmployeeName]:
        try:
            return Result.success(cls(value))
        except ValidationError as exc:
            return Result.failure(str(exc))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DepartmentName:
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _clean_name(self.value, "Department name"))

    @classmethod
    def create(cls, value: Any) -> Result[DepartmentName]:
        try:
            return Result.success(cls(value))
        except ValidationError as exc:
            return Result.failure(str(exc))

    def __str__(self) -> str:
        return self.value
