"""Test the value objects: Money, DateRange and the name types.

Covers:
- Money normalization, arithmetic, currency guard, rounding
- DateRange ordering rule, inclusive overlap, containment, weekday count
- EmployeeName / DepartmentName trimming and length limits
"""

from datetime import date
from decimal import Decimal

import pytest

from payroll_core.core.errors import CurrencyMismatchError, ValidationError
from payroll_core.domain.values import (
    MAX_NAME_LENGTH,
    DateRange,
    DepartmentName,
    EmployeeName,
    Money,
)


def gbp(amount) -> Money:
    return Money(Decimal(str(amount)), "GBP")


# ===========================================================================
# Money
# ===========================================================================

class TestMoneyConstruction:
    def test_currency_normalized(self):
        m = Money(Decimal("10"), " gbp ")
        assert m.currency == "GBP"

    def test_int_amount_becomes_decimal(self):
        assert Money(5, "GBP").amount == Decimal("5")

    def test_float_amount_goes_through_str(self):
        assert Money(0.1, "GBP").amount == Decimal("0.1")

    def test_negative_amount_raises(self):
        with pytest.raises(ValidationError, match="negative"):
            Money(Decimal("-0.01"), "GBP")

    def test_bad_currency_raises(self):
        with pytest.raises(ValidationError):
            Money(Decimal("1"), "POUND")

    def test_non_numeric_amount_raises(self):
        with pytest.raises(ValidationError):
            Money("ten", "GBP")

    def test_bool_amount_raises(self):
        with pytest.raises(ValidationError):
            Money(True, "GBP")

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            Money(Decimal("-1"), "GBP")

    def test_create_returns_result(self):
        assert Money.create("12.50", "EUR").unwrap() == Money(Decimal("12.5"), "EUR")
        failed = Money.create("-1", "EUR")
        assert not failed.ok
        assert "negative" in failed.error

    def test_zero(self):
        z = Money.zero("GBP")
        assert z.amount == 0
        assert not z.is_positive


class TestMoneyArithmetic:
    def test_add(self):
        assert gbp("10.50") + gbp("0.25") == gbp("10.75")

    def test_subtract(self):
        assert gbp(10) - gbp(4) == gbp(6)

    def test_subtract_below_zero_raises(self):
        with pytest.raises(ValidationError):
            gbp(1) - gbp(2)

    def test_multiply_by_int_and_decimal(self):
        assert gbp(400) * 22 == gbp(8800)
        assert gbp(100) * Decimal("0.6") == gbp(60)
        assert 3 * gbp(2) == gbp(6)

    def test_multiply_by_float_unsupported(self):
        with pytest.raises(TypeError):
            gbp(1) * 1.5

    def test_currency_mismatch_on_add(self):
        with pytest.raises(CurrencyMismatchError) as exc_info:
            gbp(1) + Money(Decimal("1"), "EUR")
        assert exc_info.value.left == "GBP"
        assert exc_info.value.right == "EUR"

    def test_currency_mismatch_on_compare(self):
        with pytest.raises(CurrencyMismatchError):
            gbp(1) < Money(Decimal("2"), "USD")

    def test_add_non_money_raises_type_error(self):
        with pytest.raises(TypeError):
            gbp(1) + Decimal("1")

    def test_ordering(self):
        assert gbp(1) < gbp(2)
        assert gbp(2) >= gbp(2)
        assert max([gbp(3), gbp(7), gbp(5)]) == gbp(7)

    def test_equality_across_currencies_is_false_not_error(self):
        assert gbp(1) != Money(Decimal("1"), "EUR")

    def test_quantize_half_up(self):
        assert gbp("2.345").quantize().amount == Decimal("2.35")
        assert gbp("2.344").quantize().amount == Decimal("2.34")

    def test_str(self):
        assert str(gbp("1234.5")) == "1234.50 GBP"


# ===========================================================================
# DateRange
# ===========================================================================

class TestDateRange:
    def test_end_before_start_raises(self):
        with pytest.raises(ValidationError):
            DateRange(date(2026, 2, 1), date(2026, 1, 31))

    def test_single_day_allowed(self):
        r = DateRange(date(2026, 1, 1), date(2026, 1, 1))
        assert r.total_days == 1

    def test_create_failure(self):
        assert not DateRange.create(date(2026, 2, 1), date(2026, 1, 1)).ok

    def test_non_date_bounds_raise(self):
        with pytest.raises(ValidationError):
            DateRange("2026-01-01", date(2026, 1, 2))

    def test_total_days_inclusive(self):
        assert DateRange(date(2026, 1, 1), date(2026, 1, 31)).total_days == 31

    def test_overlap_is_inclusive(self):
        jan = DateRange(date(2026, 1, 1), date(2026, 1, 31))
        touching = DateRange(date(2026, 1, 31), date(2026, 2, 10))
        after = DateRange(date(2026, 2, 1), date(2026, 2, 28))
        assert jan.overlaps(touching)
        assert touching.overlaps(jan)
        assert not jan.overlaps(after)

    def test_contains(self):
        march = DateRange(date(2026, 3, 1), date(2026, 3, 31))
        assert march.contains(DateRange(date(2026, 3, 2), date(2026, 3, 6)))
        assert march.contains(march)
        assert not march.contains(DateRange(date(2026, 3, 1), date(2026, 4, 1)))

    def test_contains_date(self):
        march = DateRange(date(2026, 3, 1), date(2026, 3, 31))
        assert march.contains_date(date(2026, 3, 31))
        assert not march.contains_date(date(2026, 4, 1))

    def test_days_iterates_inclusive(self):
        r = DateRange(date(2026, 1, 30), date(2026, 2, 2))
        assert list(r.days()) == [
            date(2026, 1, 30), date(2026, 1, 31), date(2026, 2, 1), date(2026, 2, 2),
        ]

    def test_weekdays_march_2026(self):
        # 1 March 2026 is a Sunday
        assert DateRange(date(2026, 3, 1), date(2026, 3, 31)).weekdays() == 22

    def test_weekdays_weekend_only(self):
        assert DateRange(date(2026, 3, 7), date(2026, 3, 8)).weekdays() == 0

    def test_weekdays_matches_day_iteration(self):
        r = DateRange(date(2026, 1, 3), date(2026, 5, 19))
        assert r.weekdays() == sum(1 for d in r.days() if d.weekday() < 5)

    def test_str(self):
        assert str(DateRange(date(2026, 1, 1), date(2026, 1, 31))) == "2026-01-01..2026-01-31"


# ===========================================================================
# Names
# ===========================================================================

class TestNames:
    def test_employee_name_trimmed(self):
        assert EmployeeName("  Alice Smith ").value == "Alice Smith"
        assert str(EmployeeName("Alice")) == "Alice"

    def test_blank_name_fails(self):
        result = EmployeeName.create("   ")
        assert not result.ok
        assert "empty" in result.error

    def test_max_length(self):
        assert EmployeeName.create("x" * MAX_NAME_LENGTH).ok
        assert not EmployeeName.create("x" * (MAX_NAME_LENGTH + 1)).ok

    def test_non_string_fails(self):
        assert not DepartmentName.create(None).ok

    def test_department_name(self):
        assert DepartmentName.create(" Finance ").unwrap().value == "Finance"
