"""Tunable business constants for holiday and pay calculations."""

from __future__ import annotations

from dataclasses import dataclass

from payroll_core.core.enums import NegativeAllowancePolicy


@dataclass(frozen=True)
class PayrollPolicy:
    base_holiday_days: int = 25
    negative_allowance: NegativeAllowancePolicy = NegativeAllowancePolicy.REJECT
    days_in_year: int = 365
    contractor_working_days: int = 260


DEFAULT_POLICY = PayrollPolicy()
