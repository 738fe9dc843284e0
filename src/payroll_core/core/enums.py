"""Enumerations used across the payroll core."""

from enum import Enum


class ContractType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACTOR = "contractor"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class BankDetailsStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class SalaryChangeReason(str, Enum):
    ANNUAL_REVIEW = "annual_review"
    PROMOTION = "promotion"
    MARKET_ADJUSTMENT = "market_adjustment"
    PERFORMANCE_INCREASE = "performance_increase"
    ROLE_CHANGE = "role_change"
    CORRECTION = "correction"
    OTHER = "other"


class NegativeAllowancePolicy(str, Enum):
    """What to do when holiday adjustments would push the total below zero."""

    REJECT = "reject"  # the adjustment fails
    CLAMP = "clamp"    # the adjustment is kept, the allowance floors at 0


class TransferStatus(str, Enum):
    """Status of a bank transfer as reported by the gateway."""

    ACCEPTED = "accepted"
    DECLINED = "declined"
    UNKNOWN = "unknown"
