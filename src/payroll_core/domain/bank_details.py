"""Employee bank details with a one-shot verification step."""

from __future__ import annotations

from payroll_core.core.clock import IClock
from payroll_core.core.enums import BankDetailsStatus
from payroll_core.core.ids import new_id
from payroll_core.core.result import Result
from payroll_core.validation.bank_account import (
    IBankAccountValidator,
    StandardBankAccountValidator,
    normalize_bic,
    normalize_iban,
)

from .aggregate import AggregateRoot
from .events import BankDetailsCreated, BankDetailsRejected, BankDetailsVerified
from .values import MAX_NAME_LENGTH

TRANSITION_ERROR = "Bank details can only transition from Pending"

_DEFAULT_VALIDATOR = StandardBankAccountValidator()


def mask_iban(iban: str) -> str:
    """Hide all but the last four characters."""
    if len(iban) <= 4:
        return "*" * len(iban)
    return "*" * (len(iban) - 4) + iban[-4:]


class BankDetails(AggregateRoot):
    """Where an employee gets paid.  Payments need VERIFIED details."""

    SOURCE = "bank_details"

    def __init__(
        self,
        id: str,
        employee_id: str,
        account_holder: str,
        iban: str,
        bic: str,
        *,
        status: BankDetailsStatus = BankDetailsStatus.PENDING,
        rejection_reason: str | None = None,
        version: int = 0,
        clock: IClock | None = None,
    ) -> None:
        super().__init__(id, version=version, clock=clock)
        self._employee_id = employee_id
        self._account_holder = account_holder
        self._iban = iban
        self._bic = bic
        self._status = status
        self._rejection_reason = rejection_reason

    @classmethod
    def create(
        cls,
        employee_id: str,
        account_holder: str,
        iban: str,
        bic: str,
        *,
        validator: IBankAccountValidator | None = None,
        clock: IClock | None = None,
    ) -> Result[BankDetails]:
        validator = validator or _DEFAULT_VALIDATOR
        if not employee_id:
            return Result.failure("Bank details require an employee")
        if not isinstance(account_holder, str) or not account_holder.strip():
            return Result.failure("Account holder cannot be empty")
        if len(account_holder.strip()) > MAX_NAME_LENGTH:
            return Result.failure(
                f"Account holder cannot exceed {MAX_NAME_LENGTH} characters"
            )
        if not isinstance(iban, str) or not validator.is_valid_iban(iban):
            return Result.failure("Invalid IBAN")
        if not isinstance(bic, str) or not validator.is_valid_bic(bic):
            return Result.failure("Invalid BIC")

        details = cls(
            new_id(),
            employee_id,
            account_holder.strip(),
            normalize_iban(iban),
            normalize_bic(bic),
            clock=clock,
        )
        details._record(BankDetailsCreated(
            **details._event_kwargs(),
            employee_id=employee_id,
            masked_iban=details.masked_iban,
            bic=details._bic,
        ))
        return Result.success(details)

    @classmethod
    def rehydrate(cls, **state) -> BankDetails:
        """Rebuild from stored state.  No validation, no events."""
        return cls(**state)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def employee_id(self) -> str:
        return self._employee_id

    @property
    def account_holder(self) -> str:
        return self._account_holder

    @property
    def iban(self) -> str:
        return self._iban

    @property
    def masked_iban(self) -> str:
        return mask_iban(self._iban)

    @property
    def bic(self) -> str:
        return self._bic

    @property
    def status(self) -> BankDetailsStatus:
        return self._status

    @property
    def rejection_reason(self) -> str | None:
        return self._rejection_reason

    @property
    def is_verified(self) -> bool:
        return self._status is BankDetailsStatus.VERIFIED

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def verify(self) -> Result[None]:
        if self._status is not BankDetailsStatus.PENDING:
            return Result.failure(TRANSITION_ERROR)
        self._status = BankDetailsStatus.VERIFIED
        self._record(BankDetailsVerified(
            **self._event_kwargs(), employee_id=self._employee_id,
        ))
        return Result.success()

    def reject(self, reason: str) -> Result[None]:
        if self._status is not BankDetailsStatus.PENDING:
            return Result.failure(TRANSITION_ERROR)
        if not isinstance(reason, str) or not reason.strip():
            return Result.failure("A rejection reason is required")
        self._status = BankDetailsStatus.REJECTED
        self._rejection_reason = reason.strip()
        self._record(BankDetailsRejected(
            **self._event_kwargs(),
            employee_id=self._employee_id,
            reason=self._rejection_reason,
        ))
        return Result.success()

    def __repr__(self) -> str:
        return (
            f"<BankDetails(id={self._id!r}, iban={self.masked_iban!r}, "
            f"status={self._status.value})>"
        )
