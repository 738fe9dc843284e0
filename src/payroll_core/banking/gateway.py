"""Bank payment gateway boundary.

``IBankPayment`` is what the payroll service talks to.  It only moves money
and reports transfer status; pay calculation stays in the domain and
receipt rendering is a separate function.

``FakeBankGateway`` is an in-memory stand-in for local runs and tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from payroll_core.core.enums import TransferStatus
from payroll_core.core.errors import BankGatewayError
from payroll_core.core.ids import new_id
from payroll_core.domain.bank_details import mask_iban
from payroll_core.observability.logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class PaymentInstruction(BaseModel):
    """One outbound transfer."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(min_length=1)
    account_holder: str = Field(min_length=1)
    iban: str = Field(min_length=15, max_length=34)
    bic: str = Field(min_length=8, max_length=11)
    amount: Decimal = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)


class BankResult(BaseModel):
    """Outcome of a transfer request.  There is no success default."""

    model_config = ConfigDict(frozen=True)

    is_success: bool
    reference: str
    transaction_id: str | None = None
    error: str | None = None

    @classmethod
    def accepted(cls, reference: str, transaction_id: str) -> BankResult:
        return cls(is_success=True, reference=reference, transaction_id=transaction_id)

    @classmethod
    def declined(cls, reference: str, error: str) -> BankResult:
        return cls(is_success=False, reference=reference, error=error)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class IBankPayment(Protocol):
    """Outbound payments.

    ``make_payment`` returns a declined ``BankResult`` when the bank says no
    and raises ``BankGatewayError`` when the bank cannot be reached.
    """

    async def make_payment(self, instruction: PaymentInstruction) -> BankResult: ...

    async def get_payment_status(self, reference: str) -> TransferStatus: ...


def format_receipt(instruction: PaymentInstruction, result: BankResult | None = None) -> str:
    """Render a one-line receipt.  The IBAN is always masked."""
    parts = [
        f"Receipt: ref={instruction.reference}",
        f"payee={instruction.account_holder}",
        f"iban={mask_iban(instruction.iban)}",
        f"amount={instruction.amount:.2f} {instruction.currency}",
    ]
    if result is not None:
        parts.append("status=" + ("accepted" if result.is_success else "declined"))
        if result.transaction_id:
            parts.append(f"txn={result.transaction_id}")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# In-memory gateway
# ---------------------------------------------------------------------------

class FakeBankGateway:
    """Accepts every instruction unless told otherwise.

    Parameters
    ----------
    decline_references:
        References the fake bank declines.
    unavailable:
        When ``True`` every call raises ``BankGatewayError``.
    """

    def __init__(
        self,
        decline_references: set[str] | None = None,
        unavailable: bool = False,
    ) -> None:
        self.decline_references: set[str] = set(decline_references or ())
        self.unavailable = unavailable
        self._statuses: dict[str, TransferStatus] = {}
        self.instructions: list[PaymentInstruction] = []

    async def make_payment(self, instruction: PaymentInstruction) -> BankResult:
        if self.unavailable:
            raise BankGatewayError("Bank gateway unavailable")

        self.instructions.append(instruction)
        if instruction.reference in self.decline_references:
            self._statuses[instruction.reference] = TransferStatus.DECLINED
            logger.info(
                "transfer_declined",
                reference=instruction.reference,
                iban=mask_iban(instruction.iban),
            )
            return BankResult.declined(instruction.reference, "Declined by bank")

        txn = new_id()
        self._statuses[instruction.reference] = TransferStatus.ACCEPTED
        logger.info(
            "transfer_accepted",
            reference=instruction.reference,
            iban=mask_iban(instruction.iban),
            amount=str(instruction.amount),
            currency=instruction.currency,
            transaction_id=txn,
        )
        return BankResult.accepted(instruction.reference, txn)

    async def get_payment_status(self, reference: str) -> TransferStatus:
        if self.unavailable:
            raise BankGatewayError("Bank gateway unavailable")
        return self._statuses.get(reference, TransferStatus.UNKNOWN)
