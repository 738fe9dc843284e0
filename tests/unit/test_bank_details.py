"""Test BankDetails and the IBAN / BIC validator.

Covers:
- StandardBankAccountValidator: mod-97 checksum, country lengths, BIC shape
- BankDetails creation, normalization, masking
- Verification status machine
- Pluggable validator
"""

import pytest

from payroll_core.core.enums import BankDetailsStatus
from payroll_core.domain.bank_details import TRANSITION_ERROR, BankDetails, mask_iban
from payroll_core.domain.events import BankDetailsCreated, BankDetailsRejected, BankDetailsVerified
from payroll_core.validation import IBankAccountValidator, StandardBankAccountValidator

VALID_IBAN = "GB82 WEST 1234 5698 7654 32"
VALID_BIC = "NWBKGB2L"


class TestValidator:
    validator = StandardBankAccountValidator()

    @pytest.mark.parametrize(
        "iban",
        [
            "GB82WEST12345698765432",
            "gb82 west 1234 5698 7654 32",
            "DE89370400440532013000",
        ],
    )
    def test_valid_ibans(self, iban):
        assert self.validator.is_valid_iban(iban)

    @pytest.mark.parametrize(
        "iban",
        [
            "GB83WEST12345698765432",   # bad check digits
            "GB82WEST1234569876543",    # wrong length for GB
            "GB82-WEST-1234",           # punctuation
            "",
            None,
        ],
    )
    def test_invalid_ibans(self, iban):
        assert not self.validator.is_valid_iban(iban)

    @pytest.mark.parametrize("bic", ["NWBKGB2L", "DEUTDEFF", "deutdeff500", " NWBKGB2L "])
    def test_valid_bics(self, bic):
        assert self.validator.is_valid_bic(bic)

    @pytest.mark.parametrize("bic", ["NWBK", "NWBKGB2LX", "1WBKGB2L", "", None])
    def test_invalid_bics(self, bic):
        assert not self.validator.is_valid_bic(bic)

    def test_satisfies_protocol(self):
        assert isinstance(self.validator, IBankAccountValidator)


class TestMaskIban:
    def test_keeps_last_four(self):
        assert mask_iban("GB82WEST12345698765432") == "*" * 18 + "5432"

    def test_short_values_fully_masked(self):
        assert mask_iban("1234") == "****"


class TestCreate:
    def test_normalizes_and_queues_event(self, clock):
        details = BankDetails.create(
            "emp-1", " Alice Smith ", VALID_IBAN, "nwbkgb2l", clock=clock,
        ).unwrap()
        assert details.iban == "GB82WEST12345698765432"
        assert details.bic == "NWBKGB2L"
        assert details.account_holder == "Alice Smith"
        assert details.status is BankDetailsStatus.PENDING
        assert not details.is_verified
        [event] = details.pending_events
        assert isinstance(event, BankDetailsCreated)
        assert event.masked_iban.endswith("5432")
        assert "WEST1234" not in event.masked_iban

    def test_invalid_iban(self, clock):
        result = BankDetails.create("emp-1", "Alice", "GB00WEST12345698765432", VALID_BIC, clock=clock)
        assert result.error == "Invalid IBAN"

    def test_invalid_bic(self, clock):
        result = BankDetails.create("emp-1", "Alice", VALID_IBAN, "BAD", clock=clock)
        assert result.error == "Invalid BIC"

    def test_blank_holder(self, clock):
        assert not BankDetails.create("emp-1", " ", VALID_IBAN, VALID_BIC, clock=clock).ok

    def test_repr_masks_iban(self, clock):
        details = BankDetails.create("emp-1", "Alice", VALID_IBAN, VALID_BIC, clock=clock).unwrap()
        assert "WEST1234" not in repr(details)

    def test_custom_validator(self, clock):
        class AcceptAll:
            def is_valid_iban(self, iban):
                return True

            def is_valid_bic(self, bic):
                return True

        result = BankDetails.create(
            "emp-1", "Alice", "XX00 anything", "zz", validator=AcceptAll(), clock=clock,
        )
        assert result.ok
        assert result.unwrap().iban == "XX00ANYTHING"


class TestVerification:
    @pytest.fixture
    def details(self, clock):
        return BankDetails.create("emp-1", "Alice", VALID_IBAN, VALID_BIC, clock=clock).unwrap()

    def test_verify(self, details):
        assert details.verify().ok
        assert details.is_verified
        assert isinstance(details.pending_events[-1], BankDetailsVerified)

    def test_reject(self, details):
        assert details.reject("Name mismatch").ok
        assert details.status is BankDetailsStatus.REJECTED
        assert details.rejection_reason == "Name mismatch"
        assert isinstance(details.pending_events[-1], BankDetailsRejected)

    def test_reject_needs_reason(self, details):
        assert not details.reject("").ok

    def test_verify_is_one_shot(self, details):
        details.verify().unwrap()
        assert details.verify().error == TRANSITION_ERROR
        assert details.reject("late").error == TRANSITION_ERROR

    def test_rejected_cannot_be_verified(self, details):
        details.reject("Closed").unwrap()
        assert details.verify().error == TRANSITION_ERROR
