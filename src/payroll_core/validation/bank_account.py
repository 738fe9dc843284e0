"""IBAN / BIC format validation.

``BankDetails`` only decides *whether* to reject; the format rules live
behind ``IBankAccountValidator`` so a stricter checker (a registry lookup,
a vendor API) can replace ``StandardBankAccountValidator``.

IBAN rules (ISO 13616):
  * two-letter country code, two check digits, alphanumeric BBAN
  * total length 15-34, or the exact registered length for known countries
  * moving the first four characters to the end and mapping A=10 .. Z=35
    gives a number that is 1 mod 97

BIC rules (ISO 9362): 4 letters (institution), 2 letters (country),
2 alphanumerics (location), optional 3 alphanumerics (branch).
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

#: Registered IBAN lengths for the countries we pay into most often.
IBAN_LENGTHS: dict[str, int] = {
    "AT": 20,
    "BE": 16,
    "CH": 21,
    "DE": 22,
    "DK": 18,
    "ES": 24,
    "FI": 18,
    "FR": 27,
    "GB": 22,
    "IE": 22,
    "IT": 27,
    "LU": 20,
    "NL": 18,
    "NO": 15,
    "PL": 28,
    "PT": 25,
    "SE": 24,
}

_IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")
_BIC_RE = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$")


def normalize_iban(iban: str) -> str:
    return "".join(iban.split()).upper()


def normalize_bic(bic: str) -> str:
    return bic.strip().upper()


@runtime_checkable
class IBankAccountValidator(Protocol):
    """Format checks for bank account identifiers."""

    def is_valid_iban(self, iban: str) -> bool: ...

    def is_valid_bic(self, bic: str) -> bool: ...


class StandardBankAccountValidator:
    """ISO 13616 / ISO 9362 structural validation.  No network calls."""

    def is_valid_iban(self, iban: str) -> bool:
        if not isinstance(iban, str):
            return False
        value = normalize_iban(iban)
        if not _IBAN_RE.match(value):
            return False
        expected = IBAN_LENGTHS.get(value[:2])
        if expected is not None and len(value) != expected:
            return False
        rearranged = value[4:] + value[:4]
        digits = "".join(str(int(ch, 36)) for ch in rearranged)
        return int(digits) % 97 == 1

    def is_valid_bic(self, bic: str) -> bool:
        if not isinstance(bic, str):
            return False
        return bool(_BIC_RE.match(normalize_bic(bic)))
