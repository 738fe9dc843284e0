"""Format validators the domain delegates to."""

from .bank_account import IBankAccountValidator, StandardBankAccountValidator

__all__ = ["IBankAccountValidator", "StandardBankAccountValidator"]
