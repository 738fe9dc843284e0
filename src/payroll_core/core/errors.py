"""Custom exception hierarchy for the payroll core.

Expected business failures are returned as ``Result`` values, never raised.
The exceptions here signal caller bugs or infrastructure trouble.
"""


class PayrollError(Exception):
    """Base exception for all payroll errors."""


# --- Configuration ---
class ConfigError(PayrollError):
    """Invalid or missing configuration."""


# --- Domain ---
class DomainError(PayrollError):
    """Domain model misuse."""


class ValidationError(DomainError, ValueError):
    """A value object was constructed from invalid input."""


class CurrencyMismatchError(DomainError):
    """Arithmetic or ordering attempted across two currencies."""

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Currency mismatch: {left} vs {right}")


class PreconditionError(DomainError):
    """A mandatory collaborator was missing or of the wrong type."""


class ResultError(DomainError):
    """A failed ``Result`` was unwrapped."""


# --- Banking ---
class BankingError(PayrollError):
    """Bank collaborator error."""


class BankGatewayError(BankingError):
    """The bank gateway could not process a request."""
