# mlm_system/errors.py
"""
Ledger exceptions. Raised before any mutation, reported to the caller as-is.
"""
from decimal import Decimal


class LedgerError(Exception):
    """Base class for all ledger/lifecycle failures."""


class InsufficientFunds(LedgerError):
    def __init__(self, required, available, userId=None):
        self.required = Decimal(str(required))
        self.available = Decimal(str(available or 0))
        self.userId = userId
        super().__init__(
            f"Insufficient funds: required {self.required:.2f}, available {self.available:.2f}"
        )


class NotFound(LedgerError):
    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class InvalidStateTransition(LedgerError):
    def __init__(self, entity: str, current: str, requested: str):
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(f"{entity} cannot move from {current} to {requested}")


class ValidationError(LedgerError):
    """Bad input: amounts, statuses, duplicates, limits."""


class FeatureDisabled(ValidationError):
    """Operation switched off in SystemSettings."""
