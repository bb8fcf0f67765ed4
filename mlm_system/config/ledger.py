# mlm_system/config/ledger.py
"""
Ledger configuration: statuses, transaction types and money constants.
"""
from enum import Enum
from decimal import Decimal


class RequestStatus(Enum):
    PENDING = "Pending"
    MATCHING = "Matching"
    APPROVED = "Approved"
    PAID = "Paid"
    REJECTED = "Rejected"


class UserStatus(Enum):
    ACTIVE = "Active"
    BLOCKED = "Blocked"
    PENDING = "Pending"


class PlanStatus(Enum):
    ACTIVE = "Active"
    DISABLED = "Disabled"


class PurchaseStatus(Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"


class TransactionType(Enum):
    DEPOSIT = "Deposit"
    DEPOSIT_REVERSAL = "Deposit Reversal"
    WITHDRAWAL_REQUEST = "Withdrawal Request"
    WITHDRAWAL = "Withdrawal"
    WITHDRAWAL_REFUND = "Withdrawal Refund"
    COMMISSION = "Commission"
    HELD_COMMISSION = "Held Commission"
    MANUAL_CREDIT = "Manual Credit"
    MANUAL_DEBIT = "Manual Debit"
    PLAN_PURCHASE = "Plan Purchase"
    PLAN_UPGRADE = "Plan Upgrade"
    TRANSFER_REQUEST = "Transfer Request"
    TRANSFER_SENT = "Transfer Sent"
    TRANSFER_RECEIVED = "Transfer Received"
    TRANSFER_REFUND = "Transfer Refund"


class CommissionType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethodType(Enum):
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"


class PaymentMethodStatus(Enum):
    ENABLED = "Enabled"
    DISABLED = "Disabled"


# Values of Transaction.relatedType
RELATED_DEPOSIT = "deposit"
RELATED_WITHDRAWAL = "withdrawal"
RELATED_TRANSFER = "transfer"
RELATED_PLAN = "plan"
RELATED_USER = "user"

# Withdrawal may move from any state to any other except out of Paid
WITHDRAWAL_TERMINAL = {RequestStatus.PAID.value}

DEPOSIT_STATUSES = {RequestStatus.PENDING.value, RequestStatus.APPROVED.value, RequestStatus.REJECTED.value}
WITHDRAWAL_STATUSES = {s.value for s in RequestStatus}
TRANSFER_STATUSES = DEPOSIT_STATUSES

# Constants
MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def toMoney(value) -> Decimal:
    """Normalize any numeric value to a 2-place Decimal."""
    return Decimal(str(value if value is not None else 0)).quantize(MONEY_QUANT)
