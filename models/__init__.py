# models/__init__.py
"""
Database models for the earning portal.
Import all models here for easy access.
"""

# Base and mixins
from models.base import Base, AuditMixin

# Core models
from models.user import User
from models.plan import InvestmentPlan
from models.purchase import PlanPurchase
from models.withdrawal import Withdrawal
from models.deposit import Deposit
from models.transfer import Transfer
from models.transaction import Transaction
from models.notification import Notification

# Configuration models
from models.settings import SystemSettings
from models.payment_method import PaymentMethod

__all__ = [
    # Base
    'Base',
    'AuditMixin',

    # Core
    'User',
    'InvestmentPlan',
    'PlanPurchase',
    'Withdrawal',
    'Deposit',
    'Transfer',
    'Transaction',
    'Notification',

    # Configuration
    'SystemSettings',
    'PaymentMethod',
]
