# mlm_system/__init__.py
"""
Ledger and commission engine for the earning portal.
"""

# Services
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.payment_method_service import PaymentMethodService
from mlm_system.services.user_service import UserService
from mlm_system.services.plan_service import PlanService
from mlm_system.services.withdrawal_service import WithdrawalService
from mlm_system.services.commission_service import CommissionService
from mlm_system.services.deposit_service import DepositService
from mlm_system.services.transfer_service import TransferService
from mlm_system.services.stats_service import StatsService

# Errors
from mlm_system.errors import (
    LedgerError, InsufficientFunds, NotFound, InvalidStateTransition, ValidationError, FeatureDisabled
)

# Utilities
from mlm_system.utils.time_machine import timeMachine
from mlm_system.utils.chain_walker import SponsorChainWalker
from mlm_system.utils.plan_helpers import highestPlan

# Events
from mlm_system.events.event_bus import eventBus, MLMEvents

__all__ = [
    # Services
    'LedgerService',
    'NotificationService',
    'SettingsService',
    'PaymentMethodService',
    'UserService',
    'PlanService',
    'WithdrawalService',
    'CommissionService',
    'DepositService',
    'TransferService',
    'StatsService',

    # Errors
    'LedgerError',
    'InsufficientFunds',
    'NotFound',
    'InvalidStateTransition',
    'ValidationError',
    'FeatureDisabled',

    # Utils
    'timeMachine',
    'SponsorChainWalker',
    'highestPlan',

    # Events
    'eventBus',
    'MLMEvents',
]
