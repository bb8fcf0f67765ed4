# tests/conftest.py
"""
Pytest configuration and shared fixtures for ledger tests.

Every test gets a fresh in-memory SQLite database.

Run:
    pytest tests -v
"""
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from init import enable_sqlite_savepoints, init_tables
from models import Transaction, Notification
from mlm_system.events.event_bus import eventBus
from mlm_system.services.deposit_service import DepositService
from mlm_system.services.plan_service import PlanService
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.user_service import UserService
from mlm_system.utils.time_machine import timeMachine


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """In-memory database shared by all connections of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    enable_sqlite_savepoints(engine)
    init_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_globals():
    """Event bus and time machine are process-wide singletons."""
    eventBus.clear()
    timeMachine.resetToRealTime()
    yield
    eventBus.clear()
    timeMachine.resetToRealTime()


@pytest.fixture
def settings(session):
    return SettingsService(session).getSettings()


# =============================================================================
# PLAN FIXTURES
# =============================================================================

@pytest.fixture
def make_plan(session):
    """Factory: make_plan(name, price, **fields) -> InvestmentPlan."""
    plans = PlanService(session)

    def _make(name, price, **fields):
        return plans.createPlan(name=name, price=price, **fields)

    return _make


@pytest.fixture
def slot_plan(make_plan):
    """Three direct slots: 10%, 10%, 8%; one indirect level at 5%."""
    return make_plan(
        "Slot Plan", 50,
        directReferralLimit=3,
        directCommissions=[
            {"type": "percentage", "value": 10},
            {"type": "percentage", "value": 10},
            {"type": "percentage", "value": 8},
        ],
        indirectCommissions=[{"type": "percentage", "value": 5}]
    )


# =============================================================================
# USER FIXTURES
# =============================================================================

@pytest.fixture
def make_user(session):
    """
    Factory: make_user(username, sponsor=None, wallet=0, plans=()) -> User.

    Plans are granted without charging the wallet.
    """
    users = UserService(session)
    planService = PlanService(session)

    def _make(username, sponsor=None, wallet=0, plans=(), **fields):
        user = users.registerUser(username, sponsor=sponsor, **fields)
        if wallet:
            user.walletBalance = Decimal(str(wallet))
        for plan in plans:
            planService.grantPlan(user, plan, source="purchase")
        session.flush()
        return user

    return _make


@pytest.fixture
def make_chain(make_user):
    """Factory: make_chain(length, plan) -> [top, ..., bottom], each sponsored by the previous."""

    def _make(length, plan=None, prefix="member"):
        chain = []
        sponsor = None
        for i in range(length):
            user = make_user(f"{prefix}{i}", sponsor=sponsor, plans=[plan] if plan else ())
            chain.append(user)
            sponsor = user.username
        return chain

    return _make


# =============================================================================
# HELPER FIXTURES
# =============================================================================

@pytest.fixture
def approve_deposit(session):
    """Create a deposit for user and approve it in one call."""
    deposits = DepositService(session)

    def _approve(user, amount, **fields):
        deposit = deposits.createDeposit(user.userID, amount, **fields)
        return deposits.updateDepositStatus(deposit.depositID, "Approved", adminId="admin")

    return _approve


@pytest.fixture
def transactions_of(session):
    """Transactions of a user, optionally filtered by type, oldest first."""

    def _query(user, type=None):
        query = session.query(Transaction).filter_by(userID=user.userID)
        if type:
            query = query.filter_by(type=type)
        return query.order_by(Transaction.transactionID).all()

    return _query


@pytest.fixture
def notifications_of(session):

    def _query(user):
        return session.query(Notification).filter_by(
            userID=user.userID
        ).order_by(Notification.notificationID).all()

    return _query
