# tests/test_ledger_service.py
"""
Tests for ledger primitives and the event bus they report through.
"""
from decimal import Decimal

import pytest

from models import Notification
from mlm_system.errors import InsufficientFunds, NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService


@pytest.fixture
def ledger(session):
    return LedgerService(session)


class TestBalancePrimitives:

    def test_credit_and_debit_wallet(self, ledger, make_user):
        user = make_user("alice")

        ledger.creditWallet(user, Decimal("12.50"))
        ledger.debitWallet(user.userID, 2)

        assert user.walletBalance == Decimal("10.50")

    def test_debit_does_not_check_balance(self, ledger, make_user):
        user = make_user("alice")
        ledger.debitWallet(user, 5)
        assert user.walletBalance == Decimal("-5.00")

    def test_held_balance_is_separate(self, ledger, make_user):
        user = make_user("alice", wallet=10)

        ledger.creditHeld(user, 40)
        ledger.debitHeld(user, 15)

        assert user.heldBalance == Decimal("25.00")
        assert user.walletBalance == Decimal("10.00")

    @pytest.mark.parametrize("amount", [0, -1])
    def test_amount_must_be_positive(self, ledger, make_user, amount):
        user = make_user("alice")
        with pytest.raises(ValidationError):
            ledger.creditWallet(user, amount)

    def test_ensure_sufficient_funds(self, ledger, make_user):
        user = make_user("alice", wallet=10)

        ledger.ensureSufficientFunds(user, 10)
        with pytest.raises(InsufficientFunds) as excinfo:
            ledger.ensureSufficientFunds(user, Decimal("10.01"))

        assert excinfo.value.available == Decimal("10.00")

    def test_unknown_user(self, ledger):
        with pytest.raises(NotFound):
            ledger.getUser(404)


class TestTransactionLog:

    def test_record_and_find_by_related_entity(self, ledger, make_user):
        user = make_user("alice")
        ledger.recordTransaction(user.userID, "Deposit", 10, relatedType="deposit", relatedID=7)
        latest = ledger.recordTransaction(user.userID, "Deposit Reversal", -10, relatedType="deposit", relatedID=7)
        ledger.recordTransaction(user.userID, "Deposit", 99, relatedType="deposit", relatedID=8)

        assert ledger.findTransaction("deposit", 7) is latest
        assert ledger.findTransaction("deposit", 7, type="Deposit").amount == Decimal("10.00")
        assert ledger.findTransaction("withdrawal", 7) is None


class TestEventBus:

    def test_failing_handler_does_not_break_emit(self):
        calls = []

        def broken(data):
            raise RuntimeError("boom")

        def recorder(data):
            calls.append(data)

        eventBus.subscribe("test.event", broken)
        eventBus.subscribe("test.event", recorder)

        eventBus.emit("test.event", {"x": 1})

        assert calls == [{"x": 1}]

    def test_notification_created_event(self, session, make_user):
        user = make_user("alice")
        seen = []
        eventBus.subscribe(MLMEvents.NOTIFICATION_CREATED, seen.append)

        NotificationService(session).notify(user.userID, "hello", source="test")

        assert seen[0]["userId"] == user.userID
        assert seen[0]["message"] == "hello"

    def test_notify_never_raises(self, session):
        notification = NotificationService(session).notify(None, "orphan")

        assert notification is None
        assert session.query(Notification).filter_by(message="orphan").count() == 0
