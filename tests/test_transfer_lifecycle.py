# tests/test_transfer_lifecycle.py
"""
Tests for peer-to-peer transfers.
"""
from decimal import Decimal

import pytest

from mlm_system.errors import FeatureDisabled, InsufficientFunds, InvalidStateTransition, NotFound, ValidationError
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.transfer_service import TransferService


@pytest.fixture
def transfers(session):
    return TransferService(session)


@pytest.fixture
def pair(make_user):
    return make_user("john.doe", wallet=100), make_user("jane.smith")


class TestRequestTransfer:

    def test_sender_debited_immediately(self, pair, transfers, transactions_of, notifications_of):
        sender, recipient = pair

        transfer = transfers.requestTransfer(sender.userID, "jane.smith", 25)

        assert sender.walletBalance == Decimal("75.00")
        assert recipient.walletBalance == Decimal("0")
        [entry] = transactions_of(sender, "Transfer Request")
        assert entry.status == "Pending"
        assert entry.description == f"Transfer to jane.smith #{transfer.transferID}"
        assert notifications_of(sender)[-1].message == "Your transfer request to jane.smith for $25.00 is pending."

    def test_insufficient_funds(self, pair, transfers, transactions_of):
        sender, _ = pair

        with pytest.raises(InsufficientFunds):
            transfers.requestTransfer(sender.userID, "jane.smith", 100.01)

        assert sender.walletBalance == Decimal("100.00")
        assert transactions_of(sender) == []

    def test_disabled_by_settings(self, session, pair, transfers):
        sender, _ = pair
        SettingsService(session).updateSettings(isUserTransferEnabled=False)

        with pytest.raises(FeatureDisabled):
            transfers.requestTransfer(sender.userID, "jane.smith", 10)

    def test_unknown_recipient(self, pair, transfers):
        sender, _ = pair
        with pytest.raises(NotFound):
            transfers.requestTransfer(sender.userID, "nobody", 10)

    def test_self_transfer(self, pair, transfers):
        sender, _ = pair
        with pytest.raises(ValidationError):
            transfers.requestTransfer(sender.userID, "john.doe", 10)


class TestTransferDecision:

    def test_approve_credits_recipient_and_rewrites_request(self, pair, transfers, transactions_of):
        sender, recipient = pair
        transfer = transfers.requestTransfer(sender.userID, "jane.smith", 50)

        transfers.updateTransferStatus(transfer.transferID, "Approved")

        assert recipient.walletBalance == Decimal("50.00")
        assert sender.walletBalance == Decimal("50.00")
        [sent] = transactions_of(sender)
        assert sent.type == "Transfer Sent"
        assert sent.status == "Approved"
        assert sent.amount == Decimal("-50.00")
        [received] = transactions_of(recipient, "Transfer Received")
        assert received.amount == Decimal("50.00")

    def test_reject_refunds_sender(self, pair, transfers, transactions_of):
        sender, recipient = pair
        transfer = transfers.requestTransfer(sender.userID, "jane.smith", 50)

        transfers.updateTransferStatus(transfer.transferID, "Rejected")

        assert sender.walletBalance == Decimal("100.00")
        assert recipient.walletBalance == Decimal("0")
        [refund] = transactions_of(sender)
        assert refund.type == "Transfer Refund"
        assert refund.amount == Decimal("50.00")

    @pytest.mark.parametrize("first,second", [
        ("Approved", "Rejected"),
        ("Rejected", "Approved"),
        ("Approved", "Approved"),
    ])
    def test_decided_transfer_is_frozen(self, pair, transfers, first, second):
        """TEST: once a transfer leaves Pending, further updates fail and change nothing."""
        sender, recipient = pair
        transfer = transfers.requestTransfer(sender.userID, "jane.smith", 50)
        transfers.updateTransferStatus(transfer.transferID, first)
        balances = (sender.walletBalance, recipient.walletBalance)

        with pytest.raises(InvalidStateTransition):
            transfers.updateTransferStatus(transfer.transferID, second)

        assert (sender.walletBalance, recipient.walletBalance) == balances
        assert transfer.status == first
