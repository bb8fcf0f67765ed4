# tests/test_users_and_settings.py
"""
Tests for user administration, settings and notifications.
"""
from decimal import Decimal

import pytest

from mlm_system.errors import NotFound, ValidationError
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.user_service import UserService


@pytest.fixture
def users(session):
    return UserService(session)


class TestRegistration:

    def test_new_user_starts_empty(self, users):
        user = users.registerUser("alice", fullName="Alice A", country="UK")

        assert user.walletBalance == Decimal("0")
        assert user.heldBalance == Decimal("0")
        assert user.activePlans == []
        assert user.status == "Active"
        assert user.sponsor is None

    def test_username_is_unique(self, users):
        users.registerUser("alice")
        with pytest.raises(ValidationError):
            users.registerUser("alice")

    def test_sponsor_must_exist(self, users):
        with pytest.raises(NotFound):
            users.registerUser("bob", sponsor="ghost")

    def test_sponsor_is_told_about_new_referral(self, users, notifications_of):
        sponsor = users.registerUser("alice")
        users.registerUser("bob", sponsor="alice")

        assert notifications_of(sponsor)[-1].message == "bob has joined your team as a direct referral."

    def test_direct_referrals(self, users):
        sponsor = users.registerUser("alice")
        users.registerUser("bob", sponsor="alice")
        users.registerUser("carol", sponsor="alice")
        users.registerUser("dave", sponsor="bob")

        assert [u.username for u in users.getDirectReferrals(sponsor.userID)] == ["bob", "carol"]


class TestStatusToggle:

    @pytest.mark.parametrize("start,expected", [
        ("Active", "Blocked"),
        ("Blocked", "Active"),
        ("Pending", "Active"),
    ])
    def test_toggle(self, users, start, expected):
        user = users.registerUser("alice", status=start)
        assert users.toggleUserStatus(user.userID).status == expected


class TestManualAdjustment:

    def test_credit(self, users, transactions_of):
        user = users.registerUser("alice")

        users.manualWalletAdjustment(user.userID, 30, "Bonus correction", adminId=1)

        assert user.walletBalance == Decimal("30.00")
        [entry] = transactions_of(user, "Manual Credit")
        assert entry.amount == Decimal("30.00")
        assert entry.description == "Bonus correction"

    def test_debit_may_go_negative(self, users, transactions_of):
        user = users.registerUser("alice")

        users.manualWalletAdjustment(user.userID, -20, "Correction for incorrect bonus.")

        assert user.walletBalance == Decimal("-20.00")
        [entry] = transactions_of(user, "Manual Debit")
        assert entry.amount == Decimal("-20.00")

    def test_zero_is_rejected(self, users):
        user = users.registerUser("alice")
        with pytest.raises(ValidationError):
            users.manualWalletAdjustment(user.userID, 0, "nothing")


class TestSettings:

    def test_defaults_created_on_first_read(self, session):
        settings = SettingsService(session).getSettings()

        assert settings.defaultCurrencySymbol == "$"
        assert settings.isUserTransferEnabled is True
        assert settings.restrictWithdrawalAmount is False
        assert settings.allowPlanRepurchase is True
        assert Decimal(str(settings.siteWideMinWithdrawal)) == Decimal("10")

    def test_update_and_currency_symbol_in_messages(self, session, users, notifications_of):
        SettingsService(session).updateSettings(defaultCurrencySymbol="€")
        user = users.registerUser("alice")

        users.manualWalletAdjustment(user.userID, 5, "Welcome")

        assert notifications_of(user)[-1].message.startswith("Your wallet was adjusted by €5.00")

    def test_unknown_setting(self, session):
        with pytest.raises(ValidationError):
            SettingsService(session).updateSettings(maintenanceMode=True)


class TestNotifications:

    def test_mark_all_read(self, session, users):
        user = users.registerUser("alice")
        notifications = NotificationService(session)
        notifications.notify(user.userID, "one")
        notifications.notify(user.userID, "two")

        assert len(notifications.listUnread(user.userID)) == 2
        assert notifications.markAllRead(user.userID) == 2
        assert notifications.listUnread(user.userID) == []
        assert notifications.markAllRead(user.userID) == 0
