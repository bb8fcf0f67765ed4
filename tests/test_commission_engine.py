# tests/test_commission_engine.py
"""
Tests for the sponsor-chain commission engine.

Run:
    pytest tests/test_commission_engine.py -v
"""
from decimal import Decimal

import pytest

from mlm_system.services.commission_service import CommissionService, calculateCommission
from mlm_system.services.deposit_service import DepositService
from mlm_system.utils.plan_helpers import highestPlan, loadCatalog


# =============================================================================
# TEST CLASS: commission math
# =============================================================================

class TestCalculateCommission:

    def test_percentage_of_amount(self):
        """TEST: percentage configs pay amount * value / 100."""
        assert calculateCommission({"type": "percentage", "value": 10}, Decimal("250")) == Decimal("25.00")

    def test_fractional_percentage_is_rounded_to_cents(self):
        assert calculateCommission({"type": "percentage", "value": 0.5}, Decimal("33")) == Decimal("0.16")

    def test_fixed_ignores_amount(self):
        """TEST: fixed configs pay a flat value regardless of deposit size."""
        assert calculateCommission({"type": "fixed", "value": 25}, Decimal("1")) == Decimal("25.00")
        assert calculateCommission({"type": "fixed", "value": 25}, Decimal("9999")) == Decimal("25.00")

    @pytest.mark.parametrize("config", [None, {}, {"type": "fixed", "value": 0}])
    def test_missing_or_zero_config_pays_nothing(self, config):
        assert calculateCommission(config, Decimal("100")) == Decimal("0")


# =============================================================================
# TEST CLASS: direct slot indexing
# =============================================================================

class TestDirectSlots:

    def test_slot_sequence_10_10_8_then_nothing(self, session, make_user, slot_plan, approve_deposit):
        """
        TEST: 1st, 2nd, 3rd direct referral deposits of $100 pay $10, $10, $8;
        the 4th is outside the slot table and pays nothing.
        """
        sponsor = make_user("sponsor", plans=[slot_plan])
        payouts = []

        for i in range(4):
            referral = make_user(f"ref{i}", sponsor="sponsor")
            before = sponsor.walletBalance
            approve_deposit(referral, 100)
            payouts.append(sponsor.walletBalance - before)

        assert payouts == [Decimal("10.00"), Decimal("10.00"), Decimal("8.00"), Decimal("0.00")]

    def test_referral_count_is_taken_at_commission_time(self, session, make_user, slot_plan, approve_deposit):
        """
        TEST: the slot comes from the number of direct referrals when the
        deposit is approved, not from the depositor's registration order.
        """
        sponsor = make_user("sponsor", plans=[slot_plan])
        first = make_user("first", sponsor="sponsor")
        make_user("second", sponsor="sponsor")
        make_user("third", sponsor="sponsor")

        approve_deposit(first, 100)

        # three directs exist -> slot index 2 -> 8%
        assert sponsor.walletBalance == Decimal("8.00")

    def test_slot_table_longer_than_limit_is_indexed_by_table(self, session, make_user, make_plan,
                                                               approve_deposit):
        """TEST: the direct slot is bounded by the commission table, not by directReferralLimit."""
        plan = make_plan("Short Limit", 50, directReferralLimit=2,
                         directCommissions=[{"type": "fixed", "value": 5},
                                            {"type": "fixed", "value": 5},
                                            {"type": "fixed", "value": 7}])
        sponsor = make_user("sponsor", plans=[plan])
        make_user("ref1", sponsor="sponsor")
        make_user("ref2", sponsor="sponsor")

        approve_deposit(make_user("ref3", sponsor="sponsor"), 100)

        assert sponsor.walletBalance == Decimal("7.00")

    def test_unlimited_plan_reuses_slot_zero(self, session, make_user, make_plan, approve_deposit):
        plan = make_plan("Unlimited", 200, directReferralLimit=0,
                         directCommissions=[{"type": "percentage", "value": 15}])
        sponsor = make_user("sponsor", plans=[plan])

        for i in range(12):
            approve_deposit(make_user(f"ref{i}", sponsor="sponsor"), 100)

        assert sponsor.walletBalance == Decimal("180.00")

    def test_commission_transaction_records_level(self, session, make_user, slot_plan, approve_deposit,
                                                  transactions_of):
        sponsor = make_user("sponsor", plans=[slot_plan])
        referral = make_user("ref", sponsor="sponsor")

        deposit = approve_deposit(referral, 100)

        [entry] = transactions_of(sponsor, "Commission")
        assert entry.level == 1
        assert entry.amount == Decimal("10.00")
        assert entry.status == "Approved"
        assert entry.relatedType == "deposit"
        assert entry.relatedID == deposit.depositID


# =============================================================================
# TEST CLASS: chain walk
# =============================================================================

class TestChainWalk:

    def test_indirect_level_two(self, session, make_user, slot_plan, approve_deposit, transactions_of):
        """TEST: the sponsor's sponsor earns indirectCommissions[0] at level 2."""
        grand = make_user("grand", plans=[slot_plan])
        make_user("parent", sponsor="grand", plans=[slot_plan])
        child = make_user("child", sponsor="parent")

        approve_deposit(child, 200)

        [entry] = transactions_of(grand, "Commission")
        assert entry.level == 2
        assert entry.amount == Decimal("10.00")

    def test_sponsor_without_plan_breaks_chain(self, session, make_user, slot_plan, approve_deposit):
        """TEST: a sponsor with no plan stops the walk; ancestors above get nothing."""
        top = make_user("top", plans=[slot_plan])
        middle = make_user("middle", sponsor="top")
        depositor = make_user("depositor", sponsor="middle")

        approve_deposit(depositor, 100)

        assert middle.walletBalance == Decimal("0")
        assert top.walletBalance == Decimal("0")
        assert top.heldBalance == Decimal("0")

    def test_zero_level_is_skipped_but_walk_continues(self, session, make_user, make_plan, approve_deposit):
        plan = make_plan("ZeroDirect", 10, directReferralLimit=0,
                         directCommissions=[{"type": "fixed", "value": 0}],
                         indirectCommissions=[{"type": "fixed", "value": 3}])
        top = make_user("top", plans=[plan])
        middle = make_user("middle", sponsor="top", plans=[plan])
        depositor = make_user("depositor", sponsor="middle")

        approve_deposit(depositor, 100)

        assert middle.walletBalance == Decimal("0")
        assert top.walletBalance == Decimal("3.00")

    def test_depth_cap_at_ten_levels(self, session, make_plan, make_chain, approve_deposit, transactions_of):
        """
        TEST: a 16-user chain with rates configured for every level only pays
        through level 10.
        """
        plan = make_plan(
            "Deep", 10, directReferralLimit=0,
            directCommissions=[{"type": "fixed", "value": 1}],
            indirectCommissions=[{"type": "fixed", "value": 1} for _ in range(14)]
        )
        chain = make_chain(16, plan)
        depositor = chain[-1]

        approve_deposit(depositor, 100)

        paid = [user for user in chain[:-1] if transactions_of(user, "Commission")]
        assert len(paid) == 10
        assert paid == chain[5:15]
        for user in chain[:5]:
            assert user.walletBalance == Decimal("0")

    def test_total_distributed_matches_credits(self, session, make_user, slot_plan):
        make_user("grand", plans=[slot_plan])
        make_user("parent", sponsor="grand", plans=[slot_plan])
        child = make_user("child", sponsor="parent")
        deposit = DepositService(session).createDeposit(child.userID, 100)
        deposit.status = "Approved"

        result = CommissionService(session).processDeposit(deposit)

        assert result["totalDistributed"] == Decimal("15.00")
        assert [c["level"] for c in result["commissions"]] == [1, 2]


# =============================================================================
# TEST CLASS: plan resolution
# =============================================================================

class TestHighestPlan:

    def test_highest_price_plan_sets_the_rate(self, session, make_user, make_plan, approve_deposit):
        cheap = make_plan("Cheap", 10, directReferralLimit=0,
                          directCommissions=[{"type": "percentage", "value": 5}])
        pricey = make_plan("Pricey", 100, directReferralLimit=0,
                           directCommissions=[{"type": "percentage", "value": 20}])
        sponsor = make_user("sponsor", plans=[cheap, pricey])

        approve_deposit(make_user("ref", sponsor="sponsor"), 100)

        assert sponsor.walletBalance == Decimal("20.00")

    def test_highest_plan_pure_function(self, session, make_user, make_plan):
        a = make_plan("A", 50)
        b = make_plan("B", 50)
        c = make_plan("C", 20)
        user = make_user("u", plans=[a, b, c])

        catalog = loadCatalog(session)

        # tie on price keeps the first owned plan
        assert highestPlan(user, catalog) is a

    def test_highest_plan_ignores_unknown_names(self, session, make_user):
        user = make_user("u")
        user.activePlans = ["Ghost Plan"]
        assert highestPlan(user, loadCatalog(session)) is None
