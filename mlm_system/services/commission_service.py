# mlm_system/services/commission_service.py
"""
Commission engine - pays the sponsor chain when a deposit is approved.
"""
from decimal import Decimal
from typing import Dict, Optional
from sqlalchemy.orm import Session
import logging

import config
from models import Deposit, InvestmentPlan, User
from mlm_system.config.ledger import (
    CommissionType, TransactionType, RELATED_DEPOSIT, RELATED_PLAN, toMoney, ZERO, HUNDRED
)
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.plan_service import PlanService
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.withdrawal_service import WithdrawalService
from mlm_system.utils.chain_walker import SponsorChainWalker
from mlm_system.utils.plan_helpers import highestPlan, loadCatalog

logger = logging.getLogger(__name__)


def calculateCommission(commissionConfig: Optional[Dict], amount) -> Decimal:
    """Percentage of amount, or a flat value. Zero for missing/non-positive configs."""
    if not commissionConfig:
        return toMoney(0)
    value = Decimal(str(commissionConfig.get("value") or 0))
    if value <= ZERO:
        return toMoney(0)
    if commissionConfig.get("type") == CommissionType.PERCENTAGE.value:
        return toMoney(toMoney(amount) * value / HUNDRED)
    return toMoney(value)


class CommissionService:
    """Service for calculating and paying sponsor-chain commissions."""

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.walker = SponsorChainWalker(session)
        self.settings = SettingsService(session)
        self.maxDepth = config.COMMISSION_MAX_DEPTH

    def processDeposit(self, deposit: Deposit) -> Dict:
        """
        Main entry point, called on every transition of a deposit into Approved.
        P2P deposits pay down their withdrawal and generate no commission.
        """
        if deposit.matchedWithdrawalID:
            match = WithdrawalService(self.session).applyMatchedDeposit(deposit)
            logger.info(f"Deposit {deposit.depositID} is P2P, commissions skipped")
            return {
                "success": True,
                "deposit": deposit.depositID,
                "commissions": [],
                "totalDistributed": toMoney(0),
                "match": match
            }

        depositor = self.ledger.getUser(deposit.userID)
        amount = toMoney(deposit.amount)
        catalog = loadCatalog(self.session)
        catalogById = {plan.planID: plan for plan in catalog.values()}

        results = {
            "success": True,
            "deposit": deposit.depositID,
            "commissions": [],
            "totalDistributed": toMoney(0),
            "upgrades": []
        }

        def payLevel(sponsor: User, level: int) -> bool:
            plan = highestPlan(sponsor, catalog)
            if plan is None:
                logger.warning(
                    f"Deposit {deposit.depositID}: sponsor {sponsor.username} at level {level} "
                    f"has no plan, chain stops"
                )
                return False

            referralCount = None
            if level == 1:
                referralCount = self.walker.count_direct_referrals(sponsor)
                commissionConfig = plan.directCommissionFor(referralCount)
            else:
                commissionConfig = plan.indirectCommissionFor(level)

            commission = calculateCommission(commissionConfig, amount)
            if commission <= ZERO:
                logger.debug(f"Deposit {deposit.depositID}: no commission for {sponsor.username} at level {level}")
                return True

            sponsor = self.ledger.getUser(sponsor.userID, forUpdate=True)
            isHeld = level == 1 and referralCount in plan.holdSlots

            if isHeld:
                entry = self._holdCommission(sponsor, plan, commission, depositor, deposit)
                results["upgrades"].extend(self._checkAutoUpgrade(sponsor, plan, catalogById))
            else:
                entry = self._payCommission(sponsor, commission, level, depositor, deposit)

            entry["planName"] = plan.name
            results["commissions"].append(entry)
            results["totalDistributed"] += commission
            return True

        self.walker.walk_upline(depositor, payLevel, max_depth=self.maxDepth)

        logger.info(
            f"Processed deposit {deposit.depositID}: "
            f"{len(results['commissions'])} commissions, "
            f"total {results['totalDistributed']}"
        )
        return results

    def _payCommission(self, sponsor: User, commission: Decimal, level: int,
                       depositor: User, deposit: Deposit) -> Dict:
        self.ledger.creditWallet(sponsor, commission)
        self.ledger.recordTransaction(
            userId=sponsor.userID,
            type=TransactionType.COMMISSION.value,
            amount=commission,
            description=f"From {depositor.username} (Deposit #{deposit.depositID})",
            level=level,
            relatedType=RELATED_DEPOSIT,
            relatedID=deposit.depositID
        )

        logger.info(f"Commission L{level} {commission} to user {sponsor.userID} from deposit {deposit.depositID}")

        self.notifications.notifyTemplate(
            sponsor.userID, "commission_paid", source="commission",
            level=level, cur=self.settings.currency, amount=f"{commission:.2f}", fromUser=depositor.username
        )
        eventBus.emit(MLMEvents.COMMISSION_PAID, {
            "userId": sponsor.userID, "amount": commission, "level": level, "depositId": deposit.depositID
        })
        return {"userId": sponsor.userID, "amount": commission, "level": level, "held": False}

    def _holdCommission(self, sponsor: User, plan: InvestmentPlan, commission: Decimal,
                        depositor: User, deposit: Deposit) -> Dict:
        self.ledger.creditHeld(sponsor, commission)
        self.ledger.recordTransaction(
            userId=sponsor.userID,
            type=TransactionType.HELD_COMMISSION.value,
            amount=commission,
            description=f"Held from {depositor.username} (Deposit #{deposit.depositID})",
            level=1,
            relatedType=RELATED_DEPOSIT,
            relatedID=deposit.depositID
        )

        logger.info(f"Commission {commission} held for user {sponsor.userID}, held {sponsor.heldBalance}")

        self.notifications.notifyTemplate(
            sponsor.userID, "commission_held", source="commission",
            cur=self.settings.currency, amount=f"{commission:.2f}",
            fromUser=depositor.username, planName=plan.name
        )
        eventBus.emit(MLMEvents.COMMISSION_HELD, {
            "userId": sponsor.userID, "amount": commission, "heldBalance": sponsor.heldBalance,
            "depositId": deposit.depositID
        })
        return {"userId": sponsor.userID, "amount": commission, "level": 1, "held": True}

    def _checkAutoUpgrade(self, user: User, plan: InvestmentPlan, catalogById: Dict[int, InvestmentPlan]):
        """
        Spend held balance on the plan's upgrade target while it covers the price.
        Follows the target's own auto-upgrade. An owned target is granted again
        (set union), which releases the escrow and renews the ownership record.
        """
        upgrades = []
        current = plan
        seen = {plan.planID}

        while current is not None:
            targetId = current.autoUpgradeTargetId
            if targetId is None or targetId in seen:
                break
            target = catalogById.get(targetId)
            if target is None:
                logger.warning(f"Auto-upgrade target plan {targetId} of {current.name} not found")
                break

            price = toMoney(target.price)
            if toMoney(user.heldBalance) < price:
                break

            if price > ZERO:
                self.ledger.debitHeld(user, price)
            PlanService(self.session).grantPlan(user, target, source="upgrade")
            self.ledger.recordTransaction(
                userId=user.userID,
                type=TransactionType.PLAN_UPGRADE.value,
                amount=-price,
                description=f"Auto-upgrade to {target.name} from held balance",
                relatedType=RELATED_PLAN,
                relatedID=target.planID
            )

            logger.info(f"User {user.userID} auto-upgraded to {target.name}, held left {user.heldBalance}")

            self.notifications.notifyTemplate(
                user.userID, "plan_upgraded", source="plan", planName=target.name
            )
            eventBus.emit(MLMEvents.PLAN_UPGRADED, {
                "userId": user.userID, "planId": target.planID, "planName": target.name, "price": price
            })

            upgrades.append({"userId": user.userID, "planName": target.name, "price": price})
            seen.add(target.planID)
            current = target

        return upgrades
