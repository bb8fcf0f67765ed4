# mlm_system/services/plan_service.py
"""
Plan catalog management, plan purchase and plan expiry.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from sqlalchemy.orm import Session
import logging

from models import InvestmentPlan, PlanPurchase, User
from mlm_system.config.ledger import (
    PlanStatus, PurchaseStatus, TransactionType, CommissionType, RELATED_PLAN, toMoney, ZERO
)
from mlm_system.errors import NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.settings_service import SettingsService
from mlm_system.utils.time_machine import timeMachine

logger = logging.getLogger(__name__)

PLAN_FIELDS = {
    "name", "price", "durationDays", "minWithdraw", "description", "status",
    "directReferralLimit", "directCommissions", "indirectCommissions",
    "commissionDeductions", "autoUpgrade", "holdPosition",
}


def validateCommissionTable(entries: Optional[List[Dict]], fieldName: str) -> List[Dict]:
    """Normalize a list of {type, value} entries; raise ValidationError on bad input."""
    normalized = []
    for index, entry in enumerate(entries or []):
        if not isinstance(entry, dict):
            raise ValidationError(f"{fieldName}[{index}] must be an object")
        commissionType = entry.get("type")
        if commissionType not in {t.value for t in CommissionType}:
            raise ValidationError(f"{fieldName}[{index}] has unknown type {commissionType}")
        try:
            value = Decimal(str(entry.get("value", 0)))
        except ArithmeticError:
            raise ValidationError(f"{fieldName}[{index}] value is not a number")
        if value < ZERO:
            raise ValidationError(f"{fieldName}[{index}] value cannot be negative")
        # JSON column: keep numbers JSON-native
        normalized.append({"type": commissionType, "value": float(value)})
    return normalized


class PlanService:

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.settings = SettingsService(session)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def getPlan(self, planId: int) -> InvestmentPlan:
        plan = self.session.query(InvestmentPlan).filter_by(planID=planId).first()
        if not plan:
            raise NotFound("InvestmentPlan", planId)
        return plan

    def getPlanByName(self, name: str) -> InvestmentPlan:
        plan = self.session.query(InvestmentPlan).filter_by(name=name).first()
        if not plan:
            raise NotFound("InvestmentPlan", name)
        return plan

    def listPlansByName(self, names: Iterable[str]) -> List[InvestmentPlan]:
        names = list(names or [])
        if not names:
            return []
        return self.session.query(InvestmentPlan).filter(
            InvestmentPlan.name.in_(names)
        ).order_by(InvestmentPlan.planID).all()

    def listPlans(self) -> List[InvestmentPlan]:
        return self.session.query(InvestmentPlan).order_by(InvestmentPlan.planID).all()

    def listActivePlans(self) -> List[InvestmentPlan]:
        return self.session.query(InvestmentPlan).filter_by(
            status=PlanStatus.ACTIVE.value
        ).order_by(InvestmentPlan.price).all()

    def _validatePlanFields(self, fields: dict, planId: Optional[int] = None) -> dict:
        if "name" in fields:
            if not fields["name"]:
                raise ValidationError("Plan name is required")
            existing = self.session.query(InvestmentPlan).filter_by(name=fields["name"]).first()
            if existing and existing.planID != planId:
                raise ValidationError(f"Plan {fields['name']} already exists")

        if "price" in fields:
            fields["price"] = toMoney(fields["price"])
            if fields["price"] < ZERO:
                raise ValidationError("Plan price cannot be negative")

        if "minWithdraw" in fields:
            fields["minWithdraw"] = toMoney(fields["minWithdraw"] or 0)

        for key in ("durationDays", "directReferralLimit"):
            if key in fields:
                fields[key] = int(fields[key] or 0)
                if fields[key] < 0:
                    raise ValidationError(f"{key} cannot be negative")

        if "status" in fields and fields["status"] not in {s.value for s in PlanStatus}:
            raise ValidationError(f"Unknown plan status: {fields['status']}")

        if "directCommissions" in fields:
            fields["directCommissions"] = validateCommissionTable(fields["directCommissions"], "directCommissions")
        if "indirectCommissions" in fields:
            fields["indirectCommissions"] = validateCommissionTable(fields["indirectCommissions"], "indirectCommissions")

        if fields.get("autoUpgrade"):
            upgrade = dict(fields["autoUpgrade"])
            if upgrade.get("enabled"):
                targetId = upgrade.get("toPlanId")
                if not targetId:
                    raise ValidationError("autoUpgrade.toPlanId is required when enabled")
                if planId is not None and int(targetId) == planId:
                    raise ValidationError("A plan cannot auto-upgrade to itself")
                self.getPlan(int(targetId))
                upgrade["toPlanId"] = int(targetId)
            fields["autoUpgrade"] = upgrade

        if fields.get("holdPosition"):
            hold = dict(fields["holdPosition"])
            slots = []
            for slot in hold.get("slots") or []:
                slot = int(slot)
                if slot < 1:
                    raise ValidationError("holdPosition slots are 1-based referral positions")
                slots.append(slot)
            hold["slots"] = sorted(set(slots))
            hold["enabled"] = bool(hold.get("enabled"))
            fields["holdPosition"] = hold

        return fields

    def createPlan(self, name: str, price, **fields) -> InvestmentPlan:
        unknown = set(fields) - PLAN_FIELDS
        if unknown:
            raise ValidationError(f"Unknown plan fields: {', '.join(sorted(unknown))}")

        fields = self._validatePlanFields({"name": name, "price": price, **fields})
        fields.setdefault("status", PlanStatus.ACTIVE.value)
        fields.setdefault("directCommissions", [])
        fields.setdefault("indirectCommissions", [])

        plan = InvestmentPlan(**fields)
        self.session.add(plan)
        self.session.flush()
        logger.info(f"Plan {plan.planID} ({plan.name}) created, price {plan.price}")
        return plan

    def updatePlan(self, planId: int, **changes) -> InvestmentPlan:
        unknown = set(changes) - PLAN_FIELDS
        if unknown:
            raise ValidationError(f"Unknown plan fields: {', '.join(sorted(unknown))}")

        plan = self.getPlan(planId)

        if "name" in changes and changes["name"] != plan.name and self._hasOwners(plan.name):
            raise ValidationError(f"Plan {plan.name} is owned by users and cannot be renamed")

        changes = self._validatePlanFields(dict(changes), planId=planId)
        for field, value in changes.items():
            setattr(plan, field, value)

        self.session.flush()
        logger.info(f"Plan {planId} updated: {sorted(changes)}")
        return plan

    def setPlanStatus(self, planId: int, status: str) -> InvestmentPlan:
        return self.updatePlan(planId, status=status)

    def _hasOwners(self, planName: str) -> bool:
        return any(planName in (plans or []) for (plans,) in self.session.query(User.activePlans).all())

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def grantPlan(self, user: User, plan: InvestmentPlan, source: str = "purchase") -> PlanPurchase:
        """Set-union plan into user's activePlans and record ownership with expiry."""
        user.addPlan(plan.name)
        purchase = PlanPurchase(
            userID=user.userID,
            planID=plan.planID,
            planName=plan.name,
            price=toMoney(plan.price),
            source=source,
            status=PurchaseStatus.ACTIVE.value,
            expiresAt=timeMachine.expiryFor(plan.durationDays)
        )
        self.session.add(purchase)
        self.session.flush()
        return purchase

    def purchasePlan(self, userId: int, planId: int) -> PlanPurchase:
        """
        Buy a plan from the wallet in one step.
        Validation runs before anything is debited.
        """
        user = self.ledger.getUser(userId, forUpdate=True)
        self.ledger.ensureNotBlocked(user)
        plan = self.getPlan(planId)

        if not plan.isActive:
            raise ValidationError(f"Plan {plan.name} is not available for purchase")

        settings = self.settings.getSettings()
        if user.ownsPlan(plan.name) and not settings.allowPlanRepurchase:
            raise ValidationError(f"User {user.username} already owns {plan.name}")

        price = toMoney(plan.price)
        self.ledger.ensureSufficientFunds(user, price)

        if price > ZERO:
            self.ledger.debitWallet(user, price)

        purchase = self.grantPlan(user, plan, source="purchase")

        self.ledger.recordTransaction(
            userId=user.userID,
            type=TransactionType.PLAN_PURCHASE.value,
            amount=-price,
            description=f"Purchased {plan.name}",
            relatedType=RELATED_PLAN,
            relatedID=plan.planID
        )

        logger.info(f"User {user.userID} purchased plan {plan.name} for {price}")

        self.notifications.notifyTemplate(
            user.userID, "plan_purchased", source="plan",
            planName=plan.name, cur=settings.defaultCurrencySymbol, amount=f"{price:.2f}"
        )
        eventBus.emit(MLMEvents.PLAN_PURCHASED, {
            "userId": user.userID, "planId": plan.planID, "price": price, "purchaseId": purchase.purchaseID
        })
        return purchase

    def expirePlans(self) -> int:
        """
        Mark due purchases Expired and drop the plan from activePlans
        unless another active purchase of it remains.
        """
        now = timeMachine.now
        due = self.session.query(PlanPurchase).filter(
            PlanPurchase.status == PurchaseStatus.ACTIVE.value,
            PlanPurchase.expiresAt.isnot(None),
            PlanPurchase.expiresAt <= now
        ).all()

        for purchase in due:
            purchase.status = PurchaseStatus.EXPIRED.value
        self.session.flush()

        for purchase in due:
            stillActive = self.session.query(PlanPurchase).filter(
                PlanPurchase.userID == purchase.userID,
                PlanPurchase.planName == purchase.planName,
                PlanPurchase.status == PurchaseStatus.ACTIVE.value
            ).count()
            if stillActive:
                continue

            user = self.ledger.getUser(purchase.userID, forUpdate=True)
            if user.removePlan(purchase.planName):
                logger.info(f"Plan {purchase.planName} expired for user {user.userID}")
                self.notifications.notifyTemplate(
                    user.userID, "plan_expired", source="plan", planName=purchase.planName
                )
                eventBus.emit(MLMEvents.PLAN_EXPIRED, {"userId": user.userID, "planName": purchase.planName})

        self.session.flush()
        return len(due)
