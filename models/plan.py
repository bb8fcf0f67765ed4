# models/plan.py
"""
InvestmentPlan model - the commission schedule of a tier.
"""
from typing import Optional, List, Dict

from sqlalchemy import Column, Integer, String, DECIMAL, JSON, Text
from models.base import Base, AuditMixin


class InvestmentPlan(Base, AuditMixin):
    __tablename__ = 'investment_plans'

    planID = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    durationDays = Column(Integer, default=0)  # 0 = unlimited
    minWithdraw = Column(DECIMAL(12, 2), default=0)
    description = Column(Text, nullable=True)
    status = Column(String, default="Active")  # Active, Disabled

    directReferralLimit = Column(Integer, default=0)  # 0 = unlimited

    directCommissions = Column(JSON, default=list)
    # [{"type": "percentage", "value": 10}, {"type": "fixed", "value": 25}, ...]
    # slot i pays when the sponsor's (i+1)-th direct referral deposits

    indirectCommissions = Column(JSON, default=list)
    # index 0 = level 2, index 1 = level 3, ...

    commissionDeductions = Column(JSON, nullable=True)
    # {"afterMaxPayout": 0, "afterMaxEarning": 0, "afterMaxDirect": 0}  (display only)

    autoUpgrade = Column(JSON, nullable=True)
    # {"enabled": true, "toPlanId": 2}

    holdPosition = Column(JSON, nullable=True)
    # {"enabled": true, "slots": [9, 10]}

    @property
    def isActive(self) -> bool:
        return self.status == "Active"

    @property
    def autoUpgradeTargetId(self) -> Optional[int]:
        """Target plan id when auto-upgrade is enabled, else None."""
        cfg = self.autoUpgrade or {}
        if not cfg.get("enabled") or not cfg.get("toPlanId"):
            return None
        return int(cfg["toPlanId"])

    @property
    def holdSlots(self) -> set:
        cfg = self.holdPosition or {}
        if not cfg.get("enabled"):
            return set()
        return {int(slot) for slot in cfg.get("slots") or []}

    def directCommissionFor(self, referralCount: int) -> Optional[Dict]:
        """
        Commission config for the sponsor's referralCount-th direct referral.
        Unlimited plans reuse slot 0 for every referral.
        """
        slots: List[Dict] = self.directCommissions or []
        if not slots:
            return None
        if not self.directReferralLimit:
            return slots[0]
        slotIndex = referralCount - 1
        if slotIndex < 0 or slotIndex >= len(slots):
            return None
        return slots[slotIndex]

    def indirectCommissionFor(self, level: int) -> Optional[Dict]:
        slots: List[Dict] = self.indirectCommissions or []
        index = level - 2
        if index < 0 or index >= len(slots):
            return None
        return slots[index]

    def __repr__(self):
        return f"<InvestmentPlan(planID={self.planID}, name={self.name}, price={self.price})>"
