# models/purchase.py
from sqlalchemy import Column, Integer, String, DECIMAL, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, AuditMixin


class PlanPurchase(Base, AuditMixin):
    __tablename__ = 'plan_purchases'

    # Primary key
    purchaseID = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign keys
    userID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)
    planID = Column(Integer, ForeignKey('investment_plans.planID'), nullable=False)
    planName = Column(String)  # Дублируем для удобства

    price = Column(DECIMAL(12, 2), nullable=False)
    source = Column(String, default="purchase")  # purchase, upgrade
    status = Column(String, default="Active", index=True)  # Active, Expired
    expiresAt = Column(DateTime, nullable=True)  # None = бессрочно

    # Relationships
    user = relationship('User', backref='planPurchases')
    plan = relationship('InvestmentPlan')

    def __repr__(self):
        return f"<PlanPurchase(purchaseID={self.purchaseID}, user={self.userID}, plan={self.planName})>"
