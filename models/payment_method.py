# models/payment_method.py
"""
PaymentMethod model - deposit/withdrawal channels with limits and fees.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, Text
from models.base import Base, AuditMixin


class PaymentMethod(Base, AuditMixin):
    __tablename__ = 'payment_methods'

    methodID = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # Deposit, Withdrawal

    accountTitle = Column(String, nullable=True)
    accountNumber = Column(String, nullable=True)
    instructions = Column(Text, nullable=True)

    minAmount = Column(DECIMAL(12, 2), default=0)
    maxAmount = Column(DECIMAL(12, 2), default=0)  # 0 = no upper limit
    feePercent = Column(DECIMAL(5, 2), default=0)

    status = Column(String, default="Enabled")  # Enabled, Disabled

    def __repr__(self):
        return f"<PaymentMethod(methodID={self.methodID}, name={self.name}, type={self.type})>"
