# models/withdrawal.py
"""
Withdrawal model - payout requests, paid by admin or by matched peer deposits.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from models.base import Base, AuditMixin


class Withdrawal(Base, AuditMixin):
    __tablename__ = 'withdrawals'

    # Primary key
    withdrawalID = Column(Integer, primary_key=True, autoincrement=True)

    # Relations
    userID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)

    # Amounts
    amount = Column(DECIMAL(12, 2), nullable=False)  # списывается с кошелька целиком
    fee = Column(DECIMAL(12, 2), default=0)
    finalAmount = Column(DECIMAL(12, 2), nullable=False)  # amount - fee, то что получит пользователь

    # Payout destination
    method = Column(String, nullable=True)
    accountTitle = Column(String, nullable=True)
    accountNumber = Column(String, nullable=True)

    status = Column(String, default="Pending")  # Pending, Matching, Approved, Paid, Rejected
    matchRemainingAmount = Column(DECIMAL(12, 2), nullable=True)

    paidAt = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship('User', backref='withdrawals')

    def __repr__(self):
        return f"<Withdrawal(withdrawalID={self.withdrawalID}, user={self.userID}, amount={self.amount}, status={self.status})>"
