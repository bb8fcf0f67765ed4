# models/deposit.py
"""
Deposit model - wallet top-ups, optionally paying a peer's Matching withdrawal.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from models.base import Base, AuditMixin


class Deposit(Base, AuditMixin):
    __tablename__ = 'deposits'

    # Primary key
    depositID = Column(Integer, primary_key=True, autoincrement=True)

    # Relations
    userID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)

    # Deposit details
    amount = Column(DECIMAL(12, 2), nullable=False)
    method = Column(String, nullable=True)  # имя PaymentMethod
    externalTxID = Column(String, nullable=True)  # ID транзакции у платежного провайдера
    receiptUrl = Column(String, nullable=True)  # хранится снаружи, здесь только ссылка
    status = Column(String, default="Pending")  # Pending, Approved, Rejected

    # P2P: deposit pays another user's Matching withdrawal, no commissions
    matchedWithdrawalID = Column(Integer, ForeignKey('withdrawals.withdrawalID'), nullable=True, index=True)

    # Confirmation
    confirmedBy = Column(String, nullable=True)
    confirmationTime = Column(DateTime, nullable=True)

    userNotes = Column(Text, nullable=True)
    adminNotes = Column(Text, nullable=True)

    # Relationships
    user = relationship('User', backref='deposits')
    matchedWithdrawal = relationship('Withdrawal', backref='matchedDeposits')

    def __repr__(self):
        return f"<Deposit(depositID={self.depositID}, user={self.userID}, amount={self.amount}, status={self.status})>"
