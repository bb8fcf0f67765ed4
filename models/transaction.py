# models/transaction.py
"""
Transaction model - append-only ledger of every money movement.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, ForeignKey, Text
from sqlalchemy.orm import relationship
from models.base import Base, AuditMixin


class Transaction(Base, AuditMixin):
    __tablename__ = 'transactions'

    transactionID = Column(Integer, primary_key=True, autoincrement=True)
    userID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)

    type = Column(String, nullable=False, index=True)  # см. TransactionType
    amount = Column(DECIMAL(12, 2), nullable=False)  # со знаком: + зачисление, - списание
    status = Column(String, default="Approved")  # Pending, Approved, Rejected
    description = Column(Text, nullable=True)
    level = Column(Integer, nullable=True)  # глубина комиссии, 1 = прямой спонсор

    # Originating entity (deposit / withdrawal / transfer / plan / purchase)
    relatedType = Column(String, nullable=True)
    relatedID = Column(Integer, nullable=True, index=True)

    # Relationships
    user = relationship('User', backref='transactions')

    def __repr__(self):
        return f"<Transaction(transactionID={self.transactionID}, user={self.userID}, type={self.type}, amount={self.amount})>"
