# models/transfer.py
"""
Transfer model - tracks peer-to-peer wallet transfers between users.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, AuditMixin


class Transfer(Base, AuditMixin):
    __tablename__ = 'transfers'

    # Primary key
    transferID = Column(Integer, primary_key=True, autoincrement=True)

    senderUserID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)
    receiverUserID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)

    amount = Column(DECIMAL(12, 2), nullable=False)

    # Status: one-shot, once not Pending the record is frozen
    status = Column(String, default="Pending")  # Pending, Approved, Rejected
    notes = Column(String, nullable=True)

    # Relationships
    sender = relationship('User', foreign_keys=[senderUserID], backref='transfers_sent')
    receiver = relationship('User', foreign_keys=[receiverUserID], backref='transfers_received')

    def __repr__(self):
        return f"<Transfer(transferID={self.transferID}, from={self.senderUserID}, to={self.receiverUserID}, amount={self.amount})>"
