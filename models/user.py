# models/user.py
"""
User model - central entity for the system.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, JSON, Text
from models.base import Base, AuditMixin


class User(Base, AuditMixin):
    __tablename__ = 'users'

    # Primary identification
    userID = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    sponsor = Column(String, nullable=True, index=True)  # username спонсора, не меняется после регистрации

    # Personal information
    fullName = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    country = Column(String, nullable=True)

    # System fields
    status = Column(String, default="Active")  # Active, Blocked, Pending

    # Balances
    walletBalance = Column(DECIMAL(12, 2), default=0)
    heldBalance = Column(DECIMAL(12, 2), default=0)  # escrow toward auto-upgrade

    # Plan names currently owned (set semantics, stored as list)
    activePlans = Column(JSON, default=list)

    notes = Column(Text, nullable=True)  # Только для админских заметок

    def ownsPlan(self, planName: str) -> bool:
        return planName in (self.activePlans or [])

    def addPlan(self, planName: str) -> bool:
        """
        Set-union a plan name into activePlans.
        The list is reassigned so the JSON column is flagged dirty.

        Returns:
            True if the plan was not owned before
        """
        plans = list(self.activePlans or [])
        if planName in plans:
            return False
        plans.append(planName)
        self.activePlans = plans
        return True

    def removePlan(self, planName: str) -> bool:
        plans = list(self.activePlans or [])
        if planName not in plans:
            return False
        plans.remove(planName)
        self.activePlans = plans
        return True

    def __repr__(self):
        return f"<User(userID={self.userID}, username={self.username}, sponsor={self.sponsor})>"
