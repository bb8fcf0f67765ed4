# models/settings.py
"""
SystemSettings - single mutable row with site-wide toggles.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, Boolean
from models.base import Base, AuditMixin


class SystemSettings(Base, AuditMixin):
    __tablename__ = 'system_settings'

    settingsID = Column(Integer, primary_key=True)  # всегда 1

    defaultCurrencySymbol = Column(String, default="$")
    siteWideMinWithdrawal = Column(DECIMAL(12, 2), default=10)

    # Feature toggles
    isUserTransferEnabled = Column(Boolean, default=True)
    restrictWithdrawalAmount = Column(Boolean, default=False)
    allowPlanRepurchase = Column(Boolean, default=True)

    def __repr__(self):
        return (f"<SystemSettings(transfers={self.isUserTransferEnabled}, "
                f"restrictWithdrawal={self.restrictWithdrawalAmount}, repurchase={self.allowPlanRepurchase})>")
