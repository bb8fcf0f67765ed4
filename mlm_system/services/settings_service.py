# mlm_system/services/settings_service.py
"""
Site-wide settings: one row, created from config defaults on first read.
"""
from sqlalchemy.orm import Session
import logging

import config
from models import SystemSettings
from mlm_system.config.ledger import toMoney, ZERO
from mlm_system.errors import ValidationError

logger = logging.getLogger(__name__)

SETTINGS_ID = 1

EDITABLE_FIELDS = {
    "defaultCurrencySymbol",
    "siteWideMinWithdrawal",
    "isUserTransferEnabled",
    "restrictWithdrawalAmount",
    "allowPlanRepurchase",
}


class SettingsService:

    def __init__(self, session: Session):
        self.session = session

    def getSettings(self) -> SystemSettings:
        settings = self.session.query(SystemSettings).filter_by(settingsID=SETTINGS_ID).first()
        if settings is None:
            settings = SystemSettings(
                settingsID=SETTINGS_ID,
                defaultCurrencySymbol=config.DEFAULT_CURRENCY_SYMBOL,
                siteWideMinWithdrawal=config.SITE_WIDE_MIN_WITHDRAWAL,
                isUserTransferEnabled=config.USER_TRANSFER_ENABLED,
                restrictWithdrawalAmount=config.RESTRICT_WITHDRAWAL_AMOUNT,
                allowPlanRepurchase=config.ALLOW_PLAN_REPURCHASE
            )
            self.session.add(settings)
            self.session.flush()
            logger.info("System settings created from defaults")
        return settings

    @property
    def currency(self) -> str:
        return self.getSettings().defaultCurrencySymbol or "$"

    def updateSettings(self, **changes) -> SystemSettings:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        if "siteWideMinWithdrawal" in changes:
            value = toMoney(changes["siteWideMinWithdrawal"])
            if value < ZERO:
                raise ValidationError("siteWideMinWithdrawal cannot be negative")
            changes["siteWideMinWithdrawal"] = value

        settings = self.getSettings()
        for field, value in changes.items():
            setattr(settings, field, value)

        self.session.flush()
        logger.info(f"Settings updated: {changes}")
        return settings
