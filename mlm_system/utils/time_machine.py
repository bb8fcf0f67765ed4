# mlm_system/utils/time_machine.py
"""
Clock for plan ownership.

Purchases stamp expiresAt from it and the expiry sweep compares against it.
Tests freeze it with setTime() and roll it forward with advanceTime().
"""
from datetime import datetime, timezone, timedelta
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class TimeMachine:
    """Process-wide clock, real by default, frozen on request."""

    _instance = None
    _frozenAt: Optional[datetime] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def isFrozen(self) -> bool:
        return self._frozenAt is not None

    @property
    def now(self) -> datetime:
        """Naive UTC, matching the DateTime columns."""
        if self.isFrozen:
            return self._frozenAt
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def expiryFor(self, durationDays: int) -> Optional[datetime]:
        """expiresAt for a plan granted now; 0 days means it never expires."""
        if not durationDays:
            return None
        return self.now + timedelta(days=int(durationDays))

    def isDue(self, expiresAt: Optional[datetime]) -> bool:
        return expiresAt is not None and expiresAt <= self.now

    def setTime(self, newTime: datetime, adminId: Optional[int] = None):
        """Freeze the clock at newTime."""
        if newTime.tzinfo is not None:
            newTime = newTime.astimezone(timezone.utc).replace(tzinfo=None)
        self._frozenAt = newTime
        logger.info(f"Clock frozen at {newTime} by admin {adminId}")

    def advanceTime(self, days: int = 0, hours: int = 0):
        if not self.isFrozen:
            raise ValueError("Clock must be frozen with setTime() before it can be advanced")

        self._frozenAt += timedelta(days=days, hours=hours)
        logger.info(f"Clock moved to {self._frozenAt}")

    def resetToRealTime(self):
        self._frozenAt = None
        logger.debug("Clock back to real time")


timeMachine = TimeMachine()
