# mlm_system/services/stats_service.py
"""
Read-side aggregators for admin and member dashboards.
Nothing here mutates state.
"""
from decimal import Decimal
from typing import Dict
from sqlalchemy import func
from sqlalchemy.orm import Session
import logging

from models import Deposit, Transaction, Transfer, User, Withdrawal
from mlm_system.config.ledger import RequestStatus, TransactionType, UserStatus
from mlm_system.services.ledger_service import LedgerService
from mlm_system.utils.chain_walker import SponsorChainWalker

logger = logging.getLogger(__name__)


def _decimal(value) -> Decimal:
    # SQLite hands back floats for SUM over DECIMAL
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


class StatsService:

    def __init__(self, session: Session):
        self.session = session
        self.walker = SponsorChainWalker(session)

    def _sumTransactions(self, type: str, userId: int = None) -> Decimal:
        query = self.session.query(func.sum(Transaction.amount)).filter(Transaction.type == type)
        if userId is not None:
            query = query.filter(Transaction.userID == userId)
        return _decimal(query.scalar())

    def dashboard(self) -> Dict:
        """Platform totals for the admin dashboard."""
        usersByStatus = {status.value: 0 for status in UserStatus}
        for status, count in self.session.query(User.status, func.count(User.userID)).group_by(User.status):
            usersByStatus[status] = count

        approvedDeposits = self.session.query(func.sum(Deposit.amount)).filter(
            Deposit.status == RequestStatus.APPROVED.value
        ).scalar()

        pendingDeposits = self.session.query(func.count(Deposit.depositID)).filter(
            Deposit.status == RequestStatus.PENDING.value
        ).scalar() or 0

        openWithdrawals = self.session.query(func.count(Withdrawal.withdrawalID)).filter(
            Withdrawal.status.in_([RequestStatus.PENDING.value, RequestStatus.MATCHING.value])
        ).scalar() or 0

        pendingTransfers = self.session.query(func.count(Transfer.transferID)).filter(
            Transfer.status == RequestStatus.PENDING.value
        ).scalar() or 0

        stats = {
            "totalUsers": sum(usersByStatus.values()),
            "usersByStatus": usersByStatus,
            "totalDeposits": _decimal(approvedDeposits),
            "pendingDeposits": pendingDeposits,
            "openWithdrawals": openWithdrawals,
            "pendingTransfers": pendingTransfers,
            "totalCommissions": self._sumTransactions(TransactionType.COMMISSION.value),
            "totalHeldBalance": _decimal(self.session.query(func.sum(User.heldBalance)).scalar()),
            "totalWalletBalance": _decimal(self.session.query(func.sum(User.walletBalance)).scalar()),
        }
        logger.debug(f"Dashboard stats: {stats}")
        return stats

    def userEarnings(self, userId: int) -> Dict:
        """Commission earnings for one user, split by level."""
        LedgerService(self.session).getUser(userId)

        byLevel = {}
        rows = self.session.query(Transaction.level, func.sum(Transaction.amount)).filter(
            Transaction.userID == userId,
            Transaction.type == TransactionType.COMMISSION.value
        ).group_by(Transaction.level).all()
        for level, total in rows:
            byLevel[level] = _decimal(total)

        upgrades = self.session.query(func.count(Transaction.transactionID)).filter(
            Transaction.userID == userId,
            Transaction.type == TransactionType.PLAN_UPGRADE.value
        ).scalar() or 0

        return {
            "userId": userId,
            "commissionsByLevel": byLevel,
            "totalCommissions": sum(byLevel.values(), Decimal("0.00")),
            "heldCommissions": self._sumTransactions(TransactionType.HELD_COMMISSION.value, userId),
            "upgrades": upgrades,
        }

    def teamSummary(self, userId: int, maxDepth: int = 10) -> Dict:
        user = LedgerService(self.session).getUser(userId)
        levels = self.walker.downline_by_level(user, max_depth=maxDepth)
        return {
            "userId": userId,
            "directReferrals": self.walker.count_direct_referrals(user),
            "downlineByLevel": levels,
            "teamSize": sum(levels.values()),
        }
