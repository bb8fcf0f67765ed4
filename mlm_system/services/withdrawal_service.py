# mlm_system/services/withdrawal_service.py
"""
Withdrawal lifecycle.

The full amount leaves the wallet at request time. Rejection refunds it,
leaving Rejected takes it again. Paid is final. A Matching withdrawal is
paid down by other users' P2P deposits until nothing remains.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
import logging

from models import Deposit, Withdrawal
from mlm_system.config.ledger import (
    RequestStatus, TransactionType, WITHDRAWAL_STATUSES, WITHDRAWAL_TERMINAL,
    PaymentMethodType, RELATED_WITHDRAWAL, toMoney, ZERO
)
from mlm_system.errors import InvalidStateTransition, NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.payment_method_service import PaymentMethodService
from mlm_system.services.settings_service import SettingsService
from mlm_system.utils.plan_helpers import highestPlan, loadCatalog

logger = logging.getLogger(__name__)


class WithdrawalService:

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.settings = SettingsService(session)
        self.paymentMethods = PaymentMethodService(session)

    def getWithdrawal(self, withdrawalId: int, forUpdate: bool = False) -> Withdrawal:
        query = self.session.query(Withdrawal).filter_by(withdrawalID=withdrawalId)
        if forUpdate:
            query = query.with_for_update()
        withdrawal = query.first()
        if not withdrawal:
            raise NotFound("Withdrawal", withdrawalId)
        return withdrawal

    def listMatchingWithdrawals(self, excludeUserId: Optional[int] = None) -> List[Withdrawal]:
        """Withdrawals open for P2P deposits, oldest first."""
        query = self.session.query(Withdrawal).filter_by(status=RequestStatus.MATCHING.value)
        if excludeUserId:
            query = query.filter(Withdrawal.userID != excludeUserId)
        return query.order_by(Withdrawal.withdrawalID).all()

    def _checkMinimums(self, user, amount: Decimal):
        settings = self.settings.getSettings()
        if not settings.restrictWithdrawalAmount:
            return

        siteMin = toMoney(settings.siteWideMinWithdrawal)
        if amount < siteMin:
            raise ValidationError(f"Minimum withdrawal is {siteMin}")

        plan = highestPlan(user, loadCatalog(self.session, user.activePlans or []))
        if plan is not None and amount < toMoney(plan.minWithdraw):
            raise ValidationError(f"Minimum withdrawal for {plan.name} is {toMoney(plan.minWithdraw)}")

    def requestWithdrawal(
            self,
            userId: int,
            amount,
            method: str = None,
            accountTitle: str = None,
            accountNumber: str = None,
            notes: str = None
    ) -> Withdrawal:
        """Create a Pending withdrawal and debit the full amount."""
        amount = toMoney(amount)
        if amount <= ZERO:
            raise ValidationError("Withdrawal amount must be positive")

        user = self.ledger.getUser(userId, forUpdate=True)
        self.ledger.ensureNotBlocked(user)

        paymentMethod = self.paymentMethods.resolveForRequest(method, PaymentMethodType.WITHDRAWAL.value, amount)
        self._checkMinimums(user, amount)
        self.ledger.ensureSufficientFunds(user, amount)

        fee, finalAmount = PaymentMethodService.calculateFee(paymentMethod, amount)

        withdrawal = Withdrawal(
            userID=user.userID,
            amount=amount,
            fee=fee,
            finalAmount=finalAmount,
            method=method,
            accountTitle=accountTitle,
            accountNumber=accountNumber,
            status=RequestStatus.PENDING.value,
            notes=notes
        )
        self.session.add(withdrawal)
        self.session.flush()

        self.ledger.debitWallet(user, amount)
        self.ledger.recordTransaction(
            userId=user.userID,
            type=TransactionType.WITHDRAWAL_REQUEST.value,
            amount=-amount,
            description=f"Pending Withdrawal #{withdrawal.withdrawalID}",
            status=RequestStatus.PENDING.value,
            relatedType=RELATED_WITHDRAWAL,
            relatedID=withdrawal.withdrawalID
        )

        logger.info(
            f"Withdrawal {withdrawal.withdrawalID} requested by user {user.userID}: "
            f"amount {amount}, fee {fee}, final {finalAmount}"
        )

        self.notifications.notifyTemplate(
            user.userID, "withdrawal_created", source="withdrawal",
            withdrawalId=withdrawal.withdrawalID, cur=self.settings.currency, amount=f"{amount:.2f}"
        )
        eventBus.emit(MLMEvents.WITHDRAWAL_REQUESTED, {
            "withdrawalId": withdrawal.withdrawalID, "userId": user.userID, "amount": amount
        })
        return withdrawal

    def updateWithdrawalStatus(self, withdrawalId: int, newStatus: str, notes: str = None) -> Withdrawal:
        """
        Admin transition. Same status is a no-op; nothing leaves Paid.
        """
        if newStatus not in WITHDRAWAL_STATUSES:
            raise ValidationError(f"Unknown withdrawal status: {newStatus}")

        withdrawal = self.getWithdrawal(withdrawalId, forUpdate=True)
        previous = withdrawal.status

        if previous == newStatus:
            logger.debug(f"Withdrawal {withdrawalId} already {newStatus}, nothing to do")
            return withdrawal

        if previous in WITHDRAWAL_TERMINAL:
            raise InvalidStateTransition("Withdrawal", previous, newStatus)

        user = self.ledger.getUser(withdrawal.userID, forUpdate=True)
        amount = toMoney(withdrawal.amount)

        # Leaving Rejected: take the refunded amount again
        if previous == RequestStatus.REJECTED.value:
            self.ledger.ensureSufficientFunds(user, amount)
            self.ledger.debitWallet(user, amount)
            self.ledger.recordTransaction(
                userId=user.userID,
                type=TransactionType.WITHDRAWAL_REQUEST.value,
                amount=-amount,
                description=f"Reinstated Withdrawal #{withdrawalId}",
                status=RequestStatus.PENDING.value,
                relatedType=RELATED_WITHDRAWAL,
                relatedID=withdrawalId
            )

        withdrawal.status = newStatus
        if notes:
            withdrawal.notes = notes

        if newStatus == RequestStatus.MATCHING.value:
            withdrawal.matchRemainingAmount = toMoney(withdrawal.finalAmount)

        elif newStatus == RequestStatus.REJECTED.value:
            self.ledger.creditWallet(user, amount)
            self.ledger.recordTransaction(
                userId=user.userID,
                type=TransactionType.WITHDRAWAL_REFUND.value,
                amount=amount,
                description=f"Refund for Withdrawal #{withdrawalId}",
                relatedType=RELATED_WITHDRAWAL,
                relatedID=withdrawalId
            )
            self._setRequestTransactionStatus(withdrawal, RequestStatus.REJECTED.value)
            eventBus.emit(MLMEvents.WITHDRAWAL_REJECTED, {"withdrawalId": withdrawalId, "userId": user.userID})

        elif newStatus == RequestStatus.PAID.value:
            self._recordPaid(withdrawal)

        self.session.flush()
        logger.info(f"Withdrawal {withdrawalId} status {previous} -> {newStatus}")

        if newStatus != RequestStatus.PAID.value:
            self.notifications.notifyTemplate(
                user.userID, "withdrawal_status", source="withdrawal",
                withdrawalId=withdrawalId, cur=self.settings.currency,
                amount=f"{amount:.2f}", status=newStatus
            )
        return withdrawal

    def applyMatchedDeposit(self, deposit: Deposit) -> Dict:
        """
        Pay down a Matching withdrawal with an approved P2P deposit.
        Clamps at zero; reaching zero marks the withdrawal Paid.
        """
        result = {"matched": False, "withdrawalId": deposit.matchedWithdrawalID, "remaining": None, "paid": False}

        withdrawal = self.session.query(Withdrawal).filter_by(
            withdrawalID=deposit.matchedWithdrawalID
        ).with_for_update().first()

        if not withdrawal:
            logger.warning(f"Deposit {deposit.depositID}: matched withdrawal {deposit.matchedWithdrawalID} not found")
            return result

        if withdrawal.status != RequestStatus.MATCHING.value:
            logger.warning(
                f"Deposit {deposit.depositID}: withdrawal {withdrawal.withdrawalID} is {withdrawal.status}, "
                f"not Matching - match skipped"
            )
            return result

        remaining = toMoney(withdrawal.matchRemainingAmount) - toMoney(deposit.amount)
        if remaining < ZERO:
            remaining = toMoney(0)
        withdrawal.matchRemainingAmount = remaining

        result.update(matched=True, remaining=remaining)

        depositor = self.ledger.getUser(deposit.userID)
        cur = self.settings.currency
        logger.info(
            f"Deposit {deposit.depositID} matched to withdrawal {withdrawal.withdrawalID}, remaining {remaining}"
        )
        self.notifications.notifyTemplate(
            withdrawal.userID, "withdrawal_matched", source="withdrawal",
            withdrawalId=withdrawal.withdrawalID, cur=cur, amount=f"{toMoney(deposit.amount):.2f}",
            fromUser=depositor.username, remaining=f"{remaining:.2f}"
        )
        eventBus.emit(MLMEvents.WITHDRAWAL_MATCHED, {
            "withdrawalId": withdrawal.withdrawalID, "depositId": deposit.depositID, "remaining": remaining
        })

        if remaining == ZERO:
            withdrawal.status = RequestStatus.PAID.value
            self._recordPaid(withdrawal)
            result["paid"] = True

        self.session.flush()
        return result

    def _recordPaid(self, withdrawal: Withdrawal):
        finalAmount = toMoney(withdrawal.finalAmount)
        withdrawal.paidAt = datetime.now(timezone.utc)

        self.ledger.recordTransaction(
            userId=withdrawal.userID,
            type=TransactionType.WITHDRAWAL.value,
            amount=-finalAmount,
            description=f"Withdrawal #{withdrawal.withdrawalID} paid",
            relatedType=RELATED_WITHDRAWAL,
            relatedID=withdrawal.withdrawalID
        )
        self._setRequestTransactionStatus(withdrawal, RequestStatus.APPROVED.value)

        logger.info(f"Withdrawal {withdrawal.withdrawalID} paid: {finalAmount} to user {withdrawal.userID}")

        self.notifications.notifyTemplate(
            withdrawal.userID, "withdrawal_paid", source="withdrawal",
            withdrawalId=withdrawal.withdrawalID, cur=self.settings.currency, amount=f"{finalAmount:.2f}"
        )
        eventBus.emit(MLMEvents.WITHDRAWAL_PAID, {
            "withdrawalId": withdrawal.withdrawalID, "userId": withdrawal.userID, "finalAmount": finalAmount
        })

    def _setRequestTransactionStatus(self, withdrawal: Withdrawal, status: str):
        request = self.ledger.findTransaction(
            RELATED_WITHDRAWAL, withdrawal.withdrawalID,
            type=TransactionType.WITHDRAWAL_REQUEST.value
        )
        if request is not None:
            request.status = status
