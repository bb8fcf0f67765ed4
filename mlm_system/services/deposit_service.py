# mlm_system/services/deposit_service.py
"""
Deposit lifecycle: Pending -> Approved/Rejected, with Approved <-> Rejected
allowed as an admin correction.
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
import logging

from models import Deposit
from mlm_system.config.ledger import (
    RequestStatus, TransactionType, DEPOSIT_STATUSES, PaymentMethodType, RELATED_DEPOSIT, toMoney, ZERO
)
from mlm_system.errors import InvalidStateTransition, NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.commission_service import CommissionService
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.payment_method_service import PaymentMethodService
from mlm_system.services.settings_service import SettingsService
from mlm_system.services.withdrawal_service import WithdrawalService

logger = logging.getLogger(__name__)


class DepositService:

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.settings = SettingsService(session)
        self.paymentMethods = PaymentMethodService(session)

    def getDeposit(self, depositId: int, forUpdate: bool = False) -> Deposit:
        query = self.session.query(Deposit).filter_by(depositID=depositId)
        if forUpdate:
            query = query.with_for_update()
        deposit = query.first()
        if not deposit:
            raise NotFound("Deposit", depositId)
        return deposit

    def createDeposit(
            self,
            userId: int,
            amount,
            method: str = None,
            externalTxID: str = None,
            receiptUrl: str = None,
            matchedWithdrawalId: Optional[int] = None,
            userNotes: str = None
    ) -> Deposit:
        """
        Submit a Pending deposit. Nothing moves until an admin approves it.
        A matchedWithdrawalId makes this a P2P payment of that withdrawal.
        """
        amount = toMoney(amount)
        if amount <= ZERO:
            raise ValidationError("Deposit amount must be positive")

        user = self.ledger.getUser(userId)
        self.ledger.ensureNotBlocked(user)
        self.paymentMethods.resolveForRequest(method, PaymentMethodType.DEPOSIT.value, amount)

        if matchedWithdrawalId:
            withdrawal = WithdrawalService(self.session).getWithdrawal(matchedWithdrawalId)
            if withdrawal.status != RequestStatus.MATCHING.value:
                raise ValidationError(f"Withdrawal #{matchedWithdrawalId} is not open for matching")
            if withdrawal.userID == user.userID:
                raise ValidationError("A deposit cannot be matched to the depositor's own withdrawal")

        deposit = Deposit(
            userID=user.userID,
            amount=amount,
            method=method,
            externalTxID=externalTxID,
            receiptUrl=receiptUrl,
            matchedWithdrawalID=matchedWithdrawalId,
            userNotes=userNotes,
            status=RequestStatus.PENDING.value
        )
        self.session.add(deposit)
        self.session.flush()

        logger.info(f"Deposit {deposit.depositID} created by user {user.userID}: {amount} via {method}")

        self.notifications.notifyTemplate(
            user.userID, "deposit_created", source="deposit",
            depositId=deposit.depositID, cur=self.settings.currency, amount=f"{amount:.2f}"
        )
        eventBus.emit(MLMEvents.DEPOSIT_CREATED, {"depositId": deposit.depositID, "userId": user.userID})
        return deposit

    def updateDepositStatus(self, depositId: int, newStatus: str, adminId: Optional[str] = None,
                            adminNotes: str = None) -> Deposit:
        """
        Admin transition.

        -> Approved credits the wallet and runs the commission engine (or the P2P match).
        Approved -> Rejected takes the deposit back; commissions already paid stay.
        Same status is a no-op.
        """
        if newStatus not in DEPOSIT_STATUSES:
            raise ValidationError(f"Unknown deposit status: {newStatus}")

        deposit = self.getDeposit(depositId, forUpdate=True)
        previous = deposit.status

        if previous == newStatus:
            logger.debug(f"Deposit {depositId} already {newStatus}, nothing to do")
            return deposit

        if newStatus == RequestStatus.PENDING.value:
            raise InvalidStateTransition("Deposit", previous, newStatus)

        user = self.ledger.getUser(deposit.userID, forUpdate=True)
        amount = toMoney(deposit.amount)

        deposit.status = newStatus
        deposit.confirmedBy = str(adminId) if adminId is not None else deposit.confirmedBy
        deposit.confirmationTime = datetime.now(timezone.utc)
        if adminNotes:
            deposit.adminNotes = adminNotes

        if newStatus == RequestStatus.APPROVED.value:
            self.ledger.creditWallet(user, amount)
            self.ledger.recordTransaction(
                userId=user.userID,
                type=TransactionType.DEPOSIT.value,
                amount=amount,
                description=f"Approved Deposit #{depositId}",
                relatedType=RELATED_DEPOSIT,
                relatedID=depositId
            )
            self.session.flush()
            commissionResult = CommissionService(self.session).processDeposit(deposit)
            eventBus.emit(MLMEvents.DEPOSIT_APPROVED, {
                "depositId": depositId, "userId": user.userID, "amount": amount,
                "totalCommissions": commissionResult["totalDistributed"]
            })

        elif previous == RequestStatus.APPROVED.value:
            # Approved -> Rejected: reverse the credit only
            self.ledger.debitWallet(user, amount)
            self.ledger.recordTransaction(
                userId=user.userID,
                type=TransactionType.DEPOSIT_REVERSAL.value,
                amount=-amount,
                description=f"Reversed Deposit #{depositId}",
                relatedType=RELATED_DEPOSIT,
                relatedID=depositId
            )
            eventBus.emit(MLMEvents.DEPOSIT_REJECTED, {"depositId": depositId, "userId": user.userID})

        else:
            eventBus.emit(MLMEvents.DEPOSIT_REJECTED, {"depositId": depositId, "userId": user.userID})

        self.session.flush()
        logger.info(f"Deposit {depositId} status {previous} -> {newStatus} by {adminId}")

        self.notifications.notifyTemplate(
            user.userID, "deposit_status", source="deposit",
            depositId=depositId, cur=self.settings.currency, amount=f"{amount:.2f}",
            status=newStatus.lower()
        )
        return deposit
