# mlm_system/services/transfer_service.py
"""
Peer-to-peer wallet transfers. One-shot: Pending -> Approved or Rejected, then frozen.
"""
from typing import Optional
from sqlalchemy.orm import Session
import logging

from models import Transfer
from mlm_system.config.ledger import RequestStatus, TransactionType, TRANSFER_STATUSES, RELATED_TRANSFER, toMoney, ZERO
from mlm_system.errors import FeatureDisabled, InvalidStateTransition, NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class TransferService:

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.settings = SettingsService(session)

    def getTransfer(self, transferId: int, forUpdate: bool = False) -> Transfer:
        query = self.session.query(Transfer).filter_by(transferID=transferId)
        if forUpdate:
            query = query.with_for_update()
        transfer = query.first()
        if not transfer:
            raise NotFound("Transfer", transferId)
        return transfer

    def requestTransfer(self, senderId: int, recipientUsername: str, amount, notes: Optional[str] = None) -> Transfer:
        """Debit the sender now; the recipient is credited on approval."""
        settings = self.settings.getSettings()
        if not settings.isUserTransferEnabled:
            raise FeatureDisabled("User transfers are disabled")

        amount = toMoney(amount)
        if amount <= ZERO:
            raise ValidationError("Transfer amount must be positive")

        sender = self.ledger.getUser(senderId, forUpdate=True)
        self.ledger.ensureNotBlocked(sender)

        recipient = self.ledger.findUserByUsername(recipientUsername)
        if not recipient:
            raise NotFound("User", recipientUsername)
        if recipient.userID == sender.userID:
            raise ValidationError("Cannot transfer to yourself")
        self.ledger.ensureNotBlocked(recipient)

        self.ledger.ensureSufficientFunds(sender, amount)

        transfer = Transfer(
            senderUserID=sender.userID,
            receiverUserID=recipient.userID,
            amount=amount,
            status=RequestStatus.PENDING.value,
            notes=notes
        )
        self.session.add(transfer)
        self.session.flush()

        self.ledger.debitWallet(sender, amount)
        self.ledger.recordTransaction(
            userId=sender.userID,
            type=TransactionType.TRANSFER_REQUEST.value,
            amount=-amount,
            description=f"Transfer to {recipient.username} #{transfer.transferID}",
            status=RequestStatus.PENDING.value,
            relatedType=RELATED_TRANSFER,
            relatedID=transfer.transferID
        )

        logger.info(f"Transfer {transfer.transferID}: {sender.userID} -> {recipient.userID}, {amount} pending")

        self.notifications.notifyTemplate(
            sender.userID, "transfer_pending", source="transfer",
            recipient=recipient.username, cur=settings.defaultCurrencySymbol, amount=f"{amount:.2f}"
        )
        eventBus.emit(MLMEvents.TRANSFER_REQUESTED, {
            "transferId": transfer.transferID, "senderId": sender.userID, "receiverId": recipient.userID
        })
        return transfer

    def updateTransferStatus(self, transferId: int, newStatus: str) -> Transfer:
        """Approve or reject a Pending transfer. Anything else is refused."""
        if newStatus not in TRANSFER_STATUSES:
            raise ValidationError(f"Unknown transfer status: {newStatus}")

        transfer = self.getTransfer(transferId, forUpdate=True)
        if transfer.status != RequestStatus.PENDING.value or newStatus == RequestStatus.PENDING.value:
            raise InvalidStateTransition("Transfer", transfer.status, newStatus)

        sender = self.ledger.getUser(transfer.senderUserID, forUpdate=True)
        recipient = self.ledger.getUser(transfer.receiverUserID, forUpdate=True)
        amount = toMoney(transfer.amount)
        cur = self.settings.currency

        request = self.ledger.findTransaction(
            RELATED_TRANSFER, transferId, type=TransactionType.TRANSFER_REQUEST.value
        )

        if newStatus == RequestStatus.APPROVED.value:
            self.ledger.creditWallet(recipient, amount)
            self.ledger.recordTransaction(
                userId=recipient.userID,
                type=TransactionType.TRANSFER_RECEIVED.value,
                amount=amount,
                description=f"From {sender.username} #{transferId}",
                relatedType=RELATED_TRANSFER,
                relatedID=transferId
            )
            if request is not None:
                request.type = TransactionType.TRANSFER_SENT.value
                request.status = RequestStatus.APPROVED.value

            self.notifications.notifyTemplate(
                sender.userID, "transfer_sent", source="transfer",
                recipient=recipient.username, cur=cur, amount=f"{amount:.2f}"
            )
            self.notifications.notifyTemplate(
                recipient.userID, "transfer_received", source="transfer",
                sender=sender.username, cur=cur, amount=f"{amount:.2f}"
            )
            eventBus.emit(MLMEvents.TRANSFER_APPROVED, {
                "transferId": transferId, "senderId": sender.userID,
                "receiverId": recipient.userID, "amount": amount
            })
        else:
            self.ledger.creditWallet(sender, amount)
            if request is not None:
                request.type = TransactionType.TRANSFER_REFUND.value
                request.amount = amount
                request.status = RequestStatus.APPROVED.value
                request.description = f"Refund of transfer to {recipient.username} #{transferId}"

            self.notifications.notifyTemplate(
                sender.userID, "transfer_rejected", source="transfer",
                recipient=recipient.username, cur=cur, amount=f"{amount:.2f}"
            )
            eventBus.emit(MLMEvents.TRANSFER_REJECTED, {"transferId": transferId, "senderId": sender.userID})

        transfer.status = newStatus
        self.session.flush()
        logger.info(f"Transfer {transferId} Pending -> {newStatus}")
        return transfer
