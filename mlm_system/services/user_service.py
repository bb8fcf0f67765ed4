# mlm_system/services/user_service.py
"""
User administration: registration, status, manual wallet corrections.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from models import User
from mlm_system.config.ledger import UserStatus, TransactionType, RELATED_USER, toMoney, ZERO
from mlm_system.errors import NotFound, ValidationError
from mlm_system.events.event_bus import eventBus, MLMEvents
from mlm_system.services.ledger_service import LedgerService
from mlm_system.services.notification_service import NotificationService
from mlm_system.services.settings_service import SettingsService
from mlm_system.utils.chain_walker import SponsorChainWalker

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, session: Session):
        self.session = session
        self.ledger = LedgerService(session)
        self.notifications = NotificationService(session)
        self.walker = SponsorChainWalker(session)

    def registerUser(
            self,
            username: str,
            sponsor: Optional[str] = None,
            fullName: str = None,
            email: str = None,
            phone: str = None,
            country: str = None,
            status: str = UserStatus.ACTIVE.value
    ) -> User:
        """
        Create a user with zero balances and no plans.

        The sponsor must already exist, so a new user can never be an
        ancestor of anyone and the sponsor graph stays acyclic.
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required")
        if status not in {s.value for s in UserStatus}:
            raise ValidationError(f"Unknown user status: {status}")
        if self.ledger.findUserByUsername(username):
            raise ValidationError(f"Username {username} is already taken")

        sponsorUser = None
        if sponsor:
            sponsorUser = self.ledger.findUserByUsername(sponsor)
            if not sponsorUser:
                raise NotFound("Sponsor", sponsor)

        user = User(
            username=username,
            sponsor=sponsorUser.username if sponsorUser else None,
            fullName=fullName,
            email=email,
            phone=phone,
            country=country,
            status=status,
            walletBalance=ZERO,
            heldBalance=ZERO,
            activePlans=[]
        )
        self.session.add(user)
        self.session.flush()

        logger.info(f"User {user.userID} ({username}) registered, sponsor={user.sponsor}")

        if sponsorUser:
            self.notifications.notifyTemplate(
                sponsorUser.userID, "new_referral", source="user", username=username
            )

        eventBus.emit(MLMEvents.USER_REGISTERED, {"userId": user.userID, "sponsor": user.sponsor})
        return user

    def getUser(self, userId: int) -> User:
        return self.ledger.getUser(userId)

    def findByUsername(self, username: str) -> User:
        user = self.ledger.findUserByUsername(username)
        if not user:
            raise NotFound("User", username)
        return user

    def toggleUserStatus(self, userId: int) -> User:
        """Active -> Blocked, anything else -> Active."""
        user = self.ledger.getUser(userId, forUpdate=True)
        previous = user.status
        if user.status == UserStatus.ACTIVE.value:
            user.status = UserStatus.BLOCKED.value
        else:
            user.status = UserStatus.ACTIVE.value

        self.session.flush()
        logger.info(f"User {userId} status {previous} -> {user.status}")
        self.notifications.notifyTemplate(userId, "status_changed", source="admin", status=user.status)
        return user

    def manualWalletAdjustment(self, userId: int, amount, description: str, adminId: Optional[int] = None):
        """
        Admin correction. Positive amounts credit, negative debit.
        Debits are not checked against the balance.
        """
        value = toMoney(amount)
        if value == ZERO:
            raise ValidationError("Adjustment amount cannot be zero")
        if not description:
            raise ValidationError("Adjustment description is required")

        user = self.ledger.getUser(userId, forUpdate=True)

        if value > ZERO:
            self.ledger.creditWallet(user, value)
            txType = TransactionType.MANUAL_CREDIT.value
        else:
            self.ledger.debitWallet(user, -value)
            txType = TransactionType.MANUAL_DEBIT.value

        transaction = self.ledger.recordTransaction(
            userId=user.userID,
            type=txType,
            amount=value,
            description=description,
            relatedType=RELATED_USER,
            relatedID=adminId
        )

        logger.info(f"Manual adjustment {value} for user {userId} by admin {adminId}: {description}")

        self.notifications.notifyTemplate(
            userId, "manual_adjustment", source="admin",
            cur=SettingsService(self.session).currency, amount=f"{value:.2f}", description=description
        )
        eventBus.emit(MLMEvents.WALLET_ADJUSTED, {"userId": userId, "amount": value, "adminId": adminId})
        return transaction

    def getDirectReferrals(self, userId: int) -> List[User]:
        user = self.ledger.getUser(userId)
        return self.walker.get_direct_referrals(user)
