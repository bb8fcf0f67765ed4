# mlm_system/services/ledger_service.py
"""
Ledger primitives - the only code that touches balances.

Every money movement is one or more of: creditWallet, debitWallet,
creditHeld, debitHeld, followed by recordTransaction. Debits do not check
sufficiency; callers run ensureSufficientFunds before mutating anything.
Nothing here commits - the caller's unit of work does.
"""
from decimal import Decimal
from typing import Optional, Union
from sqlalchemy.orm import Session
import logging

from models import User, Transaction
from mlm_system.config.ledger import RequestStatus, UserStatus, toMoney, ZERO
from mlm_system.errors import InsufficientFunds, NotFound, ValidationError

logger = logging.getLogger(__name__)

UserRef = Union[User, int]


class LedgerService:
    """Balance mutations and transaction records."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def getUser(self, userId: int, forUpdate: bool = False) -> User:
        """Load user by id, row-locked when forUpdate. Raises NotFound."""
        query = self.session.query(User).filter_by(userID=userId)
        if forUpdate:
            query = query.with_for_update()
        user = query.first()
        if not user:
            raise NotFound("User", userId)
        return user

    def findUserByUsername(self, username: str) -> Optional[User]:
        if not username:
            return None
        return self.session.query(User).filter_by(username=username).first()

    def _resolve(self, user: UserRef) -> User:
        if isinstance(user, User):
            return user
        return self.getUser(user, forUpdate=True)

    # ------------------------------------------------------------------
    # Balance primitives
    # ------------------------------------------------------------------

    @staticmethod
    def _positive(amount) -> Decimal:
        value = toMoney(amount)
        if value <= ZERO:
            raise ValidationError(f"Amount must be positive, got {amount}")
        return value

    def creditWallet(self, user: UserRef, amount) -> Decimal:
        user = self._resolve(user)
        value = self._positive(amount)
        user.walletBalance = toMoney(user.walletBalance) + value
        logger.info(f"Wallet +{value} for user {user.userID}, balance {user.walletBalance}")
        return user.walletBalance

    def debitWallet(self, user: UserRef, amount) -> Decimal:
        user = self._resolve(user)
        value = self._positive(amount)
        user.walletBalance = toMoney(user.walletBalance) - value
        logger.info(f"Wallet -{value} for user {user.userID}, balance {user.walletBalance}")
        return user.walletBalance

    def creditHeld(self, user: UserRef, amount) -> Decimal:
        user = self._resolve(user)
        value = self._positive(amount)
        user.heldBalance = toMoney(user.heldBalance) + value
        logger.info(f"Held +{value} for user {user.userID}, held {user.heldBalance}")
        return user.heldBalance

    def debitHeld(self, user: UserRef, amount) -> Decimal:
        user = self._resolve(user)
        value = self._positive(amount)
        user.heldBalance = toMoney(user.heldBalance) - value
        logger.info(f"Held -{value} for user {user.userID}, held {user.heldBalance}")
        return user.heldBalance

    def ensureSufficientFunds(self, user: User, amount):
        """Raise InsufficientFunds unless walletBalance covers amount."""
        available = toMoney(user.walletBalance)
        if available < toMoney(amount):
            logger.warning(f"Insufficient funds for user {user.userID}: need {amount}, have {available}")
            raise InsufficientFunds(amount, available, user.userID)

    # ------------------------------------------------------------------
    # Transaction log
    # ------------------------------------------------------------------

    def recordTransaction(
            self,
            userId: int,
            type: str,
            amount,
            description: str = None,
            status: str = RequestStatus.APPROVED.value,
            level: int = None,
            relatedType: str = None,
            relatedID: int = None
    ) -> Transaction:
        """Append a ledger entry. amount is signed."""
        entry = Transaction(
            userID=userId,
            type=type,
            amount=toMoney(amount),
            description=description,
            status=status,
            level=level,
            relatedType=relatedType,
            relatedID=relatedID
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def findTransaction(self, relatedType: str, relatedID: int, type: str = None,
                        userId: int = None) -> Optional[Transaction]:
        """Latest transaction created for an entity."""
        query = self.session.query(Transaction).filter_by(relatedType=relatedType, relatedID=relatedID)
        if type:
            query = query.filter_by(type=type)
        if userId:
            query = query.filter_by(userID=userId)
        return query.order_by(Transaction.transactionID.desc()).first()

    @staticmethod
    def ensureNotBlocked(user: User):
        if user.status == UserStatus.BLOCKED.value:
            raise ValidationError(f"User {user.username} is blocked")
