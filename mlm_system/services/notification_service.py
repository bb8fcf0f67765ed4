# mlm_system/services/notification_service.py
"""
Notification sink. Writes in-app notifications; delivery transports
subscribe to NOTIFICATION_CREATED. Never fails the calling transition.
"""
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from models import Notification
from mlm_system.config.messages import render
from mlm_system.events.event_bus import eventBus, MLMEvents

logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(self, session: Session):
        self.session = session

    def notify(self, userId: int, message: str, source: str = None,
               category: str = None) -> Optional[Notification]:
        """Create an unread notification. Errors are logged, not raised."""
        try:
            with self.session.begin_nested():
                notification = Notification(
                    userID=userId,
                    message=message,
                    source=source,
                    category=category,
                    read=False
                )
                self.session.add(notification)
        except Exception as e:
            logger.error(f"Failed to create notification for user {userId}: {e}")
            return None

        eventBus.emit(MLMEvents.NOTIFICATION_CREATED, {
            "notificationId": notification.notificationID,
            "userId": userId,
            "message": message,
            "source": source
        })
        return notification

    def notifyTemplate(self, userId: int, key: str, source: str = None, **variables) -> Optional[Notification]:
        try:
            message = render(key, **variables)
        except Exception as e:
            logger.error(f"Failed to render notification {key}: {e}")
            return None
        return self.notify(userId, message, source=source, category=key)

    def listUnread(self, userId: int) -> List[Notification]:
        return self.session.query(Notification).filter_by(
            userID=userId, read=False
        ).order_by(Notification.notificationID.desc()).all()

    def markAllRead(self, userId: int) -> int:
        unread = self.listUnread(userId)
        now = datetime.now(timezone.utc)
        for notification in unread:
            notification.read = True
            notification.readAt = now
        self.session.flush()
        return len(unread)
