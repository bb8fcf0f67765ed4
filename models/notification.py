# models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from models.base import Base


class Notification(Base):
    __tablename__ = 'notifications'

    notificationID = Column(Integer, primary_key=True, autoincrement=True)
    createdAt = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    userID = Column(Integer, ForeignKey('users.userID'), nullable=False, index=True)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, index=True)

    source = Column(String, nullable=True)  # deposit, withdrawal, transfer, commission, plan, admin
    category = Column(String, nullable=True)
    readAt = Column(DateTime, nullable=True)

    user = relationship('User', backref='notifications')

    def __repr__(self):
        return f"<Notification(notificationID={self.notificationID}, user={self.userID}, read={self.read})>"
