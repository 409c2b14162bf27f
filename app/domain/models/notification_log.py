"""Notification log: one row per email/SMS dispatch attempt."""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class NotificationLog(Base):
    __tablename__ = "notifications_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel = Column(String(10), nullable=False)  # email, sms
    recipient = Column(String(255), nullable=False, index=True)
    subject = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False)  # sent, failed
    error = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<NotificationLog {self.channel} {self.recipient} - {self.status}>"
