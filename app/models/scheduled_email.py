# app/models/scheduled_email.py
"""
Deferred email send requests polled by the email scheduler
"""

from typing import Dict
from sqlalchemy import Column, String, Text, DateTime, JSON
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

PENDING = "pending"
SENDING = "sending"
FAILED = "failed"

class ScheduledEmail(Base):
    __tablename__ = "scheduled_email_TB"

    EMAIL_ID = Column(String(36), primary_key=True, default=new_id)
    RECIPIENT_EMAIL = Column(String(255), nullable=False)
    RECIPIENT_NAME = Column(String(200))
    SENDER_NAME = Column(String(200))
    SHAREABLE_LINK = Column(Text)
    LETTER_TITLE = Column(String(500))
    SCHEDULED_DATE_TIME = Column(DateTime, index=True)
    STATUS = Column(String(20), default=PENDING, index=True, nullable=False)
    MAIL_OPTIONS = Column(JSON, nullable=False)
    ERROR = Column(Text)
    CREATED_AT = Column(DateTime, default=utcnow)
    SENDING_STARTED_AT = Column(DateTime)
    FAILED_AT = Column(DateTime)

    def to_dict(self) -> Dict:
        return {
            "id": self.EMAIL_ID,
            "recipientEmail": self.RECIPIENT_EMAIL,
            "recipientName": self.RECIPIENT_NAME,
            "senderName": self.SENDER_NAME,
            "shareableLink": self.SHAREABLE_LINK,
            "letterTitle": self.LETTER_TITLE,
            "scheduledDateTime": to_iso(self.SCHEDULED_DATE_TIME),
            "status": self.STATUS,
            "error": self.ERROR,
            "createdAt": to_iso(self.CREATED_AT),
            "failedAt": to_iso(self.FAILED_AT),
        }
