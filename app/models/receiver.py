# app/models/receiver.py
"""
Receiver profile of a sender + letters linked to a receiver account
"""

from typing import Dict
from sqlalchemy import Column, String, DateTime
from app.utils.time_utils import utcnow, to_iso
from .base import Base

class Receiver(Base):
    __tablename__ = "receiver_TB"

    USER_ID = Column(String(128), primary_key=True)
    NAME = Column(String(200), nullable=False)
    EMAIL = Column(String(255), nullable=False)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "name": self.NAME,
            "email": self.EMAIL,
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
        }


class ReceivedLetter(Base):
    __tablename__ = "received_letter_TB"

    RECEIVER_USER_ID = Column(String(128), primary_key=True)
    LETTER_ID = Column(String(36), primary_key=True)
    SENDER_USER_ID = Column(String(128), nullable=False)
    SENDER_NAME = Column(String(200))
    LETTER_TITLE = Column(String(500))
    STATUS = Column(String(20), default="unread")
    READ_AT = Column(DateTime)
    LINKED_VIA = Column(String(20))
    ORIGINAL_TOKEN = Column(String(64))
    ACCESSED_AT = Column(DateTime, default=utcnow)
    LINKED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "senderUserId": self.SENDER_USER_ID,
            "senderName": self.SENDER_NAME,
            "letterTitle": self.LETTER_TITLE,
            "accessedAt": to_iso(self.ACCESSED_AT),
            "readAt": to_iso(self.READ_AT),
            "status": self.STATUS,
            "linkedVia": self.LINKED_VIA,
            "originalToken": self.ORIGINAL_TOKEN,
            "linkedAt": to_iso(self.LINKED_AT),
        }
