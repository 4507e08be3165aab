# app/models/letter.py
"""
Letter, letter response and voice message models
"""

from typing import Dict
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, JSON, ForeignKey
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

class Letter(Base):
    __tablename__ = "letter_TB"

    LETTER_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    CONTENT = Column(Text, nullable=False)
    INTRODUCTORY = Column(Text)
    MAIN_BODY = Column(Text)
    CLOSING = Column(Text)
    INTRODUCTORY_STYLE = Column(Integer)
    MAIN_BODY_STYLE = Column(Integer)
    CLOSING_STYLE = Column(Integer)
    RECEIVER_EMAIL = Column(String(255), default="")
    RECEIVER_NAME = Column(String(200), default="")
    STATUS = Column(String(20), default="unread", nullable=False)
    READ_AT = Column(DateTime)
    SECURITY_TYPE = Column(String(20))
    SECURITY_CONFIG = Column(JSON)
    ACCESS_TOKEN = Column(String(64), index=True)
    SHAREABLE_LINK = Column(Text)
    SELECTED_MUSIC = Column(JSON)
    LETTER_MUSIC = Column(JSON)
    DASHBOARD_MUSIC = Column(JSON)
    EMAIL_SENT = Column(Boolean)
    EMAIL_SENT_TO = Column(String(255))
    EMAIL_SENT_AT = Column(DateTime)
    EMAIL_SCHEDULED = Column(Boolean)
    SCHEDULED_DATE_TIME = Column(DateTime)
    REACTION = Column(JSON)
    REACTION_SUBMITTED_AT = Column(DateTime)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def title(self) -> str:
        return self.INTRODUCTORY or "Your Letter"

    def to_dict(self) -> Dict:
        data = {
            "id": self.LETTER_ID,
            "content": self.CONTENT,
            "receiverEmail": self.RECEIVER_EMAIL or "",
            "receiverName": self.RECEIVER_NAME or "",
            "status": self.STATUS,
            "readAt": to_iso(self.READ_AT),
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
        }
        optional = {
            "introductory": self.INTRODUCTORY,
            "mainBody": self.MAIN_BODY,
            "closing": self.CLOSING,
            "introductoryStyle": self.INTRODUCTORY_STYLE,
            "mainBodyStyle": self.MAIN_BODY_STYLE,
            "closingStyle": self.CLOSING_STYLE,
            "securityType": self.SECURITY_TYPE,
            "securityConfig": self.SECURITY_CONFIG,
            "accessToken": self.ACCESS_TOKEN,
            "shareableLink": self.SHAREABLE_LINK,
            "selectedMusic": self.SELECTED_MUSIC,
            "letterMusic": self.LETTER_MUSIC,
            "dashboardMusic": self.DASHBOARD_MUSIC,
            "emailSent": self.EMAIL_SENT,
            "emailSentTo": self.EMAIL_SENT_TO,
            "emailSentAt": to_iso(self.EMAIL_SENT_AT),
            "emailScheduled": self.EMAIL_SCHEDULED,
            "scheduledDateTime": to_iso(self.SCHEDULED_DATE_TIME),
            "reaction": self.REACTION,
            "reactionSubmittedAt": to_iso(self.REACTION_SUBMITTED_AT),
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


class LetterResponse(Base):
    __tablename__ = "letter_response_TB"

    RESPONSE_ID = Column(String(36), primary_key=True, default=new_id)
    LETTER_ID = Column(String(36), ForeignKey("letter_TB.LETTER_ID", ondelete="CASCADE"), index=True, nullable=False)
    USER_ID = Column(String(128), index=True, nullable=False)
    CONTENT = Column(Text, nullable=False)
    RECEIVER_NAME = Column(String(200))
    RECEIVER_EMAIL = Column(String(255))
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.RESPONSE_ID,
            "letterId": self.LETTER_ID,
            "content": self.CONTENT,
            "receiverName": self.RECEIVER_NAME,
            "receiverEmail": self.RECEIVER_EMAIL,
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
        }


class VoiceMessage(Base):
    __tablename__ = "voice_message_TB"

    RECORDING_ID = Column(String(36), primary_key=True, default=new_id)
    LETTER_ID = Column(String(36), ForeignKey("letter_TB.LETTER_ID", ondelete="CASCADE"), index=True, nullable=False)
    USER_ID = Column(String(128), index=True, nullable=False)
    FILE_NAME = Column(String(255), nullable=False)
    URL = Column(Text, nullable=False)
    CONTENT_TYPE = Column(String(100))
    SIZE = Column(Integer)
    DURATION = Column(Integer)
    SENDER_NAME = Column(String(200))
    CREATED_AT = Column(DateTime, default=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.RECORDING_ID,
            "letterId": self.LETTER_ID,
            "fileName": self.FILE_NAME,
            "url": self.URL,
            "contentType": self.CONTENT_TYPE,
            "size": self.SIZE,
            "duration": self.DURATION,
            "senderName": self.SENDER_NAME,
            "createdAt": to_iso(self.CREATED_AT),
        }
