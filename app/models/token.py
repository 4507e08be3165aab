# app/models/token.py
"""
Letter access token + access log models
"""

from typing import Dict
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text
from app.utils.time_utils import utcnow, to_iso
from .base import Base

class LetterToken(Base):
    __tablename__ = "letter_token_TB"

    TOKEN = Column(String(64), primary_key=True)
    USER_ID = Column(String(128), index=True, nullable=False)
    LETTER_ID = Column(String(36), index=True, nullable=False)
    CREATED_AT = Column(DateTime, default=utcnow, nullable=False)
    EXPIRES_AT = Column(DateTime, nullable=False)
    IS_ACTIVE = Column(Boolean, default=True, nullable=False)
    RENEWAL_COUNT = Column(Integer, default=0, nullable=False)
    LAST_RENEWED_AT = Column(DateTime)
    REVOKED_AT = Column(DateTime)
    LINKED_TO_ACCOUNT = Column(String(128))
    LINKED_AT = Column(DateTime)

    def to_dict(self) -> Dict:
        return {
            "userId": self.USER_ID,
            "letterId": self.LETTER_ID,
            "createdAt": to_iso(self.CREATED_AT),
            "expiresAt": to_iso(self.EXPIRES_AT),
            "isActive": bool(self.IS_ACTIVE),
            "renewalCount": self.RENEWAL_COUNT or 0,
            "lastRenewedAt": to_iso(self.LAST_RENEWED_AT),
            "linkedToAccount": self.LINKED_TO_ACCOUNT,
        }


class TokenAccessLog(Base):
    __tablename__ = "token_access_log_TB"

    LOG_ID = Column(Integer, primary_key=True, autoincrement=True)
    TOKEN = Column(String(64), index=True, nullable=False)
    ACCESSED_AT = Column(DateTime, default=utcnow, nullable=False)
    IP = Column(String(64))
    USER_AGENT = Column(Text)
