# app/models/user.py
"""
User model
"""

from typing import Dict
from sqlalchemy import Column, String, DateTime, Boolean, Text
from app.utils.time_utils import utcnow, to_iso
from .base import Base

class User(Base):
    __tablename__ = "user_TB"

    USER_ID = Column(String(128), primary_key=True)
    EMAIL = Column(String(255), index=True)
    FIRST_NAME = Column(String(100), default="")
    LAST_NAME = Column(String(100), default="")
    DISPLAY_NAME = Column(String(200))
    PHOTO_URL = Column(Text)
    PROVIDER = Column(String(50))
    EMAIL_VERIFIED = Column(Boolean, default=False, nullable=False)
    VERIFIED_AT = Column(DateTime)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "uid": self.USER_ID,
            "email": self.EMAIL,
            "firstName": self.FIRST_NAME or "",
            "lastName": self.LAST_NAME or "",
            "displayName": self.DISPLAY_NAME,
            "photoURL": self.PHOTO_URL,
            "provider": self.PROVIDER,
            "emailVerified": bool(self.EMAIL_VERIFIED),
            "verifiedAt": to_iso(self.VERIFIED_AT),
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
        }
