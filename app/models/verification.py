# app/models/verification.py
"""
Email verification token model
"""

from sqlalchemy import Column, String, DateTime, Boolean
from app.utils.time_utils import utcnow
from .base import Base

class EmailVerificationToken(Base):
    __tablename__ = "email_verification_token_TB"

    TOKEN = Column(String(64), primary_key=True)
    USER_ID = Column(String(128), index=True, nullable=False)
    EMAIL = Column(String(255), nullable=False)
    CREATED_AT = Column(DateTime, default=utcnow, nullable=False)
    EXPIRES_AT = Column(DateTime, nullable=False)
    USED = Column(Boolean, default=False, nullable=False)
    USED_AT = Column(DateTime)
