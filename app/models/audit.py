# app/models/audit.py
"""
Security audit log
"""

from sqlalchemy import Column, String, DateTime, Integer, JSON
from app.utils.time_utils import utcnow
from .base import Base

class SecurityAuditLog(Base):
    __tablename__ = "security_audit_TB"

    AUDIT_ID = Column(Integer, primary_key=True, autoincrement=True)
    EVENT_TYPE = Column(String(50), index=True, nullable=False)
    TIMESTAMP = Column(DateTime, default=utcnow, nullable=False)
    IP = Column(String(64))
    DETAILS = Column(JSON)
