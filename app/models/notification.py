# app/models/notification.py
"""
Per-user notification model
"""

from typing import Dict
from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

class Notification(Base):
    __tablename__ = "notification_TB"

    NOTIFICATION_ID = Column(String(36), primary_key=True, default=new_id)
    USER_ID = Column(String(128), index=True, nullable=False)
    TYPE = Column(String(50), nullable=False)
    MESSAGE = Column(Text)
    READ = Column(Boolean, default=False, nullable=False)
    DATA = Column(JSON)
    CREATED_AT = Column(DateTime, default=utcnow, index=True)
    READ_AT = Column(DateTime)

    def to_dict(self) -> Dict:
        # extra payload (letterId, letterTitle, ...) is flattened into the record
        data = dict(self.DATA or {})
        data.update({
            "id": self.NOTIFICATION_ID,
            "type": self.TYPE,
            "message": self.MESSAGE,
            "read": bool(self.READ),
            "createdAt": to_iso(self.CREATED_AT),
        })
        if self.READ_AT:
            data["readAt"] = to_iso(self.READ_AT)
        return data
