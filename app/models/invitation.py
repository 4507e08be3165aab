# app/models/invitation.py
"""
Date invitation model
"""

from typing import Dict
from sqlalchemy import Column, String, Text, DateTime
from app.utils.time_utils import utcnow, to_iso
from .base import Base, new_id

class DateInvitation(Base):
    __tablename__ = "date_invitation_TB"

    INVITATION_ID = Column(String(36), primary_key=True, default=new_id)
    CREATOR_USER_ID = Column(String(128), index=True, nullable=False)
    CREATOR_NAME = Column(String(200))
    DATE = Column(String(50), nullable=False)
    TIME = Column(String(50), nullable=False)
    LOCATION = Column(String(500), nullable=False)
    MESSAGE = Column(Text, default="")
    GOOGLE_MAPS_URL = Column(Text)
    STATUS = Column(String(20), default="pending", nullable=False)
    RSVP_MESSAGE = Column(Text)
    RSVP_AT = Column(DateTime)
    CREATED_AT = Column(DateTime, default=utcnow)
    UPDATED_AT = Column(DateTime, onupdate=utcnow)

    def to_dict(self) -> Dict:
        return {
            "id": self.INVITATION_ID,
            "date": self.DATE,
            "time": self.TIME,
            "location": self.LOCATION,
            "message": self.MESSAGE or "",
            "googleMapsUrl": self.GOOGLE_MAPS_URL,
            "status": self.STATUS,
            "rsvpMessage": self.RSVP_MESSAGE,
            "rsvpAt": to_iso(self.RSVP_AT),
            "creatorUserId": self.CREATOR_USER_ID,
            "creatorName": self.CREATOR_NAME,
            "createdAt": to_iso(self.CREATED_AT),
            "updatedAt": to_iso(self.UPDATED_AT),
        }
