# app/schemas/receiver_schemas.py
"""
Receivers, receiver accounts, date invitations and user profile payloads
"""

from typing import Optional
from pydantic import BaseModel
from .commons_schemas import FlexiblePayload


class ReceiverDataRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class LinkAccountRequest(BaseModel):
    receiverEmail: Optional[str] = None
    letterId: Optional[str] = None
    senderUserId: Optional[str] = None
    token: Optional[str] = None


class CheckEmailRequest(BaseModel):
    email: Optional[str] = None


class DateInvitationPayload(FlexiblePayload):
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    message: Optional[str] = None
    googleMapsUrl: Optional[str] = None
    creatorUserId: Optional[str] = None
    creatorName: Optional[str] = None


class RsvpRequest(BaseModel):
    status: Optional[str] = None
    rsvpMessage: Optional[str] = None


class GoogleUserRequest(BaseModel):
    userId: Optional[str] = None
    email: Optional[str] = None
    displayName: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class VerificationSendRequest(BaseModel):
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    userId: Optional[str] = None
