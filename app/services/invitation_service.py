# app/services/invitation_service.py
"""
Date invitations and RSVPs
"""

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.invitation import DateInvitation
from app.services.notification_service import notification_service
from app.utils.errors import NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.time_utils import utcnow

RSVP_STATUSES = ("accepted", "declined")


def _clean(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class InvitationService:

    async def get(self, session: AsyncSession, invitation_id: str) -> DateInvitation:
        invitation = await session.get(DateInvitation, invitation_id)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        return invitation

    async def list_all(self, session: AsyncSession) -> List[Dict]:
        result = await session.execute(select(DateInvitation).order_by(DateInvitation.CREATED_AT.desc()))
        return [i.to_dict() for i in result.scalars().all()]

    async def create(self, session: AsyncSession, payload: Dict) -> DateInvitation:
        if not payload.get("date") or not payload.get("time") or not payload.get("location"):
            raise ValidationError("Date, time, and location are required")
        if not payload.get("creatorUserId"):
            raise ValidationError("creatorUserId is required")

        invitation = DateInvitation(
            DATE=payload["date"],
            TIME=payload["time"],
            LOCATION=payload["location"],
            MESSAGE=payload.get("message") or "",
            GOOGLE_MAPS_URL=payload.get("googleMapsUrl") or None,
            STATUS="pending",
            CREATOR_USER_ID=payload["creatorUserId"],
            CREATOR_NAME=payload.get("creatorName") or "Someone special",
        )
        session.add(invitation)
        await session.commit()
        logger.info(f"💑 Date invitation created: {invitation.INVITATION_ID}")
        return invitation

    async def update(self, session: AsyncSession, invitation_id: str, payload: Dict) -> DateInvitation:
        if not payload.get("date") or not payload.get("time") or not payload.get("location"):
            raise ValidationError("Date, time, and location are required")
        invitation = await self.get(session, invitation_id)

        invitation.DATE = payload["date"]
        invitation.TIME = payload["time"]
        invitation.LOCATION = payload["location"].strip()
        invitation.MESSAGE = _clean(payload.get("message")) or ""
        if "googleMapsUrl" in payload:
            invitation.GOOGLE_MAPS_URL = _clean(payload["googleMapsUrl"]) or None
        invitation.UPDATED_AT = utcnow()
        await session.commit()
        return invitation

    async def delete(self, session: AsyncSession, invitation_id: str):
        invitation = await self.get(session, invitation_id)
        await session.delete(invitation)
        await session.commit()

    async def rsvp(self, session: AsyncSession, invitation_id: str, status: Optional[str],
                   rsvp_message: Optional[str] = None) -> DateInvitation:
        if status not in RSVP_STATUSES:
            raise ValidationError("Invalid status. Must be 'accepted' or 'declined'")
        invitation = await self.get(session, invitation_id)

        invitation.STATUS = status
        invitation.RSVP_AT = utcnow()
        if rsvp_message and rsvp_message.strip():
            invitation.RSVP_MESSAGE = rsvp_message.strip()
        await session.commit()
        logger.info(f"💌 RSVP {status} for invitation {invitation_id}")

        if invitation.CREATOR_USER_ID:
            receiver_name = await notification_service.receiver_name(session, invitation.CREATOR_USER_ID)
            await notification_service.push_safely(
                session,
                invitation.CREATOR_USER_ID,
                "date_invitation_rsvp",
                invitationId=invitation_id,
                status=status,
                date=invitation.DATE or "",
                time=invitation.TIME or "",
                location=invitation.LOCATION or "",
                receiverName=receiver_name,
                rsvpMessage=rsvp_message or None,
            )
        return invitation


invitation_service = InvitationService()
