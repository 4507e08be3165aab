# app/api/date_invitations.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.receiver_schemas import DateInvitationPayload, RsvpRequest
from app.services.invitation_service import invitation_service
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger

router = APIRouter(prefix="/date-invitations", tags=["date-invitations"])


@router.get("/")
async def list_invitations(session: AsyncSession = Depends(get_async_session)):
    try:
        return await invitation_service.list_all(session)
    except Exception as e:
        logger.error(f"❌ Error fetching date invitations: {e}")
        raise HTTPException(status_code=500, detail="Error fetching date invitations")


@router.get("/{invitationId}")
async def get_invitation(invitationId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        invitation = await invitation_service.get(session, invitationId)
        return invitation.to_dict()
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching date invitation: {e}")
        raise HTTPException(status_code=500, detail="Error fetching date invitation")


@router.put("/{invitationId}/rsvp")
async def rsvp(invitationId: str, body: RsvpRequest, session: AsyncSession = Depends(get_async_session)):
    try:
        invitation = await invitation_service.rsvp(session, invitationId, body.status, body.rsvpMessage)
        return {"message": "RSVP updated successfully", "invitation": invitation.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating RSVP: {e}")
        raise HTTPException(status_code=500, detail="Error updating RSVP")


@router.post("/", status_code=201)
async def create_invitation(payload: DateInvitationPayload, session: AsyncSession = Depends(get_async_session)):
    try:
        invitation = await invitation_service.create(session, payload.to_payload())
        return {"message": "Invitation created successfully", "invitation": invitation.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error creating invitation: {e}")
        raise HTTPException(status_code=500, detail="Error creating invitation")


@router.put("/{invitationId}")
async def update_invitation(invitationId: str, payload: DateInvitationPayload,
                            session: AsyncSession = Depends(get_async_session)):
    try:
        invitation = await invitation_service.update(session, invitationId, payload.to_payload())
        return {"message": "Invitation updated successfully", "invitation": invitation.to_dict()}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating invitation: {e}")
        raise HTTPException(status_code=500, detail="Error updating invitation")


@router.delete("/{invitationId}")
async def delete_invitation(invitationId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await invitation_service.delete(session, invitationId)
        return {"message": "Invitation deleted successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error deleting invitation: {e}")
        raise HTTPException(status_code=500, detail="Error deleting invitation")
