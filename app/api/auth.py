# app/api/auth.py
"""
User profile routes (/auth) and email verification (/email-verification)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.receiver_schemas import GoogleUserRequest, ProfileUpdateRequest, VerificationSendRequest
from app.services.user_service import profile_dict, user_service
from app.services.verification_service import verification_service
from app.utils.auth import verify_ownership_in_production
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger

router = APIRouter(tags=["auth"])


@router.get("/auth/check-verification/{userId}")
async def check_verification(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        user = await user_service.get_user(session, userId)
        return {
            "success": True,
            "emailVerified": bool(user.EMAIL_VERIFIED),
            "user": {"email": user.EMAIL, "firstName": user.FIRST_NAME, "lastName": user.LAST_NAME},
        }
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error checking verification status: {e}")
        raise HTTPException(status_code=500, detail="Failed to check verification status")


@router.post("/auth/save-google-user")
async def save_google_user(body: GoogleUserRequest, session: AsyncSession = Depends(get_async_session)):
    try:
        created = await user_service.save_google_user(session, body.userId, body.email, body.displayName)
        return {"success": True, "message": "User data created" if created else "User data updated"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error saving Google user: {e}")
        raise HTTPException(status_code=500, detail="Failed to save user data")


@router.get("/auth/user/{userId}", dependencies=[Depends(verify_ownership_in_production)])
async def get_profile(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        user = await user_service.get_user(session, userId)
        return {"success": True, "data": profile_dict(user)}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error fetching user profile: {e}")
        raise HTTPException(status_code=500, detail="Failed to get user profile")


@router.put("/auth/user/{userId}", dependencies=[Depends(verify_ownership_in_production)])
async def update_profile(userId: str, body: ProfileUpdateRequest, session: AsyncSession = Depends(get_async_session)):
    try:
        user = await user_service.update_profile(session, userId, body.firstName, body.lastName)
        return {"success": True, "data": profile_dict(user), "message": "User profile updated successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error updating user profile: {e}")
        raise HTTPException(status_code=500, detail="Failed to update user profile")


@router.post("/email-verification/send")
async def send_verification(body: VerificationSendRequest, session: AsyncSession = Depends(get_async_session)):
    try:
        await verification_service.send(session, body.email, body.firstName, body.lastName, body.userId)
        return {"success": True, "message": "Verification email sent successfully"}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Email verification error: {e}")
        raise HTTPException(status_code=500, detail="Failed to send verification email")


@router.get("/email-verification/verify")
async def verify_email(token: str = "", session: AsyncSession = Depends(get_async_session)):
    try:
        result = await verification_service.verify(session, token)
        return {"success": True, **result}
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Email verification error: {e}")
        raise HTTPException(status_code=500, detail="Failed to verify email")
