# app/utils/auth.py
"""
Firebase ID token verification as FastAPI dependencies
"""

from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from fastapi import Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from app.config import settings
from app.utils.logger import logger


@dataclass
class AuthUser:
    uid: str
    email: Optional[str] = None
    email_verified: bool = False


_firebase_app = None


def get_firebase_app():
    """Lazily initialise the default firebase app. Returns None when not configured."""
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app
    try:
        _firebase_app = firebase_admin.get_app()
        return _firebase_app
    except ValueError:
        pass
    if not settings.firebase_credentials_file and not settings.firebase_project_id:
        return None
    try:
        cred = credentials.Certificate(settings.firebase_credentials_file) if settings.firebase_credentials_file else None
        options = {}
        if settings.firebase_project_id:
            options["projectId"] = settings.firebase_project_id
        if settings.firebase_storage_bucket:
            options["storageBucket"] = settings.firebase_storage_bucket
        _firebase_app = firebase_admin.initialize_app(cred, options or None)
        logger.info("🔥 Firebase Admin initialised")
    except Exception as e:
        logger.error(f"❌ Firebase Admin initialisation failed: {e}")
        return None
    return _firebase_app


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"success": False, "message": message})


async def verify_auth(request: Request) -> AuthUser:
    header = request.headers.get("authorization")
    if not header or not header.startswith("Bearer "):
        raise _unauthorized("Authentication required. Please provide a valid token.")

    id_token = header[len("Bearer "):].strip()
    if not id_token:
        raise _unauthorized("Invalid token format")

    app = get_firebase_app()
    if app is None:
        logger.error("❌ Firebase Admin not initialised")
        raise HTTPException(status_code=503, detail={"success": False, "message": "Authentication service unavailable"})

    try:
        # verify_id_token may fetch Google's public certificates over HTTP
        decoded = await run_in_threadpool(firebase_auth.verify_id_token, id_token, app=app)
    except firebase_auth.ExpiredIdTokenError:
        raise _unauthorized("Token has expired. Please sign in again.")
    except ValueError:
        raise _unauthorized("Invalid token format")
    except Exception as e:
        logger.warning(f"⚠️ Auth verification error: {e}")
        raise _unauthorized("Invalid or expired token")

    return AuthUser(
        uid=decoded["uid"],
        email=decoded.get("email"),
        email_verified=bool(decoded.get("email_verified", False)),
    )


async def verify_ownership(userId: str, user: AuthUser = Depends(verify_auth)) -> AuthUser:
    if user.uid != userId:
        logger.warning(f"⚠️ Unauthorized access attempt: {user.uid} tried to access {userId}'s resource")
        raise HTTPException(
            status_code=403,
            detail={"success": False, "message": "Unauthorized: You can only access your own resources"},
        )
    return user


async def verify_ownership_in_production(userId: str, request: Request) -> Optional[AuthUser]:
    """Profile routes stay open outside production."""
    if not settings.is_production:
        return None
    user = await verify_auth(request)
    return await verify_ownership(userId, user)
