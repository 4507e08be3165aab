# app/services/user_service.py
"""
User profiles (password sign-ups and Google sign-in)
"""

from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.utils.errors import NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.time_utils import to_iso, utcnow


def split_display_name(display_name: Optional[str], email: str) -> Tuple[str, str]:
    """'Ada Lovelace King' -> ('Ada', 'Lovelace King'); falls back to the email local part."""
    if display_name and display_name.strip():
        parts = display_name.strip().split()
        return parts[0], " ".join(parts[1:])
    return email.split("@")[0], ""


def profile_dict(user: User) -> Dict:
    return {
        "email": user.EMAIL,
        "firstName": user.FIRST_NAME or "",
        "lastName": user.LAST_NAME or "",
        "emailVerified": bool(user.EMAIL_VERIFIED),
        "createdAt": to_iso(user.CREATED_AT),
        "updatedAt": to_iso(user.UPDATED_AT),
    }


class UserService:

    async def get_user(self, session: AsyncSession, user_id: str) -> User:
        if not user_id:
            raise ValidationError("User ID is required")
        user = await session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def save_google_user(self, session: AsyncSession, user_id: Optional[str], email: Optional[str],
                               display_name: Optional[str] = None) -> bool:
        """Returns True when a new user row was created."""
        if not user_id or not email:
            raise ValidationError("User ID and email are required")

        first_name, last_name = split_display_name(display_name, email)
        now = utcnow()
        user = await session.get(User, user_id)

        if user is not None:
            user.EMAIL_VERIFIED = True
            user.UPDATED_AT = now
            if not user.VERIFIED_AT:
                user.VERIFIED_AT = now
            if not (user.FIRST_NAME or "").strip():
                user.FIRST_NAME = first_name
            if not (user.LAST_NAME or "").strip():
                user.LAST_NAME = last_name
            created = False
        else:
            session.add(User(
                USER_ID=user_id,
                EMAIL=email.strip().lower(),
                FIRST_NAME=first_name.strip(),
                LAST_NAME=last_name.strip(),
                DISPLAY_NAME=display_name,
                PROVIDER="google",
                EMAIL_VERIFIED=True,
                VERIFIED_AT=now,
                CREATED_AT=now,
                UPDATED_AT=now,
            ))
            created = True

        await session.commit()
        logger.info(f"👤 Google user {'created' if created else 'updated'}: {user_id}")
        return created

    async def update_profile(self, session: AsyncSession, user_id: str, first_name: Optional[str],
                             last_name: Optional[str]) -> User:
        user = await self.get_user(session, user_id)
        if first_name is not None:
            user.FIRST_NAME = first_name.strip()
        if last_name is not None:
            user.LAST_NAME = last_name.strip()
        user.UPDATED_AT = utcnow()
        await session.commit()
        return user


user_service = UserService()
