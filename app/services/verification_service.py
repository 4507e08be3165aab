# app/services/verification_service.py
"""
Email verification tokens for password sign-ups
"""

from datetime import timedelta
from typing import Dict
from urllib.parse import quote, unquote

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import User
from app.models.verification import EmailVerificationToken
from app.services.email_service import email_service
from app.services.email_templates import verification_email
from app.utils.errors import ConfigurationError, ValidationError
from app.utils.logger import logger, mask_token
from app.utils.security import generate_token
from app.utils.time_utils import utcnow

ALREADY_USED_MESSAGE = (
    "This verification link has already been used. "
    "If you've already verified your email, you can sign in."
)


class VerificationService:

    def verification_link(self, token: str) -> str:
        client_url = settings.client_url
        if not client_url:
            if settings.is_production:
                raise ConfigurationError("CLIENT_URL environment variable is required in production")
            client_url = "http://localhost:5173"
        return f"{client_url.rstrip('/')}/verify-email?token={quote(token)}"

    async def send(self, session: AsyncSession, email: str, first_name: str, last_name: str,
                   user_id: str) -> str:
        if not email or not first_name or not last_name or not user_id:
            raise ValidationError("Missing required fields: email, firstName, lastName, userId")

        now = utcnow()
        user = await session.get(User, user_id)
        if user is None:
            user = User(USER_ID=user_id, CREATED_AT=now)
            session.add(user)
        user.EMAIL = email
        user.FIRST_NAME = first_name
        user.LAST_NAME = last_name
        user.EMAIL_VERIFIED = False
        user.VERIFIED_AT = None
        user.UPDATED_AT = now

        token = generate_token()
        session.add(EmailVerificationToken(
            TOKEN=token,
            USER_ID=user_id,
            EMAIL=email,
            CREATED_AT=now,
            EXPIRES_AT=now + timedelta(hours=settings.verification_token_ttl_hours),
        ))
        await session.commit()

        subject, html, text = verification_email(first_name, self.verification_link(token))
        await email_service.send_mail(email_service.build_mail_options(email, subject, html, text))
        logger.info(f"📧 Verification email sent to {email} (token {mask_token(token)})")
        return token

    async def verify(self, session: AsyncSession, token: str) -> Dict:
        if not token:
            raise ValidationError("Verification token is required")

        record = await session.get(EmailVerificationToken, unquote(token))
        if record is None:
            record = await session.get(EmailVerificationToken, token)
        if record is None:
            logger.warning(f"⚠️ Unknown verification token {mask_token(token)}")
            raise ValidationError("Invalid or expired verification token")

        user = await session.get(User, record.USER_ID)

        if record.USED:
            if user is not None and user.EMAIL_VERIFIED:
                return {"message": "Email already verified", "user": self._user_summary(user, record)}
            raise ValidationError(ALREADY_USED_MESSAGE)

        now = utcnow()
        if now > record.EXPIRES_AT:
            await session.delete(record)
            await session.commit()
            raise ValidationError("Verification token has expired")

        if user is None:
            user = User(USER_ID=record.USER_ID, EMAIL=record.EMAIL, CREATED_AT=now)
            session.add(user)
        if not user.EMAIL_VERIFIED:
            user.EMAIL_VERIFIED = True
            user.VERIFIED_AT = now
            user.UPDATED_AT = now

        record.USED = True
        record.USED_AT = now
        await session.commit()
        logger.info(f"✅ Email verified for user {record.USER_ID}")
        return {"message": "Email verified successfully", "user": self._user_summary(user, record)}

    @staticmethod
    def _user_summary(user: User, record: EmailVerificationToken) -> Dict:
        return {
            "email": user.EMAIL or record.EMAIL,
            "firstName": user.FIRST_NAME or "",
            "lastName": user.LAST_NAME or "",
        }

    async def purge_expired(self, session: AsyncSession) -> int:
        result = await session.execute(
            delete(EmailVerificationToken).where(EmailVerificationToken.EXPIRES_AT < utcnow())
        )
        await session.commit()
        if result.rowcount:
            logger.info(f"🧹 Purged {result.rowcount} expired verification token(s)")
        return result.rowcount or 0


verification_service = VerificationService()
