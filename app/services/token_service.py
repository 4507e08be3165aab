# app/services/token_service.py
"""
Letter access tokens: issue, resolve (with auto-renewal), revoke, regenerate
"""

from datetime import timedelta
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.letter import Letter
from app.models.token import LetterToken, TokenAccessLog
from app.utils.errors import GoneError, NotFoundError
from app.utils.logger import logger, mask_token
from app.utils.security import anonymize_ip, generate_token
from app.utils.time_utils import to_iso, utcnow


class TokenService:

    async def issue(self, session: AsyncSession, user_id: str, letter_id: str, commit: bool = True) -> LetterToken:
        now = utcnow()
        record = LetterToken(
            TOKEN=generate_token(),
            USER_ID=user_id,
            LETTER_ID=letter_id,
            CREATED_AT=now,
            EXPIRES_AT=now + timedelta(days=settings.token_ttl_days),
            IS_ACTIVE=True,
            RENEWAL_COUNT=0,
        )
        session.add(record)
        if commit:
            await session.commit()
        logger.info(f"🔑 Token issued: {mask_token(record.TOKEN)} for letter {letter_id}")
        return record

    def maybe_renew(self, record: LetterToken) -> bool:
        """Extend a token that is inside the renewal window. Returns True when renewed."""
        now = utcnow()
        days_left = (record.EXPIRES_AT - now).total_seconds() / 86400
        renewals = record.RENEWAL_COUNT or 0

        if renewals >= settings.token_max_renewals:
            logger.info(
                f"⚠️ Token {mask_token(record.TOKEN)} has reached max renewals "
                f"({settings.token_max_renewals}), will not auto-renew"
            )
            return False
        if not 0 < days_left <= settings.token_renewal_window_days:
            return False

        record.EXPIRES_AT = now + timedelta(days=settings.token_ttl_days)
        record.RENEWAL_COUNT = renewals + 1
        record.LAST_RENEWED_AT = now
        logger.info(
            f"🔄 Token auto-renewed: {mask_token(record.TOKEN)} (expires in {days_left:.1f} days, "
            f"renewal {record.RENEWAL_COUNT}/{settings.token_max_renewals})"
        )
        return True

    async def resolve(self, session: AsyncSession, token: str, ip: Optional[str] = None,
                      user_agent: Optional[str] = None) -> Dict:
        record = await session.get(LetterToken, token)
        if record is None:
            logger.info(f"❌ Token not found: {mask_token(token)}")
            raise NotFoundError("Invalid or expired link")

        if not record.IS_ACTIVE:
            logger.info(f"❌ Token is inactive (revoked): {mask_token(token)}")
            raise GoneError("Link has been revoked. The letter owner may have regenerated the link.")

        if record.EXPIRES_AT and record.EXPIRES_AT < utcnow():
            raise GoneError("Link has expired")

        self.maybe_renew(record)

        letter = await session.get(Letter, record.LETTER_ID)
        if letter is None or letter.USER_ID != record.USER_ID:
            await session.commit()
            logger.info(f"❌ Letter not found: user={record.USER_ID} letter={record.LETTER_ID}")
            raise NotFoundError(
                "Letter not found",
                hint="The letter may have been deleted or the token may be invalid",
            )

        session.add(TokenAccessLog(TOKEN=token, IP=anonymize_ip(ip), USER_AGENT=user_agent))
        await session.commit()

        data = letter.to_dict()
        data.update({
            "id": record.LETTER_ID,
            "userId": record.USER_ID,
            "token": token,
        })
        return data

    async def revoke(self, session: AsyncSession, token: Optional[str], commit: bool = True) -> bool:
        if not token:
            return False
        record = await session.get(LetterToken, token)
        if record is None:
            return False
        record.IS_ACTIVE = False
        record.REVOKED_AT = utcnow()
        if commit:
            await session.commit()
        logger.info(f"🚫 Token revoked: {mask_token(token)}")
        return True

    async def regenerate(self, session: AsyncSession, letter: Letter) -> Dict:
        await self.revoke(session, letter.ACCESS_TOKEN, commit=False)
        record = await self.issue(session, letter.USER_ID, letter.LETTER_ID, commit=False)
        letter.ACCESS_TOKEN = record.TOKEN
        letter.SHAREABLE_LINK = f"/letter/{record.TOKEN}"
        await session.commit()
        return {
            "token": record.TOKEN,
            "shareableLink": letter.SHAREABLE_LINK,
            "expiresAt": to_iso(record.EXPIRES_AT),
        }

    async def delete_for_letter(self, session: AsyncSession, token: Optional[str]):
        if not token:
            return
        await session.execute(delete(TokenAccessLog).where(TokenAccessLog.TOKEN == token))
        await session.execute(delete(LetterToken).where(LetterToken.TOKEN == token))

    async def link_account(self, session: AsyncSession, token: str, receiver_user_id: str) -> bool:
        record = await session.get(LetterToken, token)
        if record is None:
            return False
        record.LINKED_TO_ACCOUNT = receiver_user_id
        record.LINKED_AT = utcnow()
        return True

    async def find_for_letter(self, session: AsyncSession, user_id: str, letter_id: str) -> Optional[str]:
        letter = await session.get(Letter, letter_id)
        if letter is not None and letter.USER_ID == user_id and letter.ACCESS_TOKEN:
            return letter.ACCESS_TOKEN
        return None


token_service = TokenService()
