# app/services/receiver_service.py
"""
A sender's receiver profile and receiver accounts linked to letters
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.letter import Letter
from app.models.receiver import ReceivedLetter, Receiver
from app.models.user import User
from app.services.token_service import token_service
from app.utils.errors import ForbiddenError, NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.security import is_valid_email
from app.utils.time_utils import to_iso, utcnow


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _letter_title(letter: Letter) -> str:
    if letter.INTRODUCTORY:
        return letter.INTRODUCTORY
    if letter.MAIN_BODY:
        return letter.MAIN_BODY[:50]
    return "Untitled Letter"


class ReceiverService:

    # receiver data

    async def get_receiver(self, session: AsyncSession, user_id: str) -> Optional[Receiver]:
        return await session.get(Receiver, user_id)

    async def save_receiver(self, session: AsyncSession, user_id: str, name: Optional[str],
                            email: Optional[str]) -> Receiver:
        if not name or not email:
            raise ValidationError("Name and email are required")
        if not is_valid_email(email.strip()):
            raise ValidationError("Invalid email format")

        now = utcnow()
        receiver = await session.get(Receiver, user_id)
        if receiver is None:
            receiver = Receiver(USER_ID=user_id, CREATED_AT=now)
            session.add(receiver)
        receiver.NAME = name.strip()
        receiver.EMAIL = _normalize_email(email)
        receiver.UPDATED_AT = now
        await session.commit()
        logger.info(f"💾 Receiver data saved for user {user_id}")
        return receiver

    async def update_receiver(self, session: AsyncSession, user_id: str, name: Optional[str],
                              email: Optional[str]) -> Receiver:
        receiver = await session.get(Receiver, user_id)
        if receiver is None:
            raise NotFoundError("Receiver data not found. Use POST to create.")
        if name:
            receiver.NAME = name.strip()
        if email:
            if not is_valid_email(email.strip()):
                raise ValidationError("Invalid email format")
            receiver.EMAIL = _normalize_email(email)
        receiver.UPDATED_AT = utcnow()
        await session.commit()
        return receiver

    # receiver accounts

    async def link_letter(self, session: AsyncSession, receiver_email: Optional[str], letter_id: Optional[str],
                          sender_user_id: Optional[str], token: Optional[str] = None) -> Dict:
        if not receiver_email or not letter_id or not sender_user_id:
            raise ValidationError("receiverEmail, letterId, and senderUserId are required")
        email = _normalize_email(receiver_email)

        result = await session.execute(select(User).where(func.lower(User.EMAIL) == email))
        receiver_user = result.scalars().first()
        if receiver_user is None:
            raise NotFoundError(
                "Receiver account not found. Please make sure you've created an account with this email."
            )

        letter = await session.get(Letter, letter_id)
        if letter is None or letter.USER_ID != sender_user_id:
            raise NotFoundError("Letter not found")
        if letter.RECEIVER_EMAIL and _normalize_email(letter.RECEIVER_EMAIL) != email:
            raise ForbiddenError("Email does not match the letter receiver")

        now = utcnow()
        entry = await session.get(ReceivedLetter, (receiver_user.USER_ID, letter_id))
        if entry is None:
            entry = ReceivedLetter(RECEIVER_USER_ID=receiver_user.USER_ID, LETTER_ID=letter_id, ACCESSED_AT=now)
            session.add(entry)
        entry.SENDER_USER_ID = sender_user_id
        entry.SENDER_NAME = letter.RECEIVER_NAME or "Unknown"
        entry.LETTER_TITLE = _letter_title(letter)
        entry.READ_AT = (letter.READ_AT or now) if letter.STATUS == "read" else None
        entry.LINKED_VIA = "token" if token else "email"
        entry.ORIGINAL_TOKEN = token or None
        entry.STATUS = letter.STATUS or "unread"
        entry.LINKED_AT = now
        entry.UPDATED_AT = now

        if token and not await token_service.link_account(session, token, receiver_user.USER_ID):
            logger.warning(f"⚠️ Token to link not found for letter {letter_id}")
        await session.commit()

        logger.info(f"🔗 Letter {letter_id} linked to receiver {receiver_user.USER_ID}")
        return {
            "receiverUserId": receiver_user.USER_ID,
            "letterId": letter_id,
            "senderUserId": sender_user_id,
        }

    async def received_letters(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(ReceivedLetter)
            .where(ReceivedLetter.RECEIVER_USER_ID == user_id)
            .order_by(ReceivedLetter.ACCESSED_AT.desc())
        )
        letters = []
        for entry in result.scalars().all():
            letter = await session.get(Letter, entry.LETTER_ID)
            data = letter.to_dict() if letter is not None and letter.USER_ID == entry.SENDER_USER_ID else {}
            token = entry.ORIGINAL_TOKEN or await token_service.find_for_letter(
                session, entry.SENDER_USER_ID, entry.LETTER_ID
            )
            data.update({
                "id": entry.LETTER_ID,
                "senderUserId": entry.SENDER_USER_ID,
                "senderName": entry.SENDER_NAME,
                "accessedAt": to_iso(entry.ACCESSED_AT),
                "readAt": to_iso(entry.READ_AT),
                "status": entry.STATUS,
                "linkedVia": entry.LINKED_VIA,
                "originalToken": token,
                "token": token,
            })
            if not data.get("content") and letter is None:
                data["error"] = "Could not fetch letter data"
            letters.append(data)
        return letters

    async def letters_for_email(self, session: AsyncSession, email: Optional[str]) -> List[Dict]:
        if not email:
            raise ValidationError("Email is required")
        result = await session.execute(
            select(Letter)
            .where(func.lower(func.trim(Letter.RECEIVER_EMAIL)) == _normalize_email(email))
            .order_by(Letter.CREATED_AT.desc())
        )
        return [
            {
                "letterId": letter.LETTER_ID,
                "senderUserId": letter.USER_ID,
                "letterTitle": _letter_title(letter),
                "createdAt": to_iso(letter.CREATED_AT),
            }
            for letter in result.scalars().all()
        ]


receiver_service = ReceiverService()
