# app/services/letter_service.py
"""
Letter composition, security-answer validation, responses and voice messages
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.letter import Letter, LetterResponse, VoiceMessage
from app.models.scheduled_email import PENDING, ScheduledEmail
from app.services.notification_service import notification_service
from app.services.token_service import token_service
from app.utils.errors import ConfigurationError, NotFoundError, ValidationError
from app.utils.logger import logger
from app.utils.security import answers_match, hash_answer, secure_security_config
from app.utils.time_utils import parse_datetime, utcnow

EMPTY_SECURITY_TYPES = ("", "null", "undefined")
SECURITY_HASH_FIELDS = {
    "quiz": "correctAnswerHash",
    "date": "correctDateHash",
}


def compose_content(introductory: Optional[str], main_body: Optional[str], closing: Optional[str]) -> str:
    parts = [p.strip() for p in (introductory, main_body, closing) if p and p.strip()]
    return "\n\n".join(parts)


def to_style(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_music(value: Any) -> Any:
    if value is None or value == "":
        return None
    return value


def normalize_dashboard_music(value: Any) -> List:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


class LetterService:

    async def get_letter(self, session: AsyncSession, user_id: str, letter_id: str) -> Letter:
        letter = await session.get(Letter, letter_id)
        if letter is None or letter.USER_ID != user_id:
            raise NotFoundError("Letter not found")
        return letter

    async def list_letters(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(Letter).where(Letter.USER_ID == user_id).order_by(Letter.CREATED_AT.desc())
        )
        return [letter.to_dict() for letter in result.scalars().all()]

    async def create_letter(self, session: AsyncSession, user_id: str, payload: Dict) -> Tuple[Letter, str]:
        introductory = payload.get("introductory")
        main_body = payload.get("mainBody")
        closing = payload.get("closing")

        content = payload.get("content")
        if introductory or main_body or closing:
            content = compose_content(introductory, main_body, closing)
        if not content or not str(content).strip():
            raise ValidationError("Letter content is required")

        letter = Letter(
            USER_ID=user_id,
            CONTENT=str(content).strip(),
            RECEIVER_EMAIL=payload.get("receiverEmail") or "",
            RECEIVER_NAME=payload.get("receiverName") or "",
            STATUS="unread",
            READ_AT=None,
        )
        if introductory is not None:
            letter.INTRODUCTORY = introductory.strip()
        if main_body is not None:
            letter.MAIN_BODY = main_body.strip()
        if closing is not None:
            letter.CLOSING = closing.strip()

        letter.INTRODUCTORY_STYLE = to_style(payload.get("introductoryStyle"))
        letter.MAIN_BODY_STYLE = to_style(payload.get("mainBodyStyle"))
        letter.CLOSING_STYLE = to_style(payload.get("closingStyle"))

        security_type = payload.get("securityType")
        if security_type is not None and str(security_type).strip() not in EMPTY_SECURITY_TYPES:
            letter.SECURITY_TYPE = str(security_type).strip()
        security_config = payload.get("securityConfig")
        if letter.SECURITY_TYPE and security_config is not None:
            letter.SECURITY_CONFIG = secure_security_config(letter.SECURITY_TYPE, security_config)

        letter.SELECTED_MUSIC = normalize_music(payload.get("selectedMusic"))
        letter.LETTER_MUSIC = normalize_music(payload.get("letterMusic"))
        dashboard_music = normalize_dashboard_music(payload.get("dashboardMusic"))
        letter.DASHBOARD_MUSIC = dashboard_music or None

        session.add(letter)
        await session.flush()

        record = await token_service.issue(session, user_id, letter.LETTER_ID, commit=False)
        letter.ACCESS_TOKEN = record.TOKEN
        await session.commit()

        logger.info(
            f"✅ Letter created: user={user_id} letter={letter.LETTER_ID} "
            f"security={letter.SECURITY_TYPE or 'none'}"
        )
        return letter, record.TOKEN

    async def validate_security(self, session: AsyncSession, user_id: str, letter_id: str, answer: Any) -> bool:
        if answer is None or answer == "":
            raise ValidationError("Answer is required")

        letter = await self.get_letter(session, user_id, letter_id)
        if not letter.SECURITY_TYPE or not letter.SECURITY_CONFIG:
            raise ValidationError("Letter does not have security configured")

        hash_field = SECURITY_HASH_FIELDS.get(letter.SECURITY_TYPE)
        if hash_field is None:
            raise ValidationError("Unknown security type")

        config = letter.SECURITY_CONFIG if isinstance(letter.SECURITY_CONFIG, dict) else {}
        stored_hash = config.get(hash_field)
        if not stored_hash:
            raise ConfigurationError("Security configuration error: hash not found")

        submitted = str(answer).strip() if letter.SECURITY_TYPE == "date" else answer
        is_correct = answers_match(hash_answer(submitted), stored_hash)

        if is_correct:
            await self.mark_read_once(session, letter)
        return is_correct

    async def mark_read_once(self, session: AsyncSession, letter: Letter) -> bool:
        """Flip unread -> read and notify the sender. Only the first caller wins."""
        now = utcnow()
        result = await session.execute(
            update(Letter)
            .where(Letter.LETTER_ID == letter.LETTER_ID, Letter.STATUS != "read")
            .values(STATUS="read", READ_AT=now, UPDATED_AT=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await session.commit()
            return False

        title = letter.title
        await notification_service.push(
            session,
            letter.USER_ID,
            "letter_read",
            f'Your letter "{letter.INTRODUCTORY or "Untitled Letter"}" has been read! 💌',
            commit=False,
            letterId=letter.LETTER_ID,
            letterTitle=title,
        )
        await session.commit()
        await session.refresh(letter)
        logger.info(f"📬 Letter marked read: {letter.LETTER_ID}")
        return True

    async def mark_read(self, session: AsyncSession, user_id: str, letter_id: str) -> Letter:
        letter = await self.get_letter(session, user_id, letter_id)
        now = utcnow()
        letter.STATUS = "read"
        letter.READ_AT = now
        letter.UPDATED_AT = now
        await session.commit()
        return letter

    async def update_letter(self, session: AsyncSession, user_id: str, letter_id: str, payload: Dict) -> Letter:
        letter = await self.get_letter(session, user_id, letter_id)

        if payload.get("shareableLink") is not None:
            letter.SHAREABLE_LINK = str(payload["shareableLink"]).strip()

        if "emailSent" in payload:
            letter.EMAIL_SENT = bool(payload["emailSent"])
            if payload["emailSent"] and payload.get("emailSentTo"):
                letter.EMAIL_SENT_TO = str(payload["emailSentTo"]).strip().lower()
                letter.EMAIL_SENT_AT = utcnow()

        if "emailScheduled" in payload:
            letter.EMAIL_SCHEDULED = bool(payload["emailScheduled"])

        if payload.get("scheduledDateTime") is not None:
            scheduled = parse_datetime(payload["scheduledDateTime"])
            if scheduled is None:
                raise ValidationError("Invalid scheduled date/time format")
            if scheduled <= utcnow():
                raise ValidationError("Scheduled date and time must be in the future")
            letter.SCHEDULED_DATE_TIME = scheduled
            if letter.EMAIL_SENT_TO and letter.SHAREABLE_LINK and payload.get("emailScheduled") is not False:
                await self._retime_scheduled_email(session, letter, scheduled)

        if payload.get("reaction") is not None and not letter.REACTION:
            letter.REACTION = payload["reaction"]
            letter.REACTION_SUBMITTED_AT = utcnow()

        if any(k in payload for k in ("introductory", "mainBody", "closing")):
            intro = payload.get("introductory", letter.INTRODUCTORY)
            body = payload.get("mainBody", letter.MAIN_BODY)
            close = payload.get("closing", letter.CLOSING)
            letter.CONTENT = compose_content(intro, body, close)
            if payload.get("introductory") is not None:
                letter.INTRODUCTORY = payload["introductory"].strip()
            if payload.get("mainBody") is not None:
                letter.MAIN_BODY = payload["mainBody"].strip()
            if payload.get("closing") is not None:
                letter.CLOSING = payload["closing"].strip()
        elif payload.get("content") is not None:
            letter.CONTENT = str(payload["content"]).strip()

        if "selectedMusic" in payload:
            letter.SELECTED_MUSIC = normalize_music(payload["selectedMusic"])
        if "letterMusic" in payload:
            letter.LETTER_MUSIC = normalize_music(payload["letterMusic"])
        if "dashboardMusic" in payload:
            letter.DASHBOARD_MUSIC = normalize_dashboard_music(payload["dashboardMusic"])

        letter.UPDATED_AT = utcnow()
        await session.commit()
        return letter

    async def _retime_scheduled_email(self, session: AsyncSession, letter: Letter, scheduled):
        result = await session.execute(
            update(ScheduledEmail)
            .where(
                ScheduledEmail.RECIPIENT_EMAIL == letter.EMAIL_SENT_TO,
                ScheduledEmail.SHAREABLE_LINK == letter.SHAREABLE_LINK,
                ScheduledEmail.STATUS == PENDING,
            )
            .values(SCHEDULED_DATE_TIME=scheduled)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(f"📅 Scheduled email re-timed for letter {letter.LETTER_ID}")

    async def delete_letter(self, session: AsyncSession, user_id: str, letter_id: str):
        letter = await self.get_letter(session, user_id, letter_id)
        try:
            await token_service.delete_for_letter(session, letter.ACCESS_TOKEN)
        except Exception as e:
            logger.error(f"❌ Error deleting letter token: {e}")

        await session.execute(delete(LetterResponse).where(LetterResponse.LETTER_ID == letter_id))
        await session.execute(delete(VoiceMessage).where(VoiceMessage.LETTER_ID == letter_id))
        await session.delete(letter)
        await session.commit()
        logger.info(f"🗑️ Letter deleted: {letter_id}")

    # responses

    async def create_response(self, session: AsyncSession, user_id: str, letter_id: str, content: Optional[str],
                              receiver_name: Optional[str] = None) -> LetterResponse:
        if not content or not content.strip():
            raise ValidationError("Response content is required")
        letter = await self.get_letter(session, user_id, letter_id)

        response = LetterResponse(
            LETTER_ID=letter_id,
            USER_ID=user_id,
            CONTENT=content.strip(),
            RECEIVER_NAME=receiver_name or letter.RECEIVER_NAME or "Friend",
        )
        session.add(response)
        await session.commit()

        name = response.RECEIVER_NAME or "Your loved one"
        await notification_service.push_safely(
            session,
            user_id,
            "letter_response",
            f'{name} wrote back to your letter "{letter.INTRODUCTORY or "Untitled Letter"}"! 💌',
            letterId=letter_id,
            letterTitle=letter.title,
            receiverName=name,
        )
        return response

    async def list_responses(self, session: AsyncSession, user_id: str, letter_id: str) -> List[Dict]:
        await self.get_letter(session, user_id, letter_id)
        result = await session.execute(
            select(LetterResponse)
            .where(LetterResponse.LETTER_ID == letter_id)
            .order_by(LetterResponse.CREATED_AT.asc())
        )
        return [r.to_dict() for r in result.scalars().all()]

    async def _get_response(self, session: AsyncSession, user_id: str, letter_id: str,
                            response_id: str) -> LetterResponse:
        await self.get_letter(session, user_id, letter_id)
        response = await session.get(LetterResponse, response_id)
        if response is None or response.LETTER_ID != letter_id:
            raise NotFoundError("Response not found")
        return response

    async def update_response(self, session: AsyncSession, user_id: str, letter_id: str, response_id: str,
                              content: Optional[str]) -> LetterResponse:
        if not content or not content.strip():
            raise ValidationError("Response content is required")
        response = await self._get_response(session, user_id, letter_id, response_id)
        response.CONTENT = content.strip()
        response.UPDATED_AT = utcnow()
        await session.commit()
        return response

    async def delete_response(self, session: AsyncSession, user_id: str, letter_id: str, response_id: str):
        response = await self._get_response(session, user_id, letter_id, response_id)
        await session.delete(response)
        await session.commit()

    async def all_responses(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(LetterResponse, Letter)
            .join(Letter, LetterResponse.LETTER_ID == Letter.LETTER_ID)
            .where(Letter.USER_ID == user_id)
            .order_by(LetterResponse.CREATED_AT.desc())
        )
        responses = []
        for response, letter in result.all():
            data = response.to_dict()
            data.update({
                "responseId": response.RESPONSE_ID,
                "letterTitle": letter.INTRODUCTORY or "Untitled Letter",
                "letterCreatedAt": letter.to_dict()["createdAt"],
            })
            responses.append(data)
        return responses

    # voice messages

    async def add_voice_message(self, session: AsyncSession, user_id: str, letter_id: str, file_name: str,
                                url: str, content_type: str, size: int, duration: Optional[int] = None,
                                sender_name: Optional[str] = None) -> VoiceMessage:
        await self.get_letter(session, user_id, letter_id)
        message = VoiceMessage(
            LETTER_ID=letter_id,
            USER_ID=user_id,
            FILE_NAME=file_name,
            URL=url,
            CONTENT_TYPE=content_type,
            SIZE=size,
            DURATION=duration,
            SENDER_NAME=sender_name,
        )
        session.add(message)
        await session.commit()
        return message

    async def list_voice_messages(self, session: AsyncSession, user_id: str, letter_id: str) -> List[Dict]:
        await self.get_letter(session, user_id, letter_id)
        result = await session.execute(
            select(VoiceMessage)
            .where(VoiceMessage.LETTER_ID == letter_id)
            .order_by(VoiceMessage.CREATED_AT.asc())
        )
        return [m.to_dict() for m in result.scalars().all()]

    async def delete_voice_message(self, session: AsyncSession, user_id: str, letter_id: str,
                                   recording_id: str) -> Optional[str]:
        """Returns the stored file name so the caller can remove the blob."""
        await self.get_letter(session, user_id, letter_id)
        message = await session.get(VoiceMessage, recording_id)
        file_name = None
        if message is not None and message.LETTER_ID == letter_id:
            file_name = message.FILE_NAME
            await session.delete(message)
            await session.commit()
        return file_name


letter_service = LetterService()
