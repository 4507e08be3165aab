# app/api/letter_email.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.letter_schemas import LetterEmailRequest, SendEmailRequest
from app.services.email_service import email_service
from app.services.email_templates import letter_link_email, message_email
from app.services.scheduler_service import scheduler_service
from app.utils.errors import DearlyError, to_http
from app.utils.logger import logger
from app.utils.security import sanitize_string
from app.utils.time_utils import parse_datetime, to_iso, utcnow

router = APIRouter(tags=["email"])


@router.post("/letter-email/send")
async def send_letter_email(body: LetterEmailRequest, session: AsyncSession = Depends(get_async_session)):
    """Send the letter link now, or persist it for the scheduler when scheduledDateTime is given."""
    if not body.recipientEmail or not body.shareableLink:
        raise HTTPException(status_code=400, detail="Recipient email and shareable link are required")

    scheduled_at = None
    if body.scheduledDateTime:
        scheduled_at = parse_datetime(body.scheduledDateTime)
        if scheduled_at is None:
            raise HTTPException(status_code=400, detail="Invalid scheduled date/time format")
        if scheduled_at <= utcnow():
            raise HTTPException(status_code=400, detail="Scheduled date/time must be in the future")

    recipient_name = body.recipientName or "there"
    sender_name = body.senderName or "Someone special"
    letter_title = body.letterTitle or "A special letter for you"
    subject, html, text = letter_link_email(recipient_name, sender_name, letter_title, body.shareableLink)
    mail_options = email_service.build_mail_options(body.recipientEmail, subject, html, text)

    if scheduled_at is not None:
        try:
            scheduled = await scheduler_service.schedule(
                session,
                mail_options,
                scheduled_at,
                recipient_name=recipient_name,
                sender_name=sender_name,
                shareable_link=body.shareableLink,
                letter_title=letter_title,
            )
        except Exception as e:
            logger.error(f"❌ Failed to schedule email: {e}")
            raise HTTPException(status_code=500, detail="Failed to schedule email")
        return {
            "success": True,
            "message": "Letter email scheduled successfully",
            "scheduledDateTime": to_iso(scheduled_at),
            "scheduledEmailId": scheduled.EMAIL_ID,
        }

    try:
        await email_service.send_mail(mail_options)
    except DearlyError as e:
        logger.error(f"❌ Failed to send letter email: {e.message}")
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Failed to send letter email: {e}")
        raise HTTPException(status_code=500, detail="Failed to send letter email")

    logger.info(f"📧 Letter email sent to {body.recipientEmail}")
    return {"success": True, "message": "Letter email sent successfully"}


@router.post("/send-email")
async def send_email(body: SendEmailRequest):
    if not body.recipientEmail or not body.message:
        raise HTTPException(status_code=400, detail="Recipient email and message are required")

    subject = sanitize_string(body.subject or "A special letter for you 💌", 200)
    message = sanitize_string(body.message)
    html, text = message_email(subject, message, body.senderName or "")
    try:
        await email_service.send_mail(email_service.build_mail_options(body.recipientEmail, subject, html, text))
    except DearlyError as e:
        raise to_http(e)
    except Exception as e:
        logger.error(f"❌ Error sending email: {e}")
        raise HTTPException(status_code=500, detail="Error sending email")
    return {"message": "Email sent successfully!"}
