# app/services/scheduler_service.py
"""
Scheduled email delivery

A cron job polls scheduled_email_TB once a minute. Each due row is claimed with a
conditional UPDATE (pending -> sending) before it is sent, so overlapping ticks or a
concurrent HTTP cron call can never send the same email twice.
"""

import asyncio
from datetime import timedelta
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from app.config import settings
from app.models.base import AsyncSessionLocal
from app.models.scheduled_email import FAILED, PENDING, SENDING, ScheduledEmail
from app.services.email_service import email_service
from app.utils.logger import logger
from app.utils.time_utils import utcnow

SENT = "sent"
SKIPPED = "skipped"


class EmailSchedulerService:
    def __init__(self, session_factory=None, mailer=None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.mailer = mailer or email_service
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._lock: Optional[asyncio.Lock] = None
        logger.info("📬 EmailSchedulerService initialised")

    @property
    def lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def start(self):
        try:
            self.scheduler.add_job(
                func=self.check_and_send,
                trigger=CronTrigger(second=0, timezone="UTC"),
                id="scheduled_email_check",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self.scheduler.add_job(
                func=self.check_and_send,
                trigger=DateTrigger(run_date=utcnow() + timedelta(seconds=settings.email_startup_delay_seconds),
                                    timezone="UTC"),
                kwargs={"is_startup_check": True},
                id="scheduled_email_startup_check",
                replace_existing=True,
            )
            self.scheduler.add_job(
                func=self.purge_verification_tokens,
                trigger=CronTrigger(minute=0, timezone="UTC"),
                id="verification_token_cleanup",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self.scheduler.start()
            logger.info("⏰ Scheduler started - scheduled email check every minute")
        except Exception as e:
            logger.error(f"❌ Scheduler start failed: {e}")

    def stop(self):
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            logger.info("⏰ Scheduler stopped")
        except Exception as e:
            logger.error(f"❌ Scheduler stop failed: {e}")

    def _is_due(self, email: ScheduledEmail, now, buffer_seconds: int) -> bool:
        if email.SCHEDULED_DATE_TIME is None:
            logger.warning(f"⚠️ Invalid scheduled date for email {email.EMAIL_ID}")
            return False
        return (now - email.SCHEDULED_DATE_TIME).total_seconds() >= buffer_seconds

    async def check_and_send(self, is_startup_check: bool = False) -> Dict:
        """Send every pending email whose time has passed by at least the buffer."""
        summary = {"found": 0, "successful": 0, "failed": 0}
        if self.lock.locked():
            logger.info("⏭️ Previous scheduled email check still running, skipping tick")
            return summary

        async with self.lock:
            buffer_seconds = (
                settings.email_startup_buffer_seconds if is_startup_check
                else settings.email_check_buffer_seconds
            )
            now = utcnow()
            try:
                async with self.session_factory() as session:
                    result = await session.execute(
                        select(ScheduledEmail)
                        .where(ScheduledEmail.STATUS == PENDING)
                        .order_by(ScheduledEmail.SCHEDULED_DATE_TIME.asc())
                    )
                    due_ids = [
                        email.EMAIL_ID for email in result.scalars().all()
                        if self._is_due(email, now, buffer_seconds)
                    ]
            except SQLAlchemyError as e:
                logger.error(f"❌ Error checking scheduled emails: {e}")
                return summary

            summary["found"] = len(due_ids)
            if not due_ids:
                return summary

            logger.info(f"📨 {len(due_ids)} scheduled email(s) ready to send")
            for index, email_id in enumerate(due_ids):
                outcome = await self.send_scheduled_email(email_id)
                if outcome == SENT:
                    summary["successful"] += 1
                elif outcome == FAILED:
                    summary["failed"] += 1
                if index < len(due_ids) - 1 and settings.email_send_delay_seconds > 0:
                    await asyncio.sleep(settings.email_send_delay_seconds)

            logger.info(
                f"📊 Scheduled email run complete: {summary['successful']} sent, {summary['failed']} failed"
            )
            return summary

    async def schedule(self, session, mail_options: Dict, scheduled_at, recipient_name: Optional[str] = None,
                       sender_name: Optional[str] = None, shareable_link: Optional[str] = None,
                       letter_title: Optional[str] = None) -> ScheduledEmail:
        email = ScheduledEmail(
            RECIPIENT_EMAIL=mail_options["to"],
            RECIPIENT_NAME=recipient_name,
            SENDER_NAME=sender_name,
            SHAREABLE_LINK=shareable_link,
            LETTER_TITLE=letter_title,
            SCHEDULED_DATE_TIME=scheduled_at,
            STATUS=PENDING,
            MAIL_OPTIONS=mail_options,
        )
        session.add(email)
        await session.commit()
        logger.info(f"📅 Email to {email.RECIPIENT_EMAIL} scheduled for {scheduled_at} (ID: {email.EMAIL_ID})")
        return email

    async def claim(self, session, email_id: str) -> bool:
        result = await session.execute(
            update(ScheduledEmail)
            .where(ScheduledEmail.EMAIL_ID == email_id, ScheduledEmail.STATUS == PENDING)
            .values(STATUS=SENDING, SENDING_STARTED_AT=utcnow())
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        return result.rowcount == 1

    async def send_scheduled_email(self, email_id: str) -> str:
        """Claim, send and then delete (or mark failed) one scheduled email."""
        claimed = False
        try:
            async with self.session_factory() as session:
                if not await self.claim(session, email_id):
                    logger.info(f"⏭️ Scheduled email {email_id} already claimed")
                    return SKIPPED
                claimed = True

                email = await session.get(ScheduledEmail, email_id, populate_existing=True)
                if email is None:
                    return SKIPPED

                if email.SCHEDULED_DATE_TIME and email.SCHEDULED_DATE_TIME > utcnow():
                    email.STATUS = PENDING
                    email.SENDING_STARTED_AT = None
                    await session.commit()
                    return SKIPPED

                await self.mailer.send_mail(email.MAIL_OPTIONS)
                recipient = email.RECIPIENT_EMAIL

                await session.delete(email)
                await session.commit()
                logger.info(f"✅ Scheduled email sent to {recipient} (ID: {email_id})")
                return SENT
        except Exception as e:
            logger.error(f"❌ Error sending scheduled email (ID: {email_id}): {e}")
            if claimed:
                await self._mark_failed(email_id, str(e))
            return FAILED

    async def _mark_failed(self, email_id: str, error: str):
        # fresh session: the one that failed may be mid-transaction
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(ScheduledEmail)
                    .where(ScheduledEmail.EMAIL_ID == email_id)
                    .values(STATUS=FAILED, ERROR=error, FAILED_AT=utcnow())
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"❌ Could not mark scheduled email {email_id} as failed: {e}")

    async def purge_verification_tokens(self) -> int:
        from app.services.verification_service import verification_service

        try:
            async with self.session_factory() as session:
                return await verification_service.purge_expired(session)
        except SQLAlchemyError as e:
            logger.error(f"❌ Verification token cleanup failed: {e}")
            return 0


scheduler_service = EmailSchedulerService()
