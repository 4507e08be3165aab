# app/services/notification_service.py
"""
Per-user notification list
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.notification import Notification
from app.models.receiver import Receiver
from app.utils.logger import logger
from app.utils.time_utils import utcnow


class NotificationService:

    async def push(self, session: AsyncSession, user_id: str, notification_type: str, message: Optional[str] = None,
                   commit: bool = True, **data: Any) -> Notification:
        notification = Notification(
            USER_ID=user_id,
            TYPE=notification_type,
            MESSAGE=message,
            READ=False,
            DATA=dict(data) or None,
        )
        session.add(notification)
        if commit:
            await session.commit()
        logger.info(f"🔔 Notification created: user={user_id} type={notification_type}")
        return notification

    async def push_safely(self, session: AsyncSession, user_id: str, notification_type: str, message: Optional[str] = None,
                          **data: Any) -> Optional[Notification]:
        """Notification failures never fail the originating request."""
        try:
            return await self.push(session, user_id, notification_type, message, **data)
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Error creating {notification_type} notification: {e}")
            return None

    async def list_for_user(self, session: AsyncSession, user_id: str) -> List[Dict]:
        result = await session.execute(
            select(Notification)
            .where(Notification.USER_ID == user_id)
            .order_by(Notification.CREATED_AT.desc())
        )
        return [n.to_dict() for n in result.scalars().all()]

    async def get(self, session: AsyncSession, user_id: str, notification_id: str) -> Optional[Notification]:
        result = await session.execute(
            select(Notification).where(
                Notification.USER_ID == user_id,
                Notification.NOTIFICATION_ID == notification_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_all_read(self, session: AsyncSession, user_id: str) -> int:
        result = await session.execute(
            update(Notification)
            .where(Notification.USER_ID == user_id, or_(Notification.READ.is_(False), Notification.READ.is_(None)))
            .values(READ=True, READ_AT=utcnow())
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        return result.rowcount or 0

    async def mark_read(self, session: AsyncSession, user_id: str, notification_id: str) -> Optional[Notification]:
        notification = await self.get(session, user_id, notification_id)
        if notification is None:
            return None
        if not notification.READ:
            notification.READ = True
            notification.READ_AT = utcnow()
            await session.commit()
        return notification

    async def delete_read(self, session: AsyncSession, user_id: str) -> int:
        result = await session.execute(
            delete(Notification).where(Notification.USER_ID == user_id, Notification.READ.is_(True))
        )
        await session.commit()
        return result.rowcount or 0

    async def delete_all(self, session: AsyncSession, user_id: str) -> int:
        result = await session.execute(delete(Notification).where(Notification.USER_ID == user_id))
        await session.commit()
        return result.rowcount or 0

    async def delete_one(self, session: AsyncSession, user_id: str, notification_id: str) -> bool:
        result = await session.execute(
            delete(Notification).where(
                Notification.USER_ID == user_id,
                Notification.NOTIFICATION_ID == notification_id,
            )
        )
        await session.commit()
        return bool(result.rowcount)

    async def receiver_name(self, session: AsyncSession, user_id: str, default: str = "Your loved one") -> str:
        try:
            receiver = await session.get(Receiver, user_id)
        except Exception as e:
            logger.warning(f"⚠️ Could not fetch receiver name, using default: {e}")
            return default
        return receiver.NAME if receiver and receiver.NAME else default


notification_service = NotificationService()
