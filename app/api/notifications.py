# app/api/notifications.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_async_session
from app.schemas.notification_schemas import NotificationCreateRequest
from app.services.notification_service import notification_service
from app.utils.logger import logger

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{userId}")
async def list_notifications(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        notifications = await notification_service.list_for_user(session, userId)
        return {"success": True, "notifications": notifications}
    except Exception as e:
        logger.error(f"❌ Error fetching notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch notifications")


@router.put("/{userId}/all/read")
async def mark_all_read(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        updated = await notification_service.mark_all_read(session, userId)
    except Exception as e:
        logger.error(f"❌ Error marking all notifications as read: {e}")
        raise HTTPException(status_code=500, detail="Failed to mark all notifications as read")

    if not updated:
        return {"success": True, "message": "No notifications to mark as read", "updatedCount": 0}
    logger.info(f"✅ Marked {updated} notification(s) as read for user {userId}")
    return {"success": True, "message": f"Marked {updated} notification(s) as read", "updatedCount": updated}


@router.put("/{userId}/{notificationId}/read")
async def mark_read(userId: str, notificationId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        notification = await notification_service.mark_read(session, userId, notificationId)
    except Exception as e:
        logger.error(f"❌ Error marking notification as read: {e}")
        raise HTTPException(status_code=500, detail="Failed to mark notification as read")

    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True, "message": "Notification marked as read", "notification": notification.to_dict()}


@router.delete("/{userId}/all/read")
async def delete_read(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        deleted = await notification_service.delete_read(session, userId)
    except Exception as e:
        logger.error(f"❌ Error deleting read notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete read notifications")

    if not deleted:
        return {"success": True, "message": "No notifications to delete", "deletedCount": 0}
    return {"success": True, "message": f"Deleted {deleted} read notification(s)", "deletedCount": deleted}


@router.delete("/{userId}/all")
async def delete_all(userId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await notification_service.delete_all(session, userId)
        return {"success": True, "message": "All notifications deleted"}
    except Exception as e:
        logger.error(f"❌ Error deleting all notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete all notifications")


@router.delete("/{userId}/{notificationId}")
async def delete_notification(userId: str, notificationId: str, session: AsyncSession = Depends(get_async_session)):
    try:
        await notification_service.delete_one(session, userId, notificationId)
        return {"success": True, "message": "Notification deleted"}
    except Exception as e:
        logger.error(f"❌ Error deleting notification: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete notification")


@router.post("/{userId}/create")
async def create_notification(userId: str, body: NotificationCreateRequest,
                              session: AsyncSession = Depends(get_async_session)):
    if not body.type:
        raise HTTPException(status_code=400, detail="Notification type is required")

    data = {
        key: value
        for key, value in body.to_payload().items()
        if key not in ("type", "message") and value
    }
    try:
        notification = await notification_service.push(session, userId, body.type, body.message or None, **data)
        return {
            "success": True,
            "message": "Notification created successfully",
            "notificationId": notification.NOTIFICATION_ID,
        }
    except Exception as e:
        logger.error(f"❌ Error creating notification: {e}")
        raise HTTPException(status_code=500, detail="Failed to create notification")
