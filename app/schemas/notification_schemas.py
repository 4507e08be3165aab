# app/schemas/notification_schemas.py

from typing import Optional
from .commons_schemas import FlexiblePayload


class NotificationCreateRequest(FlexiblePayload):
    type: Optional[str] = None
    message: Optional[str] = None
    letterId: Optional[str] = None
    letterTitle: Optional[str] = None
    receiverName: Optional[str] = None
