"""
Notification Pydantic Models
Records of expiration alerts sent through the mocked channels
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    BROWSER = "browser"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"


class Notification(BaseModel):
    id: str
    user_id: str
    document_id: str
    document_name: str
    type: NotificationType
    status: NotificationStatus
    message: str
    sent_at: datetime
    expires_at: Optional[datetime] = None
    days_until_expiration: Optional[int] = None

    class Config:
        frozen = True
