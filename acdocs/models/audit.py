"""
Audit Log Pydantic Models
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AuditAction(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    VIEW = "view"
    DELETE = "delete"
    CREATE = "create"
    UPDATE = "update"
    LOGIN = "login"
    LOGOUT = "logout"


class AuditResourceType(str, Enum):
    DOCUMENT = "document"
    CATEGORY = "category"
    GROUP = "group"
    USER = "user"
    AUTH = "auth"


class AuditLog(BaseModel):
    """Stored audit entry"""

    id: str
    action: AuditAction
    user_id: str
    user_name: str
    resource_type: AuditResourceType
    resource_id: str
    resource_name: str
    details: Optional[str] = None
    created_at: datetime

    class Config:
        frozen = True
