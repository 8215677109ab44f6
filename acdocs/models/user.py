"""
User Pydantic Models
Identity, role and notification preferences
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from acdocs.core.permissions import Role


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("email must look like name@domain")
    return v


class NotificationPreferences(BaseModel):
    """Expiration alert channels and the days-before-expiry to alert on"""

    email: bool = True
    whatsapp: bool = False
    browser: bool = False
    alert_days_before: List[int] = Field(default_factory=lambda: [7, 15, 30])

    @field_validator("alert_days_before")
    @classmethod
    def validate_alert_days(cls, v: List[int]) -> List[int]:
        if any(day < 0 for day in v):
            raise ValueError("alert_days_before must not contain negative days")
        return sorted(set(v))


class User(BaseModel):
    """Stored user"""

    id: str
    name: str
    email: str
    role: Role
    avatar: Optional[str] = None
    group_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    phone: Optional[str] = None
    notification_preferences: Optional[NotificationPreferences] = None

    class Config:
        frozen = True


class UserCreate(BaseModel):
    """Writable user fields"""

    name: str = Field(..., min_length=1)
    email: str
    role: Role = Role.USER
    avatar: Optional[str] = None
    group_ids: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    notification_preferences: Optional[NotificationPreferences] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdate(BaseModel):
    """Partial user update; unset fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    role: Optional[Role] = None
    avatar: Optional[str] = None
    group_ids: Optional[List[str]] = None
    phone: Optional[str] = None
    notification_preferences: Optional[NotificationPreferences] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_email(v) if v is not None else v
