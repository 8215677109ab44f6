"""
Document Pydantic Models
Documents, their versions, and expiration status helpers
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from acdocs.core.config import settings


class ExpirationStatus(str, Enum):
    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"
    NONE = "none"


class DocumentVersion(BaseModel):
    """One uploaded revision of a document"""

    id: str
    document_id: str
    version: int = Field(..., ge=1)
    file_name: str
    file_size: int = Field(..., ge=0)
    uploaded_by_id: str
    created_at: datetime

    class Config:
        frozen = True


class Document(BaseModel):
    """Stored document; visibility is derived from its category and uploader"""

    id: str
    name: str
    file_name: str
    file_size: int = Field(..., ge=0)
    mime_type: str
    category_id: str
    document_type_id: str
    uploaded_by_id: str
    current_version: int = 1
    versions: List[DocumentVersion] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    alert_days_before: int = Field(default_factory=lambda: settings.DEFAULT_ALERT_DAYS_BEFORE)
    created_at: datetime
    updated_at: datetime

    class Config:
        frozen = True


class DocumentCreate(BaseModel):
    """Upload payload; the uploader is supplied by the caller"""

    name: str = Field(..., min_length=1)
    file_name: str
    file_size: int = Field(..., ge=0)
    mime_type: str = "application/pdf"
    category_id: str
    document_type_id: str
    current_version: int = Field(1, ge=1)
    versions: List[DocumentVersion] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    alert_days_before: int = Field(default_factory=lambda: settings.DEFAULT_ALERT_DAYS_BEFORE)


class DocumentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = None
    category_id: Optional[str] = None
    document_type_id: Optional[str] = None
    current_version: Optional[int] = Field(None, ge=1)
    versions: Optional[List[DocumentVersion]] = None
    expires_at: Optional[datetime] = None
    alert_days_before: Optional[int] = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_days_until_expiration(
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> Optional[int]:
    """
    Whole days left before expiry, rounded up

    Args:
        expires_at: Expiry instant (naive values are taken as UTC)
        now: Reference instant, defaults to the current time

    Returns:
        Days left (negative once expired) or None without an expiry date
    """
    if expires_at is None:
        return None
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    seconds = (_as_utc(expires_at) - now).total_seconds()
    return math.ceil(seconds / 86400)


def get_expiration_status(
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> ExpirationStatus:
    days = get_days_until_expiration(expires_at, now)
    if days is None:
        return ExpirationStatus.NONE
    if days < 0:
        return ExpirationStatus.EXPIRED
    if days <= settings.EXPIRATION_CRITICAL_DAYS:
        return ExpirationStatus.CRITICAL
    if days <= settings.EXPIRATION_WARNING_DAYS:
        return ExpirationStatus.WARNING
    return ExpirationStatus.NORMAL
