"""
Domain Models
Pydantic schemas for users, groups, categories, documents and audit entries
"""

from acdocs.models.audit import AuditAction, AuditLog, AuditResourceType
from acdocs.models.category import Category, CategoryCreate, CategoryUpdate, DocumentType
from acdocs.models.document import (
    Document,
    DocumentCreate,
    DocumentUpdate,
    DocumentVersion,
    ExpirationStatus,
    get_days_until_expiration,
    get_expiration_status,
)
from acdocs.models.group import Group, GroupCreate, GroupUpdate
from acdocs.models.notification import Notification, NotificationStatus, NotificationType
from acdocs.models.user import NotificationPreferences, User, UserCreate, UserUpdate

__all__ = [
    "AuditAction",
    "AuditLog",
    "AuditResourceType",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "Document",
    "DocumentCreate",
    "DocumentType",
    "DocumentUpdate",
    "DocumentVersion",
    "ExpirationStatus",
    "Group",
    "GroupCreate",
    "GroupUpdate",
    "Notification",
    "NotificationPreferences",
    "NotificationStatus",
    "NotificationType",
    "User",
    "UserCreate",
    "UserUpdate",
    "get_days_until_expiration",
    "get_expiration_status",
]
