"""
SQLAlchemy Database Models
One table per entity type, list fields stored as JSON
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from acdocs.db.base import Base, IdMixin, TimestampMixin, UTCDateTime, utcnow


class User(IdMixin, TimestampMixin, Base):
    """User SQLAlchemy model"""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user", index=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    group_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notification_preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)


class Group(IdMixin, TimestampMixin, Base):
    """Group SQLAlchemy model"""

    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    member_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    category_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)


class Category(IdMixin, TimestampMixin, Base):
    """Category SQLAlchemy model"""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default="folder")
    parent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    shared_with_group_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    document_types: Mapped[List["DocumentType"]] = relationship(
        "DocumentType",
        back_populates="category",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DocumentType.name",
    )


class DocumentType(IdMixin, Base):
    """Document type SQLAlchemy model"""

    __tablename__ = "document_types"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )

    category: Mapped["Category"] = relationship("Category", back_populates="document_types")


class Document(IdMixin, TimestampMixin, Base):
    """Document SQLAlchemy model"""

    __tablename__ = "documents"

    name: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    # No foreign key: documents outlive their category
    category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    document_type_id: Mapped[str] = mapped_column(String(64), nullable=False)
    uploaded_by_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    current_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    versions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)
    alert_days_before: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class AuditLog(IdMixin, TimestampMixin, Base):
    """Audit log SQLAlchemy model"""

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(20), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    resource_name: Mapped[str] = mapped_column(String(512), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )
