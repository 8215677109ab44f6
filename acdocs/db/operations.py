"""
Database Operations
Async record store for users, groups, categories, documents and audit logs

The store knows nothing about authorization: it reads and writes whatever
it is asked to and records an audit entry for every mutation. Scoping is
applied by the callers (see acdocs.services.workspace).
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from acdocs.core.config import settings
from acdocs.core.exceptions import ConflictException, NotFoundException
from acdocs.core.logging import get_logger
from acdocs.db.base import generate_id, utcnow
from acdocs.db.models import AuditLog as AuditLogModel
from acdocs.db.models import Category as CategoryModel
from acdocs.db.models import Document as DocumentModel
from acdocs.db.models import DocumentType as DocumentTypeModel
from acdocs.db.models import Group as GroupModel
from acdocs.db.models import User as UserModel
from acdocs.db.session import get_session_maker
from acdocs.models.audit import AuditAction, AuditLog, AuditResourceType
from acdocs.models.category import Category, CategoryCreate, CategoryUpdate, DocumentType
from acdocs.models.document import Document, DocumentCreate, DocumentUpdate, DocumentVersion
from acdocs.models.group import Group, GroupCreate, GroupUpdate
from acdocs.models.user import User, UserCreate, UserUpdate

logger = get_logger(__name__)

SYSTEM_ACTOR_ID = "system"
SYSTEM_ACTOR_NAME = "System"


def _changes(
    updates: BaseModel,
    nullable: Iterable[str] = (),
    datetimes: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Column values for a partial update

    Unset fields are skipped. Explicit None is only kept for nullable
    columns. Datetime fields keep their Python value; everything else is
    dumped in JSON mode so enums become strings and nested models dicts.
    """
    nullable = set(nullable)
    changes = updates.model_dump(mode="json", exclude_unset=True)
    for field in datetimes:
        if field in changes:
            changes[field] = getattr(updates, field)
    return {
        key: value for key, value in changes.items()
        if value is not None or key in nullable
    }


# ---------------------------------------------------------------------------
# Record -> model conversion
# ---------------------------------------------------------------------------

def _to_user(record: UserModel) -> User:
    return User(
        id=record.id,
        name=record.name,
        email=record.email,
        role=record.role,
        avatar=record.avatar,
        group_ids=list(record.group_ids or []),
        created_at=record.created_at,
        phone=record.phone,
        notification_preferences=record.notification_preferences,
    )


def _to_group(record: GroupModel) -> Group:
    return Group(
        id=record.id,
        name=record.name,
        description=record.description or "",
        member_ids=list(record.member_ids or []),
        category_ids=list(record.category_ids or []),
        created_at=record.created_at,
    )


def _to_document_type(record: DocumentTypeModel) -> DocumentType:
    return DocumentType(id=record.id, name=record.name, category_id=record.category_id)


def _to_category(record: CategoryModel) -> Category:
    return Category(
        id=record.id,
        name=record.name,
        icon=record.icon,
        parent_id=record.parent_id,
        document_types=[_to_document_type(dt) for dt in record.document_types],
        shared_with_group_ids=list(record.shared_with_group_ids or []),
        created_at=record.created_at,
    )


def _to_document(record: DocumentModel) -> Document:
    return Document(
        id=record.id,
        name=record.name,
        file_name=record.file_name,
        file_size=record.file_size,
        mime_type=record.mime_type,
        category_id=record.category_id,
        document_type_id=record.document_type_id,
        uploaded_by_id=record.uploaded_by_id,
        current_version=record.current_version,
        versions=record.versions or [],
        expires_at=record.expires_at,
        alert_days_before=record.alert_days_before,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_audit_log(record: AuditLogModel) -> AuditLog:
    return AuditLog(
        id=record.id,
        action=record.action,
        user_id=record.user_id,
        user_name=record.user_name,
        resource_type=record.resource_type,
        resource_id=record.resource_id,
        resource_name=record.resource_name,
        details=record.details,
        created_at=record.created_at,
    )


class DocumentStore:
    """
    Async key-value style store over the SQLAlchemy models

    Every public method runs in its own session and transaction. A
    mutation and its audit entry commit together.
    """

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        maker = self._session_maker or get_session_maker()
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @staticmethod
    def _audit(
        session: AsyncSession,
        action: AuditAction,
        resource_type: AuditResourceType,
        resource_id: str,
        resource_name: str,
        actor: Optional[User] = None,
        details: Optional[str] = None,
    ) -> AuditLogModel:
        record = AuditLogModel(
            id=generate_id(),
            action=action.value,
            user_id=actor.id if actor else SYSTEM_ACTOR_ID,
            user_name=actor.name if actor else SYSTEM_ACTOR_NAME,
            resource_type=resource_type.value,
            resource_id=resource_id,
            resource_name=resource_name,
            details=details,
            created_at=utcnow(),
        )
        session.add(record)
        return record

    @staticmethod
    async def _require(session: AsyncSession, model, record_id: str, resource: str):
        record = await session.get(model, record_id)
        if record is None:
            raise NotFoundException(resource, details={"id": record_id})
        return record

    # ---- Users ---------------------------------------------------------------

    async def get_all_users(self) -> List[User]:
        async with self._session() as session:
            result = await session.execute(
                select(UserModel).order_by(UserModel.created_at, UserModel.id)
            )
            return [_to_user(r) for r in result.scalars().all()]

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        async with self._session() as session:
            record = await session.get(UserModel, user_id)
            return _to_user(record) if record else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._session() as session:
            result = await session.execute(
                select(UserModel).where(UserModel.email == email.strip().lower())
            )
            record = result.scalar_one_or_none()
            return _to_user(record) if record else None

    async def _ensure_email_free(
        self, session: AsyncSession, email: str, exclude_id: Optional[str] = None
    ) -> None:
        query = select(UserModel.id).where(UserModel.email == email)
        if exclude_id:
            query = query.where(UserModel.id != exclude_id)
        if (await session.execute(query)).first() is not None:
            raise ConflictException(
                message="Email already registered",
                details={"email": email},
            )

    async def create_user(self, data: UserCreate, actor: Optional[User] = None) -> User:
        async with self._session() as session:
            await self._ensure_email_free(session, data.email)
            record = UserModel(
                id=generate_id(),
                created_at=utcnow(),
                **data.model_dump(mode="json"),
            )
            session.add(record)
            self._audit(session, AuditAction.CREATE, AuditResourceType.USER, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Created user {record.id} ({record.email}, role={record.role})")
            return _to_user(record)

    async def update_user(
        self, user_id: str, updates: UserUpdate, actor: Optional[User] = None
    ) -> User:
        async with self._session() as session:
            record = await self._require(session, UserModel, user_id, "User")
            changes = _changes(updates, nullable=("avatar", "phone", "notification_preferences"))
            if "email" in changes and changes["email"] != record.email:
                await self._ensure_email_free(session, changes["email"], exclude_id=user_id)
            for key, value in changes.items():
                setattr(record, key, value)
            self._audit(session, AuditAction.UPDATE, AuditResourceType.USER, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Updated user {user_id}: {sorted(changes)}")
            return _to_user(record)

    async def delete_user(self, user_id: str, actor: Optional[User] = None) -> None:
        async with self._session() as session:
            record = await self._require(session, UserModel, user_id, "User")
            await session.delete(record)
            self._audit(session, AuditAction.DELETE, AuditResourceType.USER, user_id, record.name, actor)
            logger.info(f"Deleted user {user_id}")

    # ---- Groups --------------------------------------------------------------

    async def get_all_groups(self) -> List[Group]:
        async with self._session() as session:
            result = await session.execute(
                select(GroupModel).order_by(GroupModel.created_at, GroupModel.id)
            )
            return [_to_group(r) for r in result.scalars().all()]

    async def get_group_by_id(self, group_id: str) -> Optional[Group]:
        async with self._session() as session:
            record = await session.get(GroupModel, group_id)
            return _to_group(record) if record else None

    async def create_group(self, data: GroupCreate, actor: Optional[User] = None) -> Group:
        async with self._session() as session:
            record = GroupModel(id=generate_id(), created_at=utcnow(), **data.model_dump(mode="json"))
            session.add(record)
            self._audit(session, AuditAction.CREATE, AuditResourceType.GROUP, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Created group {record.id} ({record.name})")
            return _to_group(record)

    async def update_group(
        self, group_id: str, updates: GroupUpdate, actor: Optional[User] = None
    ) -> Group:
        async with self._session() as session:
            record = await self._require(session, GroupModel, group_id, "Group")
            changes = _changes(updates)
            for key, value in changes.items():
                setattr(record, key, value)
            self._audit(session, AuditAction.UPDATE, AuditResourceType.GROUP, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Updated group {group_id}: {sorted(changes)}")
            return _to_group(record)

    async def delete_group(self, group_id: str, actor: Optional[User] = None) -> None:
        async with self._session() as session:
            record = await self._require(session, GroupModel, group_id, "Group")
            await session.delete(record)
            self._audit(session, AuditAction.DELETE, AuditResourceType.GROUP, group_id, record.name, actor)
            logger.info(f"Deleted group {group_id}")

    # ---- Categories ----------------------------------------------------------

    async def get_all_categories(self) -> List[Category]:
        async with self._session() as session:
            result = await session.execute(
                select(CategoryModel).order_by(CategoryModel.created_at, CategoryModel.id)
            )
            return [_to_category(r) for r in result.scalars().all()]

    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        async with self._session() as session:
            record = await session.get(CategoryModel, category_id)
            return _to_category(record) if record else None

    async def create_category(self, data: CategoryCreate, actor: Optional[User] = None) -> Category:
        async with self._session() as session:
            record = CategoryModel(
                id=generate_id(),
                created_at=utcnow(),
                document_types=[],
                **data.model_dump(mode="json"),
            )
            session.add(record)
            self._audit(session, AuditAction.CREATE, AuditResourceType.CATEGORY, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Created category {record.id} ({record.name})")
            return _to_category(record)

    async def update_category(
        self, category_id: str, updates: CategoryUpdate, actor: Optional[User] = None
    ) -> Category:
        async with self._session() as session:
            record = await self._require(session, CategoryModel, category_id, "Category")
            changes = _changes(updates, nullable=("parent_id",))
            for key, value in changes.items():
                setattr(record, key, value)
            self._audit(session, AuditAction.UPDATE, AuditResourceType.CATEGORY, record.id, record.name, actor)
            await session.flush()
            logger.info(f"Updated category {category_id}: {sorted(changes)}")
            return _to_category(record)

    async def delete_category(self, category_id: str, actor: Optional[User] = None) -> None:
        """Delete a category and its document types; its documents are kept"""
        async with self._session() as session:
            record = await self._require(session, CategoryModel, category_id, "Category")
            await session.delete(record)
            self._audit(session, AuditAction.DELETE, AuditResourceType.CATEGORY, category_id, record.name, actor)
            logger.info(f"Deleted category {category_id}")

    # ---- Document types ------------------------------------------------------

    async def get_document_types_by_category(self, category_id: str) -> List[DocumentType]:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentTypeModel)
                .where(DocumentTypeModel.category_id == category_id)
                .order_by(DocumentTypeModel.name)
            )
            return [_to_document_type(r) for r in result.scalars().all()]

    async def create_document_type(self, category_id: str, name: str) -> DocumentType:
        async with self._session() as session:
            await self._require(session, CategoryModel, category_id, "Category")
            record = DocumentTypeModel(id=generate_id(), name=name, category_id=category_id)
            session.add(record)
            await session.flush()
            return _to_document_type(record)

    async def delete_document_type(self, category_id: str, document_type_id: str) -> None:
        async with self._session() as session:
            record = await session.get(DocumentTypeModel, document_type_id)
            if record is None or record.category_id != category_id:
                raise NotFoundException(
                    "Document type",
                    details={"id": document_type_id, "category_id": category_id},
                )
            await session.delete(record)

    # ---- Documents -----------------------------------------------------------

    async def get_all_documents(self) -> List[Document]:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentModel).order_by(DocumentModel.created_at, DocumentModel.id)
            )
            return [_to_document(r) for r in result.scalars().all()]

    async def get_document_by_id(self, document_id: str) -> Optional[Document]:
        async with self._session() as session:
            record = await session.get(DocumentModel, document_id)
            return _to_document(record) if record else None

    async def get_documents_by_category(self, category_id: str) -> List[Document]:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentModel)
                .where(DocumentModel.category_id == category_id)
                .order_by(DocumentModel.created_at, DocumentModel.id)
            )
            return [_to_document(r) for r in result.scalars().all()]

    async def create_document(self, data: DocumentCreate, uploaded_by: User) -> Document:
        """
        Store an uploaded document

        Args:
            data: Upload payload
            uploaded_by: Uploader, recorded as owner and as the audit actor

        Returns:
            The stored document; a first version is added when none is given
        """
        async with self._session() as session:
            now = utcnow()
            document_id = generate_id()
            versions = list(data.versions) or [
                DocumentVersion(
                    id=generate_id(),
                    document_id=document_id,
                    version=data.current_version,
                    file_name=data.file_name,
                    file_size=data.file_size,
                    uploaded_by_id=uploaded_by.id,
                    created_at=now,
                )
            ]
            fields = data.model_dump(mode="json", exclude={"versions", "expires_at"})
            record = DocumentModel(
                id=document_id,
                uploaded_by_id=uploaded_by.id,
                versions=[v.model_dump(mode="json") for v in versions],
                expires_at=data.expires_at,
                created_at=now,
                updated_at=now,
                **fields,
            )
            session.add(record)
            self._audit(
                session, AuditAction.UPLOAD, AuditResourceType.DOCUMENT, record.id, record.name, uploaded_by
            )
            await session.flush()
            logger.info(f"Uploaded document {record.id} ({record.name}) to category {record.category_id}")
            return _to_document(record)

    async def update_document(
        self, document_id: str, updates: DocumentUpdate, actor: Optional[User] = None
    ) -> Document:
        async with self._session() as session:
            record = await self._require(session, DocumentModel, document_id, "Document")
            changes = _changes(updates, nullable=("expires_at",), datetimes=("expires_at",))
            for key, value in changes.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            self._audit(
                session, AuditAction.UPDATE, AuditResourceType.DOCUMENT, record.id, record.name, actor
            )
            await session.flush()
            logger.info(f"Updated document {document_id}: {sorted(changes)}")
            return _to_document(record)

    async def delete_document(self, document_id: str, actor: Optional[User] = None) -> None:
        async with self._session() as session:
            record = await self._require(session, DocumentModel, document_id, "Document")
            await session.delete(record)
            self._audit(
                session, AuditAction.DELETE, AuditResourceType.DOCUMENT, document_id, record.name, actor
            )
            logger.info(f"Deleted document {document_id}")

    # ---- Audit ---------------------------------------------------------------

    async def get_all_audit_logs(self) -> List[AuditLog]:
        """All audit entries, newest first"""
        async with self._session() as session:
            result = await session.execute(
                select(AuditLogModel).order_by(AuditLogModel.created_at.desc(), AuditLogModel.id.desc())
            )
            return [_to_audit_log(r) for r in result.scalars().all()]

    async def log_audit(
        self,
        action: AuditAction,
        resource_type: AuditResourceType,
        resource_id: str,
        resource_name: str,
        actor: Optional[User] = None,
        details: Optional[str] = None,
    ) -> AuditLog:
        async with self._session() as session:
            record = self._audit(session, action, resource_type, resource_id, resource_name, actor, details)
            await session.flush()
            return _to_audit_log(record)

    # ---- Authentication ------------------------------------------------------

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Demo authentication: known email plus the shared demo password

        Returns:
            The user on success, None otherwise
        """
        if password != settings.DEMO_PASSWORD:
            logger.info(f"Login rejected for {email}: bad password")
            return None

        user = await self.get_user_by_email(email)
        if user is None:
            logger.info(f"Login rejected for {email}: unknown email")
            return None

        await self.log_audit(AuditAction.LOGIN, AuditResourceType.AUTH, user.id, user.name, actor=user)
        logger.info(f"User {user.id} logged in")
        return user

    async def logout_user(self, user: User) -> None:
        await self.log_audit(AuditAction.LOGOUT, AuditResourceType.AUTH, user.id, user.name, actor=user)
        logger.info(f"User {user.id} logged out")

    # ---- Maintenance ---------------------------------------------------------

    async def seed_database(self) -> bool:
        """
        Load the demo dataset into an empty database

        Returns:
            True if seeded, False if users already existed
        """
        from acdocs.db.seed import build_seed_records

        async with self._session() as session:
            count = (await session.execute(select(func.count()).select_from(UserModel))).scalar_one()
            if count > 0:
                return False
            session.add_all(build_seed_records())
        logger.info("Database seeded with demo data")
        return True

    async def reset_database(self) -> None:
        """Remove every record and seed again"""
        async with self._session() as session:
            for model in (AuditLogModel, DocumentModel, DocumentTypeModel, CategoryModel, GroupModel, UserModel):
                await session.execute(delete(model))
        logger.warning("Database reset")
        await self.seed_database()
