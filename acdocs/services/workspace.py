"""
Workspace Service
Scoped reads and authorized writes for the signed-in user

Screens call this instead of the store: every list and count is run
through the accessible-set projection, and every mutation through the
permission matrix plus the ownership rules.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from acdocs.core.access_control import (
    can_access_category,
    can_access_document,
    can_delete_document,
    can_modify_document,
    can_read_audit_log,
    can_update_document,
    get_accessible_categories,
    get_accessible_documents,
    get_accessible_groups,
)
from acdocs.core.exceptions import AuthorizationException, NotFoundException, ValidationException
from acdocs.core.logging import get_logger
from acdocs.core.permissions import Role
from acdocs.models.audit import AuditLog
from acdocs.models.category import Category, CategoryCreate, CategoryUpdate, DocumentType
from acdocs.models.document import (
    Document,
    DocumentCreate,
    DocumentUpdate,
    ExpirationStatus,
    get_expiration_status,
)
from acdocs.models.group import Group, GroupCreate, GroupUpdate
from acdocs.models.notification import Notification
from acdocs.models.user import User, UserCreate, UserUpdate
from acdocs.services.notifications import NotificationService
from acdocs.services.queries import QueryService
from acdocs.services.session import SessionService

logger = get_logger(__name__)

RECENT_DOCUMENTS_LIMIT = 5
RECENT_AUDIT_LOGS_LIMIT = 6


class DashboardSummary(BaseModel):
    """Counts and alert buckets over what the user may see"""

    document_count: int
    category_count: Optional[int] = Field(None, description="Only filled with categories:read")
    group_count: int
    user_count: Optional[int] = Field(None, description="Only filled with users:read")
    expired: List[Document] = Field(default_factory=list)
    critical: List[Document] = Field(default_factory=list)
    warning: List[Document] = Field(default_factory=list)
    recent_documents: List[Document] = Field(default_factory=list)
    recent_audit_logs: List[AuditLog] = Field(default_factory=list, description="Only filled with audit:read")


class WorkspaceService:
    """Authorization-aware facade over QueryService for one session"""

    def __init__(
        self,
        queries: QueryService,
        session: SessionService,
        notifications: Optional[NotificationService] = None,
    ):
        self.queries = queries
        self.session = session
        self.notifications = notifications or NotificationService()

    @property
    def matrix(self):
        return self.session.matrix

    def _deny(self, message: str, user: User, **details) -> AuthorizationException:
        logger.warning(f"User {user.id} ({user.role.value}) denied: {message}")
        return AuthorizationException(message=message, details=details or None)

    # ---- Categories ----------------------------------------------------------

    async def list_categories(self) -> List[Category]:
        user = self.session.require_user()
        return get_accessible_categories(user, await self.queries.categories(), await self.queries.groups())

    async def _visible_category(self, user: User, category_id: str) -> Category:
        category = await self.queries.category(category_id)
        if category is None or not can_access_category(user, category, await self.queries.groups()):
            raise NotFoundException("Category", details={"id": category_id})
        return category

    async def get_category(self, category_id: str) -> Category:
        return await self._visible_category(self.session.require_user(), category_id)

    async def create_category(self, data: CategoryCreate) -> Category:
        user = self.session.require("categories:create")
        return await self.queries.create_category(data, actor=user)

    async def update_category(self, category_id: str, updates: CategoryUpdate) -> Category:
        user = self.session.require("categories:update")
        await self._visible_category(user, category_id)
        return await self.queries.update_category(category_id, updates, actor=user)

    async def delete_category(self, category_id: str) -> None:
        user = self.session.require("categories:delete")
        await self._visible_category(user, category_id)
        await self.queries.delete_category(category_id, actor=user)

    async def add_document_type(self, category_id: str, name: str) -> DocumentType:
        user = self.session.require("categories:update")
        await self._visible_category(user, category_id)
        return await self.queries.create_document_type(category_id, name)

    async def remove_document_type(self, category_id: str, document_type_id: str) -> None:
        user = self.session.require("categories:update")
        await self._visible_category(user, category_id)
        await self.queries.delete_document_type(category_id, document_type_id)

    # ---- Documents -----------------------------------------------------------

    async def list_documents(self, category_id: Optional[str] = None) -> List[Document]:
        user = self.session.require_user()
        snapshot = await self.queries.snapshot()
        documents = get_accessible_documents(user, snapshot.documents, snapshot.categories, snapshot.groups)
        if category_id is not None:
            documents = [d for d in documents if d.category_id == category_id]
        return documents

    async def _visible_document(self, user: User, document_id: str) -> Document:
        document = await self.queries.document(document_id)
        if document is None or not can_access_document(
            user, document, await self.queries.categories(), await self.queries.groups()
        ):
            # Hidden and missing documents look the same
            raise NotFoundException("Document", details={"id": document_id})
        return document

    async def get_document(self, document_id: str) -> Document:
        return await self._visible_document(self.session.require_user(), document_id)

    async def upload_document(self, data: DocumentCreate) -> Document:
        user = self.session.require("documents:create")
        category = await self._visible_category(user, data.category_id)
        if data.document_type_id not in {dt.id for dt in category.document_types}:
            raise ValidationException(
                message="Document type does not belong to the category",
                details={"category_id": category.id, "document_type_id": data.document_type_id},
            )
        return await self.queries.create_document(data, uploaded_by=user)

    async def update_document(self, document_id: str, updates: DocumentUpdate) -> Document:
        user = self.session.require_user()
        document = await self._visible_document(user, document_id)
        if not can_update_document(user, document, self.matrix):
            raise self._deny("Not allowed to update this document", user, document_id=document_id)
        if updates.category_id is not None and updates.category_id != document.category_id:
            await self._visible_category(user, updates.category_id)
        return await self.queries.update_document(document_id, updates, actor=user)

    async def delete_document(self, document_id: str) -> None:
        user = self.session.require_user()
        document = await self._visible_document(user, document_id)
        if not can_delete_document(user, document, self.matrix):
            raise self._deny("Not allowed to delete this document", user, document_id=document_id)
        await self.queries.delete_document(document_id, actor=user)

    async def delete_documents(self, document_ids: Sequence[str]) -> int:
        """
        Bulk delete; needs the unscoped documents:delete permission

        Every id is checked before anything is deleted, so a single denied
        document aborts the whole batch.

        Returns:
            Number of documents deleted
        """
        user = self.session.require("documents:delete")
        documents = [await self._visible_document(user, doc_id) for doc_id in dict.fromkeys(document_ids)]
        denied = [d.id for d in documents if not can_modify_document(user, d)]
        if denied:
            raise self._deny("Not allowed to delete some documents", user, document_ids=denied)
        for document in documents:
            await self.queries.delete_document(document.id, actor=user)
        return len(documents)

    # ---- Groups --------------------------------------------------------------

    async def list_groups(self) -> List[Group]:
        user = self.session.require_user()
        return get_accessible_groups(user, await self.queries.groups())

    async def _visible_group(self, user: User, group_id: str) -> Group:
        group = await self.queries.group(group_id)
        if group is None or not get_accessible_groups(user, [group]):
            raise NotFoundException("Group", details={"id": group_id})
        return group

    async def create_group(self, data: GroupCreate) -> Group:
        user = self.session.require("groups:create")
        return await self.queries.create_group(data, actor=user)

    async def update_group(self, group_id: str, updates: GroupUpdate) -> Group:
        user = self.session.require("groups:update")
        await self._visible_group(user, group_id)
        return await self.queries.update_group(group_id, updates, actor=user)

    async def delete_group(self, group_id: str) -> None:
        user = self.session.require("groups:delete")
        await self._visible_group(user, group_id)
        await self.queries.delete_group(group_id, actor=user)

    # ---- Users ---------------------------------------------------------------

    async def list_users(self) -> List[User]:
        self.session.require("users:read")
        return await self.queries.users()

    async def create_user(self, data: UserCreate) -> User:
        user = self.session.require("users:create")
        return await self.queries.create_user(data, actor=user)

    async def update_user(self, user_id: str, updates: UserUpdate) -> User:
        user = self.session.require("users:update")
        updated = await self.queries.update_user(user_id, updates, actor=user)
        if user_id == user.id:
            await self.session.refresh()
        return updated

    async def delete_user(self, user_id: str) -> None:
        user = self.session.require("users:delete")
        # Account removal is reserved to the owner even though admins hold users:delete
        if not self.session.is_role(Role.OWNER):
            raise self._deny("Only the owner can delete users", user, user_id=user_id)
        await self.queries.delete_user(user_id, actor=user)
        if user_id == user.id:
            await self.session.refresh()

    # ---- Audit ---------------------------------------------------------------

    async def list_audit_logs(self) -> List[AuditLog]:
        user = self.session.require_user()
        if not can_read_audit_log(user, self.matrix):
            raise self._deny("Missing 'audit:read' permission", user)
        return await self.queries.audit_logs()

    # ---- Dashboard and alerts ------------------------------------------------

    async def dashboard(self, now: Optional[datetime] = None) -> DashboardSummary:
        user = self.session.require_user()
        snapshot = await self.queries.snapshot()
        categories = get_accessible_categories(user, snapshot.categories, snapshot.groups)
        documents = get_accessible_documents(user, snapshot.documents, snapshot.categories, snapshot.groups)
        groups = get_accessible_groups(user, snapshot.groups)

        buckets = {status: [] for status in ExpirationStatus}
        for document in documents:
            buckets[get_expiration_status(document.expires_at, now)].append(document)

        recent = sorted(documents, key=lambda d: d.updated_at, reverse=True)[:RECENT_DOCUMENTS_LIMIT]
        activity = []
        if can_read_audit_log(user, self.matrix):
            activity = (await self.queries.audit_logs())[:RECENT_AUDIT_LOGS_LIMIT]

        return DashboardSummary(
            document_count=len(documents),
            category_count=len(categories) if self.session.can("categories:read") else None,
            group_count=len(groups),
            user_count=len(snapshot.users) if self.session.can("users:read") else None,
            expired=buckets[ExpirationStatus.EXPIRED],
            critical=buckets[ExpirationStatus.CRITICAL],
            warning=buckets[ExpirationStatus.WARNING],
            recent_documents=recent,
            recent_audit_logs=activity,
        )

    async def check_expiration_alerts(self, now: Optional[datetime] = None) -> List[Notification]:
        user = self.session.require_user()
        documents = await self.list_documents()
        return await self.notifications.check_expiring_documents(user, documents, now)
