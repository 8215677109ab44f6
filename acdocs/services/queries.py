"""
Query Service
Cached reads over the document store with invalidation on writes
"""

from dataclasses import dataclass
from typing import List, Optional

from acdocs.core.cache import CacheManager
from acdocs.core.config import settings
from acdocs.core.logging import get_logger
from acdocs.db.operations import DocumentStore
from acdocs.models.audit import AuditLog
from acdocs.models.category import Category, CategoryCreate, CategoryUpdate, DocumentType
from acdocs.models.document import Document, DocumentCreate, DocumentUpdate
from acdocs.models.group import Group, GroupCreate, GroupUpdate
from acdocs.models.user import User, UserCreate, UserUpdate

logger = get_logger(__name__)


class QueryKeys:
    """Query key factories; every key of a resource starts with its root"""

    USERS = ("users",)
    GROUPS = ("groups",)
    CATEGORIES = ("categories",)
    DOCUMENTS = ("documents",)
    AUDIT_LOGS = ("auditLogs",)

    @staticmethod
    def lists(root: tuple) -> tuple:
        return (*root, "list")

    @staticmethod
    def detail(root: tuple, record_id: str) -> tuple:
        return (*root, "detail", record_id)

    @staticmethod
    def documents_by_category(category_id: str) -> tuple:
        return ("documents", "byCategory", category_id)

    @staticmethod
    def document_types(category_id: str) -> tuple:
        return ("categories", "documentTypes", category_id)


@dataclass(frozen=True)
class Snapshot:
    """Collections read together for one authorization decision"""

    users: List[User]
    groups: List[Group]
    categories: List[Category]
    documents: List[Document]


class QueryService:
    """
    Read-through cache in front of DocumentStore

    Reads are served from the cache until their stale window passes
    (documents: DOCUMENTS_STALE_SECONDS, everything else:
    CACHE_STALE_SECONDS). Every write drops the affected resource keys
    and the audit log keys, since each write also appends an audit entry.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        cache: Optional[CacheManager] = None,
    ):
        self.store = store or DocumentStore()
        self.cache = cache or CacheManager()

    async def _invalidate(self, *roots: tuple) -> None:
        for root in (*roots, QueryKeys.AUDIT_LOGS):
            await self.cache.invalidate(root)

    # ---- Reads ---------------------------------------------------------------
    # List reads hand out copies so callers cannot mutate the cached lists

    async def users(self) -> List[User]:
        return list(await self.cache.get_or_load(
            QueryKeys.lists(QueryKeys.USERS), self.store.get_all_users, settings.CACHE_STALE_SECONDS
        ))

    async def user(self, user_id: str) -> Optional[User]:
        return await self.cache.get_or_load(
            QueryKeys.detail(QueryKeys.USERS, user_id),
            lambda: self.store.get_user_by_id(user_id),
            settings.CACHE_STALE_SECONDS,
        )

    async def groups(self) -> List[Group]:
        return list(await self.cache.get_or_load(
            QueryKeys.lists(QueryKeys.GROUPS), self.store.get_all_groups, settings.CACHE_STALE_SECONDS
        ))

    async def group(self, group_id: str) -> Optional[Group]:
        return await self.cache.get_or_load(
            QueryKeys.detail(QueryKeys.GROUPS, group_id),
            lambda: self.store.get_group_by_id(group_id),
            settings.CACHE_STALE_SECONDS,
        )

    async def categories(self) -> List[Category]:
        return list(await self.cache.get_or_load(
            QueryKeys.lists(QueryKeys.CATEGORIES), self.store.get_all_categories, settings.CACHE_STALE_SECONDS
        ))

    async def category(self, category_id: str) -> Optional[Category]:
        return await self.cache.get_or_load(
            QueryKeys.detail(QueryKeys.CATEGORIES, category_id),
            lambda: self.store.get_category_by_id(category_id),
            settings.CACHE_STALE_SECONDS,
        )

    async def document_types(self, category_id: str) -> List[DocumentType]:
        return list(await self.cache.get_or_load(
            QueryKeys.document_types(category_id),
            lambda: self.store.get_document_types_by_category(category_id),
            settings.CACHE_STALE_SECONDS,
        ))

    async def documents(self) -> List[Document]:
        return list(await self.cache.get_or_load(
            QueryKeys.lists(QueryKeys.DOCUMENTS), self.store.get_all_documents, settings.DOCUMENTS_STALE_SECONDS
        ))

    async def document(self, document_id: str) -> Optional[Document]:
        return await self.cache.get_or_load(
            QueryKeys.detail(QueryKeys.DOCUMENTS, document_id),
            lambda: self.store.get_document_by_id(document_id),
            settings.DOCUMENTS_STALE_SECONDS,
        )

    async def documents_by_category(self, category_id: str) -> List[Document]:
        return list(await self.cache.get_or_load(
            QueryKeys.documents_by_category(category_id),
            lambda: self.store.get_documents_by_category(category_id),
            settings.DOCUMENTS_STALE_SECONDS,
        ))

    async def audit_logs(self) -> List[AuditLog]:
        return list(await self.cache.get_or_load(
            QueryKeys.lists(QueryKeys.AUDIT_LOGS), self.store.get_all_audit_logs, settings.CACHE_STALE_SECONDS
        ))

    async def snapshot(self) -> Snapshot:
        return Snapshot(
            users=await self.users(),
            groups=await self.groups(),
            categories=await self.categories(),
            documents=await self.documents(),
        )

    # ---- Writes --------------------------------------------------------------

    async def create_user(self, data: UserCreate, actor: Optional[User] = None) -> User:
        user = await self.store.create_user(data, actor)
        await self._invalidate(QueryKeys.USERS)
        return user

    async def update_user(self, user_id: str, updates: UserUpdate, actor: Optional[User] = None) -> User:
        user = await self.store.update_user(user_id, updates, actor)
        await self._invalidate(QueryKeys.USERS)
        return user

    async def delete_user(self, user_id: str, actor: Optional[User] = None) -> None:
        await self.store.delete_user(user_id, actor)
        await self._invalidate(QueryKeys.USERS)

    async def create_group(self, data: GroupCreate, actor: Optional[User] = None) -> Group:
        group = await self.store.create_group(data, actor)
        await self._invalidate(QueryKeys.GROUPS)
        return group

    async def update_group(self, group_id: str, updates: GroupUpdate, actor: Optional[User] = None) -> Group:
        group = await self.store.update_group(group_id, updates, actor)
        await self._invalidate(QueryKeys.GROUPS)
        return group

    async def delete_group(self, group_id: str, actor: Optional[User] = None) -> None:
        await self.store.delete_group(group_id, actor)
        await self._invalidate(QueryKeys.GROUPS)

    async def create_category(self, data: CategoryCreate, actor: Optional[User] = None) -> Category:
        category = await self.store.create_category(data, actor)
        await self._invalidate(QueryKeys.CATEGORIES)
        return category

    async def update_category(
        self, category_id: str, updates: CategoryUpdate, actor: Optional[User] = None
    ) -> Category:
        category = await self.store.update_category(category_id, updates, actor)
        await self._invalidate(QueryKeys.CATEGORIES)
        return category

    async def delete_category(self, category_id: str, actor: Optional[User] = None) -> None:
        await self.store.delete_category(category_id, actor)
        await self._invalidate(QueryKeys.CATEGORIES)

    async def create_document_type(self, category_id: str, name: str) -> DocumentType:
        document_type = await self.store.create_document_type(category_id, name)
        await self.cache.invalidate(QueryKeys.CATEGORIES)
        return document_type

    async def delete_document_type(self, category_id: str, document_type_id: str) -> None:
        await self.store.delete_document_type(category_id, document_type_id)
        await self.cache.invalidate(QueryKeys.CATEGORIES)

    async def create_document(self, data: DocumentCreate, uploaded_by: User) -> Document:
        document = await self.store.create_document(data, uploaded_by)
        await self._invalidate(QueryKeys.DOCUMENTS)
        return document

    async def update_document(
        self, document_id: str, updates: DocumentUpdate, actor: Optional[User] = None
    ) -> Document:
        document = await self.store.update_document(document_id, updates, actor)
        await self._invalidate(QueryKeys.DOCUMENTS)
        return document

    async def delete_document(self, document_id: str, actor: Optional[User] = None) -> None:
        await self.store.delete_document(document_id, actor)
        await self._invalidate(QueryKeys.DOCUMENTS)

    async def invalidate_all(self) -> None:
        await self.cache.clear()

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.store.authenticate_user(email, password)
        if user is not None:
            await self.cache.invalidate(QueryKeys.AUDIT_LOGS)
        return user

    async def logout(self, user: User) -> None:
        await self.store.logout_user(user)
        await self.cache.invalidate(QueryKeys.AUDIT_LOGS)
