"""
Access Control
Group-based visibility, accessible-set projection and document mutation checks

Every function here is a pure computation over already-fetched records:
no I/O, no caching, no mutation of the inputs. Callers hand in one
coherent snapshot of users, groups, categories and documents.
"""

from typing import Dict, List, Optional, Sequence

from acdocs.core.logging import get_logger
from acdocs.core.permissions import (
    DEFAULT_MATRIX,
    Permission,
    PermissionMatrix,
    Role,
    coerce_role,
    is_elevated,
)
from acdocs.models.category import Category
from acdocs.models.document import Document
from acdocs.models.group import Group
from acdocs.models.user import User

logger = get_logger(__name__)


def _matrix(matrix: Optional[PermissionMatrix]) -> PermissionMatrix:
    return matrix if matrix is not None else DEFAULT_MATRIX


def _is_uploader(user: User, document: Document) -> bool:
    return document.uploaded_by_id == user.id


def _index_categories(categories: Sequence[Category]) -> Dict[str, Category]:
    # First occurrence wins, like a linear search would
    index: Dict[str, Category] = {}
    for category in categories:
        index.setdefault(category.id, category)
    return index


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------

def can_access_category(
    user: User,
    category: Category,
    groups: Sequence[Group] = (),
) -> bool:
    """
    Check whether a user may see a category

    Owner and admin see everything. Anyone else needs at least one of
    their groups in the category's shared_with_group_ids; a category
    shared with nobody is invisible to them.

    Args:
        user: Requesting user
        category: Category to check
        groups: Full group collection (membership is read from user.group_ids)

    Returns:
        True if visible
    """
    if is_elevated(user.role):
        return True
    return not set(user.group_ids).isdisjoint(category.shared_with_group_ids)


def _can_access_document(
    user: User,
    document: Document,
    categories_by_id: Dict[str, Category],
    groups: Sequence[Group],
) -> bool:
    if is_elevated(user.role):
        return True
    if _is_uploader(user, document):
        return True

    category = categories_by_id.get(document.category_id)
    if category is None:
        logger.debug(
            f"Document {document.id} references missing category {document.category_id}; denied"
        )
        return False

    return can_access_category(user, category, groups)


def can_access_document(
    user: User,
    document: Document,
    categories: Sequence[Category],
    groups: Sequence[Group] = (),
) -> bool:
    """
    Check whether a user may see a document

    Owner and admin see everything. The uploader always sees their own
    document. Otherwise the document is visible iff its category is;
    a category id that does not resolve denies access.

    Args:
        user: Requesting user
        document: Document to check
        categories: Category collection used to resolve document.category_id
        groups: Full group collection

    Returns:
        True if visible
    """
    return _can_access_document(user, document, _index_categories(categories), groups)


# ---------------------------------------------------------------------------
# Accessible sets
# ---------------------------------------------------------------------------

def get_accessible_categories(
    user: User,
    categories: Sequence[Category],
    groups: Sequence[Group] = (),
) -> List[Category]:
    """Categories visible to the user, in input order"""
    if is_elevated(user.role):
        return list(categories)
    return [c for c in categories if can_access_category(user, c, groups)]


def get_accessible_documents(
    user: User,
    documents: Sequence[Document],
    categories: Sequence[Category],
    groups: Sequence[Group] = (),
) -> List[Document]:
    """Documents visible to the user, in input order"""
    if is_elevated(user.role):
        return list(documents)
    categories_by_id = _index_categories(categories)
    return [
        d for d in documents
        if _can_access_document(user, d, categories_by_id, groups)
    ]


def get_accessible_groups(user: User, groups: Sequence[Group]) -> List[Group]:
    """Groups visible to the user: all for owner/admin, own memberships otherwise"""
    if is_elevated(user.role):
        return list(groups)
    return [g for g in groups if user.id in g.member_ids]


# ---------------------------------------------------------------------------
# Modification
# ---------------------------------------------------------------------------

def can_modify_document(user: User, document: Document) -> bool:
    """
    Check whether a user may update or delete a document

    This does not imply visibility; callers check the accessible set
    first. Managers may modify any document.

    Args:
        user: Requesting user
        document: Document to mutate

    Returns:
        True if the mutation is allowed
    """
    role = coerce_role(user.role)
    if is_elevated(role) or role is Role.MANAGER:
        return True
    if role is Role.USER:
        return _is_uploader(user, document)
    return False


def _can_mutate_document(
    action: str,
    user: User,
    document: Document,
    matrix: Optional[PermissionMatrix],
) -> bool:
    table = _matrix(matrix)
    if table.has_permission(user.role, Permission("documents", action)):
        return can_modify_document(user, document)
    if table.has_permission(user.role, Permission("documents", action, "own")):
        return _is_uploader(user, document)
    return False


def can_update_document(
    user: User,
    document: Document,
    matrix: Optional[PermissionMatrix] = None,
) -> bool:
    """documents:update with the ownership rule, or documents:update:own on the user's own upload"""
    return _can_mutate_document("update", user, document, matrix)


def can_delete_document(
    user: User,
    document: Document,
    matrix: Optional[PermissionMatrix] = None,
) -> bool:
    """documents:delete with the ownership rule, or documents:delete:own on the user's own upload"""
    return _can_mutate_document("delete", user, document, matrix)


def can_read_audit_log(user: User, matrix: Optional[PermissionMatrix] = None) -> bool:
    return _matrix(matrix).has_permission(user.role, "audit:read")
