"""
Session Service
Current user, login/logout and permission shortcuts
"""

from typing import Optional, Union

from acdocs.core.exceptions import AuthenticationException, AuthorizationException
from acdocs.core.logging import get_logger
from acdocs.core.permissions import (
    DEFAULT_MATRIX,
    PermissionLike,
    PermissionMatrix,
    Role,
    coerce_role,
)
from acdocs.models.user import User
from acdocs.services.queries import QueryService

logger = get_logger(__name__)


class SessionService:
    """Holds the authenticated user for one client session"""

    def __init__(
        self,
        queries: QueryService,
        matrix: Optional[PermissionMatrix] = None,
    ):
        self.queries = queries
        self.matrix = matrix if matrix is not None else DEFAULT_MATRIX
        self._user: Optional[User] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    async def login(self, email: str, password: str) -> bool:
        user = await self.queries.authenticate(email, password)
        if user is None:
            return False
        self._user = user
        return True

    async def logout(self) -> None:
        if self._user is not None:
            await self.queries.logout(self._user)
        self._user = None

    async def refresh(self) -> Optional[User]:
        """
        Reload the current user so role and group changes apply immediately

        A user deleted in the meantime is logged out.
        """
        if self._user is None:
            return None
        user = await self.queries.store.get_user_by_id(self._user.id)
        if user is None:
            logger.warning(f"Session user {self._user.id} no longer exists; logging out")
        self._user = user
        return user

    def can(self, permission: PermissionLike) -> bool:
        if self._user is None:
            return False
        return self.matrix.has_permission(self._user.role, permission)

    def is_role(self, *roles: Union[Role, str]) -> bool:
        if self._user is None:
            return False
        return self._user.role in {coerce_role(r) for r in roles}

    def require_user(self) -> User:
        if self._user is None:
            raise AuthenticationException()
        return self._user

    def require(self, permission: PermissionLike) -> User:
        """
        Return the current user if they hold permission

        Raises:
            AuthenticationException: Nobody is logged in
            AuthorizationException: The user's role lacks the permission
        """
        user = self.require_user()
        if not self.matrix.has_permission(user.role, permission):
            raise AuthorizationException(
                message=f"Missing '{permission}' permission",
                permission=str(permission),
            )
        return user
