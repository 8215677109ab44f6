"""
Permission Matrix
Roles, permission tokens and the role -> permission evaluator
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Union

from acdocs.core.exceptions import ConfigurationException
from acdocs.core.logging import get_logger

logger = get_logger(__name__)


class Role(str, Enum):
    """Authorization level assigned to a user"""

    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    READER = "reader"


# Roles that bypass group and ownership scoping
ELEVATED_ROLES: FrozenSet[Role] = frozenset({Role.OWNER, Role.ADMIN})


def coerce_role(role: Union[Role, str, None]) -> Optional[Role]:
    """Map a role value onto Role, None when it is not one of the five"""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def is_elevated(role: Union[Role, str, None]) -> bool:
    """True for owner and admin"""
    return coerce_role(role) in ELEVATED_ROLES


@dataclass(frozen=True)
class Permission:
    """
    Parsed ``resource:action[:qualifier]`` token

    Parsing is exact: ``str(Permission.parse(text)) == text`` for every
    string, so two permissions are equal iff their texts are equal. The
    bare ``*`` token parses to ``Permission("*")`` and means everything.
    """

    resource: str
    action: Optional[str] = None
    qualifier: Optional[str] = None

    WILDCARD: ClassVar[str] = "*"
    SEPARATOR: ClassVar[str] = ":"

    @classmethod
    def parse(cls, text: Union[str, "Permission"]) -> "Permission":
        if isinstance(text, Permission):
            return text
        parts = text.split(cls.SEPARATOR, 2)
        return cls(
            resource=parts[0],
            action=parts[1] if len(parts) > 1 else None,
            qualifier=parts[2] if len(parts) > 2 else None,
        )

    @classmethod
    def all(cls) -> "Permission":
        return cls(cls.WILDCARD)

    @classmethod
    def any_action(cls, resource: str) -> "Permission":
        return cls(resource, cls.WILDCARD)

    @property
    def is_all(self) -> bool:
        return self.resource == self.WILDCARD and self.action is None

    def __str__(self) -> str:
        parts = [p for p in (self.resource, self.action, self.qualifier) if p is not None]
        return self.SEPARATOR.join(parts)


PermissionLike = Union[str, Permission]


class PermissionMatrix(Mapping[Role, FrozenSet[Permission]]):
    """
    Immutable role -> permission set table

    Built once at startup. A table missing a role, holding an empty
    entry, or granting the owner anything other than ``*`` is rejected
    with ConfigurationException.
    """

    def __init__(self, entries: Mapping[Union[Role, str], Iterable[PermissionLike]]):
        table: Dict[Role, FrozenSet[Permission]] = {}
        for raw_role, perms in entries.items():
            role = coerce_role(raw_role)
            if role is None:
                raise ConfigurationException(
                    message=f"Unknown role in permission matrix: {raw_role}",
                    details={"role": str(raw_role)},
                )
            table[role] = frozenset(Permission.parse(p) for p in perms)

        missing = [r.value for r in Role if r not in table]
        if missing:
            raise ConfigurationException(
                message="Permission matrix is missing roles",
                details={"missing_roles": missing},
            )

        empty = [r.value for r, perms in table.items() if not perms]
        if empty:
            raise ConfigurationException(
                message="Permission matrix has roles without permissions",
                details={"empty_roles": empty},
            )

        if table[Role.OWNER] != frozenset({Permission.all()}):
            raise ConfigurationException(
                message="Owner must hold exactly the '*' permission",
                details={"owner": sorted(str(p) for p in table[Role.OWNER])},
            )

        self._table = MappingProxyType(table)

    def __getitem__(self, role: Union[Role, str]) -> FrozenSet[Permission]:
        key = coerce_role(role)
        if key is None:
            raise KeyError(role)
        return self._table[key]

    def __iter__(self) -> Iterator[Role]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def has_permission(self, role: Union[Role, str], permission: PermissionLike) -> bool:
        """
        Decide whether a role holds a permission

        First match wins: ``*``, then the exact token, then ``resource:*``.
        Qualified tokens such as ``documents:update:own`` are distinct from
        their unqualified form and only match exactly or by resource
        wildcard.

        Args:
            role: Role to check; unknown roles hold nothing
            permission: Token text or parsed Permission

        Returns:
            True if granted, False otherwise
        """
        key = coerce_role(role)
        perms = self._table.get(key) if key is not None else None
        if perms is None:
            logger.debug(f"Unknown role {role!r} denied {permission}")
            return False

        requested = Permission.parse(permission)

        if Permission.all() in perms:
            return True
        if requested in perms:
            return True
        if Permission.any_action(requested.resource) in perms:
            return True

        logger.debug(f"Role {key.value} denied {requested}")
        return False


DEFAULT_PERMISSIONS: Dict[Role, FrozenSet[str]] = {
    Role.OWNER: frozenset({"*"}),
    Role.ADMIN: frozenset({
        "categories:create",
        "categories:read",
        "categories:update",
        "categories:delete",
        "documents:create",
        "documents:read",
        "documents:update",
        "documents:delete",
        "groups:create",
        "groups:read",
        "groups:update",
        "groups:delete",
        "users:create",
        "users:read",
        "users:update",
        "users:delete",
        "audit:read",
    }),
    Role.MANAGER: frozenset({
        "categories:create",
        "categories:read",
        "categories:update",
        "documents:create",
        "documents:read",
        "documents:update",
        "documents:delete",
        "groups:read",
        "groups:update",
        "audit:read",
    }),
    Role.USER: frozenset({
        "documents:create",
        "documents:read",
        "documents:update:own",
        "documents:delete:own",
    }),
    Role.READER: frozenset({
        "documents:read",
    }),
}

DEFAULT_MATRIX = PermissionMatrix(DEFAULT_PERMISSIONS)


def has_permission(
    role: Union[Role, str],
    permission: PermissionLike,
    matrix: Optional[PermissionMatrix] = None,
) -> bool:
    """Evaluate a permission against the given matrix (default matrix if omitted)"""
    return (matrix if matrix is not None else DEFAULT_MATRIX).has_permission(role, permission)
