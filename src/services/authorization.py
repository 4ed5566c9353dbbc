"""Capability checks for authenticated principals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.models.stores import Permission, Role, User
from src.services.errors import PermissionDeniedError

_REQUESTER = [
    Permission.CREATE_REQUEST,
    Permission.VIEW_REQUEST,
    Permission.VIEW_INVENTORY,
    Permission.VIEW_ASSETS,
]

_MANAGER = [
    Permission.CREATE_REQUEST,
    Permission.VIEW_REQUEST,
    Permission.APPROVE_REQUEST_DEPARTMENT,
    Permission.VIEW_INVENTORY,
    Permission.VIEW_ASSETS,
]

ROLE_PERMISSIONS: dict[Role, list[Permission]] = {
    Role.GENERAL_MANAGER: list(Permission),
    Role.DEPARTMENT_HEAD: _MANAGER,
    Role.ROOMS_MANAGER: _MANAGER,
    Role.FB_MANAGER: _MANAGER,
    Role.STOREKEEPER: [
        Permission.VIEW_REQUEST,
        Permission.FULFILL_REQUEST,
        Permission.MANAGE_INVENTORY,
        Permission.MANAGE_ASSETS,
        Permission.VIEW_INVENTORY,
        Permission.VIEW_ASSETS,
    ],
    Role.HOUSEKEEPER: _REQUESTER,
    Role.FRONT_DESK: _REQUESTER,
    Role.MAINTENANCE: _REQUESTER,
    Role.CHEF: _REQUESTER,
    Role.STAFF: [
        Permission.CREATE_REQUEST,
        Permission.VIEW_REQUEST,
        Permission.VIEW_INVENTORY,
    ],
}


@dataclass(frozen=True)
class Principal:
    """An authenticated actor and the capabilities it holds."""

    user_id: str
    name: str
    department: str
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.id,
            name=user.name,
            department=user.department,
            permissions=permissions_for(user.role, user.permissions),
        )


def permissions_for(role: Role, extra: Iterable[Permission] = ()) -> frozenset[Permission]:
    """Role permissions plus any permissions granted to the user directly."""
    return frozenset(ROLE_PERMISSIONS.get(role, [])) | frozenset(extra)


def has_permission(principal: Principal, permission: Permission) -> bool:
    return permission in principal.permissions


def authorize(principal: Principal, permission: Permission) -> None:
    """Raises PermissionDeniedError unless the principal holds the permission."""
    if not has_permission(principal, permission):
        raise PermissionDeniedError(principal.name, permission.value)


def authorize_optional(principal: Optional[Principal], permission: Permission) -> None:
    """Same as authorize, but a missing principal is a trusted internal caller."""
    if principal is not None:
        authorize(principal, permission)


def actor_name(principal: Optional[Principal], default: str = "System") -> str:
    return principal.name if principal is not None else default
