"""User Service - staff accounts and the principals built from them."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Optional, Union

from src.models.seed import seed_users
from src.models.stores import Permission, Role, User, new_id
from src.services.authorization import Principal, authorize_optional
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

USERS_KEY = "users"


class UserService(BaseService):

    def __init__(self, **kwargs: Any):
        super().__init__(service_name="UserService", channel=Channel.USERS, **kwargs)
        self._users: list[User] = []
        self.reload()

    def reload(self) -> None:
        self._users = self._load_collection(USERS_KEY, User, seed_users)

    def _commit(self, users: list[User]) -> None:
        self._persist({USERS_KEY: users})
        self._users = users

    def list_users(self, department: Optional[str] = None) -> list[User]:
        if department is None:
            return list(self._users)
        return [u for u in self._users if u.department == department]

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def require_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users:
            if user.email.lower() == wanted:
                return user
        return None

    def add_user(
        self,
        name: str,
        role: Union[Role, str],
        department: str,
        email: str,
        permissions: Iterable[Union[Permission, str]] = (),
        principal: Optional[Principal] = None,
    ) -> User:
        authorize_optional(principal, Permission.MANAGE_USERS)
        if not name or not name.strip():
            raise ValidationError("User name is required")
        if "@" not in email:
            raise ValidationError(f"Invalid email: {email}")
        if self.find_by_email(email):
            raise ValidationError(f"Email already registered: {email}")
        try:
            user = User(
                id=new_id(),
                name=name.strip(),
                role=Role(role),
                department=department,
                email=email.strip(),
                permissions=[Permission(p) for p in permissions],
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        self._commit(self._users + [user])
        logger.info("User added: %s (%s)", user.name, user.role.value)
        self._publish("user_added", {"user_id": user.id})
        return user

    def update_user(
        self, user_id: str, changes: dict, principal: Optional[Principal] = None
    ) -> User:
        authorize_optional(principal, Permission.MANAGE_USERS)
        if "id" in changes:
            raise ValidationError("User id cannot be changed")
        current = self.require_user(user_id)
        changes = dict(changes)
        try:
            if "role" in changes:
                changes["role"] = Role(changes["role"])
            if "permissions" in changes:
                changes["permissions"] = [Permission(p) for p in changes["permissions"]]
            updated = replace(current, **changes)
        except (TypeError, ValueError) as e:
            raise ValidationError(str(e)) from e
        if "email" in changes:
            other = self.find_by_email(updated.email)
            if other is not None and other.id != user_id:
                raise ValidationError(f"Email already registered: {updated.email}")

        self._commit([updated if u.id == user_id else u for u in self._users])
        logger.info("User updated: %s", updated.name)
        self._publish("user_updated", {"user_id": user_id})
        return updated

    def delete_user(self, user_id: str, principal: Optional[Principal] = None) -> User:
        authorize_optional(principal, Permission.MANAGE_USERS)
        user = self.require_user(user_id)
        if principal is not None and principal.user_id == user_id:
            raise ValidationError("Users cannot delete their own account")

        self._commit([u for u in self._users if u.id != user_id])
        logger.info("User deleted: %s", user.name)
        self._publish("user_deleted", {"user_id": user_id})
        return user

    def principal_for(self, user_id: str) -> Principal:
        return Principal.from_user(self.require_user(user_id))

    def principal_for_email(self, email: str) -> Principal:
        user = self.find_by_email(email)
        if user is None:
            raise NotFoundError(f"No user with email {email}")
        return Principal.from_user(user)
