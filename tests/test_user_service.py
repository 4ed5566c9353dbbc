"""User Service and authorization unit tests."""

import pytest

from src.models.stores import Permission, Role
from src.services.authorization import (
    ROLE_PERMISSIONS,
    Principal,
    actor_name,
    authorize,
    authorize_optional,
    permissions_for,
)
from src.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from src.services.storage import InMemoryStorage
from src.services.user_service import UserService


def _create_service() -> UserService:
    return UserService(storage=InMemoryStorage())


class TestRolePermissions:

    def test_general_manager_holds_everything(self):
        assert set(ROLE_PERMISSIONS[Role.GENERAL_MANAGER]) == set(Permission)

    def test_every_role_is_mapped(self):
        assert set(ROLE_PERMISSIONS) == set(Role)

    def test_storekeeper_fulfills_but_does_not_approve(self):
        perms = permissions_for(Role.STOREKEEPER)
        assert Permission.FULFILL_REQUEST in perms
        assert Permission.APPROVE_REQUEST_FINAL not in perms
        assert Permission.CREATE_REQUEST not in perms

    def test_extra_permissions_are_added(self):
        perms = permissions_for(Role.HOUSEKEEPER, [Permission.MANAGE_INVENTORY])
        assert Permission.MANAGE_INVENTORY in perms
        assert Permission.CREATE_REQUEST in perms

    def test_authorize(self):
        staff = Principal("9", "Guest Worker", "Laundry", permissions_for(Role.STAFF))
        authorize(staff, Permission.CREATE_REQUEST)
        with pytest.raises(PermissionDeniedError) as exc:
            authorize(staff, Permission.VIEW_ASSETS)
        assert "Guest Worker" in str(exc.value)

        authorize_optional(None, Permission.MANAGE_USERS)
        assert actor_name(None) == "System"
        assert actor_name(staff) == "Guest Worker"


class TestUserCrud:

    def test_seed_users(self):
        service = _create_service()
        assert len(service.list_users()) == 5
        assert [u.name for u in service.list_users("Stores")] == ["Peter Otieno"]

    def test_find_by_email_ignores_case(self):
        user = _create_service().find_by_email("  Mary.Njeri@LukenyaGetaway.com ")
        assert user.name == "Mary Njeri"

    def test_add_user(self):
        service = _create_service()
        user = service.add_user("Grace Akinyi", "chef", "Kitchen", "grace.akinyi@lukenyagetaway.com",
                                permissions=["view:assets"])
        assert user.role == Role.CHEF
        assert user.permissions == [Permission.VIEW_ASSETS]
        assert service.get_user(user.id) == user

    def test_add_user_validation(self):
        service = _create_service()
        with pytest.raises(ValidationError):
            service.add_user("Dup", Role.STAFF, "Laundry", "JANE.WAMBUI@lukenyagetaway.com")
        with pytest.raises(ValidationError):
            service.add_user("Bad Role", "janitor", "Laundry", "bad.role@lukenyagetaway.com")
        with pytest.raises(ValidationError):
            service.add_user("", Role.STAFF, "Laundry", "blank@lukenyagetaway.com")

    def test_manage_users_permission(self):
        service = _create_service()
        with pytest.raises(PermissionDeniedError):
            service.add_user("X", Role.STAFF, "Laundry", "x@lukenyagetaway.com",
                             principal=service.principal_for("5"))
        manager = service.principal_for("1")
        assert service.add_user("X", Role.STAFF, "Laundry", "x@lukenyagetaway.com", principal=manager)

    def test_update_user(self):
        service = _create_service()
        updated = service.update_user("3", {"role": "frontDesk", "department": "Front Office"})
        assert updated.role == Role.FRONT_DESK
        assert updated.department == "Front Office"

        with pytest.raises(ValidationError):
            service.update_user("3", {"email": "jane.wambui@lukenyagetaway.com"})
        with pytest.raises(ValidationError):
            service.update_user("3", {"id": "33"})
        with pytest.raises(ValidationError):
            service.update_user("3", {"nickname": "M"})

    def test_cannot_delete_own_account(self):
        service = _create_service()
        manager = service.principal_for("1")
        with pytest.raises(ValidationError):
            service.delete_user("1", principal=manager)
        service.delete_user("3", principal=manager)
        assert service.get_user("3") is None

    def test_missing_user(self):
        service = _create_service()
        with pytest.raises(NotFoundError):
            service.require_user("404")
        with pytest.raises(NotFoundError):
            service.principal_for_email("nobody@lukenyagetaway.com")


class TestPrincipals:

    def test_principal_for_email(self):
        principal = _create_service().principal_for_email("peter.otieno@lukenyagetaway.com")
        assert principal.user_id == "5"
        assert principal.department == "Stores"
        assert Permission.FULFILL_REQUEST in principal.permissions

    def test_direct_grants_reach_principal(self):
        service = _create_service()
        service.update_user("3", {"permissions": [Permission.APPROVE_REQUEST_DEPARTMENT]})
        assert Permission.APPROVE_REQUEST_DEPARTMENT in service.principal_for("3").permissions
