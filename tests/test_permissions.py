# CajaLedger Tests - Roles & Permissions
#
# Tests for:
# - The role capability table
# - Actor construction from caller-supplied identity
# - Register ownership checks

import pytest

from cajaledger.exceptions import ForbiddenError, InvalidArgumentError
from cajaledger.permissions import (
    PERMISSION_DEFINITIONS,
    Role,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    role_permissions,
    validate_permission_code,
)
from cajaledger.services.permission_service import (
    Actor,
    require_permission,
    require_register_access,
    user_has_permission,
)


# =============================================================================
# CAPABILITY TABLE
# =============================================================================

class TestCapabilityTable:
    """One lookup per check: role -> capability set."""

    def test_admin_holds_every_permission(self):
        assert role_permissions("ADMIN") == frozenset(get_all_permission_codes())

    def test_manager_adds_product_management(self):
        manager = role_permissions(Role.MANAGER)
        employee = role_permissions(Role.EMPLOYEE)

        assert manager - employee == {"MANAGE_PRODUCTS"}

    def test_employee_capabilities(self):
        assert role_permissions("employee") == {
            "VIEW_PRODUCTS",
            "RECORD_MOVEMENT",
            "OPERATE_OWN_REGISTER",
            "VIEW_DASHBOARD",
        }

    def test_admin_only_permissions(self):
        for code in ("VIEW_LEDGER", "MANAGE_ALL_REGISTERS", "VIEW_REGISTER_ANALYTICS"):
            assert code in role_permissions("ADMIN")
            assert code not in role_permissions("MANAGER")

    def test_unknown_role_has_nothing(self):
        assert role_permissions("CASHIER") == frozenset()

    def test_definitions_lookup(self):
        definition = get_permission_definition("RECORD_MOVEMENT")

        assert definition["category"] == "INVENTORY"
        assert get_permission_definition("NOPE") is None
        assert validate_permission_code("VIEW_LEDGER")
        assert not validate_permission_code("view_ledger")

    def test_categories_partition_definitions(self):
        categories = {perm[3] for perm in PERMISSION_DEFINITIONS}

        total = sum(len(get_permissions_by_category(c)) for c in categories)
        assert total == len(PERMISSION_DEFINITIONS)
        assert len(set(get_all_permission_codes())) == len(PERMISSION_DEFINITIONS)


# =============================================================================
# ACTORS
# =============================================================================

class TestActor:

    def test_of_normalizes_role(self):
        actor = Actor.of("7", " manager ")

        assert actor.user_id == 7
        assert actor.role is Role.MANAGER
        assert not actor.is_admin

    @pytest.mark.parametrize("user_id,role", [(None, "ADMIN"), (True, "ADMIN"), (1, "OWNER"), ("x", "ADMIN")])
    def test_of_rejects_bad_identity(self, user_id, role):
        with pytest.raises(InvalidArgumentError):
            Actor.of(user_id, role)

    def test_unknown_permission_code_is_denied(self):
        admin = Actor.of(1, "ADMIN")

        assert not user_has_permission(admin, "LAUNCH_ROCKETS")
        with pytest.raises(ForbiddenError):
            require_permission(admin, "LAUNCH_ROCKETS")


# =============================================================================
# REGISTER OWNERSHIP
# =============================================================================

class TestRegisterAccess:

    def test_owner_allowed(self):
        require_register_access(Actor.of(3, "EMPLOYEE"), 3)

    def test_non_owner_denied_unless_admin(self):
        with pytest.raises(ForbiddenError):
            require_register_access(Actor.of(3, "EMPLOYEE"), 4)
        with pytest.raises(ForbiddenError):
            require_register_access(Actor.of(3, "MANAGER"), 4)

        require_register_access(Actor.of(3, "ADMIN"), 4)
