# Overview: Roles and their default capability sets.

import enum

from .definitions import PERMISSION_DEFINITIONS


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"unknown role: {value!r}")


# Employees and managers share the day-to-day capabilities; managers add
# catalogue management; admins hold every permission.
_BASE_PERMISSIONS = [
    "VIEW_PRODUCTS",
    "RECORD_MOVEMENT",
    "OPERATE_OWN_REGISTER",
    "VIEW_DASHBOARD",
]

DEFAULT_ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset(perm[0] for perm in PERMISSION_DEFINITIONS),
    Role.MANAGER: frozenset(_BASE_PERMISSIONS + ["MANAGE_PRODUCTS"]),
    Role.EMPLOYEE: frozenset(_BASE_PERMISSIONS),
}
