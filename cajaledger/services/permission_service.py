# Overview: Service-layer authorization; one capability-table lookup per check.

"""
Permission checking

WHY: Authorization is a single table lookup (role -> capability set) rather
than role comparisons scattered through the services.

DESIGN PRINCIPLES:
- Fail closed: unknown roles and unknown permission codes are denied
- Identity is trusted: the Actor comes from the external auth provider
- Ownership rules (own register vs. any register) live here too
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import ForbiddenError, InvalidArgumentError
from ..permissions import Role, role_permissions, validate_permission_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller: user id plus the role the auth provider assigned."""
    user_id: int
    role: Role

    @classmethod
    def of(cls, user_id, role) -> "Actor":
        if user_id is None or isinstance(user_id, bool):
            raise InvalidArgumentError("actor user_id is required")
        try:
            return cls(user_id=int(user_id), role=Role.parse(role))
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def user_has_permission(actor: Actor, permission_code: str) -> bool:
    if not validate_permission_code(permission_code):
        return False
    return permission_code in role_permissions(actor.role)


def require_permission(actor: Actor, permission_code: str) -> None:
    """Raise ForbiddenError unless the actor's role grants the permission."""
    if not user_has_permission(actor, permission_code):
        logger.info(
            "Permission denied: user=%s role=%s permission=%s",
            actor.user_id, actor.role.value, permission_code,
        )
        raise ForbiddenError(f"{actor.role.value} lacks permission {permission_code}")


def require_register_access(actor: Actor, owner_id: int) -> None:
    """Owners may touch their own register; MANAGE_ALL_REGISTERS covers the rest."""
    if actor.user_id == owner_id:
        require_permission(actor, "OPERATE_OWN_REGISTER")
        return
    if not user_has_permission(actor, "MANAGE_ALL_REGISTERS"):
        raise ForbiddenError("Not authorized to modify this register record")
