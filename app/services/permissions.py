"""
Role tiers and what each one may do.

The sets below are the server-side gates used by the routers; the
capability flags are handed to clients so they can hide controls the user
cannot use. The gates stay authoritative either way.
"""
from typing import FrozenSet

from app.models.database_models import UserRole
from app.models.schemas import Capabilities

CREATE_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.USER})
UPDATE_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.USER})
DELETE_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})
USER_ADMIN_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})

# Roles a client may pick for itself on public registration
SELF_REGISTER_ROLES: FrozenSet[UserRole] = frozenset({UserRole.USER, UserRole.GUEST})


def role_capabilities(role: UserRole) -> Capabilities:
    """UI flags for ``role``: edit is limited to admins and moderators, delete to admins."""
    return Capabilities(
        can_create=role in CREATE_ROLES,
        can_edit=role in (UserRole.ADMIN, UserRole.MODERATOR),
        can_delete=role in DELETE_ROLES,
        is_guest=role == UserRole.GUEST,
        is_admin=role == UserRole.ADMIN,
    )
