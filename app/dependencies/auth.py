"""
Authentication and authorization dependencies for FastAPI routes.

The signed token is read from the ``x-auth-token`` header or from
``Authorization: Bearer <token>``. Role checks reload the user on every
request so a role change takes effect immediately.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.database_models import User, UserRole
from app.services.permissions import CREATE_ROLES, DELETE_ROLES, UPDATE_ROLES, USER_ADMIN_ROLES
from app.utils.security import decode_access_token

logger = logging.getLogger(__name__)


async def get_token(
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Extract the raw token from either supported header."""
    if x_auth_token:
        return x_auth_token.strip()
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user_id(token: Optional[str] = Depends(get_token)) -> str:
    """Verify the token and return the user id it was issued for. Raises 401."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, access denied",
        )
    try:
        return decode_access_token(token)
    except JWTError as exc:
        logger.info("Rejected token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


def require_roles(*roles: UserRole | str) -> Callable:
    """
    Build a dependency that admits only users holding one of ``roles``.

    The returned dependency yields the loaded ``User``; it raises 401 when
    the token's user no longer exists and 403 when the role is not allowed.
    An empty ``roles`` admits any authenticated user.
    """
    allowed = {UserRole(r) for r in roles}

    async def _check(
        user_id: str = Depends(get_current_user_id),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
            )
        if allowed and user.role not in allowed:
            logger.info("User %s (%s) denied; needs one of %s", user.id, user.role.value,
                        sorted(r.value for r in allowed))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have sufficient permissions to perform this action",
            )
        return user

    return _check


def _roles(values: Iterable[UserRole]) -> tuple:
    return tuple(sorted(values, key=lambda r: r.value))


get_current_user = require_roles()
require_admin = require_roles(*_roles(USER_ADMIN_ROLES))
require_creator = require_roles(*_roles(CREATE_ROLES))
require_editor = require_roles(*_roles(UPDATE_ROLES))
require_deleter = require_roles(*_roles(DELETE_ROLES))
