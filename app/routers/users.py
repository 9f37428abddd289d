"""
User accounts and authentication.

Route summary
-------------
POST   /api/users/register         — public sign-up (user or guest)
POST   /api/users/login            — exchange credentials for a token
GET    /api/users/profile          — current user
PUT    /api/users/profile          — change own username / email
PUT    /api/users/change-password  — change own password
GET    /api/users                  — list users (authenticated)
GET    /api/users/stats            — users per role (authenticated)
GET    /api/users/{id}             — single user (authenticated)
POST   /api/users                  — create any role (admin)
PUT    /api/users/{id}             — update username / email / role (admin)
DELETE /api/users/{id}             — delete (admin, never oneself)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import get_current_user, require_admin
from app.models.database_models import User, UserRole
from app.models.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ItemEnvelope,
    ListEnvelope,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    StatsEnvelope,
    UserCreateRequest,
    UserProfile,
    UserResponse,
    UserUpdateRequest,
)
from app.services.listing import (
    count_rows,
    exact_filters,
    get_or_404,
    group_counts,
    paginate,
    parse_pagination,
    search_clause,
    sort_clause,
)
from app.services.permissions import SELF_REGISTER_ROLES, role_capabilities
from app.utils.helpers import raise_field_error
from app.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _profile(user: User) -> UserProfile:
    return UserProfile(
        **UserResponse.model_validate(user).model_dump(),
        permissions=role_capabilities(user.role),
    )


async def _ensure_unique(
    db: AsyncSession,
    username: Optional[str],
    email: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    """400 when another account already uses ``username`` or ``email``."""
    if username is not None:
        query = select(User.id).where(User.username == username)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise_field_error("username", "Username is already in use")
    if email is not None:
        query = select(User.id).where(User.email == email)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise_field_error("email", "Email is already in use")


def _apply_account_changes(user: User, changes: dict) -> None:
    for key, value in changes.items():
        if value is not None:
            setattr(user, key, value)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account and sign it in. Elevated roles are granted by an admin only."""
    role = body.role or UserRole.USER
    if role not in SELF_REGISTER_ROLES:
        raise_field_error("role", "Only user or guest accounts can be registered")

    await _ensure_unique(db, body.username, body.email)

    user = User(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
        role=role,
    )
    db.add(user)
    await db.flush()

    logger.info("Registered user %s (%s)", user.username, user.role.value)
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id),
        user=_profile(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = (
        await db.execute(select(User).where(User.email == body.email))
    ).scalar_one_or_none()
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
        )

    user.last_access = datetime.now(timezone.utc)
    await db.flush()

    logger.info("User %s logged in", user.username)
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=_profile(user),
    )


# ---------------------------------------------------------------------------
# Own account
# ---------------------------------------------------------------------------

@router.get("/profile", response_model=ItemEnvelope[UserProfile])
async def get_profile(user: User = Depends(get_current_user)):
    return ItemEnvelope[UserProfile](data=_profile(user))


@router.put("/profile", response_model=ItemEnvelope[UserProfile])
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change username and / or email; the role can only be changed by an admin."""
    await _ensure_unique(db, body.username, body.email, exclude_id=user.id)
    _apply_account_changes(user, body.model_dump(exclude_unset=True))
    await db.flush()

    logger.info("User %s updated their profile", user.id)
    return ItemEnvelope[UserProfile](message="Profile updated successfully", data=_profile(user))


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    user.password_hash = hash_password(body.new_password)
    await db.flush()

    logger.info("User %s changed their password", user.id)
    return MessageResponse(message="Password updated successfully")


# ---------------------------------------------------------------------------
# User administration
# ---------------------------------------------------------------------------

@router.get("", response_model=ListEnvelope[UserResponse])
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conditions = exact_filters(User, role=role)
    text_match = search_clause(search, (User.username, User.email))
    if text_match is not None:
        conditions.append(text_match)

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    # password_hash is not a sortable column
    if sort_by == "password_hash":
        sort_by = None
    items, pagination = await paginate(
        db,
        User,
        conditions,
        sort_clause(User, sort_by, sort_order, "created_at"),
        page_num,
        page_size,
    )
    return ListEnvelope[UserResponse](
        data=[UserResponse.model_validate(u) for u in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def user_stats(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role_stats = await group_counts(db, User.role, order_by=[User.role.asc()])
    total = await count_rows(db, User)
    return StatsEnvelope(data={"roleStats": role_stats, "totalUsers": total})


@router.get("/{user_id}", response_model=ItemEnvelope[UserResponse])
async def get_user(
    user_id: str,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await get_or_404(db, User, user_id, "user")
    return ItemEnvelope[UserResponse](data=UserResponse.model_validate(user))


@router.post("", response_model=ItemEnvelope[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await _ensure_unique(db, body.username, body.email)
    user = User(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
        role=body.role,
    )
    db.add(user)
    await db.flush()

    logger.info("User %s (%s) created by %s", user.username, user.role.value, admin.username)
    return ItemEnvelope[UserResponse](
        message="User created successfully",
        data=UserResponse.model_validate(user),
    )


@router.put("/{user_id}", response_model=ItemEnvelope[UserResponse])
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await get_or_404(db, User, user_id, "user")
    await _ensure_unique(db, body.username, body.email, exclude_id=user.id)
    _apply_account_changes(user, body.model_dump(exclude_unset=True))
    await db.flush()

    logger.info("User %s updated by %s", user.id, admin.username)
    return ItemEnvelope[UserResponse](
        message="User updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await get_or_404(db, User, user_id, "user")
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    await db.delete(user)
    await db.flush()

    logger.info("User %s deleted by %s", user_id, admin.username)
    return MessageResponse(message="User deleted successfully")
