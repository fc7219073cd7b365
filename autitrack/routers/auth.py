# auth router: register, login, logout, current user, password change
# sessions are server-side; the cookie only carries the opaque session id

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from autitrack.config import settings
from autitrack.dependencies import get_current_user, get_session_id, get_session_store
from autitrack.errors import AuthenticationError, ValidationError
from autitrack.models.user import (
    MessageResponse, PasswordChange, UserCreate, UserLogin, UserResponse,
)
from autitrack.services.auth_service import hash_password_async, verify_password_async
from autitrack.services.session_store import SessionStore
from autitrack.services.storage import Storage, get_storage
from autitrack.services.tables import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


async def _start_session(
    response: Response, store: SessionStore, user: User, previous_sid: Optional[str],
):
    """bind a fresh session to user, dropping any session the caller already had"""
    if previous_sid:
        await store.destroy(previous_sid)
    sid = await store.create(user.id)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sid,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: UserCreate,
    response: Response,
    sid: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    storage: Storage = Depends(get_storage),
):
    """create an account and log it in"""
    if await storage.get_user_by_username(body.username):
        raise ValidationError("Username already exists")

    values = body.model_dump()
    values["password"] = await hash_password_async(body.password)
    user = await storage.create_user(values)

    await _start_session(response, store, user, sid)
    logger.info(f"Registered {user.role} {user.username} (id: {user.id})")
    return UserResponse.from_row(user)


@router.post("/login", response_model=UserResponse)
async def login(
    body: UserLogin,
    response: Response,
    sid: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    storage: Storage = Depends(get_storage),
):
    """authenticate by email, falling back to username"""
    identifier = body.email or body.username
    if not identifier:
        raise AuthenticationError("Invalid email or password")

    user = None
    if body.email:
        user = await storage.get_user_by_email(body.email)
    if user is None:
        user = await storage.get_user_by_username(identifier)

    if user is None or not await verify_password_async(body.password, user.password):
        logger.warning(f"Failed login for {identifier}")
        raise AuthenticationError("Invalid email or password")

    await _start_session(response, store, user, sid)
    logger.info(f"User {user.id} logged in")
    return UserResponse.from_row(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    sid: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    if sid:
        await store.destroy(sid)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """get the authenticated user's profile"""
    return UserResponse.from_row(current_user)


@router.post("/user/change-password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """change own password after verifying the current one"""
    if not await verify_password_async(body.current_password, current_user.password):
        raise ValidationError("Current password is incorrect")

    hashed = await hash_password_async(body.new_password)
    await storage.update_user(current_user.id, {"password": hashed})
    logger.info(f"Password changed for user {current_user.id}")
    return MessageResponse(message="Password changed successfully")
