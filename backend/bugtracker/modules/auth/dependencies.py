from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import uuid

from bugtracker.core.database import get_db
from bugtracker.core.exceptions import AuthenticationError, InvalidTokenError
from bugtracker.core.logging_config import set_user_id
from bugtracker.core.security import decode_token
from bugtracker.models.user import User

# auto_error=False so a missing header is reported in the API's own 401 shape
security = HTTPBearer(auto_error=False)


async def _load_user(token: str, db: AsyncSession) -> User:
    payload = decode_token(token)

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid token payload")

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise InvalidTokenError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user or fail with 401"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")

    user = await _load_user(credentials.credentials, db)

    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    return user


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Same as get_current_user but never fails.

    Used by endpoints that are open to anonymous callers but attribute
    work to the caller when a valid token is presented.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        user = await _load_user(credentials.credentials, db)
    except AuthenticationError:
        return None

    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    return user
