from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_

from bugtracker.core.database import get_db
from bugtracker.core.types import utcnow
from bugtracker.core.security import verify_password, get_password_hash, create_access_token
from bugtracker.core.logging_config import logger, set_user_id
from bugtracker.core.exceptions import (
    AccountDeactivatedError,
    DuplicateUserError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    ValidationError,
)
from bugtracker.core.rate_limiter import limiter, LOGIN_LIMIT, REGISTER_LIMIT
from bugtracker.models.user import User, UserRole
from bugtracker.modules.auth.dependencies import get_current_user
from bugtracker.schemas.base import MessageResponse
from bugtracker.schemas.auth import (
    UserRegister,
    UserLogin,
    ProfileUpdate,
    PasswordChange,
    UserResponse,
    AuthResponse,
    CurrentUserResponse,
    ProfileResponse,
)


router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register new user and sign them in (rate limited: 3/min)"""
    result = await db.execute(
        select(User).where(
            or_(User.email == user_data.email, User.username == user_data.username)
        )
    )
    if result.scalars().first():
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason="Email or username already registered",
            client_ip=_client_ip(request)
        )
        raise DuplicateUserError()

    user = User(
        username=user_data.username,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role or UserRole.REPORTER,
        is_active=True,
        last_login=utcnow(),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        user_id=str(user.id),
        client_ip=_client_ip(request)
    )

    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(str(user.id)),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password (rate limited: 5/min)"""
    client_ip = _client_ip(request)

    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user:
        logger.log_auth_event(
            event="login", success=False, user_email=credentials.email,
            reason="Unknown email", client_ip=client_ip
        )
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.log_auth_event(
            event="login", success=False, user_email=credentials.email,
            reason="Account deactivated", client_ip=client_ip
        )
        raise AccountDeactivatedError()

    if not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login", success=False, user_email=credentials.email,
            reason="Wrong password", client_ip=client_ip
        )
        raise InvalidCredentialsError()

    user.last_login = utcnow()
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login", success=True, user_email=user.email,
        user_id=str(user.id), client_ip=client_ip
    )

    return AuthResponse(
        message="Login successful",
        token=create_access_token(str(user.id)),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return CurrentUserResponse(user=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update the caller's profile; only non-empty fields are applied"""
    if profile.username or profile.email:
        clashes = []
        if profile.username:
            clashes.append(User.username == profile.username)
        if profile.email:
            clashes.append(User.email == profile.email)

        result = await db.execute(
            select(User).where(and_(User.id != current_user.id, or_(*clashes)))
        )
        if result.scalars().first():
            logger.log_auth_event(
                event="profile_update", success=False,
                user_email=current_user.email, reason="Username or email taken"
            )
            raise ValidationError("Username or email already taken")

    for field in ("first_name", "last_name", "username", "email", "avatar"):
        value = getattr(profile, field)
        if value:
            setattr(current_user, field, value)

    db.add(current_user)
    await db.commit()
    await db.refresh(current_user)

    logger.log_auth_event(
        event="profile_update", success=True,
        user_email=current_user.email, user_id=str(current_user.id)
    )

    return ProfileResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(current_user),
    )


@router.put("/password", response_model=MessageResponse)
async def change_password(
    passwords: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change the caller's password after checking the current one"""
    if not passwords.current_password or not passwords.new_password:
        raise ValidationError("Current password and new password are required")

    if not verify_password(passwords.current_password, current_user.hashed_password):
        logger.log_auth_event(
            event="password_change", success=False,
            user_email=current_user.email, reason="Current password mismatch"
        )
        raise IncorrectPasswordError()

    current_user.hashed_password = get_password_hash(passwords.new_password)
    db.add(current_user)
    await db.commit()

    logger.log_auth_event(
        event="password_change", success=True,
        user_email=current_user.email, user_id=str(current_user.id)
    )

    return MessageResponse(message="Password updated successfully")
