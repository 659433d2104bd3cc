from pydantic import ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from bugtracker.models.user import UserRole
from bugtracker.schemas.base import CamelModel

USERNAME_PATTERN = r'^[A-Za-z0-9_.-]+$'


def _blank_to_none(value):
    """Empty strings mean "not provided" for optional profile fields"""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class UserRegister(CamelModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    role: Optional[UserRole] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(CamelModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None

    @field_validator('first_name', 'last_name', 'username', 'email', 'avatar', mode='before')
    @classmethod
    def blank_as_missing(cls, value):
        return _blank_to_none(value)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class PasswordChange(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6)


class UserResponse(CamelModel):
    """Public user fields; the password hash is never part of this shape"""
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    avatar: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserResponse


class CurrentUserResponse(CamelModel):
    user: UserResponse


class ProfileResponse(CamelModel):
    message: str
    user: UserResponse
