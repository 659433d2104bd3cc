# Pydantic schemas
from bugtracker.schemas.base import CamelModel, MessageResponse
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
from bugtracker.schemas.bug import (
    EnvironmentInfo,
    BugCreate,
    BugUpdate,
    BugResponse,
    BugDeleteResponse,
)
