"""
Custom Exceptions for Bug Tracker
=================================

Raise these from route handlers and dependencies instead of HTTPException.
Each carries the HTTP status it maps to; the handler registered in
``bugtracker.main`` renders them as::

    {"error": "<message>", "details": [...]}

Usage:
    from bugtracker.core.exceptions import BugNotFoundError

    if not bug:
        raise BugNotFoundError(bug_id)
"""

from typing import Optional, Any, Dict, List


class BugTrackerError(Exception):
    """Base exception for all Bug Tracker errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[List[Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or []
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ============================================
# Authentication Errors
# ============================================

class AuthenticationError(BugTrackerError):
    """Bearer token missing or unusable"""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class InvalidCredentialsError(BugTrackerError):
    """Unknown email or wrong password; deliberately indistinguishable"""

    status_code = 400

    def __init__(self):
        super().__init__("Invalid credentials", code="INVALID_CREDENTIALS")


class AccountDeactivatedError(BugTrackerError):
    """Login attempted on a deactivated account"""

    status_code = 400

    def __init__(self):
        super().__init__("Account is deactivated", code="ACCOUNT_DEACTIVATED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(BugTrackerError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
        )
        self.resource_id = resource_id


class BugNotFoundError(ResourceNotFoundError):
    """Bug not found"""

    def __init__(self, bug_id: str):
        super().__init__("Bug", bug_id)


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(BugTrackerError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[List[Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DuplicateUserError(ValidationError):
    """Email or username collides with an existing user"""

    def __init__(self, message: str = "User already exists with this email or username"):
        super().__init__(message)
        self.code = "DUPLICATE_USER"


class IncorrectPasswordError(ValidationError):
    """Current password did not match on password change"""

    def __init__(self):
        super().__init__("Current password is incorrect")
        self.code = "INCORRECT_PASSWORD"


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """
    Flatten pydantic error dicts into ``"<field>: <message>"`` strings.

    The leading ``body``/``query`` location segment is dropped so clients
    see the field name they sent.
    """
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages
