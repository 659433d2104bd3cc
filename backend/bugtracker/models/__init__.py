# Re-export all models for convenient imports
from bugtracker.models.user import User, UserRole
from bugtracker.models.bug import Bug, BugStatus, BugPriority, BugSeverity, BugType

__all__ = [
    # User
    "User",
    "UserRole",
    # Bug
    "Bug",
    "BugStatus",
    "BugPriority",
    "BugSeverity",
    "BugType",
]
