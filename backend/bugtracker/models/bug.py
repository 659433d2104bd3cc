from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Float, Text, JSON, Index
import enum

from bugtracker.core.database import Base
from bugtracker.core.types import GUID, generate_uuid, generate_bug_number, utcnow


class BugStatus(str, enum.Enum):
    """Bug workflow status"""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class BugPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BugSeverity(str, enum.Enum):
    MINOR = "minor"
    MAJOR = "major"
    BLOCKER = "blocker"


class BugType(str, enum.Enum):
    BUG = "bug"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    TASK = "task"


class Bug(Base):
    """Bug / issue record"""
    __tablename__ = "bugs"

    __table_args__ = (
        # List view filters on status + priority and sorts newest-first
        Index('ix_bugs_status_priority_created', 'status', 'priority', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    bug_number = Column(String(40), unique=True, index=True, nullable=False, default=generate_bug_number)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(SQLEnum(BugStatus), default=BugStatus.OPEN, nullable=False)
    priority = Column(SQLEnum(BugPriority), default=BugPriority.MEDIUM, nullable=False)
    severity = Column(SQLEnum(BugSeverity), default=BugSeverity.MINOR, nullable=False)
    type = Column(SQLEnum(BugType), default=BugType.BUG, nullable=False)

    # Document-shaped fields
    steps_to_reproduce = Column(JSON, nullable=False, default=list)  # ordered
    tags = Column(JSON, nullable=False, default=list)  # de-duplicated
    environment = Column(JSON, nullable=True)  # {os, browser, device, version}

    expected_behavior = Column(Text, nullable=True)
    actual_behavior = Column(Text, nullable=True)

    reporter = Column(String(100), nullable=False, default="Anonymous")
    assignee = Column(String(100), nullable=True)
    due_date = Column(DateTime, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Bug {self.bug_number}: {self.title}>"
