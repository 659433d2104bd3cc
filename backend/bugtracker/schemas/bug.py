from pydantic import ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, timezone

from bugtracker.models.bug import BugStatus, BugPriority, BugSeverity, BugType
from bugtracker.schemas.base import CamelModel

# Columns that exist on every bug; a partial update may omit them but not null them
NON_NULLABLE_FIELDS = (
    "title", "description", "status", "priority", "severity", "type", "reporter",
    "steps_to_reproduce", "tags",
)


def dedupe_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Drop blank and repeated tags, keeping first-seen order"""
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC, like created_at/updated_at"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EnvironmentInfo(CamelModel):
    os: Optional[str] = None
    browser: Optional[str] = None
    device: Optional[str] = None
    version: Optional[str] = None


class BugCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    status: BugStatus = BugStatus.OPEN
    priority: BugPriority = BugPriority.MEDIUM
    severity: BugSeverity = BugSeverity.MINOR
    type: BugType = BugType.BUG
    steps_to_reproduce: List[str] = Field(default_factory=list)
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None
    reporter: Optional[str] = Field(None, max_length=100)
    assignee: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    tags: List[str] = Field(default_factory=list)
    environment: Optional[EnvironmentInfo] = None

    @field_validator('tags')
    @classmethod
    def unique_tags(cls, value):
        return dedupe_tags(value)

    @field_validator('due_date')
    @classmethod
    def due_date_utc(cls, value):
        return naive_utc(value)


class BugUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[BugStatus] = None
    priority: Optional[BugPriority] = None
    severity: Optional[BugSeverity] = None
    type: Optional[BugType] = None
    steps_to_reproduce: Optional[List[str]] = None
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None
    reporter: Optional[str] = Field(None, max_length=100)
    assignee: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = None
    environment: Optional[EnvironmentInfo] = None

    @field_validator('tags')
    @classmethod
    def unique_tags(cls, value):
        return dedupe_tags(value)

    @field_validator('due_date')
    @classmethod
    def due_date_utc(cls, value):
        return naive_utc(value)

    @model_validator(mode='after')
    def required_fields_not_null(self):
        nulled = [name for name in NON_NULLABLE_FIELDS
                  if name in self.model_fields_set and getattr(self, name) is None]
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class BugResponse(CamelModel):
    id: str
    bug_number: str
    title: str
    description: str
    status: BugStatus
    priority: BugPriority
    severity: BugSeverity
    type: BugType
    steps_to_reproduce: List[str] = Field(default_factory=list)
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None
    reporter: str
    assignee: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    tags: List[str] = Field(default_factory=list)
    environment: Optional[EnvironmentInfo] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=False)


class BugDeleteResponse(CamelModel):
    message: str
    deleted_bug: BugResponse
