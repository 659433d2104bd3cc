"""
Unit Tests for Bug Schemas
"""
import pytest
from pydantic import ValidationError
from datetime import datetime

from bugtracker.models.bug import BugStatus, BugPriority, BugSeverity, BugType
from bugtracker.schemas.bug import BugCreate, BugUpdate, BugResponse, dedupe_tags


class TestBugCreate:
    """Test BugCreate schema"""

    def test_defaults(self):
        bug = BugCreate(title="Broken", description="It broke")

        assert bug.status == BugStatus.OPEN
        assert bug.priority == BugPriority.MEDIUM
        assert bug.severity == BugSeverity.MINOR
        assert bug.type == BugType.BUG
        assert bug.steps_to_reproduce == []
        assert bug.reporter is None

    def test_title_trimmed(self):
        bug = BugCreate(title="  Broken  ", description="It broke")

        assert bug.title == "Broken"

    def test_title_max_length(self):
        BugCreate(title="x" * 200, description="ok")

        with pytest.raises(ValidationError):
            BugCreate(title="x" * 201, description="ok")

    def test_blank_title_fails(self):
        with pytest.raises(ValidationError):
            BugCreate(title="   ", description="ok")

    def test_camel_case_fields(self):
        bug = BugCreate(**{
            "title": "Broken",
            "description": "It broke",
            "stepsToReproduce": ["one", "two"],
            "expectedBehavior": "works",
            "estimatedHours": 2.5,
            "environment": {"os": "Linux"},
        })

        assert bug.steps_to_reproduce == ["one", "two"]
        assert bug.expected_behavior == "works"
        assert bug.estimated_hours == 2.5
        assert bug.environment.os == "Linux"

    def test_status_values(self):
        bug = BugCreate(title="t", description="d", status="in-progress")

        assert bug.status == BugStatus.IN_PROGRESS

    def test_client_bug_number_ignored(self):
        bug = BugCreate(**{"title": "t", "description": "d", "bugNumber": "BUG-1"})

        assert "bugNumber" not in bug.model_dump(by_alias=True)

    def test_negative_hours_fail(self):
        with pytest.raises(ValidationError):
            BugCreate(title="t", description="d", actual_hours=-0.5)

    def test_aware_due_date_stored_as_utc(self):
        bug = BugCreate(title="t", description="d", due_date="2024-05-01T12:00:00+02:00")

        assert bug.due_date == datetime(2024, 5, 1, 10, 0)
        assert bug.due_date.tzinfo is None


class TestTags:
    """Test tag normalization"""

    def test_dedupe_keeps_order(self):
        assert dedupe_tags(["ui", "api", "ui", " api ", ""]) == ["ui", "api"]

    def test_applied_on_create(self):
        bug = BugCreate(title="t", description="d", tags=["a", "b", "a"])

        assert bug.tags == ["a", "b"]


class TestBugUpdate:
    """Test BugUpdate schema"""

    def test_only_sent_fields_are_set(self):
        update = BugUpdate(**{"status": "resolved"})

        assert update.model_dump(exclude_unset=True) == {"status": BugStatus.RESOLVED}

    def test_same_constraints_as_create(self):
        with pytest.raises(ValidationError):
            BugUpdate(title="x" * 201)

    def test_required_fields_cannot_be_nulled(self):
        with pytest.raises(ValidationError):
            BugUpdate(title=None)

    @pytest.mark.parametrize("field", ["tags", "steps_to_reproduce"])
    def test_list_fields_cannot_be_nulled(self, field):
        with pytest.raises(ValidationError, match="Fields cannot be null"):
            BugUpdate(**{field: None})

    def test_optional_fields_can_be_cleared(self):
        update = BugUpdate(assignee=None)

        assert update.model_dump(exclude_unset=True) == {"assignee": None}


class TestBugResponse:
    """Test BugResponse schema"""

    def test_serializes_camel_case(self):
        now = datetime(2024, 1, 1)
        response = BugResponse(
            id="abc", bug_number="BUG-1-ABCD", title="t", description="d",
            status=BugStatus.IN_PROGRESS, priority=BugPriority.HIGH,
            severity=BugSeverity.MAJOR, type=BugType.TASK, reporter="Anonymous",
            created_at=now, updated_at=now,
        )

        data = response.model_dump(by_alias=True, mode="json")
        assert data["bugNumber"] == "BUG-1-ABCD"
        assert data["status"] == "in-progress"
        assert data["stepsToReproduce"] == []
        assert "createdAt" in data
