from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List, Optional, Type
import enum

from bugtracker.core.database import get_db
from bugtracker.core.exceptions import BugNotFoundError
from bugtracker.core.logging_config import logger
from bugtracker.models.bug import Bug, BugStatus, BugPriority
from bugtracker.models.user import User
from bugtracker.modules.auth.dependencies import get_optional_current_user
from bugtracker.schemas.bug import BugCreate, BugUpdate, BugResponse, BugDeleteResponse


router = APIRouter()

ANONYMOUS_REPORTER = "Anonymous"


# Filter value that no stored bug can carry
UNMATCHABLE = object()


def _parse_filter(enum_cls: Type[enum.Enum], value: Optional[str]):
    """Empty query values mean "no filter"; unknown values match nothing"""
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return UNMATCHABLE


def _like_pattern(search: str) -> str:
    """Substring pattern with LIKE wildcards in the search text escaped"""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def _get_bug_or_404(db: AsyncSession, bug_id: str) -> Bug:
    result = await db.execute(select(Bug).where(Bug.id == bug_id))
    bug = result.scalar_one_or_none()
    if not bug:
        logger.log_bug_event("not_found", bug_id=bug_id)
        raise BugNotFoundError(bug_id)
    return bug


@router.get("", response_model=List[BugResponse])
async def list_bugs(
    status: Optional[str] = Query(None, description="open, in-progress, resolved or closed"),
    priority: Optional[str] = Query(None, description="low, medium, high or critical"),
    search: Optional[str] = Query(None, description="Case-insensitive match on title or description"),
    db: AsyncSession = Depends(get_db)
):
    """List bugs newest-first, optionally filtered"""
    status_filter = _parse_filter(BugStatus, status)
    priority_filter = _parse_filter(BugPriority, priority)
    if status_filter is UNMATCHABLE or priority_filter is UNMATCHABLE:
        return []

    query = select(Bug)
    if status_filter:
        query = query.where(Bug.status == status_filter)

    if priority_filter:
        query = query.where(Bug.priority == priority_filter)

    if search:
        pattern = _like_pattern(search)
        query = query.where(or_(
            Bug.title.ilike(pattern, escape="\\"),
            Bug.description.ilike(pattern, escape="\\"),
        ))

    query = query.order_by(Bug.created_at.desc())

    result = await db.execute(query)
    return [BugResponse.model_validate(bug) for bug in result.scalars().all()]


@router.get("/{bug_id}", response_model=BugResponse)
async def get_bug(bug_id: str, db: AsyncSession = Depends(get_db)):
    bug = await _get_bug_or_404(db, bug_id)
    return BugResponse.model_validate(bug)


@router.post("", response_model=BugResponse, status_code=status.HTTP_201_CREATED)
async def create_bug(
    bug_data: BugCreate,
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Report a new bug.

    The bug number is always generated here. When no reporter is named the
    caller's username is used, or "Anonymous" for unauthenticated requests.
    """
    payload = bug_data.model_dump(exclude_none=True)
    if not payload.get("reporter"):
        payload["reporter"] = current_user.username if current_user else ANONYMOUS_REPORTER

    bug = Bug(**payload)
    db.add(bug)
    await db.commit()
    await db.refresh(bug)

    logger.log_bug_event(
        "created", bug_id=str(bug.id), bug_number=bug.bug_number,
        reporter=bug.reporter, priority=bug.priority.value
    )
    return BugResponse.model_validate(bug)


@router.put("/{bug_id}", response_model=BugResponse)
async def update_bug(
    bug_id: str,
    bug_update: BugUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Apply a partial update; id and bug number never change"""
    bug = await _get_bug_or_404(db, bug_id)

    changes = bug_update.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(bug, field, value)

    await db.commit()
    await db.refresh(bug)

    logger.log_bug_event(
        "updated", bug_id=str(bug.id), bug_number=bug.bug_number,
        fields=sorted(changes)
    )
    return BugResponse.model_validate(bug)


@router.delete("/{bug_id}", response_model=BugDeleteResponse)
async def delete_bug(bug_id: str, db: AsyncSession = Depends(get_db)):
    bug = await _get_bug_or_404(db, bug_id)
    deleted = BugResponse.model_validate(bug)

    await db.delete(bug)
    await db.commit()

    logger.log_bug_event("deleted", bug_id=deleted.id, bug_number=deleted.bug_number)
    return BugDeleteResponse(message="Bug deleted successfully", deleted_bug=deleted)
