from fastapi import APIRouter
from sqlalchemy import text

from bugtracker import __version__
from bugtracker.core.database import get_session_local
from bugtracker.core.logging_config import logger

router = APIRouter()


@router.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus a database round-trip"""
    database = "ok"
    try:
        async with get_session_local()() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.log_error_with_context(e, context="health_check")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": "bugtracker-backend",
        "version": __version__,
        "database": database,
    }
