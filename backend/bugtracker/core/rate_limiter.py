"""
Request rate limits (slowapi).

Every route gets RATE_LIMIT_PER_MINUTE through SlowAPIASGIMiddleware; the
credential endpoints are tighter (LOGIN_LIMIT, REGISTER_LIMIT). Counters live
in RATE_LIMIT_STORAGE_URI, in-process memory unless pointed at a shared store.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from bugtracker.core.config import settings
from bugtracker.core.logging_config import get_user_id, logger


LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"
RETRY_AFTER_SECONDS = 60


def rate_limit_key(request: Request) -> str:
    """Signed-in callers are counted per user, everyone else per client IP"""
    user_id = get_user_id()
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        f"[RateLimit] {rate_limit_key(request)} over {exc.detail} on {request.url.path}",
        extra={"event_type": "rate_limited", "http_path": request.url.path},
    )
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please slow down.", "details": [str(exc.detail)]},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
