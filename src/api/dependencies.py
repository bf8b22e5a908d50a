"""FastAPI dependencies for injection."""
import logging

from fastapi import Depends, Request

from core.auth import Claims, ClaimsRejectedError, verify_authorization_header
from core.config import Settings
from core.exceptions import AppError, ErrorKind
from core.rate_limit_config import (
    RateLimitExceededError,
    RateLimitResult,
    get_operation_type,
)
from core.rate_limiter import RedisRateLimiter
from db.session import get_async_session

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings constructed once by the app factory."""
    return request.app.state.settings


async def get_current_claims(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Claims:
    """
    Verify the bearer token and attach its claims to the request.

    Stores the verified Claims in request.state.claims for downstream handlers.
    Raises AppError(UNAUTHORIZED) on any rejection; the reason is only logged.
    """
    try:
        claims = verify_authorization_header(request.headers.get("Authorization"), settings.jwt)
    except ClaimsRejectedError as e:
        logger.info(
            "claims_rejected",
            extra={"reason": e.reason.value, "path": request.url.path},
        )
        raise AppError(ErrorKind.UNAUTHORIZED, str(e)) from e

    request.state.claims = claims
    return claims


async def get_current_user_id(claims: Claims = Depends(get_current_claims)) -> str:
    """Owner id for bookmark operations; a verified token without one is still unusable."""
    if not claims.user_id:
        raise AppError(ErrorKind.UNAUTHORIZED, "Verified token carries no user_id")
    return claims.user_id


async def check_rate_limit(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> RateLimitResult:
    """
    Dependency that enforces rate limits.

    Stores result in request.state for the headers middleware.
    Raises RateLimitExceededError for 429 responses (handled by exception handler).
    """
    operation_type = get_operation_type(request.method, request.url.path)
    limiter = RedisRateLimiter(request.app.state.redis_client)

    result = await limiter.check(user_id, operation_type)
    if not result.allowed:
        raise RateLimitExceededError(result)

    request.state.rate_limit_info = {
        "limit": result.limit,
        "remaining": result.remaining,
        "reset": result.reset,
    }
    return result


__all__ = [
    "check_rate_limit",
    "get_async_session",
    "get_current_claims",
    "get_current_user_id",
    "get_settings",
]
