"""Liveness endpoint reporting the state of the database and Redis."""
import logging
from typing import Literal

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import RedisClient
from db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

DatabaseStatus = Literal["healthy", "unhealthy"]
RedisStatus = Literal["connected", "disabled", "unavailable"]


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    database: DatabaseStatus
    redis: RedisStatus


async def _database_status(db: AsyncSession) -> DatabaseStatus:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("health_database_failed")
        return "unhealthy"
    return "healthy"


async def _redis_status(redis_client: RedisClient | None) -> RedisStatus:
    if redis_client is None or not redis_client.enabled:
        return "disabled"
    return "connected" if await redis_client.ping() else "unavailable"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
)
async def health_check(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Report dependency status.

    Only the database decides overall health; without Redis the app keeps
    serving and rate limiting fails open. An unhealthy database answers 503.
    """
    database = await _database_status(db)
    redis = await _redis_status(request.app.state.redis_client)

    if database != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        database=database,
        redis=redis,
    )
