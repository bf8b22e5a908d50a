"""Signup and login endpoints."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.auth import create_access_token
from core.config import Settings
from schemas.user import Credentials, MessageResponse, TokenResponse
from services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=TokenResponse, status_code=201)
async def login(
    data: Credentials,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    user = await user_service.authenticate(db, data.email, data.password)
    token = create_access_token(user.id, user.email, settings.jwt)
    logger.info("user_logged_in", extra={"user_id": user.id})
    return TokenResponse(token=token)


@router.post("/signup", response_model=MessageResponse, status_code=201)
async def signup(
    data: Credentials,
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Create an account. Fails with 409 if the email is taken."""
    await user_service.create_user(db, data.email, data.password)
    return MessageResponse(message="User created successfully")
