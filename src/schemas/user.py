"""Pydantic schemas for signup and login."""
from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Email/password pair accepted by both /signup and /login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str
