"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from services.bookmark_parser import ADD_DATE_MAX, ADD_DATE_MIN


class BookmarkSave(BaseModel):
    """
    Schema for POST /bookmarks.

    With an id, the matching bookmark owned by the caller is updated and only the
    fields present in the body change; without one, a new bookmark is created.
    Ownership always comes from the token, never the body.
    """

    id: str | None = None
    folder: str = ""
    url: str = Field(min_length=1)
    add_date: int = Field(default=0, ge=ADD_DATE_MIN, le=ADD_DATE_MAX)
    icon: str = ""
    name: str = ""


class BookmarkResponse(BaseModel):
    """Schema for bookmark list items."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    folder: str
    url: str
    add_date: int
    icon: str
    name: str
    created_at: datetime
    updated_at: datetime


class SuccessResponse(BaseModel):
    """Schema for mutation responses: {"success": message}."""

    success: str
