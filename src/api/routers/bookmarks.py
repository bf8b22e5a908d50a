"""Bookmark endpoints: list, save, delete and bulk import."""
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from api.dependencies import (
    check_rate_limit,
    get_async_session,
    get_current_user_id,
    get_settings,
)
from core.config import Settings
from core.exceptions import AppError, ErrorKind
from schemas.bookmark import BookmarkResponse, BookmarkSave, SuccessResponse
from services import bookmark_service
from services.bookmark_parser import BookmarkParseError, parse_bookmarks, unique_bookmarks

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookmarks",
    tags=["bookmarks"],
    dependencies=[Depends(check_rate_limit)],
)


@router.get("", response_model=list[BookmarkResponse])
async def list_bookmarks(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkResponse]:
    """List all bookmarks for the current user."""
    bookmarks = await bookmark_service.get_bookmarks(db, user_id)
    return [BookmarkResponse.model_validate(b) for b in bookmarks]


@router.post("/upload", response_model=SuccessResponse, status_code=201)
async def upload_bookmarks(
    bookmark_file: UploadFile | None = File(default=None, alias="bookmarkFile"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> SuccessResponse:
    """
    Import a browser bookmarks export (multipart field "bookmarkFile").

    Bookmarks repeating a URL earlier in the same file are dropped. Nothing is
    imported if any bookmark has a malformed add_date.
    """
    if bookmark_file is None:
        raise AppError(ErrorKind.UPLOAD_FAILED, "Missing bookmarkFile form field")

    data = await bookmark_file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise AppError(
            ErrorKind.UPLOAD_FAILED,
            f"Upload exceeds {settings.max_upload_bytes} bytes",
        )

    try:
        parsed = await run_in_threadpool(parse_bookmarks, data, user_id)
    except BookmarkParseError as e:
        raise AppError(ErrorKind.PARSE_FAILED, str(e)) from e

    bookmarks = unique_bookmarks(parsed)
    try:
        await bookmark_service.save_all_bookmarks(db, bookmarks)
    except SQLAlchemyError as e:
        raise AppError(ErrorKind.PERSISTENCE_FAILED, str(e)) from e

    logger.info(
        "bookmarks_imported",
        extra={
            "user_id": user_id,
            "upload_filename": bookmark_file.filename,
            "parsed": len(parsed),
            "saved": len(bookmarks),
        },
    )
    return SuccessResponse(success="ok")


@router.post("", response_model=SuccessResponse, status_code=201)
async def save_bookmark(
    data: BookmarkSave,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """Update the bookmark named by data.id, or create one if no id is given."""
    bookmark = await bookmark_service.save_bookmark(db, user_id, data)
    if bookmark is None:
        raise AppError(ErrorKind.NOT_FOUND, f"No bookmark {data.id} for user {user_id}")
    return SuccessResponse(success="Bookmark saved successfully")


@router.delete("/{bookmark_id}", response_model=SuccessResponse, status_code=201)
async def delete_bookmark(
    bookmark_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """Soft-delete a bookmark."""
    deleted = await bookmark_service.delete_bookmark(db, user_id, bookmark_id)
    if not deleted:
        raise AppError(ErrorKind.NOT_FOUND, f"No bookmark {bookmark_id} for user {user_id}")
    return SuccessResponse(success="Bookmark deleted successfully")
