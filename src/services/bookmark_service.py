"""Service layer for bookmark CRUD operations."""
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from schemas.bookmark import BookmarkSave
from services.bookmark_parser import ParsedBookmark

logger = logging.getLogger(__name__)


def _active(user_id: str) -> tuple[ColumnElement[bool], ...]:
    """Filter clauses for the user's bookmarks that are not soft-deleted."""
    return (Bookmark.user_id == user_id, Bookmark.deleted_at.is_(None))


async def get_bookmarks(db: AsyncSession, user_id: str) -> list[Bookmark]:
    """List the user's bookmarks, oldest first."""
    result = await db.execute(
        select(Bookmark)
        .where(*_active(user_id))
        .order_by(Bookmark.created_at, Bookmark.add_date),
    )
    return list(result.scalars().all())


async def get_bookmark(db: AsyncSession, user_id: str, bookmark_id: str) -> Bookmark | None:
    """Get a single bookmark by id, scoped to its owner."""
    result = await db.execute(
        select(Bookmark).where(Bookmark.id == bookmark_id, *_active(user_id)),
    )
    return result.scalar_one_or_none()


async def save_all_bookmarks(
    db: AsyncSession, bookmarks: Iterable[ParsedBookmark],
) -> list[Bookmark]:
    """Insert parsed bookmarks in one batch."""
    rows = [
        Bookmark(
            user_id=b.user_id,
            folder=b.folder,
            url=b.url,
            add_date=b.add_date,
            icon=b.icon,
            name=b.name,
        )
        for b in bookmarks
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def save_bookmark(
    db: AsyncSession, user_id: str, data: BookmarkSave,
) -> Bookmark | None:
    """
    Create or update a bookmark for the user.

    An update writes only the fields set on data; the rest keep their stored values.

    Returns:
        The saved bookmark, or None if data.id names no bookmark owned by the user.
    """
    if data.id is None:
        bookmark = Bookmark(user_id=user_id, **data.model_dump(exclude={"id"}))
        db.add(bookmark)
        await db.flush()
        await db.refresh(bookmark)
        return bookmark

    bookmark = await get_bookmark(db, user_id, data.id)
    if bookmark is None:
        return None
    for field, value in data.model_dump(exclude={"id"}, exclude_unset=True).items():
        setattr(bookmark, field, value)
    await db.flush()
    await db.refresh(bookmark)
    return bookmark


async def delete_bookmark(db: AsyncSession, user_id: str, bookmark_id: str) -> bool:
    """
    Soft-delete a bookmark by setting deleted_at.

    Returns:
        True if a bookmark was marked deleted, False if none matched.
    """
    result = await db.execute(
        update(Bookmark)
        .where(Bookmark.id == bookmark_id, *_active(user_id))
        .values(deleted_at=datetime.now(UTC)),
    )
    return result.rowcount > 0
