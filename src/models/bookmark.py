"""Bookmark model for storing user bookmarks."""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.user import User


class Bookmark(Base, TimestampMixin):
    """
    Bookmark model - a saved link with the metadata browsers export.

    URLs are not unique per user: duplicates are only removed within a single
    import batch.
    """

    __tablename__ = "bookmarks"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    folder: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(Text, nullable=False)
    add_date: Mapped[int] = mapped_column(BigInteger, default=0, comment="Unix epoch seconds")
    icon: Mapped[str] = mapped_column(Text, default="")  # Usually a data: URI
    name: Mapped[str] = mapped_column(Text, default="")
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="bookmarks")
