"""
TravelStory Backend — TravelStory SQLAlchemy Model
===================================================

What:  ORM model for the `travel_stories` table (the story store).
How:   Inherits from `Base`; Alembic migration 001 creates the same table.

Table Design:
    - visible_location is a JSON array of place names, kept in order
    - user_id references users.id and is never changed after insert
    - created_on is assigned by the server; visited_date comes from the
      client as epoch milliseconds and is stored as a UTC timestamp
    - image_url points at an uploaded file or the placeholder asset

Query Patterns:
    Every query filters on user_id (ownership), so user_id is indexed:
    - list:    WHERE user_id = :uid ORDER BY is_favorite DESC, created_on DESC
    - by id:   WHERE id = :id AND user_id = :uid
    - filter:  WHERE user_id = :uid AND visited_date BETWEEN :start AND :end
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from travelstory.database import Base


class TravelStory(Base):
    """A travel journal entry owned by one user."""

    __tablename__ = "travel_stories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    story: Mapped[str] = mapped_column(Text, nullable=False)

    visible_location: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered list of place names",
    )

    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        comment="Owning user; immutable",
    )

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)

    visited_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_travel_stories_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TravelStory(id={self.id}, user_id={self.user_id}, "
            f"title='{self.title}', is_favorite={self.is_favorite})>"
        )
