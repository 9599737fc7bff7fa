"""
TravelStory Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table (the credential store).
How:   Inherits from `Base`; Alembic migration 001 creates the same table.

Table Design:
    - UUID primary key, assigned by the application on insert
    - email carries a UNIQUE constraint; registration pre-checks it and the
      constraint catches the concurrent-registration race
    - password_hash holds a bcrypt hash, never the password
    - rows are never updated or deleted by this service
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from travelstory.database import Base


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Login identifier; unique across accounts",
    )

    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
