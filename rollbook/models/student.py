"""
Rollbook Backend — Student SQLAlchemy Model
=============================================

What:  ORM model representing the `students` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by StudentRepository for CRUD operations.

Table Design:
    - UUID primary key: opaque to clients, generated in Python so the id is
      known right after flush on every backend (PostgreSQL and SQLite)
    - profile_pic: bare filename inside the upload directory, or NULL.
      Never a path; the AttachmentStore resolves it.
    - created_at index: listing pages are ordered by creation time
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from rollbook.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Student(Base):
    """
    A student record and its optional profile picture reference.

    Lifecycle:
        1. Created with or without a picture (picture saved first)
        2. Updated partially; a new picture supersedes and removes the old one
        3. Deleted together with its picture (picture removed first)
    """

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Filename within settings.upload_dir, e.g. "1718000000123.png"
    profile_pic: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_students_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Student(id={self.id}, name='{self.first_name} {self.last_name}', "
            f"profile_pic={self.profile_pic!r})>"
        )
