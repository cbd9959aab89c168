"""
Rollbook Backend — Student Repository
=======================================

What:  CRUD queries against the `students` table.
Why:   Keeps SQL out of the lifecycle service; no business rules live here.
How:   Every method takes the request's AsyncSession and flushes (never
       commits); the commit belongs to get_db_session.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rollbook.models.student import Student

logger = logging.getLogger(__name__)


def parse_student_id(student_id: Any) -> Optional[uuid.UUID]:
    """Convert a path parameter to a UUID; None when it is not one."""
    if isinstance(student_id, uuid.UUID):
        return student_id
    try:
        return uuid.UUID(str(student_id))
    except (TypeError, ValueError):
        return None


class StudentRepository:
    """Stateless data access for Student rows."""

    async def create(self, db: AsyncSession, fields: Mapping[str, Any]) -> Student:
        student = Student(**fields)
        db.add(student)
        await db.flush()  # Assigns defaults (id, timestamps) without committing
        logger.debug("Inserted student %s", student.id)
        return student

    async def find_by_id(self, db: AsyncSession, student_id: Any) -> Optional[Student]:
        uid = parse_student_id(student_id)
        if uid is None:
            return None
        result = await db.execute(select(Student).where(Student.id == uid))
        return result.scalar_one_or_none()

    async def find_page(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 3,
    ) -> Tuple[List[Student], int]:
        """
        One window of students plus the total number of matches.

        A non-empty search term matches a case-insensitive literal substring
        of first_name OR last_name. LIKE wildcards in the term are escaped.

        Query plan:
            SELECT count(id) WHERE ...   (window skipped if OFFSET >= count)
            SELECT ... WHERE (first_name ILIKE :t OR last_name ILIKE :t)
            ORDER BY created_at, id OFFSET :skip LIMIT :page_size
        """
        criteria = []
        term = (search or "").strip()
        if term:
            criteria.append(
                or_(
                    Student.first_name.icontains(term, autoescape=True),
                    Student.last_name.icontains(term, autoescape=True),
                )
            )

        count_result = await db.execute(
            select(func.count(Student.id)).where(*criteria)
        )
        total = count_result.scalar() or 0

        # A window past the last match is empty without querying
        skip = (page - 1) * page_size
        if skip >= total:
            return [], total

        query = (
            select(Student)
            .where(*criteria)
            .order_by(Student.created_at, Student.id)
            .offset(skip)
            .limit(page_size)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def update(
        self, db: AsyncSession, student: Student, fields: Mapping[str, Any]
    ) -> Student:
        """Apply only the given fields; everything else is left untouched."""
        for name, value in fields.items():
            setattr(student, name, value)
        student.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return student

    async def delete(self, db: AsyncSession, student: Student) -> None:
        await db.delete(student)
        await db.flush()


student_repository = StudentRepository()
