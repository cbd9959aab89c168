"""
Rollbook Backend — Student Service (Record Lifecycle Orchestrator)
====================================================================

What:  Keeps a student row and its profile picture file consistent across
       create, update, and delete.
Why:   The upload directory and the database share no transaction, so the
       order of the two writes decides which failure artifact is possible.
How:   Composes AttachmentStore and StudentRepository; every operation is two
       sequential fallible steps in a fixed order.
Who:   Called by the /api/students route handlers.

Ordering per operation:
    create:  save file  → insert row
             row fails  → file is orphaned (logged, no compensating delete)
    update:  find row   → save new file → delete old file → update row
             save fails → old file and row untouched
    delete:  find row   → delete file   → delete row
             row fails  → row keeps a dangling reference (logged)

    "row" steps flush and commit inside the service; a failed commit is
    rolled back and raised as DatabaseError before any response is sent.

Concurrency:
    No per-record lock. Two concurrent updates with different files both
    save; the last row write wins and the other new file is orphaned.
"""

import logging
import math
import re
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rollbook.config import settings
from rollbook.exceptions import DatabaseError, NotFoundError, ValidationError
from rollbook.schemas.student import (
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from rollbook.services.attachment_store import AttachmentStore, Upload, attachment_store
from rollbook.services.student_repository import StudentRepository, student_repository

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def lenient_int(value: Any, default: int) -> int:
    """
    Parse the leading integer of a query value.

    "2" → 2, "2abc" → 2, "abc" / "" / None / "0" → default.
    Values below 1 fall back to the default as well.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        match = _LEADING_INT.match(str(value)) if value is not None else None
        if not match:
            return default
        number = int(match.group(1))
    return number if number >= 1 else default


def has_file(upload: Optional[Upload]) -> bool:
    """Browsers send an empty, nameless part for an untouched file input."""
    return upload is not None and bool(upload.filename)


def _validated(schema: Type[SchemaT], fields: Mapping[str, Any]) -> SchemaT:
    try:
        return schema.model_validate(dict(fields))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            message=f"{field}: {first['msg']}" if field else first["msg"],
            field=field,
            context={"errors": e.errors(include_url=False, include_context=False)},
        )


class StudentService:
    """
    Lifecycle operations for student records.

    Both collaborators are injectable so tests can point the service at a
    temporary upload directory.
    """

    def __init__(
        self,
        store: Optional[AttachmentStore] = None,
        repository: Optional[StudentRepository] = None,
    ):
        self.store = store or attachment_store
        self.repository = repository or student_repository

    async def create_student(
        self,
        db: AsyncSession,
        fields: Mapping[str, Any],
        upload: Optional[Upload] = None,
    ) -> StudentResponse:
        """
        Create a record, saving its picture first.

        Raises:
            ValidationError: missing/blank field, non-image or oversized upload
            FileStorageError: the picture could not be written
            DatabaseError: the row could not be inserted (picture is orphaned)
        """
        data = _validated(StudentCreate, fields)

        profile_pic: Optional[str] = None
        if has_file(upload):
            profile_pic = await self.store.save(upload)

        try:
            student = await self.repository.create(
                db, {**data.model_dump(), "profile_pic": profile_pic}
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            if profile_pic:
                logger.warning("Student insert failed; orphaned file %s", profile_pic)
            logger.error("Database error creating student: %s", str(e), exc_info=True)
            raise DatabaseError(
                message=f"Could not create student: {e}",
                context={"orphaned_file": profile_pic},
            )

        logger.info("Student created: %s (profile_pic=%s)", student.id, profile_pic)
        return StudentResponse.from_model(student)

    async def get_student(self, db: AsyncSession, student_id: Any) -> StudentResponse:
        student = await self._find(db, student_id)
        return StudentResponse.from_model(student)

    async def list_students(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
    ) -> StudentListResponse:
        """
        One page of students.

        page defaults to 1 and limit to settings.default_page_size when
        missing or non-numeric; limit is capped at settings.max_page_size.
        total_pages = ceil(total / limit).
        """
        page_number = lenient_int(page, 1)
        page_size = min(lenient_int(limit, settings.default_page_size), settings.max_page_size)

        try:
            students, total = await self.repository.find_page(
                db, search=search, page=page_number, page_size=page_size
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing students: %s", str(e), exc_info=True)
            raise DatabaseError(message=f"Could not list students: {e}")

        return StudentListResponse(
            students=[StudentResponse.from_model(s) for s in students],
            total_pages=math.ceil(total / page_size),
            total=total,
            page=page_number,
            limit=page_size,
        )

    async def update_student(
        self,
        db: AsyncSession,
        student_id: Any,
        fields: Mapping[str, Any],
        upload: Optional[Upload] = None,
    ) -> StudentResponse:
        """
        Partially update a record, optionally replacing its picture.

        Only fields present in ``fields`` change. Without an upload the
        picture reference is never touched.

        Raises:
            ValidationError: blank required field or invalid upload
            NotFoundError: no record with this id (nothing is saved)
        """
        student = await self._find(db, student_id)
        changes = _validated(StudentUpdate, fields).model_dump(exclude_unset=True)

        if has_file(upload):
            # replace() saves before deleting; a failed save keeps the old picture
            changes["profile_pic"] = await self.store.replace(student.profile_pic, upload)

        try:
            student = await self.repository.update(db, student, changes)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            if "profile_pic" in changes:
                logger.warning(
                    "Student %s update failed after picture swap; orphaned file %s",
                    student_id,
                    changes["profile_pic"],
                )
            logger.error("Database error updating student %s: %s", student_id, str(e), exc_info=True)
            raise DatabaseError(message=f"Could not update student: {e}")

        logger.info("Student updated: %s (fields=%s)", student.id, sorted(changes))
        return StudentResponse.from_model(student)

    async def delete_student(self, db: AsyncSession, student_id: Any) -> None:
        """
        Delete a record and its picture, picture first.

        Raises:
            NotFoundError: no record with this id
            DatabaseError: row delete failed (the row now has a dangling reference)
        """
        student = await self._find(db, student_id)

        picture = student.profile_pic
        if picture and await self.store.exists(picture):
            await self.store.delete(picture)

        try:
            await self.repository.delete(db, student)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Student %s delete failed after its picture was removed; dangling reference %s",
                student_id,
                picture,
            )
            raise DatabaseError(message=f"Could not delete student: {e}")

        logger.info("Student deleted: %s", student_id)

    async def _find(self, db: AsyncSession, student_id: Any):
        try:
            student = await self.repository.find_by_id(db, student_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching student %s: %s", student_id, str(e))
            raise DatabaseError(message=f"Could not retrieve student: {e}")
        if student is None:
            raise NotFoundError(resource="Student", resource_id=str(student_id))
        return student


student_service = StudentService()


def get_student_service() -> StudentService:
    """FastAPI dependency; tests override it with a temporary-directory service."""
    return student_service
