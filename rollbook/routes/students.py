"""
Rollbook Backend — Student Route Handlers
===========================================

What:  CRUD endpoints for student records under /api/students.
Why:   Entry point for the record lifecycle; every route requires a bearer token.
How:   Extracts form fields and the optional `profile_pic` upload, delegates
       to StudentService, returns JSON. Errors are rendered by the global
       exception handlers in main.py.

Endpoints:
    POST   /api/students          create (multipart, optional profile_pic) → 201
    GET    /api/students          list (search, page, limit)               → 200
    GET    /api/students/{id}     detail                                   → 200 / 404
    PUT    /api/students/{id}     partial update (multipart)               → 200 / 404
    DELETE /api/students/{id}     delete record and picture                → 200 / 404
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from rollbook.database import get_db_session
from rollbook.dependencies.auth import require_token
from rollbook.schemas.student import (
    ErrorResponse,
    MessageResponse,
    StudentListResponse,
    StudentResponse,
)
from rollbook.services.student_service import StudentService, get_student_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/students",
    tags=["Students"],
    dependencies=[Depends(require_token)],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)


def _provided(**fields: Optional[str]) -> Dict[str, str]:
    """Drop form fields the client did not send."""
    return {name: value for name, value in fields.items() if value is not None}


@router.post(
    "",
    status_code=201,
    response_model=StudentResponse,
    responses={400: {"description": "Invalid field or upload", "model": ErrorResponse}},
    summary="Create a student",
)
async def create_student(
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    profile_pic: Optional[UploadFile] = File(
        None, description="Profile picture (image/*, max 3MB)"
    ),
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    try:
        return await service.create_student(
            db,
            fields=_provided(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                gender=gender,
            ),
            upload=profile_pic,
        )
    finally:
        if profile_pic is not None:
            await profile_pic.close()


@router.get(
    "",
    response_model=StudentListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List students with search and pagination",
)
async def list_students(
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive substring of first or last name",
    ),
    page: Optional[str] = Query(default=None, description="1-indexed page number"),
    limit: Optional[str] = Query(default=None, description="Page size (default 3)"),
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentListResponse:
    # page/limit stay strings: "abc" falls back to the default instead of a 422
    return await service.list_students(db, search=search, page=page, limit=limit)


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    responses={404: {"description": "Student not found", "model": ErrorResponse}},
    summary="Get a student by id",
)
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    return await service.get_student(db, student_id)


@router.put(
    "/{student_id}",
    response_model=StudentResponse,
    responses={
        400: {"description": "Invalid field or upload", "model": ErrorResponse},
        404: {"description": "Student not found", "model": ErrorResponse},
    },
    summary="Update a student, optionally replacing the profile picture",
)
async def update_student(
    student_id: str,
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    profile_pic: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    try:
        return await service.update_student(
            db,
            student_id,
            fields=_provided(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                gender=gender,
            ),
            upload=profile_pic,
        )
    finally:
        if profile_pic is not None:
            await profile_pic.close()


@router.delete(
    "/{student_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Student not found", "model": ErrorResponse}},
    summary="Delete a student and its profile picture",
)
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> MessageResponse:
    await service.delete_student(db, student_id)
    return MessageResponse(message="Student deleted successfully")
