"""
Rollbook Backend — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract for student records.
Why:   Input validation, serialization, and OpenAPI doc generation.
How:   Input models validate the multipart form fields inside the service;
       response models are built from ORM rows via from_attributes.

Design Decision:
    Form fields arrive as plain optional strings so that a missing required
    field is reported by the lifecycle service as a ValidationError (400),
    the same path an invalid upload takes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class StudentCreate(BaseModel):
    """Fields accepted by POST /api/students."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    gender: Optional[str] = Field(default=None, max_length=20)

    @field_validator("first_name", "last_name", "email", "phone", "gender", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class StudentUpdate(BaseModel):
    """
    Fields accepted by PUT /api/students/{id}.

    Every field is optional; only the fields the client actually sent are
    applied (see ``model_dump(exclude_unset=True)`` in the service).
    Required fields may be omitted but never blanked.
    """

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    gender: Optional[str] = Field(default=None, max_length=20)

    @field_validator("first_name", "last_name", "email", "phone", "gender", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class StudentResponse(BaseModel):
    """
    Full representation of a student record.

    profile_pic is the stored filename (or null); profile_pic_url is the
    path under which the static /uploads mount serves it.
    """

    id: uuid.UUID = Field(description="Opaque student identifier")
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    profile_pic: Optional[str] = Field(default=None, description="Stored picture filename")
    profile_pic_url: Optional[str] = Field(default=None, description="URL path of the picture")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, student) -> "StudentResponse":
        response = cls.model_validate(student)
        if student.profile_pic:
            response.profile_pic_url = f"/uploads/{student.profile_pic}"
        return response


class StudentListResponse(BaseModel):
    """
    One page of students.

    Serialized with camelCase ``totalPages`` for compatibility with
    existing clients of the listing endpoint.
    """

    students: List[StudentResponse]
    total_pages: int = Field(serialization_alias="totalPages")
    total: int = Field(description="Number of records matching the search")
    page: int
    limit: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "validation_error",
            "message": "Only images are allowed!",
            "details": {"field": "profile_pic", "content_type": "text/plain"},
            "request_id": "1a2b3c4d"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uploads: str = Field(description="writable or unavailable")
    uptime_seconds: float
