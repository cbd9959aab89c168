"""
Rollbook Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure scenarios.
Why:   Services raise typed outcomes; global handlers (registered in main.py)
       map each type to an HTTP status code and a uniform JSON body.
How:   Each exception carries a message and an optional context dict.
       The message is returned to the client, the context is only logged.

Exception Hierarchy:
    RollbookError (base)
    ├── ValidationError               → 400 Bad Request
    │   ├── UnsupportedMediaTypeError → 400 (upload is not image/*)
    │   └── PayloadTooLargeError      → 400 (upload exceeds size limit)
    ├── AuthenticationError           → 401 Unauthorized
    ├── NotFoundError                 → 404 Not Found
    ├── FileStorageError              → 500 Internal Server Error
    └── DatabaseError                 → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class RollbookError(Exception):
    """
    Base exception for all Rollbook application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RollbookError):
    """
    Raised when client input fails validation.

    When:    Missing required field, wrong upload type, oversized upload.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnsupportedMediaTypeError(ValidationError):
    """The declared content type of an upload does not start with ``image/``."""

    def __init__(self, content_type: Optional[str], field: str = "profile_pic"):
        super().__init__(
            message="Only images are allowed!",
            field=field,
            context={"content_type": content_type},
        )
        self.content_type = content_type


class PayloadTooLargeError(ValidationError):
    """An upload is larger than ``settings.max_upload_size``."""

    def __init__(self, size: int, max_size: int, field: str = "profile_pic"):
        super().__init__(
            message=f"File too large. Maximum size is {max_size / (1024 * 1024):.0f}MB.",
            field=field,
            context={"size": size, "max_size": max_size},
        )
        self.size = size
        self.max_size = max_size


class AuthenticationError(RollbookError):
    """
    Raised when a gated route is called without a valid bearer token.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(RollbookError):
    """
    Raised when a requested record does not exist.

    When:    GET/PUT/DELETE /api/students/{id} with an unknown or malformed id.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows; the service converts that
    None into this exception so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "Student",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class FileStorageError(RollbookError):
    """
    Raised when writing an upload to the upload directory fails.

    When:    Disk full, permission denied, filename space exhausted.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(RollbookError):
    """
    Raised when a repository operation fails unexpectedly.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
