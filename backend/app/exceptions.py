"""
Twinshot Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions, one per error classification.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services, dependencies and routes; caught by global handlers.

Exception Hierarchy:
    TwinshotError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthorizedError        → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    │   └── DuplicatePostError   → 409 Conflict (one post per day)
    ├── CompositionFailedError   → 422 Unprocessable Entity
    ├── FileStorageError         → 500 Internal Server Error
    └── StorageError             → 503 Service Unavailable (client may retry)
"""

from datetime import date
from typing import Any, Dict, Optional


class TwinshotError(Exception):
    """
    Base exception for all Twinshot application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, and returned only where the
                  handler chooses to expose it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TwinshotError):
    """
    Raised when client input fails a business-level check.

    When:    Missing upload part, bad file type or size, befriending yourself,
             unknown friendship response status, empty prompt.
    HTTP:    400 Bad Request

    Schema-level problems (wrong JSON types) are still reported by FastAPI
    with 422 before any service code runs.
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


class UnauthorizedError(TwinshotError):
    """
    Raised when the bearer credential is missing, malformed, expired, or
    names an account that no longer exists. Also raised on bad login.

    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Could not validate credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(TwinshotError):
    """
    Raised when an authenticated caller asks for something outside its reach,
    such as a file path that escapes the storage root.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TwinshotError):
    """
    Raised when a requested resource does not exist.

    When:    Reacting to a missing post, responding to a friend request that
             isn't pending, befriending an unknown account.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(TwinshotError):
    """
    Raised on a uniqueness violation: duplicate account email/username/phone
    or a friendship edge that already exists.

    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicatePostError(ConflictError):
    """
    Raised when an account already has a post for the current calendar day.

    Raised both by the admission pre-check and when the database's
    UNIQUE(owner_id, post_date) constraint rejects a racing insert.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        post_date: Optional[date] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if post_date:
            ctx["post_date"] = post_date.isoformat()
        super().__init__(message="You can only post once per day", context=ctx)
        self.post_date = post_date


class CompositionFailedError(TwinshotError):
    """
    Raised when the front/back captures cannot be combined.

    When:    Either capture is unreadable or not decodable as an image, or the
             composite cannot be written.
    HTTP:    422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "Failed to process images",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(TwinshotError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(TwinshotError):
    """
    Raised when the persistence layer fails unexpectedly.

    The client may retry; the server never does. The message returned to the
    client is always generic; the original error is logged server-side.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
