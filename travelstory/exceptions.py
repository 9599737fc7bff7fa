"""
TravelStory Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a user-facing message, an optional context
       dict and an HTTP status code. Global exception handlers (registered
       in main.py) turn them into `{"error": true, "message": ...}` bodies.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    TravelStoryError (base)
    ├── ValidationError    → 400 Bad Request
    ├── ConflictError      → 400 Bad Request (duplicate email)
    ├── NotFoundError      → 404 Not Found
    ├── AuthError          → 401 Unauthorized (400 for bad login credentials)
    ├── FileStorageError   → 500 Internal Server Error
    └── DatabaseError      → 500 Internal Server Error

`status_code` can be overridden per instance where an endpoint's contract
uses a different code than the default for the error kind.
"""

from typing import Any, Dict, List, Optional


class TravelStoryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        context:      Additional debug info; returned to the client only for 4xx errors
        status_code:  HTTP status the global handler responds with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(TravelStoryError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, empty search query, unsupported file type.
    HTTP:    400 Bad Request

    `problems` lists every failing field so a client can fix them all at once:
        {
            "error": true,
            "message": "Missing required fields: title, story",
            "details": {"problems": [{"field": "title", "message": "is required"}, ...]}
        }
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        problems: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if problems:
            ctx["problems"] = problems
        super().__init__(message=message, context=ctx, status_code=status_code)
        self.field = field
        self.problems = problems or []

    @classmethod
    def missing_fields(cls, fields: List[str]) -> "ValidationError":
        return cls(
            message=f"Missing required fields: {', '.join(fields)}",
            problems=[{"field": name, "message": "is required"} for name in fields],
        )


class ConflictError(TravelStoryError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Registering an email that already belongs to an account.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, context=context, status_code=status_code)


class NotFoundError(TravelStoryError):
    """
    Raised when a requested resource does not exist or is not owned by the caller.

    HTTP:    404 Not Found

    Stories owned by other users are reported exactly like missing ones so the
    response never reveals that the id exists.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx, status_code=status_code)


class AuthError(TravelStoryError):
    """
    Raised for bad credentials or a missing/invalid/expired bearer token.

    HTTP:    401 Unauthorized (the login endpoint reports wrong passwords as 400)
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, context=context, status_code=status_code)


class FileStorageError(TravelStoryError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error

    File system paths stay in `context` (logged) and never reach the client.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TravelStoryError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
