# eduops/core/exceptions.py
"""Custom exceptions for the EduOps application."""
from fastapi import HTTPException
from typing import Any, Dict, Iterable, Optional


class EduOpsException(HTTPException):
    """Base exception for EduOps application."""
    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(EduOpsException):
    """Exception raised when a record does not exist."""
    def __init__(self, resource: str, id: Any = None):
        message = f"{resource} not found"
        if id is not None:
            message += f" with id: {id}"
        super().__init__(status_code=404, detail=message)


class DuplicateRecordError(EduOpsException):
    """Exception raised when a uniqueness constraint is hit."""
    def __init__(self, message: str = "Record already exists"):
        super().__init__(
            status_code=409,
            detail={
                "error": "Duplicate Record",
                "message": message
            }
        )


class ValidationError(EduOpsException):
    """Exception raised for validation errors."""
    def __init__(self, message: str, field: Optional[str] = None):
        detail = {"error": "Validation Error", "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=422, detail=detail)


class ProtectedFieldError(ValidationError):
    """Raised when a plain write targets a field maintained by the operations layer."""
    def __init__(self, fields: Iterable[str]):
        names = ", ".join(sorted(fields))
        super().__init__(f"These fields cannot be written directly: {names}")


class ContentionError(EduOpsException):
    """A required row lock could not be acquired in time. Callers should retry."""
    def __init__(self, message: str = "The record is busy, please retry", retry_after: int = 1):
        super().__init__(
            status_code=409,
            detail={
                "error": "contention",
                "message": message,
                "retryable": True
            },
            headers={"Retry-After": str(retry_after)}
        )


class DatabaseError(EduOpsException):
    """Exception raised when the store cannot be reached."""
    def __init__(self, message: str = "Database unavailable"):
        super().__init__(
            status_code=503,
            detail={
                "error": "Database Error",
                "message": message
            }
        )
