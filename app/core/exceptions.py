# app/core/exceptions.py
from __future__ import annotations

"""
FlixCatalog — Application Exceptions
====================================
A small, typed layer on top of FastAPI/Starlette's `HTTPException`. Every
failure a request can end in has an `ErrorKind`; the boundary handlers in
`app.core.exception_handlers` render each kind into the JSON envelope
`{success: false, message, errors?}`.

Kinds
-----
- validation  → 422 with field-level `errors`
- bad_request → 400 (e.g. no-op update, upload not completed)
- auth        → 401, generic message only
- forbidden   → 403, no detail
- not_found   → 404
- storage     → 502, generic message (context goes to logs)

Usage
-----
    raise NotFoundException("Video not found")
    raise ValidationException({"year": ["The year must be between 1900 and 2030."]})
"""

import enum
from typing import Any, Dict, List, Mapping, Optional

from fastapi import HTTPException, status

__all__ = [
    "ErrorKind",
    "AppException",
    "ValidationException",
    "BadRequestException",
    "AuthException",
    "InvalidTokenException",
    "PermissionDeniedException",
    "NotFoundException",
    "StorageException",
]


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception.

    Attributes
    -----------
    kind : ErrorKind
        Taxonomy bucket, used by handlers and logs.
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (also serialized as `detail`).
    errors : dict | None
        Field → list of messages, for validation failures.
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        kind: Optional[ErrorKind] = None,
        errors: Optional[Mapping[str, List[str]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        if kind is not None:
            self.kind = kind
        self.message: str = message
        self.errors: Optional[Dict[str, List[str]]] = dict(errors) if errors else None

    # ── [Helper] Canonical body used by handlers ───────────────────────────
    def to_body(self) -> Dict[str, Any]:
        """Return the `{success: false, ...}` envelope for this error."""
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


# ──────────────────────────────────────────────────────────────
# 🧾 Input errors
# ──────────────────────────────────────────────────────────────
class ValidationException(AppException):
    """Malformed or missing input fields (422)."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: Mapping[str, List[str]], message: str = "Validation failed") -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message=message,
            errors=errors,
        )


class BadRequestException(AppException):
    """Well-formed request that cannot be applied (400)."""

    kind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message)


# ──────────────────────────────────────────────────────────────
# 🔑 Auth / authorization
# ──────────────────────────────────────────────────────────────
class AuthException(AppException):
    """Bad credentials or unusable token (401). Never says which part was wrong."""

    kind = ErrorKind.AUTH

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidTokenException(AuthException):
    """Raised for invalid, revoked or expired access tokens."""

    def __init__(self, message: str = "Unauthenticated") -> None:
        super().__init__(message)


class PermissionDeniedException(AppException):
    """Authenticated caller lacks the admin role (403)."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, message=message)


# ──────────────────────────────────────────────────────────────
# 🔎 Lookup / storage
# ──────────────────────────────────────────────────────────────
class NotFoundException(AppException):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, message=message)


class StorageException(AppException):
    """Object store failure surfaced to the caller as a generic 502."""

    kind = ErrorKind.STORAGE

    def __init__(self, message: str = "S3 error") -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, message=message)
