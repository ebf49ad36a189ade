"""
Domain errors raised by services and turned into JSON at the request boundary.
Each error carries a stable snake_case code; message defaults to the code.
"""
from typing import Any, Dict, Optional

from fastapi import status


class DomainError(Exception):
    """Base class: code + human readable message + optional context."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        self.extra = extra


class ValidationError(DomainError):
    """Malformed or empty input the caller can correct."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(DomainError):
    """Missing identity, OAuth state/code mismatch, expired platform token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(DomainError):
    """Cross-tenant access attempt."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class GoneError(DomainError):
    status_code = status.HTTP_410_GONE


class ExternalServiceError(DomainError):
    """Downstream platform API unreachable or returned an error payload."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        http_status: Optional[int] = None,
    ) -> None:
        super().__init__(code, message, extra)
        self.http_status = http_status
        if code == "facebook_not_configured":
            self.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
