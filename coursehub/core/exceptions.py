"""
Application Errors

HTTP-aware error taxonomy raised by services and rendered by the
handlers installed in coursehub.main as {"status": "fail", "error": ...}.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request failed"

    def __init__(
        self,
        detail: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class BusinessRuleError(AppError):
    """Well-formed request rejected by a business rule (already reviewed, already purchased)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request violates a business rule"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "You are not logged in. Please log in to get access"

    def __init__(self, detail: Any = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    """Role or ownership mismatch."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action"


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class UpstreamError(AppError):
    """A store or provider call failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service error"


class PartialFailureError(AppError):
    """
    A multi-step operation was only partly applied.

    Nothing is rolled back; `applied` and `failed` describe the state the
    caller has to reconcile.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Operation partially applied"

    def __init__(
        self,
        message: str,
        applied: Optional[list[Any]] = None,
        failed: Optional[list[Any]] = None,
    ):
        self.applied = list(applied or [])
        self.failed = list(failed or [])
        super().__init__(
            {
                "message": message,
                "applied": self.applied,
                "failed": self.failed,
            }
        )
