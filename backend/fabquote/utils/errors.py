from typing import Dict, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def error_envelope(message: str, field_errors: Optional[Dict[str, str]] = None) -> dict:
    """Body shared by every failed response."""
    error: dict = {"message": message}
    if field_errors:
        error["field_errors"] = field_errors
    return {"success": False, "error": error}


class QuoteError(Exception):
    """Base class for failures the quote API reports to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}


class NotFoundError(QuoteError):
    """Record is absent, soft-deleted, or owned by another tenant."""

    status_code = status.HTTP_404_NOT_FOUND


class QuoteValidationError(QuoteError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(QuoteError):
    """Requested status is not an enumerated value or not allowed from the current one."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(QuoteError):
    status_code = status.HTTP_409_CONFLICT


class RepositoryError(QuoteError):
    """Storage failure; the original driver message is only logged."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
