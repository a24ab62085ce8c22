from typing import Dict, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    error_code: Optional[str] = None,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    if error_code:
        detail["code"] = error_code
    return HTTPException(status_code=code, detail=detail)


class BookingEngineError(Exception):
    """Base class for business-rule violations raised by the engine.

    ``code`` is the stable tag callers switch on; ``status_code`` is the
    HTTP status the API layer maps it to.
    """

    code = "BookingEngineError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None) -> None:
        self.message = message
        self.field_errors = field_errors or {}
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        return error_response(
            self.message,
            self.field_errors,
            self.status_code,
            error_code=self.code,
        )


class NotFoundError(BookingEngineError):
    """Booking, agreement, listing, event, deliverable or milestone is absent."""

    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(BookingEngineError):
    """Actor is not a party to the entity."""

    code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class RoleNotPermittedError(BookingEngineError):
    """Actor is a party, but the wrong one for this action."""

    code = "RoleNotPermitted"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidTransitionError(BookingEngineError):
    code = "InvalidTransition"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(BookingEngineError):
    code = "InvalidState"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyExistsError(BookingEngineError):
    code = "AlreadyExists"
    status_code = status.HTTP_409_CONFLICT


class AlreadySignedError(BookingEngineError):
    code = "AlreadySigned"
    status_code = status.HTTP_409_CONFLICT


class ConflictError(BookingEngineError):
    """The listing is already booked for the requested date."""

    code = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class InputValidationError(BookingEngineError):
    code = "ValidationError"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
