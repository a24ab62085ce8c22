from .errors import (
    error_response,
    BookingEngineError,
    NotFoundError,
    ForbiddenError,
    RoleNotPermittedError,
    InvalidTransitionError,
    InvalidStateError,
    AlreadyExistsError,
    AlreadySignedError,
    ConflictError,
    InputValidationError,
)
from .time import utcnow
