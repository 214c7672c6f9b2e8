# mentorship_sync/utils/http_errors.py
from fastapi import HTTPException, status

from ..exceptions import (
    BusinessLogicError,
    CapacityExceededError,
    InvalidMessageError,
    InvalidStatusTransitionError,
    MentorshipError,
    NotAuthenticatedError,
    NotFoundError,
    ProfileAlreadyExistsError,
    StoreUnavailableError,
    UnauthorizedError,
)

# Most specific first
STATUS_CODES = [
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidMessageError, 422),
    (CapacityExceededError, status.HTTP_409_CONFLICT),
    (InvalidStatusTransitionError, status.HTTP_409_CONFLICT),
    (ProfileAlreadyExistsError, status.HTTP_409_CONFLICT),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (BusinessLogicError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(error: MentorshipError) -> HTTPException:
    """Translates an engine error into an HTTPException carrying its display message."""
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)
