# mentorship_sync/exceptions.py
from .constants import ErrorMessages


class MentorshipError(Exception):
    """Base exception for every failure raised by the request engine"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BusinessLogicError(MentorshipError):
    """Base exception for business logic errors"""
    pass


class NotAuthenticatedError(BusinessLogicError):
    """Raised when no current user is available"""

    def __init__(self, message: str = ErrorMessages.NOT_AUTHENTICATED):
        super().__init__(message)


class UnauthorizedError(BusinessLogicError):
    """Raised when user lacks authorization"""
    pass


class InvalidMessageError(BusinessLogicError):
    """Raised when a request message is blank"""

    def __init__(self, message: str = ErrorMessages.EMPTY_MESSAGE):
        super().__init__(message)


class NotFoundError(BusinessLogicError):
    """Raised when a resource is not found"""
    pass


class MentorNotFoundError(NotFoundError):
    """Raised when a request targets a mentor without a profile"""

    def __init__(self, mentor_id: str):
        super().__init__(ErrorMessages.MENTOR_NOT_FOUND)
        self.mentor_id = mentor_id


class MentorProfileNotFoundError(NotFoundError):
    """Raised when the acting mentor has no profile to charge capacity against"""

    def __init__(self, mentor_id: str):
        super().__init__(ErrorMessages.MENTOR_PROFILE_NOT_FOUND)
        self.mentor_id = mentor_id


class RequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str):
        super().__init__(ErrorMessages.REQUEST_NOT_FOUND)
        self.request_id = request_id


class CapacityExceededError(BusinessLogicError):
    """Raised when mentor capacity is exhausted"""

    def __init__(self, limit: int):
        super().__init__(ErrorMessages.CAPACITY_EXCEEDED.format(limit=limit))
        self.limit = limit


class InvalidStatusTransitionError(BusinessLogicError):
    """Raised when invalid status transition is attempted"""
    pass


class RequestNotPendingError(InvalidStatusTransitionError):
    def __init__(self, request_id: str, status: str):
        super().__init__(ErrorMessages.REQUEST_NOT_PENDING.format(status=status))
        self.request_id = request_id
        self.status = status


class ProfileAlreadyExistsError(BusinessLogicError):
    """Raised when trying to create duplicate profile"""
    pass


class StoreUnavailableError(MentorshipError):
    """Raised on transport failures or exhausted transaction retries"""

    def __init__(self, message: str = ErrorMessages.STORE_UNAVAILABLE):
        super().__init__(message)


class TransactionConflictError(MentorshipError):
    """Raised inside a transaction when a concurrent commit invalidated its reads"""
    pass
