# mentorship_sync/utils/validation_utils.py
from typing import Any, Dict, Optional
from ..models import RequestStatus
from ..config import get_settings
from ..exceptions import CapacityExceededError, InvalidMessageError, RequestNotPendingError

class ValidationUtils:
    def __init__(self, default_mentee_limit: Optional[int] = None):
        self.default_mentee_limit = (
            default_mentee_limit if default_mentee_limit is not None else get_settings().DEFAULT_MENTEE_LIMIT
        )

    def clean_message(self, message: Optional[str]) -> str:
        cleaned = (message or "").strip()
        if not cleaned:
            raise InvalidMessageError()
        return cleaned

    def effective_limit(self, profile: Dict[str, Any]) -> int:
        limit = profile.get("mentee_limit")
        return self.default_mentee_limit if limit is None else limit

    def validate_mentor_capacity(self, profile: Dict[str, Any]) -> int:
        """Returns the mentor's current active_mentees when one more mentee fits."""
        active = profile.get("active_mentees") or 0
        limit = self.effective_limit(profile)
        if active >= limit:
            raise CapacityExceededError(limit)
        return active

    def validate_request_status(self, request: Dict[str, Any], expected_status: RequestStatus = RequestStatus.PENDING):
        if request.get("status") != expected_status.value:
            raise RequestNotPendingError(request.get("id"), request.get("status"))

    @staticmethod
    def display_name(first_name: Optional[str], last_name: Optional[str]) -> str:
        return f"{first_name or ''} {last_name or ''}".strip()
