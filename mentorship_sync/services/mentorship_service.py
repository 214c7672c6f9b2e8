# mentorship_sync/services/mentorship_service.py
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..constants import Collections
from ..exceptions import (
    MentorNotFoundError,
    MentorProfileNotFoundError,
    NotAuthenticatedError,
    RequestNotFoundError,
)
from ..identity import CurrentUser, IdentityProvider
from ..models import RequestStatus, UserRole, utcnow
from ..schemas import MentorshipRequestRecord
from ..store import RecordStore, Transaction
from ..utils.timestamp_utils import normalize_timestamp
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class MentorshipService:
    """
    Owns the request lifecycle: pending -> accepted | rejected.

    Accepting charges the acting mentor's capacity ledger in the same
    transaction as the status write, so concurrent accepts can never push
    active_mentees past the mentor's limit.
    """

    def __init__(self, store: RecordStore, identity: IdentityProvider, validator: Optional[ValidationUtils] = None):
        self.store = store
        self.identity = identity
        self.validator = validator or ValidationUtils()

    def _require_user(self) -> CurrentUser:
        user = self.identity.get_current_user()
        if user is None:
            raise NotAuthenticatedError()
        return user

    @staticmethod
    def _transition_time(request: Dict[str, Any]) -> datetime:
        # updated_at never moves backwards, even with clock skew between writers
        now = utcnow()
        previous = normalize_timestamp(request.get("updated_at"))
        return max(now, previous) if previous else now

    async def submit_request(self, mentor_id: str, message: str) -> str:
        """Creates a pending request from the current user to a mentor. Returns the new id."""
        mentee = self._require_user()
        cleaned_message = self.validator.clean_message(message)

        mentor = await self.store.get_by_id(Collections.PROFILES, mentor_id)
        if mentor is None or mentor.get("role") != UserRole.MENTOR.value:
            raise MentorNotFoundError(mentor_id)

        now = utcnow()
        request_id = await self.store.create(Collections.REQUESTS, {
            "mentee_id": mentee.id,
            "mentor_id": mentor_id,
            "mentee_name": mentee.display_name,
            "mentor_name": self.validator.display_name(mentor.get("first_name"), mentor.get("last_name")),
            "message": cleaned_message,
            "status": RequestStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Mentorship request {request_id} submitted by mentee {mentee.id} to mentor {mentor_id}")
        return request_id

    async def accept_request(self, request_id: str) -> MentorshipRequestRecord:
        """Accepts a pending request and takes one slot of the acting mentor's capacity."""
        mentor = self._require_user()

        def accept(txn: Transaction) -> Dict[str, Any]:
            request = txn.get(Collections.REQUESTS, request_id)
            if request is None:
                raise RequestNotFoundError(request_id)
            self.validator.validate_request_status(request, RequestStatus.PENDING)

            profile = txn.get(Collections.PROFILES, mentor.id)
            if profile is None:
                raise MentorProfileNotFoundError(mentor.id)
            active_mentees = self.validator.validate_mentor_capacity(profile)

            now = self._transition_time(request)
            txn.update(Collections.REQUESTS, request_id, {"status": RequestStatus.ACCEPTED.value, "updated_at": now})
            txn.update(Collections.PROFILES, mentor.id, {"active_mentees": active_mentees + 1, "updated_at": utcnow()})
            return {**request, "status": RequestStatus.ACCEPTED.value, "updated_at": now}

        accepted = await self.store.transaction(accept)
        logger.info(f"Mentorship request {request_id} accepted by mentor {mentor.id}")
        return MentorshipRequestRecord.model_validate(accepted)

    async def reject_request(self, request_id: str) -> MentorshipRequestRecord:
        """Rejects a pending request. Capacity is untouched."""

        def reject(txn: Transaction) -> Dict[str, Any]:
            request = txn.get(Collections.REQUESTS, request_id)
            if request is None:
                raise RequestNotFoundError(request_id)
            self.validator.validate_request_status(request, RequestStatus.PENDING)

            now = self._transition_time(request)
            txn.update(Collections.REQUESTS, request_id, {"status": RequestStatus.REJECTED.value, "updated_at": now})
            return {**request, "status": RequestStatus.REJECTED.value, "updated_at": now}

        rejected = await self.store.transaction(reject)
        logger.info(f"Mentorship request {request_id} rejected")
        return MentorshipRequestRecord.model_validate(rejected)

    async def get_request(self, request_id: str) -> MentorshipRequestRecord:
        request = await self.store.get_by_id(Collections.REQUESTS, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return MentorshipRequestRecord.model_validate(request)
