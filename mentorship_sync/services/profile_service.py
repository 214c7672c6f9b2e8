# mentorship_sync/services/profile_service.py
import logging

from ..constants import Collections, ErrorMessages
from ..exceptions import BusinessLogicError, MentorNotFoundError, ProfileAlreadyExistsError
from ..identity import CurrentUser
from ..models import UserRole, utcnow
from ..schemas import MentorCapacity
from ..store import RecordStore, Transaction
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class ProfileService:
    def __init__(self, store: RecordStore, validator: ValidationUtils = None):
        self.store = store
        self.validator = validator or ValidationUtils()

    async def initialize_profile(self, user: CurrentUser, bio: str = "") -> str:
        """Creates the profile of a newly registered user; mentors start with an empty capacity ledger"""
        if await self.store.get_by_id(Collections.PROFILES, user.id) is not None:
            raise ProfileAlreadyExistsError(ErrorMessages.DUPLICATE_PROFILE)

        now = utcnow()
        profile = {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": user.role.value,
            "bio": bio,
            "created_at": now,
            "updated_at": now,
        }
        if user.role == UserRole.MENTOR:
            profile["active_mentees"] = 0
            profile["mentee_limit"] = self.validator.default_mentee_limit

        profile_id = await self.store.create(Collections.PROFILES, profile)
        logger.info(f"Profile {profile_id} initialized with role {user.role.value}")
        return profile_id

    async def get_capacity(self, mentor_id: str) -> MentorCapacity:
        profile = await self.store.get_by_id(Collections.PROFILES, mentor_id)
        if profile is None or profile.get("role") != UserRole.MENTOR.value:
            raise MentorNotFoundError(mentor_id)
        return MentorCapacity(
            mentor_id=mentor_id,
            active_mentees=profile.get("active_mentees") or 0,
            mentee_limit=self.validator.effective_limit(profile),
        )

    async def set_mentee_limit(self, mentor_id: str, mentee_limit: int) -> MentorCapacity:
        """Changes a mentor's limit; lowering it below active_mentees is refused"""
        def apply(txn: Transaction) -> MentorCapacity:
            profile = txn.get(Collections.PROFILES, mentor_id)
            if profile is None or profile.get("role") != UserRole.MENTOR.value:
                raise MentorNotFoundError(mentor_id)
            active_mentees = profile.get("active_mentees") or 0
            if mentee_limit < active_mentees:
                raise BusinessLogicError(
                    f"Cannot lower mentee limit to {mentee_limit} with {active_mentees} active mentees"
                )
            txn.update(Collections.PROFILES, mentor_id, {"mentee_limit": mentee_limit, "updated_at": utcnow()})
            return MentorCapacity(mentor_id=mentor_id, active_mentees=active_mentees, mentee_limit=mentee_limit)

        capacity = await self.store.transaction(apply)
        logger.info(f"Mentor {mentor_id} mentee limit set to {mentee_limit}")
        return capacity
