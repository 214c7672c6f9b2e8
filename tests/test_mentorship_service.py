import asyncio
from unittest.mock import AsyncMock

import pytest

from mentorship_sync.constants import Collections
from mentorship_sync.exceptions import (
    CapacityExceededError,
    InvalidMessageError,
    MentorNotFoundError,
    MentorProfileNotFoundError,
    NotAuthenticatedError,
    RequestNotFoundError,
    RequestNotPendingError,
)
from mentorship_sync.identity import UserSession
from mentorship_sync.models import MentorshipRequest, Profile, RequestStatus, UserRole
from mentorship_sync.services import MentorshipService
from mentorship_sync.utils.validation_utils import ValidationUtils


async def _profile(store, mentor_id):
    return await store.get_by_id(Collections.PROFILES, mentor_id)


async def test_submit_request_creates_pending_record_with_denormalized_names(store, mentee_service, mentor, mentee):
    request_id = await mentee_service.submit_request(mentor.id, "  Could you help me with compilers?  ")

    record = await mentee_service.get_request(request_id)
    assert record.status == RequestStatus.PENDING
    assert record.mentee_id == mentee.id
    assert record.mentor_id == mentor.id
    assert record.mentee_name == "Ada Lovelace"
    assert record.mentor_name == "Grace Hopper"
    assert record.message == "Could you help me with compilers?"
    assert record.created_at == record.updated_at


async def test_submit_request_requires_a_current_user(store, mentor):
    service = MentorshipService(store, UserSession(None))
    with pytest.raises(NotAuthenticatedError):
        await service.submit_request(mentor.id, "hi")


async def test_blank_message_is_rejected_before_touching_the_store(store, mentee):
    store.get_by_id = AsyncMock()
    store.create = AsyncMock()
    service = MentorshipService(store, UserSession(mentee))

    with pytest.raises(InvalidMessageError):
        await service.submit_request("m1", "  ")

    store.get_by_id.assert_not_awaited()
    store.create.assert_not_awaited()


async def test_submit_request_to_unknown_mentor_fails(mentee_service, store):
    with pytest.raises(MentorNotFoundError) as exc_info:
        await mentee_service.submit_request("missing", "hi")
    assert str(exc_info.value) == "Mentor profile not found"
    assert await store.query(Collections.REQUESTS, []) == []


async def test_submit_request_to_a_mentee_profile_fails(make_user, mentee_service):
    other_mentee = await make_user("alan", "Alan", "Turing", UserRole.MENTEE)
    with pytest.raises(MentorNotFoundError):
        await mentee_service.submit_request(other_mentee.id, "hi")


async def test_denormalized_names_are_not_resynced(store, mentee_service, mentor):
    request_id = await mentee_service.submit_request(mentor.id, "hello")
    await store.update(Collections.PROFILES, mentor.id, {"last_name": "Murray Hopper"})

    record = await mentee_service.get_request(request_id)
    assert record.mentor_name == "Grace Hopper"


async def test_accept_takes_a_slot_until_the_limit_is_reached(store, mentee_service, mentor_service, mentor):
    await store.update(Collections.PROFILES, mentor.id, {"mentee_limit": 1, "active_mentees": 0})
    r1 = await mentee_service.submit_request(mentor.id, "first")
    r2 = await mentee_service.submit_request(mentor.id, "second")

    accepted = await mentor_service.accept_request(r1)
    assert accepted.status == RequestStatus.ACCEPTED
    assert accepted.updated_at >= accepted.created_at
    assert (await _profile(store, mentor.id))["active_mentees"] == 1

    with pytest.raises(CapacityExceededError) as exc_info:
        await mentor_service.accept_request(r2)
    assert exc_info.value.limit == 1
    assert str(exc_info.value) == "Mentee limit of 1 reached!"

    assert (await mentor_service.get_request(r2)).status == RequestStatus.PENDING
    assert (await _profile(store, mentor.id))["active_mentees"] == 1


async def test_missing_limit_defaults_to_five(store, mentee_service, mentor_service, mentor):
    await store.update(Collections.PROFILES, mentor.id, {"mentee_limit": None, "active_mentees": 5})
    request_id = await mentee_service.submit_request(mentor.id, "hello")

    with pytest.raises(CapacityExceededError) as exc_info:
        await mentor_service.accept_request(request_id)
    assert exc_info.value.limit == 5
    assert str(exc_info.value) == "Mentee limit of 5 reached!"


async def test_accept_failures(store, make_user, mentee_service, mentor_service, mentor):
    with pytest.raises(RequestNotFoundError):
        await mentor_service.accept_request("missing")

    request_id = await mentee_service.submit_request(mentor.id, "hello")

    with pytest.raises(NotAuthenticatedError):
        await MentorshipService(store, UserSession(None)).accept_request(request_id)

    profileless = await make_user("linus", "Linus", "T", UserRole.MENTOR, with_profile=False)
    with pytest.raises(MentorProfileNotFoundError):
        await MentorshipService(store, UserSession(profileless)).accept_request(request_id)

    assert (await mentor_service.get_request(request_id)).status == RequestStatus.PENDING


async def test_status_transitions_only_once(store, mentee_service, mentor_service, mentor):
    request_id = await mentee_service.submit_request(mentor.id, "hello")
    accepted = await mentor_service.accept_request(request_id)

    with pytest.raises(RequestNotPendingError):
        await mentor_service.accept_request(request_id)
    with pytest.raises(RequestNotPendingError) as exc_info:
        await mentor_service.reject_request(request_id)
    assert exc_info.value.status == "accepted"

    record = await mentor_service.get_request(request_id)
    assert record.status == RequestStatus.ACCEPTED
    assert record.updated_at == accepted.updated_at
    # Re-accepting must not charge capacity twice
    assert (await _profile(store, mentor.id))["active_mentees"] == 1


async def test_reject_leaves_capacity_untouched(store, mentee_service, mentor_service, mentor):
    request_id = await mentee_service.submit_request(mentor.id, "hello")

    rejected = await mentor_service.reject_request(request_id)
    assert rejected.status == RequestStatus.REJECTED
    assert rejected.updated_at >= rejected.created_at
    assert (await _profile(store, mentor.id))["active_mentees"] == 0

    with pytest.raises(RequestNotPendingError):
        await mentor_service.accept_request(request_id)
    with pytest.raises(RequestNotPendingError):
        await mentor_service.reject_request(request_id)


async def test_reject_unknown_request_fails(mentor_service):
    with pytest.raises(RequestNotFoundError):
        await mentor_service.reject_request("r1")


async def test_concurrent_accepts_never_exceed_the_limit(store, mentee_service, mentor_service, mentor):
    await store.update(Collections.PROFILES, mentor.id, {"mentee_limit": 2})
    request_ids = [await mentee_service.submit_request(mentor.id, f"request {i}") for i in range(5)]

    results = await asyncio.gather(
        *(mentor_service.accept_request(request_id) for request_id in request_ids),
        return_exceptions=True,
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, Exception)]
    assert len(accepted) == 2
    assert len(refused) == 3
    assert all(isinstance(error, CapacityExceededError) for error in refused)
    assert (await _profile(store, mentor.id))["active_mentees"] == 2

    statuses = [(await mentor_service.get_request(request_id)).status for request_id in request_ids]
    assert statuses.count(RequestStatus.ACCEPTED) == 2
    assert statuses.count(RequestStatus.PENDING) == 3


async def test_concurrent_accept_and_reject_of_one_request(store, mentee_service, mentor_service, mentor):
    request_id = await mentee_service.submit_request(mentor.id, "hello")

    results = await asyncio.gather(
        mentor_service.accept_request(request_id),
        mentor_service.reject_request(request_id),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], RequestNotPendingError)
    final = await mentor_service.get_request(request_id)
    expected_active = 1 if final.status == RequestStatus.ACCEPTED else 0
    assert (await _profile(store, mentor.id))["active_mentees"] == expected_active


async def test_accept_rechecks_capacity_when_another_accept_commits_first(store, session_factory, mentee_service, mentor):
    await store.update(Collections.PROFILES, mentor.id, {"mentee_limit": 1})
    first = await mentee_service.submit_request(mentor.id, "first")
    second = await mentee_service.submit_request(mentor.id, "second")

    class AcceptFirstMeanwhile(ValidationUtils):
        """Commits an accept of ``first`` right after the first capacity check passes."""
        checks = 0

        def validate_mentor_capacity(self, profile):
            active = super().validate_mentor_capacity(profile)
            self.checks += 1
            if self.checks == 1:
                with session_factory() as other:
                    request = other.get(MentorshipRequest, first)
                    request.status = RequestStatus.ACCEPTED.value
                    mentor_profile = other.get(Profile, mentor.id)
                    mentor_profile.active_mentees += 1
                    other.commit()
            return active

    validator = AcceptFirstMeanwhile()
    service = MentorshipService(store, UserSession(mentor), validator)

    with pytest.raises(CapacityExceededError):
        await service.accept_request(second)

    assert validator.checks == 2
    assert (await service.get_request(second)).status == RequestStatus.PENDING
    assert (await service.get_request(first)).status == RequestStatus.ACCEPTED
    assert (await _profile(store, mentor.id))["active_mentees"] == 1


async def test_service_acts_as_the_latest_signed_in_user(store, make_user, mentor, mentee):
    session = UserSession(mentee)
    service = MentorshipService(store, session)
    first = await service.submit_request(mentor.id, "first")

    session.sign_out()
    with pytest.raises(NotAuthenticatedError):
        await service.submit_request(mentor.id, "while signed out")

    alan = await make_user("alan", "Alan", "Turing", UserRole.MENTEE)
    session.publish(alan)
    second = await service.submit_request(mentor.id, "second")

    assert (await service.get_request(first)).mentee_id == mentee.id
    record = await service.get_request(second)
    assert record.mentee_id == alan.id
    assert record.mentee_name == "Alan Turing"
