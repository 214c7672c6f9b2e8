# mentorship_sync/dependencies/auth_dependencies.py
from fastapi import Depends, HTTPException, Path, status
from ..constants import ErrorMessages
from ..exceptions import MentorshipError
from ..models import User, UserRole
from ..schemas import MentorshipRequestRecord
from ..security import get_current_user
from ..services.mentorship_service import MentorshipService
from ..utils.http_errors import to_http_exception
from .service_dependencies import get_mentorship_service

async def _load_request(request_id: str, mentorship_service: MentorshipService) -> MentorshipRequestRecord:
    try:
        return await mentorship_service.get_request(request_id)
    except MentorshipError as e:
        raise to_http_exception(e)

async def get_mentor_owned_request(
    request_id: str = Path(..., description="The ID of the mentorship request."),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
    current_user: User = Depends(get_current_user),
) -> MentorshipRequestRecord:
    """Gets a mentorship request, verifying it is addressed to the current mentor"""
    request = await _load_request(request_id, mentorship_service)
    if request.mentor_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.UNAUTHORIZED_MENTOR)
    return request

async def get_participant_request(
    request_id: str = Path(..., description="The ID of the mentorship request."),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
    current_user: User = Depends(get_current_user),
) -> MentorshipRequestRecord:
    """Gets a mentorship request, verifying the current user is its mentor or mentee"""
    request = await _load_request(request_id, mentorship_service)
    if current_user.id not in {request.mentor_id, request.mentee_id}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.UNAUTHORIZED_PARTICIPANT)
    return request

def require_role(role: UserRole):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role.value:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Only {role.value}s can do this")
        return current_user
    return dependency

require_mentor = require_role(UserRole.MENTOR)
require_mentee = require_role(UserRole.MENTEE)
