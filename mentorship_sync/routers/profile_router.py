# mentorship_sync/routers/profile_router.py
from fastapi import APIRouter, Depends

from ..dependencies.auth_dependencies import require_mentor
from ..dependencies.service_dependencies import get_profile_service
from ..exceptions import MentorshipError
from ..models import User
from ..schemas import MentorCapacity, MenteeLimitUpdate
from ..services import ProfileService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api", tags=["profiles"])

@router.get("/mentors/me/capacity", response_model=MentorCapacity)
async def get_capacity(
    current_user: User = Depends(require_mentor),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Current mentee count and limit of the signed-in mentor"""
    try:
        return await profile_service.get_capacity(current_user.id)
    except MentorshipError as e:
        raise to_http_exception(e)

@router.put("/mentors/me/capacity", response_model=MentorCapacity)
async def update_mentee_limit(
    payload: MenteeLimitUpdate,
    current_user: User = Depends(require_mentor),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Change the signed-in mentor's mentee limit"""
    try:
        return await profile_service.set_mentee_limit(current_user.id, payload.mentee_limit)
    except MentorshipError as e:
        raise to_http_exception(e)
