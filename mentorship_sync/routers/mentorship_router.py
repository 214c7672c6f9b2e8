# mentorship_sync/routers/mentorship_router.py
import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Path, WebSocket, WebSocketDisconnect, status

from ..dependencies.auth_dependencies import get_mentor_owned_request, get_participant_request, require_mentee, require_mentor
from ..dependencies.service_dependencies import get_mentorship_service, get_subscription_service
from ..exceptions import MentorshipError
from ..models import User
from ..schemas import MentorshipRequestCreate, MentorshipRequestCreated, MentorshipRequestRecord
from ..services import MentorshipService, RequestStream, SubscriptionService
from ..utils.http_errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mentorship"])

@router.post("/api/mentors/{mentor_id}/requests", response_model=MentorshipRequestCreated, status_code=201)
async def submit_request(
    payload: MentorshipRequestCreate,
    mentor_id: str = Path(..., description="The ID of the mentor being asked"),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Send a mentorship request to a mentor"""
    try:
        request_id = await mentorship_service.submit_request(mentor_id, payload.message)
        return MentorshipRequestCreated(id=request_id)
    except MentorshipError as e:
        raise to_http_exception(e)

@router.get("/api/requests/{request_id}", response_model=MentorshipRequestRecord)
async def read_request(request: MentorshipRequestRecord = Depends(get_participant_request)):
    """Get a single request the current user takes part in"""
    return request

@router.put("/api/requests/{request_id}/accept", response_model=MentorshipRequestRecord)
async def accept_request(
    request: MentorshipRequestRecord = Depends(get_mentor_owned_request),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Accept a pending request, taking one of the mentor's mentee slots"""
    try:
        return await mentorship_service.accept_request(request.id)
    except MentorshipError as e:
        raise to_http_exception(e)

@router.put("/api/requests/{request_id}/reject", response_model=MentorshipRequestRecord)
async def reject_request(
    request: MentorshipRequestRecord = Depends(get_mentor_owned_request),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Reject a pending request"""
    try:
        return await mentorship_service.reject_request(request.id)
    except MentorshipError as e:
        raise to_http_exception(e)

async def _current_snapshot(stream: RequestStream) -> List[MentorshipRequestRecord]:
    async with stream:
        return await stream.__anext__()

@router.get("/api/mentors/me/requests/pending", response_model=List[MentorshipRequestRecord])
async def get_pending_requests(
    current_user: User = Depends(require_mentor),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Pending requests addressed to the current mentor, newest first"""
    try:
        stream = await subscription_service.watch_pending_for_mentor(current_user.id)
        return await _current_snapshot(stream)
    except MentorshipError as e:
        raise to_http_exception(e)

@router.get("/api/mentees/me/requests", response_model=List[MentorshipRequestRecord])
async def get_sent_requests(
    current_user: User = Depends(require_mentee),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Every request sent by the current mentee, newest first"""
    try:
        stream = await subscription_service.watch_all_for_mentee(current_user.id)
        return await _current_snapshot(stream)
    except MentorshipError as e:
        raise to_http_exception(e)

async def _forward(websocket: WebSocket, stream: RequestStream):
    """Pushes every snapshot to the client until it disconnects or the stream fails."""
    async def pump():
        async for snapshot in stream:
            await websocket.send_json([record.model_dump(mode="json") for record in snapshot])

    async def watch_disconnect():
        while True:
            await websocket.receive_text()

    async with stream:
        pump_task = asyncio.create_task(pump())
        disconnect_task = asyncio.create_task(watch_disconnect())
        done, pending = await asyncio.wait({pump_task, disconnect_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if pump_task in done and pump_task.exception() is not None:
            error = pump_task.exception()
            if isinstance(error, MentorshipError):
                logger.warning(f"Closing {stream.name} websocket: {error.message}")
                await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=error.message)
            else:
                raise error
        elif disconnect_task in done and not isinstance(disconnect_task.exception(), WebSocketDisconnect):
            raise disconnect_task.exception()

@router.websocket("/ws/mentors/me/requests")
async def stream_pending_requests(
    websocket: WebSocket,
    current_user: User = Depends(require_mentor),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    await websocket.accept()
    stream = await subscription_service.watch_pending_for_mentor(current_user.id)
    await _forward(websocket, stream)

@router.websocket("/ws/mentees/me/requests")
async def stream_sent_requests(
    websocket: WebSocket,
    current_user: User = Depends(require_mentee),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    await websocket.accept()
    stream = await subscription_service.watch_all_for_mentee(current_user.id)
    await _forward(websocket, stream)
