# mentorship_sync/dependencies/service_dependencies.py
from fastapi import Depends
from fastapi.requests import HTTPConnection
from ..identity import UserSession
from ..models import User
from ..security import get_current_user, to_current_user
from ..services.mentorship_service import MentorshipService
from ..services.profile_service import ProfileService
from ..services.subscription_service import SubscriptionService
from ..store import RecordStore

def get_record_store(connection: HTTPConnection) -> RecordStore:
    return connection.app.state.record_store

def get_user_session(current_user: User = Depends(get_current_user)) -> UserSession:
    return UserSession(to_current_user(current_user))

def get_mentorship_service(
    store: RecordStore = Depends(get_record_store),
    identity: UserSession = Depends(get_user_session),
) -> MentorshipService:
    return MentorshipService(store, identity)

def get_subscription_service(store: RecordStore = Depends(get_record_store)) -> SubscriptionService:
    return SubscriptionService(store)

def get_profile_service(store: RecordStore = Depends(get_record_store)) -> ProfileService:
    return ProfileService(store)
