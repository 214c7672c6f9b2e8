# mentorship_sync/services/__init__.py
from .mentorship_service import MentorshipService
from .profile_service import ProfileService
from .subscription_service import RequestStream, SubscriptionService

__all__ = ["MentorshipService", "ProfileService", "RequestStream", "SubscriptionService"]
