# mentorship_sync/routers/__init__.py
from . import auth_router
from . import mentorship_router
from . import profile_router

__all__ = [
    "auth_router",
    "mentorship_router",
    "profile_router",
]
