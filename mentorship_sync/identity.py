# mentorship_sync/identity.py
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from .models import UserRole


class CurrentUser(BaseModel):
    id: str
    first_name: str
    last_name: str
    role: UserRole

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class IdentityProvider(ABC):
    @abstractmethod
    def get_current_user(self) -> Optional[CurrentUser]:
        """Most recent identity at call time, or None when signed out."""
        ...


class UserSession(IdentityProvider):
    """Holds the latest value of an identity stream (sign-in, sign-out, token refresh)."""

    def __init__(self, user: Optional[CurrentUser] = None):
        self._user = user

    def publish(self, user: Optional[CurrentUser]):
        self._user = user

    def sign_out(self):
        self._user = None

    def get_current_user(self) -> Optional[CurrentUser]:
        return self._user
