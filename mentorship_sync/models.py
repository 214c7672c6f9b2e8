# mentorship_sync/models.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from .database import Base


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enum for Mentorship Request Status
class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted" # Terminal
    REJECTED = "rejected" # Terminal


class UserRole(str, Enum):
    MENTOR = "mentor"
    MENTEE = "mentee"


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    is_active = Column(Boolean, default=True) # Can be used to disable user accounts
    created_at = Column(DateTime(timezone=True), default=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class Profile(Base):
    """Mentor or mentee profile; mentors carry the capacity ledger."""
    __tablename__ = "profiles"

    # Profiles share their owner's id
    id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, nullable=False, index=True)
    bio = Column(Text, nullable=False, default="")

    active_mentees = Column(Integer, nullable=False, default=0)
    mentee_limit = Column(Integer, nullable=True) # None falls back to DEFAULT_MENTEE_LIMIT

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="profile", uselist=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Profile(id={self.id}, role='{self.role}', active_mentees={self.active_mentees}, mentee_limit={self.mentee_limit})>"


class MentorshipRequest(Base):
    __tablename__ = "mentorship_requests"

    id = Column(String(32), primary_key=True, default=new_id)

    mentee_id = Column(String(32), nullable=False, index=True)
    mentor_id = Column(String(32), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Captured at creation time, never re-synced with the profiles
    mentee_name = Column(String, nullable=False)
    mentor_name = Column(String, nullable=False)

    message = Column(Text, nullable=False)
    status = Column(String, default=RequestStatus.PENDING.value, nullable=False, index=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<MentorshipRequest(id={self.id}, mentee_id={self.mentee_id}, mentor_id={self.mentor_id}, status='{self.status}')>"
