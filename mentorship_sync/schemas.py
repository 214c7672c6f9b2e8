from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from .constants import BusinessRules
from .models import RequestStatus, UserRole

# --- Authentication Schemas ---
class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=BusinessRules.MAX_USERNAME_LENGTH)

class UserCreate(UserBase):
    password: str = Field(..., min_length=BusinessRules.MIN_PASSWORD_LENGTH)
    first_name: str = Field(..., min_length=BusinessRules.MIN_NAME_LENGTH, max_length=BusinessRules.MAX_NAME_LENGTH)
    last_name: str = Field(..., min_length=BusinessRules.MIN_NAME_LENGTH, max_length=BusinessRules.MAX_NAME_LENGTH)
    role: UserRole

class UserResponse(UserBase):
    id: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime]

    model_config = {
        "from_attributes": True,
    }

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    username: Optional[str] = None

# --- Mentorship Request Schemas ---

class MentorshipRequestCreate(BaseModel):
    message: str = Field(..., max_length=BusinessRules.MAX_MESSAGE_LENGTH, description="Message sent to the mentor.")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message must not be empty")
        return value

class MentorshipRequestCreated(BaseModel):
    id: str

class MentorshipRequestRecord(BaseModel):
    """Plain view of a request record handed to callers and subscribers."""
    id: str
    mentee_id: str
    mentor_id: str
    mentee_name: str
    mentor_name: str
    message: str
    status: RequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# --- Profile Schemas ---

class MentorCapacity(BaseModel):
    mentor_id: str
    active_mentees: int
    mentee_limit: int

class MenteeLimitUpdate(BaseModel):
    mentee_limit: int = Field(..., ge=1, description="Maximum number of mentees this mentor can take.")
