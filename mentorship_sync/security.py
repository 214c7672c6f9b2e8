from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status, Query
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import get_settings
from .identity import CurrentUser
from .models import User, UserRole
from .schemas import TokenData
from .database import get_db
from sqlalchemy.orm import Session

import logging
from fastapi import Header, Cookie
logger = logging.getLogger("uvicorn.error")

# --- Password Hashing ---
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain-text password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hashes a plain-text password."""
    return pwd_context.hash(password)

# --- JWT Token Handling ---
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# --- User Retrieval and Authentication ---
def get_user(db: Session, username: str) -> Optional[User]:
    """Retrieves a user from the database by username."""
    return db.query(User).filter(User.username == username).first()

def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Authenticates a user by username and password."""
    user = get_user(db, username)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

def to_current_user(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, first_name=user.first_name, last_name=user.last_name, role=UserRole(user.role))

def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None),
    token: Optional[str] = Query(None, description="Token for WebSocket clients that cannot send headers"),
) -> User:
    """
    Accepts Authorization: Bearer <token>, the HttpOnly cookie 'access_token',
    or a ?token= query parameter (WebSocket clients), in that order.
    """
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    # Log presence (not full token) to help debugging
    logger.debug(
        "get_current_user called - Authorization header present: %s ; cookie present: %s",
        bool(authorization),
        bool(access_token),
    )

    raw_token = None
    if authorization:
        if authorization.startswith("Bearer "):
            raw_token = authorization.split(" ", 1)[1]
        else:
            logger.info("Authorization header present but not Bearer.")

    if not raw_token:
        raw_token = access_token or token

    if not raw_token:
        raise credentials_exception

    try:
        payload = jwt.decode(raw_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        username: Optional[str] = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError as e:
        logger.info("JWT decode failed: %s", e)
        raise credentials_exception

    user = get_user(db, token_data.username)
    if user is None or not user.is_active:
        raise credentials_exception
    return user
