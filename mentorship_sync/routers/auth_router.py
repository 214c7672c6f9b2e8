# mentorship_sync/routers/auth_router.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta, datetime, timezone

from ..database import get_db
from ..dependencies.service_dependencies import get_profile_service
from ..exceptions import MentorshipError
from ..schemas import UserCreate, UserResponse, Token
from ..models import User
from ..security import authenticate_user, create_access_token, get_password_hash, get_current_user, to_current_user
from ..services import ProfileService
from ..config import get_settings
from ..utils.http_errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

@router.post("/register", response_model=UserResponse, status_code=201)
async def register_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Register a new user and initialize their mentor or mentee profile"""
    if db.query(User).filter(User.username == user.username).first():
        raise HTTPException(status_code=409, detail="Username already registered")

    db_user = User(
        username=user.username,
        hashed_password=get_password_hash(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role.value,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    try:
        await profile_service.initialize_profile(to_current_user(db_user))
    except Exception as e:
        # A user without a profile can neither act nor register again
        logger.error(f"Profile setup failed for user {db_user.username}, removing the account: {e}")
        db.delete(db_user)
        db.commit()
        if isinstance(e, MentorshipError):
            raise to_http_exception(e)
        raise
    return db_user

@router.post("/token", response_model=Token)
async def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login and set HttpOnly cookie, also return OAuth2 token payload"""
    settings = get_settings()
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire_time_utc = datetime.now(timezone.utc) + access_token_expires

    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=access_token_expires
    )

    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=expire_time_utc,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )

    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """Get the current user"""
    return current_user

@router.post("/logout", status_code=200)
async def logout(response: Response):
    """Logout user by clearing cookie"""
    response.delete_cookie(key="access_token")
    return {"message": "Logged out successfully"}
