import logging
from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.user import UserRead

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session", response_model=UserRead)
def create_session(current_user: User = Depends(get_current_user)):
    """
    Exchange a verified provider access token for the local user record.
    Creates the user on first sign-in; repeated calls return the same user.
    Credentials themselves are issued by the identity provider, not by this service.
    """
    logger.info(f"Session established for user {current_user.id}")
    return UserRead.model_validate(current_user)


@router.get("/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile."""
    return UserRead.model_validate(current_user)
