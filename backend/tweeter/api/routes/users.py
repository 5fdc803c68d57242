import logging
from typing import List
from fastapi import APIRouter, Depends, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from tweeter.api.dependencies import get_current_user, load_session_user, require_session
from tweeter.core import session as session_manager
from tweeter.core.database import get_db
from tweeter.core.errors import ConflictError, NotFoundError, ValidationError, server_errors
from tweeter.core.security import get_password_hash, verify_password
from tweeter.core.session import SessionData
from tweeter.models.user import User
from tweeter.schemas.forms import ChangePasswordForm, UpdateProfileForm, parse_form
from tweeter.schemas.results import ActionResult
from tweeter.schemas.tweet import TweetResponse
from tweeter.schemas.user import CurrentUserResponse, UserProfileResponse
from tweeter.services.tweet_service import tweet_service
from tweeter.services.user_service import CONFLICT_MESSAGE, user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])

USER_NOT_FOUND_MESSAGE = "User not found."


def _user_not_found() -> NotFoundError:
    return NotFoundError(USER_NOT_FOUND_MESSAGE, {"server": ["User not found"]})


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Profile of the logged-in user"""
    return current_user


@router.put("/me", response_model=ActionResult, response_model_exclude_none=True)
async def update_profile(
    response: Response,
    form: UpdateProfileForm = Depends(parse_form(UpdateProfileForm)),
    current: SessionData = Depends(require_session("update your profile")),
    db: Session = Depends(get_db),
):
    """Change email, username and bio; the session is re-issued with the new values"""
    with server_errors(db, "Failed to update profile. Please try again."):
        user = load_session_user(db, current)
        conflicts = user_service.find_conflicts(
            db, form.email, form.username, exclude_user_id=user.id
        )
        if conflicts:
            raise ConflictError(CONFLICT_MESSAGE, conflicts)

        user = user_service.update_profile(
            db, user, email=form.email, username=form.username, bio=form.bio
        )

    session_manager.issue(response, user)
    return ActionResult(message="Profile updated successfully!", success=True)


@router.put("/me/password", response_model=ActionResult, response_model_exclude_none=True)
async def change_password(
    form: ChangePasswordForm = Depends(parse_form(ChangePasswordForm)),
    current: SessionData = Depends(require_session("change your password")),
    db: Session = Depends(get_db),
):
    """Replace the password after checking the current one"""
    with server_errors(db, "Failed to change password. Please try again."):
        user = load_session_user(db, current)

        password_ok = await run_in_threadpool(
            verify_password, form.current_password, user.hashed_password
        )
        if not password_ok:
            raise ValidationError(
                {"currentPassword": ["Incorrect current password"]},
                message="Invalid current password.",
            )

        hashed_password = await run_in_threadpool(get_password_hash, form.new_password)
        user_service.set_password(db, user, hashed_password)

    return ActionResult(message="Password changed successfully!", success=True)


@router.get("/by-username/{username}", response_model=UserProfileResponse)
async def get_user_by_username(username: str, db: Session = Depends(get_db)):
    """Public profile looked up by username"""
    with server_errors(db, "Failed to fetch user."):
        user = user_service.get_by_username(db, username)
    if user is None:
        raise _user_not_found()
    return user


@router.get("/by-username/{username}/tweets", response_model=List[TweetResponse])
async def get_tweets_by_username(username: str, db: Session = Depends(get_db)):
    """Tweets written by ``username``, newest first"""
    with server_errors(db, "Failed to fetch tweets."):
        return tweet_service.list_by_username(db, username)


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    """Public profile looked up by id"""
    with server_errors(db, "Failed to fetch user."):
        user = user_service.get_by_id(db, user_id)
    if user is None:
        raise _user_not_found()
    return user


@router.get("/{user_id}/tweets", response_model=List[TweetResponse])
async def get_user_tweets(user_id: int, db: Session = Depends(get_db)):
    """Tweets written by the user with ``user_id``, newest first"""
    with server_errors(db, "Failed to fetch tweets."):
        return tweet_service.list_by_user_id(db, user_id)
