import logging
from typing import Callable
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from tweeter.core import session as session_manager
from tweeter.core.database import get_db
from tweeter.core.errors import AuthenticationError, NotFoundError
from tweeter.core.session import SessionData
from tweeter.models.user import User
from tweeter.services.user_service import user_service

logger = logging.getLogger(__name__)


def require_session(action: str) -> Callable[[Request], SessionData]:
    """
    Build a dependency that demands a valid session.

    ``action`` completes the sentence "You must be logged in to ..." shown
    when no cookie was sent. Declare it after the form dependency in a route
    signature so input is validated before identity is checked.
    """
    def dependency(request: Request) -> SessionData:
        current = session_manager.read(request)
        if current is not None:
            return current

        if session_manager.has_cookie(request):
            # Cookie present but unreadable: tampered, expired or stale format
            raise AuthenticationError(
                "Authentication error.", {"server": ["Invalid session data"]}
            )
        raise AuthenticationError(
            "Authentication required.", {"server": [f"You must be logged in to {action}"]}
        )

    return dependency


def load_session_user(db: Session, current: SessionData) -> User:
    """
    Re-load the user a session points at.

    Session claims are never trusted on their own; if the row is gone the
    action fails instead of acting for a user that no longer exists.
    """
    user = user_service.get_by_id(db, current.user_id)
    if user is None:
        logger.warning("Session refers to missing user %s", current.user_id)
        raise NotFoundError("User not found.", {"server": ["User not found"]})
    return user


def get_current_user(
    current: SessionData = Depends(require_session("view your profile")),
    db: Session = Depends(get_db),
) -> User:
    """Authenticated user for read-only endpoints"""
    return load_session_user(db, current)
