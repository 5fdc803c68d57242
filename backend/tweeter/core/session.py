"""
Session cookie management.

The session is a signed token held by the browser; nothing is stored server
side. This module is the only place that reads or writes the cookie:

- issue(): sign {userId, email, username} and set the cookie
- read(): verify and decode the cookie, None when absent or unusable
- revoke(): delete the cookie
"""
import logging
from typing import Optional
from fastapi import Request, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from tweeter.core.config import settings
from tweeter.core.security import create_session_token, decode_session_token
from tweeter.models.user import User

logger = logging.getLogger(__name__)


class SessionData(BaseModel):
    """Identity claims carried by the session cookie"""
    user_id: int
    email: str = Field(min_length=1)
    username: str = Field(min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def issue(response: Response, user: User) -> str:
    """Sign a session for ``user`` and attach it to ``response``"""
    session = SessionData(user_id=user.id, email=user.email, username=user.username)
    # Expires after SESSION_MAX_AGE_SECONDS, same as the cookie
    token = create_session_token(session.model_dump(by_alias=True))
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        path="/",
        httponly=True,
        # Plain HTTP is only allowed outside production
        secure=settings.is_production,
        samesite="strict",
    )
    logger.info("Session issued for user %s", user.id)
    return token


def read(request: Request) -> Optional[SessionData]:
    """
    Return the session attached to ``request``.

    A missing cookie, a bad signature, an expired token and a payload without
    the required claims are all treated as "no session".
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None

    payload = decode_session_token(token)
    if payload is None:
        logger.warning("Rejected session cookie with invalid signature or expiry")
        return None

    try:
        return SessionData.model_validate(payload)
    except ValidationError:
        logger.warning("Rejected session cookie with incomplete claims")
        return None


def revoke(response: Response) -> None:
    """Delete the session cookie; harmless when none is set"""
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def has_cookie(request: Request) -> bool:
    """True when the request carries a session cookie, valid or not"""
    return bool(request.cookies.get(settings.SESSION_COOKIE_NAME))
