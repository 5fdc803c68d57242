import logging
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from tweeter.api.dependencies import require_session
from tweeter.core import session as session_manager
from tweeter.core.database import get_db
from tweeter.core.errors import AuthenticationError, ConflictError, NotFoundError, server_errors
from tweeter.core.security import get_password_hash, verify_password
from tweeter.core.session import SessionData
from tweeter.schemas.forms import CreateAccountForm, LoginForm, SmsLoginForm, parse_form
from tweeter.schemas.results import AccountResult, ActionResult, SessionIdentity
from tweeter.services.user_service import CONFLICT_MESSAGE, user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_LOGIN_MESSAGE = "Invalid email or password."


@router.post(
    "/create-account",
    response_model=AccountResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_account(
    response: Response,
    form: CreateAccountForm = Depends(parse_form(CreateAccountForm)),
    db: Session = Depends(get_db),
):
    """Register a new user and sign them in"""
    with server_errors(db, "Failed to create account. Please try again."):
        # Explicit check gives per-field messages; the unique constraints
        # still catch a concurrent registration in create_user()
        conflicts = user_service.find_conflicts(db, form.email, form.username, form.phone)
        if conflicts:
            raise ConflictError(CONFLICT_MESSAGE, conflicts)

        hashed_password = await run_in_threadpool(get_password_hash, form.password)
        user = user_service.create_user(
            db,
            email=form.email,
            username=form.username,
            hashed_password=hashed_password,
            phone=form.phone,
        )

    session_manager.issue(response, user)
    return AccountResult(message="Account created successfully!", user_id=user.id, success=True)


@router.post("/login", response_model=AccountResult, response_model_exclude_none=True)
async def login(
    response: Response,
    form: LoginForm = Depends(parse_form(LoginForm)),
    db: Session = Depends(get_db),
):
    """Log in with email and password"""
    with server_errors(db, "Failed to login. Please try again."):
        user = user_service.get_by_email(db, form.email)
        if user is None:
            raise AuthenticationError(INVALID_LOGIN_MESSAGE, {"email": ["Email not found"]})

        # bcrypt compare is CPU bound, keep it off the event loop
        password_ok = await run_in_threadpool(verify_password, form.password, user.hashed_password)
        if not password_ok:
            logger.info("Failed login for user %s", user.id)
            raise AuthenticationError(INVALID_LOGIN_MESSAGE, {"password": ["Invalid password"]})

    session_manager.issue(response, user)
    return AccountResult(message="Login successful!", user_id=user.id, success=True)


@router.post("/sms-login", response_model=AccountResult, response_model_exclude_none=True)
async def sms_login(
    response: Response,
    form: SmsLoginForm = Depends(parse_form(SmsLoginForm, "Invalid phone number.")),
    db: Session = Depends(get_db),
):
    """Log in with a registered phone number"""
    with server_errors(db, "Failed to login. Please try again."):
        user = user_service.get_by_phone(db, form.phone)
        if user is None:
            raise NotFoundError("Phone number not registered.", {"phone": ["Phone number not found"]})

    session_manager.issue(response, user)
    return AccountResult(message="SMS Login successful!", user_id=user.id, success=True)


@router.post("/logout", response_model=ActionResult, response_model_exclude_none=True)
async def logout(request: Request, response: Response):
    """Drop the session cookie"""
    current = session_manager.read(request)
    if current is None:
        # Still clear whatever unreadable cookie the browser holds
        error = AuthenticationError(
            "Authentication required.", {"server": ["You must be logged in to log out"]}
        )
        error_response = JSONResponse(status_code=error.status_code, content=error.to_result())
        session_manager.revoke(error_response)
        return error_response

    session_manager.revoke(response)
    logger.info("User %s logged out", current.user_id)
    return ActionResult(message="Logged out successfully!", success=True)


@router.get("/session", response_model=SessionIdentity)
async def get_session(current: SessionData = Depends(require_session("view your session"))):
    """Identity carried by the current session cookie"""
    return SessionIdentity(user_id=current.user_id)
