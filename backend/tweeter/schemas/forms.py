"""
Form schemas for every action that accepts user input.

Messages raised here are shown inline next to the offending input, so each
rule raises a ``PydanticCustomError`` carrying the exact text instead of the
generic pydantic wording.
"""
import re
from typing import Annotated, Any, Dict, List, Optional, Sequence, Type, TypeVar
from email_validator import EmailNotValidError, validate_email
from fastapi import Request
from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from tweeter.core.errors import ValidationError

PASSWORD_MIN_LENGTH = 5
# bcrypt only hashes the first 72 bytes
PASSWORD_MAX_BYTES = 72
PASSWORD_REGEX = re.compile(r"(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*])[A-Za-z0-9!@#$%^&*]{5,}")
PASSWORD_REGEX_ERROR = (
    "Password must contain at least one uppercase letter, one number, and one special character"
)
USERNAME_MIN_LENGTH = 3
USERNAME_REGEX = re.compile(r"[가-힣a-zA-Z0-9]+")
PHONE_REGEX = re.compile(r"[0-9]{10,11}")
TWEET_MAX_LENGTH = 280
BIO_MAX_LENGTH = 160

FormT = TypeVar("FormT", bound=BaseModel)


def _fail(field: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(field, message)


def check_email(value: str) -> str:
    value = value.strip().lower()
    if not value:
        raise _fail("email", "Email is required")
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise _fail("email", "Invalid email address")
    return value


def check_username(value: str) -> str:
    if len(value) < USERNAME_MIN_LENGTH:
        raise _fail("username", f"Username must be at least {USERNAME_MIN_LENGTH} characters")
    if not USERNAME_REGEX.fullmatch(value):
        raise _fail(
            "username",
            "Username must contain only Korean, English, or numbers, no special characters",
        )
    return value


def check_new_password(value: str, *, label: str = "Password") -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise _fail("password", f"{label} must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise _fail("password", f"{label} cannot exceed {PASSWORD_MAX_BYTES} characters")
    if not PASSWORD_REGEX.fullmatch(value):
        raise _fail("password", PASSWORD_REGEX_ERROR)
    return value


def check_phone(value: str) -> str:
    if not PHONE_REGEX.fullmatch(value):
        raise _fail("phone", "Invalid phone number (e.g., 01012345678)")
    return value


EmailField = Annotated[str, AfterValidator(check_email)]
UsernameField = Annotated[str, AfterValidator(check_username)]
PasswordField = Annotated[str, AfterValidator(check_new_password)]


class FormModel(BaseModel):
    # Missing form fields arrive as "" so the field rules still run on them
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_default=True)


class CreateAccountForm(FormModel):
    email: EmailField = ""
    password: PasswordField = ""
    username: UsernameField = ""
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        # An empty phone input means "no phone"
        if value is None or not value.strip():
            return None
        return check_phone(value.strip())


class LoginForm(FormModel):
    email: EmailField = ""
    password: str = ""

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LENGTH:
            raise _fail("password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        return value


class SmsLoginForm(FormModel):
    phone: str = ""

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str) -> str:
        return check_phone(value.strip())


class CreateTweetForm(FormModel):
    content: str = ""

    @field_validator("content")
    @classmethod
    def _content(cls, value: str) -> str:
        if len(value) < 1:
            raise _fail("content", "Tweet content cannot be empty")
        if len(value) > TWEET_MAX_LENGTH:
            raise _fail("content", f"Tweet cannot exceed {TWEET_MAX_LENGTH} characters")
        return value


class UpdateProfileForm(FormModel):
    email: EmailField = ""
    username: UsernameField = ""
    bio: Optional[str] = None

    @field_validator("bio")
    @classmethod
    def _bio(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if len(value) > BIO_MAX_LENGTH:
            raise _fail("bio", f"Bio cannot exceed {BIO_MAX_LENGTH} characters")
        return value


class ChangePasswordForm(FormModel):
    current_password: str = ""
    new_password: str = ""

    @field_validator("current_password")
    @classmethod
    def _current_password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LENGTH:
            raise _fail("currentPassword", "Current password is required")
        return value

    @field_validator("new_password")
    @classmethod
    def _new_password(cls, value: str) -> str:
        return check_new_password(value, label="New password")


def flatten_errors(errors: Sequence[Dict[str, Any]], skip: Sequence[str] = ()) -> Dict[str, List[str]]:
    """Group pydantic error entries by field, keeping the message order"""
    field_errors: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if str(part) not in skip]
        field = loc[0] if loc else "server"
        field_errors.setdefault(field, []).append(error["msg"])
    return field_errors


def parse_form(model: Type[FormT], message: Optional[str] = None):
    """
    Build a dependency that validates the submitted form against ``model``.

    A rejected form raises ``ValidationError`` with per-field messages before
    the route handler runs, so nothing touches the database. ``message``
    replaces the generic result message for forms that have their own.
    """
    async def dependency(request: Request) -> FormT:
        form = await request.form()
        try:
            return model.model_validate(dict(form))
        except PydanticValidationError as exc:
            errors = flatten_errors(exc.errors())
            if message:
                raise ValidationError(errors, message=message) from exc
            raise ValidationError(errors) from exc

    return dependency
