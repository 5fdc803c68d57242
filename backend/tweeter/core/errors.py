"""
Action error taxonomy.

Services and route handlers raise these; the exception handlers registered in
main.py turn them into the uniform result body, so a failed action always
answers with ``{message, success: false, errors}`` instead of a traceback.
"""
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tweeter.schemas.results import ActionResult

logger = logging.getLogger(__name__)


class ActionError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}

    def to_result(self) -> dict:
        result = ActionResult(message=self.message, success=False, errors=self.errors or None)
        return result.model_dump(by_alias=True, exclude_none=True)


class ValidationError(ActionError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: Dict[str, List[str]], message: str = "Invalid input. Please check the fields."):
        super().__init__(message, errors)


class AuthenticationError(ActionError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ActionError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ActionError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ActionError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(ActionError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, message: str = "Server error occurred."):
        super().__init__(message, {"server": [detail]})


@contextmanager
def server_errors(db: Session, detail: str):
    """
    Turn data-store and hashing failures inside the block into a ServerError.

    ActionErrors pass through unchanged. The session is rolled back so a
    half-applied change is never committed later in the request.
    """
    try:
        yield
    except ActionError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error: %s", detail)
        raise ServerError(detail) from exc
    except Exception as exc:
        db.rollback()
        logger.exception("Unexpected error: %s", detail)
        raise ServerError(detail) from exc
