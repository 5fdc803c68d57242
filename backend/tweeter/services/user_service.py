import logging
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tweeter.core.errors import ConflictError
from tweeter.models.user import User

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Some fields are already in use."
CONFLICT_FIELDS = {
    "email": "Email already in use",
    "username": "Username already in use",
    "phone": "Phone number already in use",
}


class UserService:
    """Queries and mutations on the users table"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def get_by_phone(db: Session, phone: str) -> Optional[User]:
        return db.query(User).filter(User.phone == phone).first()

    @staticmethod
    def find_conflicts(
        db: Session,
        email: str,
        username: str,
        phone: Optional[str] = None,
        exclude_user_id: Optional[int] = None,
    ) -> Dict[str, List[str]]:
        """
        Report which unique fields are already taken by another user.

        Returns a field -> messages mapping, empty when everything is free.
        ``exclude_user_id`` skips the user being edited.
        """
        candidates = {"email": email, "username": username, "phone": phone}
        errors: Dict[str, List[str]] = {}
        for field, value in candidates.items():
            if value is None:
                continue
            query = db.query(User.id).filter(getattr(User, field) == value)
            if exclude_user_id is not None:
                query = query.filter(User.id != exclude_user_id)
            if query.first() is not None:
                errors[field] = [CONFLICT_FIELDS[field]]
        return errors

    @staticmethod
    def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
        """
        Map a unique-constraint violation back to the field that caused it.

        Two requests can both pass find_conflicts() before either commits;
        the database constraint rejects the second one and lands here.
        """
        detail = str(exc.orig).lower()
        errors = {
            field: [message]
            for field, message in CONFLICT_FIELDS.items()
            if field in detail
        }
        if not errors:
            errors = {"server": ["Database constraint violation. Check your input fields."]}
        return ConflictError(CONFLICT_MESSAGE, errors)

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        username: str,
        hashed_password: str,
        phone: Optional[str] = None,
    ) -> User:
        """Insert a user; raises ConflictError if a unique field was taken meanwhile"""
        user = User(
            email=email,
            username=username,
            hashed_password=hashed_password,
            phone=phone,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise UserService.conflict_from_integrity_error(exc) from exc
        db.refresh(user)
        logger.info("Created user %s", user.id)
        return user

    @staticmethod
    def update_profile(
        db: Session,
        user: User,
        email: str,
        username: str,
        bio: Optional[str],
    ) -> User:
        user.email = email
        user.username = username
        user.bio = bio
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise UserService.conflict_from_integrity_error(exc) from exc
        db.refresh(user)
        logger.info("Updated profile of user %s", user.id)
        return user

    @staticmethod
    def set_password(db: Session, user: User, hashed_password: str) -> None:
        user.hashed_password = hashed_password
        db.commit()
        logger.info("Password changed for user %s", user.id)


user_service = UserService()
