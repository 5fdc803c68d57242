from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from tweeter.core.database import Base


class User(Base):
    """
    User model representing application users.

    Stores authentication credentials and the public profile.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # email, username and phone are unique; duplicate checks run before writes
    # and these constraints settle concurrent inserts
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    bio = Column(String(160), nullable=True)
    phone = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
