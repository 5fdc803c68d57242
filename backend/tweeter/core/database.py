from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from tweeter.core.config import settings

# SQLite connections are shared across the threadpool FastAPI runs handlers in
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# One engine per process - manages the connection pool
# hide_parameters keeps bound values (emails, password hashes) out of error text
engine = create_engine(
    settings.DATABASE_URL, connect_args=connect_args, hide_parameters=True)

# Session factory - each request gets a new session
# autocommit=False: Changes require explicit commit
# autoflush=False: Don't auto-flush before queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    Provides a database session to route handlers and closes it once the
    request completes, even if the handler raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
