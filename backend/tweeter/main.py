import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from tweeter.core.config import settings
from tweeter.core.database import engine, Base
from tweeter.core.errors import ActionError, ServerError, ValidationError
from tweeter.core.logging import configure_logging
from tweeter.schemas.forms import flatten_errors
from tweeter.api.routes import auth, tweets, users

# Import all models so Base.metadata knows about them
from tweeter.models.user import User    # noqa: F401
from tweeter.models.tweet import Tweet  # noqa: F401

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create missing tables on the configured database
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Tweeter API started (environment: %s)", settings.ENVIRONMENT)
    yield
    logger.info("Tweeter API stopped")


app = FastAPI(
    title="Tweeter API",
    description="Accounts, session-cookie login and short text posts",
    version="1.0.0",
    lifespan=lifespan
)

# Session cookies are sent cross-origin only with allow_credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ActionError)
async def action_error_handler(request: Request, exc: ActionError):
    """Every rejected or failed action answers with the result body"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_result())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Path and query parameter errors use the same shape as form errors"""
    error = ValidationError(flatten_errors(exc.errors(), skip=("body", "query", "path")))
    return JSONResponse(status_code=error.status_code, content=error.to_result())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Database failures outside an action's own error handling"""
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    error = ServerError("Database error occurred. Please try again later.")
    return JSONResponse(status_code=error.status_code, content=error.to_result())


# All routes are prefixed with /api
app.include_router(auth.router, prefix="/api")
app.include_router(tweets.router, prefix="/api")
app.include_router(users.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {"message": "Tweeter API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint - used by monitoring/deployment tools"""
    return {"status": "healthy"}
