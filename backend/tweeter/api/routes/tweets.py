import logging
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from tweeter.api.dependencies import load_session_user, require_session
from tweeter.core.database import get_db
from tweeter.core.errors import ValidationError, server_errors
from tweeter.core.session import SessionData
from tweeter.schemas.forms import TWEET_MAX_LENGTH, CreateTweetForm, parse_form
from tweeter.schemas.results import ActionResult, TweetResult
from tweeter.schemas.tweet import TweetResponse
from tweeter.services.tweet_service import tweet_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tweets", tags=["tweets"])


@router.post(
    "/",
    response_model=TweetResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_tweet(
    form: CreateTweetForm = Depends(parse_form(CreateTweetForm)),
    current: SessionData = Depends(require_session("tweet")),
    db: Session = Depends(get_db),
):
    """Post a tweet as the logged-in user"""
    with server_errors(db, "Failed to create tweet. Please try again."):
        user = load_session_user(db, current)
        tweet = tweet_service.create_tweet(db, user_id=user.id, content=form.content)

    return TweetResult(message="Tweet created successfully!", tweet_id=tweet.id, success=True)


@router.get("/", response_model=List[TweetResponse])
async def list_tweets(db: Session = Depends(get_db)):
    """All tweets, newest first"""
    with server_errors(db, "Failed to fetch tweets."):
        return tweet_service.list_tweets(db)


@router.get("/search", response_model=List[TweetResponse])
async def search_tweets(
    query: str = Query("", description="Text to look for in tweet content"),
    db: Session = Depends(get_db),
):
    """Tweets whose content contains ``query``, ignoring case"""
    if not query:
        raise ValidationError({"query": ["Query is required"]})
    if len(query) > TWEET_MAX_LENGTH:
        raise ValidationError({"query": [f"Query must be {TWEET_MAX_LENGTH} characters or less"]})

    with server_errors(db, "Failed to search tweets."):
        return tweet_service.search_tweets(db, query)


@router.delete("/{tweet_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_tweet(
    tweet_id: int,
    current: SessionData = Depends(require_session("delete a tweet")),
    db: Session = Depends(get_db),
):
    """Delete one of the logged-in user's own tweets"""
    with server_errors(db, "Failed to delete tweet. Please try again."):
        user = load_session_user(db, current)
        tweet_service.delete_owned_tweet(db, tweet_id=tweet_id, user_id=user.id)

    return ActionResult(message="Tweet deleted successfully!", success=True)
