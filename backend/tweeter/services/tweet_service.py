import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload
from tweeter.core.errors import AuthorizationError
from tweeter.models.tweet import Tweet
from tweeter.models.user import User

logger = logging.getLogger(__name__)

# Missing tweets and other users' tweets get the same answer
DELETE_DENIED_MESSAGE = "Unauthorized or tweet not found"


class TweetService:
    """Queries and mutations on the tweets table"""

    @staticmethod
    def _timeline(db: Session) -> Query:
        # Newest first; id breaks ties between tweets created in the same second
        return (
            db.query(Tweet)
            .options(joinedload(Tweet.user))
            .order_by(Tweet.created_at.desc(), Tweet.id.desc())
        )

    @staticmethod
    def create_tweet(db: Session, user_id: int, content: str) -> Tweet:
        tweet = Tweet(content=content, user_id=user_id)
        db.add(tweet)
        db.commit()
        db.refresh(tweet)
        logger.info("Tweet %s created by user %s", tweet.id, user_id)
        return tweet

    @staticmethod
    def get_tweet(db: Session, tweet_id: int) -> Optional[Tweet]:
        return db.query(Tweet).filter(Tweet.id == tweet_id).first()

    @staticmethod
    def delete_owned_tweet(db: Session, tweet_id: int, user_id: int) -> None:
        """Delete a tweet if ``user_id`` owns it, otherwise leave it untouched"""
        tweet = TweetService.get_tweet(db, tweet_id)
        if tweet is None or tweet.user_id != user_id:
            logger.warning("User %s denied deleting tweet %s", user_id, tweet_id)
            raise AuthorizationError(
                DELETE_DENIED_MESSAGE, {"authorization": ["You cannot delete this tweet."]}
            )
        db.delete(tweet)
        db.commit()
        logger.info("Tweet %s deleted by user %s", tweet_id, user_id)

    @staticmethod
    def list_tweets(db: Session) -> List[Tweet]:
        return TweetService._timeline(db).all()

    @staticmethod
    def search_tweets(db: Session, query: str) -> List[Tweet]:
        """Case-insensitive substring search over tweet content"""
        return (
            TweetService._timeline(db)
            .filter(func.lower(Tweet.content).contains(query.lower(), autoescape=True))
            .all()
        )

    @staticmethod
    def list_by_user_id(db: Session, user_id: int) -> List[Tweet]:
        return TweetService._timeline(db).filter(Tweet.user_id == user_id).all()

    @staticmethod
    def list_by_username(db: Session, username: str) -> List[Tweet]:
        return (
            TweetService._timeline(db)
            .join(User, Tweet.user_id == User.id)
            .filter(User.username == username)
            .all()
        )


tweet_service = TweetService()
