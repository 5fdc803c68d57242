"""Result bodies returned by every action."""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ActionResult(BaseModel):
    """
    Uniform action result.

    ``errors`` maps a form field (or ``server`` / ``authorization``) to the
    messages shown next to it. Serialized with camelCase keys because the
    client forms read ``userId`` / ``tweetId``.
    """
    message: str
    success: bool = False
    errors: Optional[Dict[str, List[str]]] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountResult(ActionResult):
    """Result of create-account, login and SMS login"""
    user_id: Optional[int] = None


class TweetResult(ActionResult):
    tweet_id: Optional[int] = None


class SessionIdentity(BaseModel):
    user_id: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
