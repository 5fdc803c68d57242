from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class TweetAuthor(BaseModel):
    username: str

    model_config = ConfigDict(from_attributes=True)


class TweetResponse(BaseModel):
    id: int
    content: str
    created_at: datetime
    user_id: int
    user: TweetAuthor

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    @field_serializer('created_at')
    def serialize_created_at(self, value: datetime, _info):
        return value.isoformat() if value else None
