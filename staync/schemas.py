"""Request models. Field names are snake_case; bodies use the camelCase aliases."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from staync.db.models.engagement import MAX_COLLECTION_NAME
from staync.db.models.message import MAX_MESSAGE_LENGTH
from staync.db.models.tweet import MAX_TWEET_LENGTH

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Visibility = Literal["PUBLIC", "FOLLOWERS", "PRIVATE"]
PlanStatus = Literal["PLANNING", "ONGOING", "COMPLETED"]
ItemStatus = Literal["TODO", "IN_PROGRESS", "DONE"]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _lenient_json(value: Any, expected: type) -> Any:
    """Decode JSON sent as a form string. Malformed input is logged and dropped."""
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Ignoring malformed JSON field: %.100s", value)
            return None
    if value is not None and not isinstance(value, expected):
        logger.warning("Ignoring JSON field of unexpected type %s", type(value).__name__)
        return None
    return value


def _as_list(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                return json.loads(stripped)
            except ValueError:
                return value
        return [stripped] if stripped else []
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class LocationIn(ApiModel):
    name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    country: str | None = None
    city: str | None = None


class MediaIn(ApiModel):
    url: str
    type: str = "IMAGE"
    thumbnail_url: str | None = None
    public_id: str | None = None
    alt_text: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalise_type(cls, value: Any) -> str:
        return "VIDEO" if str(value or "").lower() == "video" else "IMAGE"


class TweetRef(ApiModel):
    tweet_id: UUID | None = None

    @field_validator("tweet_id", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TweetCreate(ApiModel):
    content: str = Field(default="", max_length=MAX_TWEET_LENGTH)
    visibility: Visibility = "PUBLIC"
    location: LocationIn | None = None
    travel_date: datetime | None = None
    parent_id: UUID | None = None
    media: list[MediaIn] = []
    tags: list[str] = []
    travel_plan_id: UUID | None = None
    ai_image: str | None = None

    @field_validator("visibility", mode="before")
    @classmethod
    def default_visibility(cls, value: Any) -> Any:
        return _blank_to_none(value) or "PUBLIC"

    @field_validator("travel_date", "parent_id", "travel_plan_id", "ai_image", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("location", mode="before")
    @classmethod
    def decode_location(cls, value: Any) -> Any:
        return _lenient_json(value, dict)

    @field_validator("media", "tags", mode="before")
    @classmethod
    def decode_lists(cls, value: Any) -> Any:
        return _lenient_json(value, list) or []


class TweetUpdate(ApiModel):
    tweet_id: UUID | None = None
    content: str | None = Field(default=None, max_length=MAX_TWEET_LENGTH)
    deleted_media_ids: list[UUID] = []
    new_media: list[MediaIn] = []
    tags: list[str] | None = None
    location: LocationIn | None = None
    travel_date: datetime | None = None
    visibility: Visibility | None = None
    travel_plan_id: UUID | None = None

    @field_validator("tweet_id", "travel_date", "visibility", "travel_plan_id", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("location", mode="before")
    @classmethod
    def decode_location(cls, value: Any) -> Any:
        return _lenient_json(value, dict)

    @field_validator("deleted_media_ids", "new_media", mode="before")
    @classmethod
    def decode_lists(cls, value: Any) -> Any:
        return _lenient_json(value, list) or []

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, value: Any) -> Any:
        return _lenient_json(value, list)


class BookmarkIn(ApiModel):
    tweet_id: UUID | None = None
    collection_id: str | None = None

    @field_validator("tweet_id", "collection_id", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class CollectionAction(ApiModel):
    action: Literal["create", "delete", "update-bookmark"] = Field(alias="_action")
    name: str | None = None
    id: UUID | None = None
    tweet_id: UUID | None = None
    collection_id: str | None = None

    @field_validator("id", "tweet_id", "collection_id", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not 1 <= len(value) <= MAX_COLLECTION_NAME:
            raise ValueError(f"Collection name must be 1 to {MAX_COLLECTION_NAME} characters")
        return value


class FollowIn(ApiModel):
    target_user_id: UUID | None = None
    intent: Literal["toggle", "accept", "reject"] = "toggle"

    @field_validator("target_user_id", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("intent", mode="before")
    @classmethod
    def default_intent(cls, value: Any) -> Any:
        return _blank_to_none(value) or "toggle"


class ProfileUpdate(ApiModel):
    name: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=160)
    image: str | None = None
    cover_image: str | None = None
    is_private: bool | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("Name cannot be empty")
        return value.strip() if value is not None else None


class NotificationAction(ApiModel):
    id: UUID | None = None
    type: str | None = None

    @field_validator("id", "type", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ConversationCreate(ApiModel):
    user_ids: list[UUID] = []
    group_name: str | None = Field(default=None, max_length=100)

    @field_validator("user_ids", mode="before")
    @classmethod
    def coerce_list(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("group_name", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TypingIn(ApiModel):
    is_typing: bool = True


class MessageCreate(ApiModel):
    conversation_id: UUID
    content: str = Field(default="", max_length=MAX_MESSAGE_LENGTH)
    media_url: str | None = None
    media_type: Literal["IMAGE", "VIDEO"] | None = None

    @field_validator("media_url", "media_type", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.upper() if isinstance(value, str) and value.lower() in ("image", "video") else value


class TravelPlanCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: PlanStatus = "PLANNING"

    @field_validator("description", "start_date", "end_date", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return _blank_to_none(value) or "PLANNING"

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class TravelPlanUpdate(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: PlanStatus | None = None

    @field_validator("start_date", "end_date", "status", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TravelPlanItemCreate(ApiModel):
    travel_plan_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    location_name: str | None = None
    date: datetime | None = None
    time: str | None = None
    status: ItemStatus = "TODO"

    @field_validator("description", "location_name", "date", "time", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return _blank_to_none(value) or "TODO"


class TravelPlanItemUpdate(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    location_name: str | None = None
    date: datetime | None = None
    time: str | None = None
    order: int | None = None
    status: ItemStatus | None = None

    @field_validator("date", "status", "order", mode="before")
    @classmethod
    def blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TravelLogRequest(ApiModel):
    image: str | None = None
    voice_text: str | None = None
    style: str = "emotional"
    location: str = ""


class SignupIn(ApiModel):
    email: str
    password: str
    name: str | None = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


class LoginIn(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class DummyLoginIn(ApiModel):
    email: str
    name: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value
