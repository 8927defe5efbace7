from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Float, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

if TYPE_CHECKING:
    from staync.db.models.travel import TravelPlan, TravelTag
    from staync.db.models.user import User

MAX_TWEET_LENGTH = 280

VISIBILITY_PUBLIC = "PUBLIC"
VISIBILITY_FOLLOWERS = "FOLLOWERS"
VISIBILITY_PRIVATE = "PRIVATE"
VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_FOLLOWERS, VISIBILITY_PRIVATE)

MEDIA_IMAGE = "IMAGE"
MEDIA_VIDEO = "VIDEO"


class Tweet(Base):
    __tablename__ = "tweets"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="selectin")

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Replies point at their parent
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tweets.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Soft delete
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    # Location
    location_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    travel_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VISIBILITY_PUBLIC, server_default=VISIBILITY_PUBLIC
    )

    travel_plan_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("travel_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )
    travel_plan: Mapped["TravelPlan | None"] = relationship("TravelPlan", lazy="selectin")

    media: Mapped[list["Media"]] = relationship(
        "Media",
        back_populates="tweet",
        cascade="all, delete-orphan",
        order_by="Media.order",
        lazy="selectin",
    )
    tags: Mapped[list["TravelTag"]] = relationship(
        "TravelTag", secondary="tweet_travel_tags", viewonly=True, lazy="selectin"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Media(Base):
    __tablename__ = "media"

    tweet_id: Mapped[UUID] = mapped_column(ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, index=True)
    tweet: Mapped[Tweet] = relationship("Tweet", back_populates="media")

    type: Mapped[str] = mapped_column(String(10), nullable=False, default=MEDIA_IMAGE)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    alt_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Storage key, used to remove the blob when the media row goes away
    public_id: Mapped[str | None] = mapped_column(String(512), nullable=True)


class TweetEmbedding(Base):
    """Float32 embedding of a tweet's text and tags."""

    __tablename__ = "tweet_embeddings"

    tweet_id: Mapped[UUID] = mapped_column(
        ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    vector: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    dimensions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    model: Mapped[str] = mapped_column(String(100), nullable=False, default="")
