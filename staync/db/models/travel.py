from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

PLAN_PLANNING = "PLANNING"
PLAN_ONGOING = "ONGOING"
PLAN_COMPLETED = "COMPLETED"
PLAN_STATUSES = (PLAN_PLANNING, PLAN_ONGOING, PLAN_COMPLETED)

ITEM_TODO = "TODO"
ITEM_IN_PROGRESS = "IN_PROGRESS"
ITEM_DONE = "DONE"
ITEM_STATUSES = (ITEM_TODO, ITEM_IN_PROGRESS, ITEM_DONE)


class TravelPlan(Base):
    __tablename__ = "travel_plans"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PLAN_PLANNING, server_default=PLAN_PLANNING)

    items: Mapped[list["TravelPlanItem"]] = relationship(
        "TravelPlanItem",
        back_populates="travel_plan",
        cascade="all, delete-orphan",
        order_by="TravelPlanItem.order",
        lazy="selectin",
    )


class TravelPlanItem(Base):
    __tablename__ = "travel_plan_items"

    travel_plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("travel_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    travel_plan: Mapped[TravelPlan] = relationship("TravelPlan", back_populates="items")

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ITEM_TODO, server_default=ITEM_TODO)


class TravelTag(Base):
    __tablename__ = "travel_tags"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class TweetTravelTag(Base):
    __tablename__ = "tweet_travel_tags"
    __table_args__ = (
        UniqueConstraint("tweet_id", "travel_tag_id", name="uq_tweet_travel_tags_tweet_tag"),
    )

    tweet_id: Mapped[UUID] = mapped_column(ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, index=True)
    travel_tag_id: Mapped[UUID] = mapped_column(
        ForeignKey("travel_tags.id", ondelete="CASCADE"), nullable=False, index=True
    )
