from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

if TYPE_CHECKING:
    from staync.db.models.tweet import Tweet
    from staync.db.models.user import User

NOTIFY_LIKE = "LIKE"
NOTIFY_REPLY = "REPLY"
NOTIFY_RETWEET = "RETWEET"
NOTIFY_FOLLOW = "FOLLOW"
NOTIFY_FOLLOW_REQUEST = "FOLLOW_REQUEST"
NOTIFY_FOLLOW_ACCEPTED = "FOLLOW_ACCEPTED"


class Notification(Base):
    """Activity addressed to ``recipient_id`` and caused by ``issuer_id``."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
    )

    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    issuer_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    tweet_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tweets.id", ondelete="CASCADE"), nullable=True, index=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    issuer: Mapped["User"] = relationship("User", foreign_keys=[issuer_id], lazy="selectin")
    tweet: Mapped["Tweet | None"] = relationship("Tweet", foreign_keys=[tweet_id], lazy="selectin")
