from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

MAX_COLLECTION_NAME = 20


class Like(Base):
    __tablename__ = "tweet_likes"
    __table_args__ = (
        UniqueConstraint("user_id", "tweet_id", name="uq_tweet_likes_user_tweet"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tweet_id: Mapped[UUID] = mapped_column(ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, index=True)


class Retweet(Base):
    __tablename__ = "retweets"
    __table_args__ = (
        UniqueConstraint("user_id", "tweet_id", name="uq_retweets_user_tweet"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tweet_id: Mapped[UUID] = mapped_column(ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, index=True)


class BookmarkCollection(Base):
    __tablename__ = "bookmark_collections"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(MAX_COLLECTION_NAME), nullable=False)


class Bookmark(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "tweet_id", name="uq_bookmarks_user_tweet"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tweet_id: Mapped[UUID] = mapped_column(ForeignKey("tweets.id", ondelete="CASCADE"), nullable=False, index=True)
    collection_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("bookmark_collections.id", ondelete="SET NULL"), nullable=True, index=True
    )
    collection: Mapped[BookmarkCollection | None] = relationship("BookmarkCollection", lazy="selectin")
