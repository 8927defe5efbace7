from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

if TYPE_CHECKING:
    from staync.db.models.user import User

FOLLOW_PENDING = "PENDING"
FOLLOW_ACCEPTED = "ACCEPTED"


class Follow(Base):
    """Directed follow edge. Edges into a private account start PENDING."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_follower_following"),
    )

    follower_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=FOLLOW_ACCEPTED, server_default=FOLLOW_ACCEPTED
    )

    follower: Mapped["User"] = relationship("User", foreign_keys=[follower_id], lazy="selectin")
    following: Mapped["User"] = relationship("User", foreign_keys=[following_id], lazy="selectin")

    @property
    def is_pending(self) -> bool:
        return self.status == FOLLOW_PENDING
