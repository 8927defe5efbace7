from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staync.db.base import Base

MAX_MESSAGE_LENGTH = 10000


class DMConversation(Base):
    """A direct-message thread.

    New threads are message requests (``is_accepted`` false) until a
    participant replies to somebody else's message.
    """

    __tablename__ = "dm_conversations"

    is_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    group_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    is_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    participants: Mapped[list["DMParticipant"]] = relationship(
        "DMParticipant", back_populates="conversation", cascade="all, delete-orphan", lazy="selectin"
    )


class DMParticipant(Base):
    __tablename__ = "dm_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_dm_participants_conversation_user"),
    )

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("dm_conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    left_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    conversation: Mapped[DMConversation] = relationship("DMConversation", back_populates="participants")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def is_active(self) -> bool:
        return self.left_at is None


class DirectMessage(Base):
    __tablename__ = "direct_messages"
    __table_args__ = (
        Index("ix_direct_messages_conversation_created", "conversation_id", "created_at"),
    )

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("dm_conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_by_sender: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_by_receiver: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    media_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(10), nullable=True)

    sender: Mapped["User"] = relationship("User", lazy="selectin")
