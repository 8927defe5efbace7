"""Direct-message conversations.

A conversation starts as a message request. It becomes accepted when the
recipient accepts it explicitly or replies to somebody else's message.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, func, not_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.message import DirectMessage, DMConversation, DMParticipant
from staync.lib.hooks import AFTER_MESSAGE_SENT, hooks

TAB_ALL = "all"
TAB_REQUESTS = "requests"

MESSAGE_PAGE_SIZE = 50


@dataclass
class ConversationSummary:
    conversation: DMConversation
    last_message: DirectMessage | None
    unread_count: int


def _visible_to(user_id: UUID):
    """Messages not deleted on ``user_id``'s side."""
    return not_(
        or_(
            and_(DirectMessage.sender_id == user_id, DirectMessage.deleted_by_sender.is_(True)),
            and_(DirectMessage.sender_id != user_id, DirectMessage.deleted_by_receiver.is_(True)),
        )
    )


def active_user_ids(conversation: DMConversation) -> set[UUID]:
    return {p.user_id for p in conversation.participants if p.is_active}


async def get_conversation(db_session: AsyncSession, conversation_id: UUID) -> DMConversation | None:
    result = await db_session.execute(
        select(DMConversation)
        .where(DMConversation.id == conversation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_active_participant(
    db_session: AsyncSession, conversation_id: UUID, user_id: UUID
) -> DMParticipant | None:
    result = await db_session.execute(
        select(DMParticipant).where(
            and_(
                DMParticipant.conversation_id == conversation_id,
                DMParticipant.user_id == user_id,
                DMParticipant.left_at.is_(None),
            )
        )
    )
    return result.scalar_one_or_none()


async def get_active_conversation_ids(db_session: AsyncSession, user_id: UUID) -> list[UUID]:
    result = await db_session.execute(
        select(DMParticipant.conversation_id).where(
            and_(DMParticipant.user_id == user_id, DMParticipant.left_at.is_(None))
        )
    )
    return list(result.scalars().all())


async def _last_message(db_session: AsyncSession, conversation_id: UUID, user_id: UUID) -> DirectMessage | None:
    result = await db_session.execute(
        select(DirectMessage)
        .where(and_(DirectMessage.conversation_id == conversation_id, _visible_to(user_id)))
        .order_by(DirectMessage.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _unread_counts(db_session: AsyncSession, conversation_ids: list[UUID], user_id: UUID) -> dict[UUID, int]:
    if not conversation_ids:
        return {}
    result = await db_session.execute(
        select(DirectMessage.conversation_id, func.count())
        .where(
            and_(
                DirectMessage.conversation_id.in_(conversation_ids),
                DirectMessage.sender_id != user_id,
                DirectMessage.is_read.is_(False),
                _visible_to(user_id),
            )
        )
        .group_by(DirectMessage.conversation_id)
    )
    return {conversation_id: count for conversation_id, count in result.all()}


def _in_tab(summary: ConversationSummary, user_id: UUID, tab: str) -> bool:
    last = summary.last_message
    is_request = not summary.conversation.is_accepted and last is not None and last.sender_id != user_id
    return is_request if tab == TAB_REQUESTS else not is_request


async def list_conversations(db_session: AsyncSession, user_id: UUID, tab: str = TAB_ALL) -> list[ConversationSummary]:
    """The user's active conversations, most recently active first.

    ``requests`` holds unaccepted threads whose last message came from
    somebody else; ``all`` holds everything else.
    """
    result = await db_session.execute(
        select(DMConversation)
        .join(DMParticipant, DMParticipant.conversation_id == DMConversation.id)
        .where(and_(DMParticipant.user_id == user_id, DMParticipant.left_at.is_(None)))
        .order_by(DMConversation.last_message_at.desc().nulls_last(), DMConversation.created_at.desc())
    )
    conversations = list(result.scalars().all())
    unread = await _unread_counts(db_session, [c.id for c in conversations], user_id)

    summaries = []
    for conversation in conversations:
        summary = ConversationSummary(
            conversation=conversation,
            last_message=await _last_message(db_session, conversation.id, user_id),
            unread_count=unread.get(conversation.id, 0),
        )
        if _in_tab(summary, user_id, tab):
            summaries.append(summary)
    return summaries


async def find_direct_conversation(db_session: AsyncSession, user_id: UUID, other_id: UUID) -> DMConversation | None:
    """An existing one-to-one conversation whose active participants are exactly the two users."""
    result = await db_session.execute(
        select(DMConversation)
        .join(DMParticipant, DMParticipant.conversation_id == DMConversation.id)
        .where(
            and_(
                DMConversation.is_group.is_(False),
                DMParticipant.user_id == user_id,
                DMParticipant.left_at.is_(None),
            )
        )
    )
    for conversation in result.scalars().all():
        if active_user_ids(conversation) == {user_id, other_id}:
            return conversation
    return None


async def get_or_create_conversation(
    db_session: AsyncSession,
    creator_id: UUID,
    user_ids: list[UUID],
    group_name: str | None = None,
) -> tuple[DMConversation, bool]:
    """Open a conversation with ``user_ids``. Returns ``(conversation, created)``.

    ``user_ids`` must already exclude the creator and be de-duplicated.
    """
    is_group = len(user_ids) > 1 or bool(group_name)

    if not is_group:
        existing = await find_direct_conversation(db_session, creator_id, user_ids[0])
        if existing is not None:
            return existing, False

    conversation = DMConversation(is_group=is_group, group_name=group_name, is_accepted=False)
    conversation.participants = [
        DMParticipant(user_id=creator_id, is_admin=is_group),
        *(DMParticipant(user_id=user_id) for user_id in user_ids),
    ]
    db_session.add(conversation)
    await db_session.commit()

    return await get_conversation(db_session, conversation.id), True


async def list_messages(
    db_session: AsyncSession,
    conversation_id: UUID,
    user_id: UUID,
    cursor: datetime | None = None,
    limit: int = MESSAGE_PAGE_SIZE,
) -> tuple[list[DirectMessage], datetime | None]:
    """A page of messages older than ``cursor``, oldest first, plus the next cursor.

    A cursor without an offset is read as UTC.
    """
    stmt = select(DirectMessage).where(
        and_(DirectMessage.conversation_id == conversation_id, _visible_to(user_id))
    )
    if cursor is not None:
        if cursor.tzinfo is None:
            cursor = cursor.replace(tzinfo=UTC)
        stmt = stmt.where(DirectMessage.created_at < cursor)
    result = await db_session.execute(stmt.order_by(DirectMessage.created_at.desc()).limit(limit + 1))
    messages = list(result.scalars().all())

    has_more = len(messages) > limit
    messages = messages[:limit]
    messages.reverse()
    next_cursor = messages[0].created_at if has_more and messages else None
    return messages, next_cursor


async def accept_conversation(db_session: AsyncSession, conversation: DMConversation) -> bool:
    """Mark the conversation accepted. Returns False when it already was."""
    if conversation.is_accepted:
        return False
    conversation.is_accepted = True
    await db_session.commit()
    return True


async def mark_read(db_session: AsyncSession, conversation_id: UUID, user_id: UUID) -> list[UUID]:
    """Mark other participants' unread messages read. Returns the affected ids."""
    result = await db_session.execute(
        select(DirectMessage.id).where(
            and_(
                DirectMessage.conversation_id == conversation_id,
                DirectMessage.sender_id != user_id,
                DirectMessage.is_read.is_(False),
            )
        )
    )
    message_ids = list(result.scalars().all())
    if not message_ids:
        return []

    await db_session.execute(
        update(DirectMessage).where(DirectMessage.id.in_(message_ids)).values(is_read=True)
    )
    await db_session.commit()
    return message_ids


async def _has_message_from_other(db_session: AsyncSession, conversation_id: UUID, user_id: UUID) -> bool:
    result = await db_session.execute(
        select(DirectMessage.id)
        .where(and_(DirectMessage.conversation_id == conversation_id, DirectMessage.sender_id != user_id))
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def send_message(
    db_session: AsyncSession,
    conversation: DMConversation,
    sender_id: UUID,
    content: str,
    media_url: str | None = None,
    media_type: str | None = None,
) -> tuple[DirectMessage, bool]:
    """Store a message. Returns ``(message, accepted_now)``.

    Replying into a request that already holds somebody else's message
    accepts it.
    """
    accepted_now = False
    if not conversation.is_accepted and await _has_message_from_other(db_session, conversation.id, sender_id):
        conversation.is_accepted = True
        accepted_now = True

    message = DirectMessage(
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=content,
        media_url=media_url,
        media_type=media_type,
    )
    db_session.add(message)
    conversation.last_message_at = datetime.now(UTC)
    await db_session.commit()

    result = await db_session.execute(
        select(DirectMessage).where(DirectMessage.id == message.id).execution_options(populate_existing=True)
    )
    message = result.scalar_one()

    await hooks.do_action(AFTER_MESSAGE_SENT, message)
    return message, accepted_now
