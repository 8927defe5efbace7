"""Direct-message conversations and messages.

Realtime events are published after the database work has been committed;
a failed publish is logged and never changes the response.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, get, patch, post
from litestar.exceptions import NotFoundException, PermissionDeniedException, ValidationException
from litestar.params import Parameter
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.controllers.helpers import iso, message_dict, require_user_id, user_summary
from staync.db.models.message import DMConversation
from staync.db.services import message_service
from staync.db.services.user_service import get_user_by_id
from staync.forms import Form
from staync.lib.realtime import (
    EVENT_CONVERSATION_ACCEPTED,
    EVENT_CONVERSATION_ACCEPTED_NOTIFICATION,
    EVENT_MESSAGE_READ,
    EVENT_NEW_CONVERSATION,
    EVENT_NEW_MESSAGE,
    EVENT_NEW_MESSAGE_NOTIFICATION,
    EVENT_TYPING,
    conversation_channel,
    safe_trigger,
    user_channel,
)
from staync.schemas import ConversationCreate, MessageCreate, TypingIn


def conversation_dict(conversation: DMConversation, user_id: UUID) -> dict:
    others = [p.user for p in conversation.participants if p.is_active and p.user_id != user_id]
    return {
        "id": str(conversation.id),
        "isGroup": conversation.is_group,
        "groupName": conversation.group_name,
        "isAccepted": conversation.is_accepted,
        "lastMessageAt": iso(conversation.last_message_at),
        "createdAt": iso(conversation.created_at),
        "participants": [user_summary(u) for u in others],
    }


async def _participant_conversation(db_session: AsyncSession, conversation_id: UUID, user_id: UUID) -> DMConversation:
    conversation = await message_service.get_conversation(db_session, conversation_id)
    if conversation is None:
        raise NotFoundException("Conversation not found")
    if await message_service.get_active_participant(db_session, conversation_id, user_id) is None:
        raise PermissionDeniedException("Forbidden")
    return conversation


async def _notify_others(conversation: DMConversation, user_id: UUID, event: str, data: dict) -> None:
    for other_id in message_service.active_user_ids(conversation) - {user_id}:
        await safe_trigger(user_channel(other_id), event, data)


class ConversationController(Controller):
    path = "/api/messages/conversations"
    guards = [auth_guard]

    @get("/")
    async def list_conversations(self, request: Request, db_session: AsyncSession, tab: str = "all") -> dict:
        user_id = require_user_id(request)
        if tab not in (message_service.TAB_ALL, message_service.TAB_REQUESTS):
            raise ValidationException("tab must be 'all' or 'requests'")

        summaries = await message_service.list_conversations(db_session, user_id, tab)
        return {
            "conversations": [
                {
                    **conversation_dict(s.conversation, user_id),
                    "lastMessage": message_dict(s.last_message) if s.last_message else None,
                    "unreadCount": s.unread_count,
                }
                for s in summaries
            ]
        }

    @post("/", status_code=200)
    async def create_conversation(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(ConversationCreate, request).require()

        user_ids = list(dict.fromkeys(uid for uid in data.user_ids if uid != user_id))
        if not user_ids:
            raise ValidationException("At least one other user is required")
        for uid in user_ids:
            if await get_user_by_id(db_session, uid) is None:
                raise NotFoundException("User not found")

        conversation, created = await message_service.get_or_create_conversation(
            db_session, user_id, user_ids, data.group_name
        )
        payload = conversation_dict(conversation, user_id)
        if created:
            await _notify_others(conversation, user_id, EVENT_NEW_CONVERSATION, {"conversation": payload})

        return {"success": True, "conversation": payload, "created": created}

    @get("/{conversation_id:uuid}")
    async def list_messages(
        self,
        request: Request,
        db_session: AsyncSession,
        conversation_id: UUID,
        cursor: datetime | None = None,
        limit: Annotated[int, Parameter(ge=1, le=100)] = message_service.MESSAGE_PAGE_SIZE,
    ) -> dict:
        user_id = require_user_id(request)
        conversation = await _participant_conversation(db_session, conversation_id, user_id)

        messages, next_cursor = await message_service.list_messages(
            db_session, conversation_id, user_id, cursor=cursor, limit=limit
        )
        return {
            "conversation": conversation_dict(conversation, user_id),
            "messages": [message_dict(m) for m in messages],
            "nextCursor": iso(next_cursor),
        }

    @patch("/{conversation_id:uuid}")
    async def accept(self, request: Request, db_session: AsyncSession, conversation_id: UUID) -> dict:
        user_id = require_user_id(request)
        conversation = await _participant_conversation(db_session, conversation_id, user_id)

        await message_service.accept_conversation(db_session, conversation)

        data = {"conversationId": str(conversation.id), "acceptedBy": str(user_id)}
        await safe_trigger(conversation_channel(conversation.id), EVENT_CONVERSATION_ACCEPTED, data)
        await _notify_others(conversation, user_id, EVENT_CONVERSATION_ACCEPTED_NOTIFICATION, data)
        return {"success": True}

    @post("/{conversation_id:uuid}/read", status_code=200)
    async def mark_read(self, request: Request, db_session: AsyncSession, conversation_id: UUID) -> dict:
        user_id = require_user_id(request)
        await _participant_conversation(db_session, conversation_id, user_id)

        message_ids = await message_service.mark_read(db_session, conversation_id, user_id)
        if message_ids:
            await safe_trigger(
                conversation_channel(conversation_id),
                EVENT_MESSAGE_READ,
                {"messageIds": [str(mid) for mid in message_ids], "readBy": str(user_id)},
            )
        return {"success": True, "readCount": len(message_ids)}

    @post("/{conversation_id:uuid}/typing", status_code=200)
    async def typing(self, request: Request, db_session: AsyncSession, conversation_id: UUID) -> dict:
        user_id = require_user_id(request)
        await _participant_conversation(db_session, conversation_id, user_id)
        data = await Form(TypingIn, request).require()

        await safe_trigger(
            conversation_channel(conversation_id),
            EVENT_TYPING,
            {"conversationId": str(conversation_id), "userId": str(user_id), "isTyping": data.is_typing},
        )
        return {"success": True}


class MessageController(Controller):
    path = "/api/messages"
    guards = [auth_guard]

    @post("/", status_code=201)
    async def send(self, request: Request, db_session: AsyncSession) -> dict:
        user_id = require_user_id(request)
        data = await Form(MessageCreate, request).require()

        if not data.content.strip() and not data.media_url:
            raise ValidationException("Message content or media is required")

        conversation = await _participant_conversation(db_session, data.conversation_id, user_id)
        message, accepted_now = await message_service.send_message(
            db_session, conversation, user_id, data.content, data.media_url, data.media_type
        )

        payload = message_dict(message)
        channel = conversation_channel(conversation.id)
        await safe_trigger(channel, EVENT_NEW_MESSAGE, payload)
        await _notify_others(
            conversation,
            user_id,
            EVENT_NEW_MESSAGE_NOTIFICATION,
            {"conversationId": str(conversation.id), "message": payload},
        )
        if accepted_now:
            await safe_trigger(
                channel,
                EVENT_CONVERSATION_ACCEPTED,
                {"conversationId": str(conversation.id), "acceptedBy": str(user_id)},
            )

        return {"success": True, "message": payload}
