"""Server-Sent Events stream of realtime events for the logged-in user."""

import asyncio
import json
from collections.abc import AsyncGenerator

from litestar import Controller, Request, get
from litestar.response.sse import ServerSentEvent, ServerSentEventMessage
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import auth_guard
from staync.config import get_settings
from staync.controllers.helpers import require_user_id
from staync.db.services.message_service import get_active_conversation_ids
from staync.lib.realtime import EVENT_NEW_CONVERSATION, conversation_channel, realtime, user_channel


async def event_stream(channels: set[str], keepalive: float) -> AsyncGenerator[ServerSentEventMessage, None]:
    """Yield a ``sync`` marker, then every event published on ``channels``.

    Conversations created while the stream is open are joined when their
    ``new-conversation`` event arrives.
    """
    q = realtime.register_connection(channels)
    try:
        yield ServerSentEventMessage(data="", event="sync")

        while True:
            try:
                event = await asyncio.wait_for(q.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ServerSentEventMessage(comment="keepalive")
                continue

            if event.event == EVENT_NEW_CONVERSATION:
                conversation_id = (event.data.get("conversation") or {}).get("id")
                if conversation_id:
                    channel = conversation_channel(conversation_id)
                    if channel not in channels:
                        channels.add(channel)
                        realtime.listen(channel, q)

            yield ServerSentEventMessage(
                data=json.dumps(event.to_dict()),
                event=event.event,
                id=str(event.id),
            )
    finally:
        realtime.unregister_connection(channels, q)


class RealtimeController(Controller):
    path = "/api/realtime"
    guards = [auth_guard]

    @get("/stream")
    async def stream(self, request: Request, db_session: AsyncSession) -> ServerSentEvent:
        """Stream events from the user's channel and each active conversation."""
        user_id = require_user_id(request)
        channels = {user_channel(user_id)}
        channels.update(conversation_channel(cid) for cid in await get_active_conversation_ids(db_session, user_id))
        return ServerSentEvent(event_stream(channels, get_settings().realtime.keepalive_seconds))
