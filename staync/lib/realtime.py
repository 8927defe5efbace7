"""Channel-based realtime fan-out for direct messages and activity.

Events are ephemeral: they reach whichever SSE streams are listening at the
moment of publishing and are never stored. Channels are named
``conversation-<id>`` and ``user-<id>``. A pluggable backend relays events
between worker processes; events a process receives back from itself are
dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from staync.lib.hooks import REALTIME_BEFORE_TRIGGER, REALTIME_TRIGGERED, hooks

if TYPE_CHECKING:
    from staync.lib.realtime_backends import RealtimeBackend

logger = logging.getLogger(__name__)

EVENT_NEW_MESSAGE = "new-message"
EVENT_NEW_MESSAGE_NOTIFICATION = "new-message-notification"
EVENT_MESSAGE_READ = "message-read"
EVENT_TYPING = "typing"
EVENT_CONVERSATION_ACCEPTED = "conversation-accepted"
EVENT_CONVERSATION_ACCEPTED_NOTIFICATION = "conversation-accepted-notification"
EVENT_NEW_CONVERSATION = "new-conversation"
EVENT_NOTIFICATION = "notification"


def conversation_channel(conversation_id: UUID | str) -> str:
    return f"conversation-{conversation_id}"


def user_channel(user_id: UUID | str) -> str:
    return f"user-{user_id}"


@dataclass
class RealtimeEvent:
    channel: str
    event: str
    data: dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "channel": self.channel,
            "event": self.event,
            "data": self.data,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RealtimeEvent:
        return cls(
            channel=raw["channel"],
            event=raw["event"],
            data=raw.get("data") or {},
            id=UUID(raw["id"]),
            created_at=raw.get("created_at", time.time()),
        )


class ChannelRegistry:
    """Local listener queues per channel. Synchronous, single event loop."""

    def __init__(self) -> None:
        self._listeners: dict[str, set[asyncio.Queue]] = {}

    def add_listener(self, channel: str, queue: asyncio.Queue) -> None:
        self._listeners.setdefault(channel, set()).add(queue)

    def remove_listener(self, channel: str, queue: asyncio.Queue) -> None:
        listeners = self._listeners.get(channel)
        if listeners:
            listeners.discard(queue)
            if not listeners:
                del self._listeners[channel]

    def has_listeners(self, channel: str) -> bool:
        return bool(self._listeners.get(channel))

    def push(self, event: RealtimeEvent) -> int:
        """Queue ``event`` for every listener on its channel. Returns the listener count."""
        listeners = self._listeners.get(event.channel, ())
        for q in listeners:
            q.put_nowait(event)
        return len(listeners)


class RealtimeService:
    def __init__(self) -> None:
        self._registry = ChannelRegistry()
        self._backend: RealtimeBackend | None = None
        self._publisher_id: str = str(uuid4())

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    def set_backend(self, backend: RealtimeBackend) -> None:
        self._backend = backend
        backend.on_remote_message(self._handle_remote)

    def _get_backend(self) -> RealtimeBackend:
        if self._backend is None:
            from staync.lib.realtime_backends import InMemoryBackend

            self._backend = InMemoryBackend()
            self._backend.on_remote_message(self._handle_remote)
        return self._backend

    async def trigger(self, channel: str, event: str, data: dict[str, Any]) -> RealtimeEvent | None:
        """Publish ``event`` on ``channel`` locally and to other workers.

        A ``REALTIME_BEFORE_TRIGGER`` filter returning None cancels the event.
        """
        data = await hooks.apply_filters(REALTIME_BEFORE_TRIGGER, data, channel, event)
        if data is None:
            return None

        message = RealtimeEvent(channel=channel, event=event, data=data)
        self._registry.push(message)
        await self._get_backend().publish({"pid": self._publisher_id, "e": message.to_dict()})

        await hooks.do_action(REALTIME_TRIGGERED, message)
        return message

    def register_connection(self, channels: Iterable[str]) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue()
        for channel in channels:
            self._registry.add_listener(channel, q)
        return q

    def listen(self, channel: str, q: asyncio.Queue) -> None:
        """Attach an existing connection queue to one more channel."""
        self._registry.add_listener(channel, q)

    def unregister_connection(self, channels: Iterable[str], q: asyncio.Queue) -> None:
        for channel in channels:
            self._registry.remove_listener(channel, q)

    async def _handle_remote(self, message: dict) -> None:
        if message.get("pid") == self._publisher_id:
            return
        raw = message.get("e")
        if not raw:
            return
        self._registry.push(RealtimeEvent.from_dict(raw))


realtime = RealtimeService()


async def safe_trigger(channel: str, event: str, data: dict[str, Any]) -> bool:
    """Trigger an event, logging instead of raising on failure.

    Returns whether the event went out. Request handlers use this so a
    realtime outage never changes their response.
    """
    try:
        await realtime.trigger(channel, event, data)
    except Exception:
        logger.warning("Realtime trigger %s on %s failed", event, channel, exc_info=True)
        return False
    return True
