"""Relays that carry realtime events between worker processes.

Every worker keeps its own SSE listeners. A relay backend republishes each
locally triggered event so the other workers can push it to theirs.
``InMemoryBackend`` relays nothing and suits a single worker;
``RedisBackend`` uses Redis pub/sub.
"""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from staync.config import Settings

logger = logging.getLogger(__name__)

RemoteHandler = Callable[[dict], Awaitable[None]]


def load_backend(spec: str) -> type:
    """Resolve ``package.module:ClassName`` to the class it names."""
    module_path, sep, class_name = spec.partition(":")
    if not sep or not module_path or not class_name or ":" in class_name:
        raise ValueError(f"Realtime backend {spec!r} must look like 'package.module:ClassName'")
    return getattr(importlib.import_module(module_path), class_name)


@runtime_checkable
class RealtimeBackend(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...
    async def publish(self, message: dict) -> None: ...
    def on_remote_message(self, callback: RemoteHandler) -> None: ...


class InMemoryBackend:
    """Single-process relay: publishing is a no-op."""

    def __init__(self, **_: Any) -> None:
        self.handler: RemoteHandler | None = None

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def publish(self, message: dict) -> None:
        return None

    def on_remote_message(self, callback: RemoteHandler) -> None:
        self.handler = callback


class RedisBackend:
    """Redis pub/sub relay.

    All workers share the ``<prefix>:realtime`` channel. Payloads are the
    JSON encoded relay messages; undecodable payloads are logged and dropped.
    """

    def __init__(self, *, settings: Settings, **_: Any) -> None:
        if not settings.redis.url:
            raise ValueError("RedisBackend needs redis.url in the configuration")
        self.url = settings.redis.url
        self.channel = settings.redis.make_key("realtime")
        self.handler: RemoteHandler | None = None
        self._client: Any = None
        self._pubsub: Any = None
        self._listener: asyncio.Task | None = None

    def on_remote_message(self, callback: RemoteHandler) -> None:
        self.handler = callback

    async def start(self) -> None:
        from redis import asyncio as aioredis

        self._client = aioredis.from_url(self.url)
        self._pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(self.channel)
        self._listener = asyncio.create_task(self._listen(), name="staync-realtime-relay")
        logger.info("Realtime relay subscribed to %s", self.channel)

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def publish(self, message: dict) -> None:
        if self._client is None:
            return
        await self._client.publish(self.channel, json.dumps(message))

    async def _deliver(self, payload: bytes | str) -> None:
        try:
            message = json.loads(payload)
        except ValueError:
            logger.warning("Dropping undecodable realtime relay payload")
            return
        if self.handler is not None:
            await self.handler(message)

    async def _listen(self) -> None:
        while True:
            try:
                async for item in self._pubsub.listen():
                    if item.get("type") == "message":
                        await self._deliver(item["data"])
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("Realtime relay connection lost; retrying", exc_info=True)
                await asyncio.sleep(1)
