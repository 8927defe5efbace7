"""Tests for the SSE event stream."""

import json

from staync.controllers.realtime import event_stream
from staync.lib.realtime import (
    EVENT_NEW_CONVERSATION,
    EVENT_NEW_MESSAGE,
    conversation_channel,
    realtime,
    user_channel,
)


async def test_sync_marker_comes_first(clean_realtime, clean_hooks):
    stream = event_stream({user_channel("u1")}, keepalive=5)

    first = await anext(stream)

    assert first.event == "sync"
    assert first.data == ""
    await stream.aclose()


async def test_delivers_channel_events(clean_realtime, clean_hooks):
    stream = event_stream({user_channel("u1"), conversation_channel("c1")}, keepalive=5)
    await anext(stream)

    published = await realtime.trigger(conversation_channel("c1"), EVENT_NEW_MESSAGE, {"content": "hi"})
    message = await anext(stream)

    assert message.event == EVENT_NEW_MESSAGE
    assert message.id == str(published.id)
    assert json.loads(message.data)["data"] == {"content": "hi"}
    await stream.aclose()


async def test_keepalive_comment_when_idle(clean_realtime, clean_hooks):
    stream = event_stream({user_channel("u1")}, keepalive=0.01)
    await anext(stream)

    message = await anext(stream)

    assert message.comment == "keepalive"
    await stream.aclose()


async def test_joins_new_conversations(clean_realtime, clean_hooks):
    channels = {user_channel("u1")}
    stream = event_stream(channels, keepalive=5)
    await anext(stream)

    await realtime.trigger(user_channel("u1"), EVENT_NEW_CONVERSATION, {"conversation": {"id": "c2"}})
    await anext(stream)
    await realtime.trigger(conversation_channel("c2"), EVENT_NEW_MESSAGE, {"content": "welcome"})
    message = await anext(stream)

    assert conversation_channel("c2") in channels
    assert json.loads(message.data)["data"] == {"content": "welcome"}
    await stream.aclose()


async def test_closing_unregisters_listeners(clean_realtime, clean_hooks):
    stream = event_stream({user_channel("u1")}, keepalive=5)
    await anext(stream)

    await stream.aclose()

    assert not realtime.registry.has_listeners(user_channel("u1"))
