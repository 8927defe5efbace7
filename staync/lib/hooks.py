"""Extension points around the social write paths.

An *action* notifies callbacks that something happened (a tweet was liked,
a message was sent). A *filter* passes a value through callbacks that may
replace it; the realtime layer filters every event payload before it is
published, and a filter returning None cancels the event.

Callbacks may be plain functions or coroutines. Lower priorities run first;
equal priorities run in registration order.

    from staync.lib.hooks import AFTER_TWEET_LIKE, action

    @action(AFTER_TWEET_LIKE)
    async def count_like(user_id, tweet_id):
        ...
"""

import inspect
import logging
from bisect import insort
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count
from typing import Any, TypeVar

from staync.lib.observability import span

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_PRIORITY = 10

_sequence = count()


@dataclass(order=True, frozen=True)
class HookHandler:
    priority: int
    seq: int
    callback: Callable[..., Any] = field(compare=False)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        result = self.callback(*args, **kwargs)
        return await result if inspect.isawaitable(result) else result


class HookRegistry:
    def __init__(self) -> None:
        self._actions: dict[str, list[HookHandler]] = defaultdict(list)
        self._filters: dict[str, list[HookHandler]] = defaultdict(list)

    @staticmethod
    def _add(table: dict[str, list[HookHandler]], name: str, callback: Callable, priority: int) -> None:
        insort(table[name], HookHandler(priority, next(_sequence), callback))

    @staticmethod
    def _discard(table: dict[str, list[HookHandler]], name: str, callback: Callable) -> bool:
        handlers = table.get(name) or []
        for handler in handlers:
            if handler.callback is callback:
                handlers.remove(handler)
                return True
        return False

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._actions, hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._filters, hook_name, callback, priority)

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        return self._discard(self._actions, hook_name, callback)

    def remove_filter(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        return self._discard(self._filters, hook_name, callback)

    def has_action(self, hook_name: str) -> bool:
        return bool(self._actions.get(hook_name))

    def has_filter(self, hook_name: str) -> bool:
        return bool(self._filters.get(hook_name))

    async def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """Call each action for ``hook_name``; an exception stops the chain and propagates."""
        with span("hook {hook_name}", hook_name=hook_name, kind="action"):
            for handler in tuple(self._actions.get(hook_name, ())):
                await handler(*args, **kwargs)

    async def apply_filters(self, hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
        """Thread ``value`` through the filters for ``hook_name``.

        Each filter gets the current value plus the extra arguments and
        returns the next value.
        """
        with span("hook {hook_name}", hook_name=hook_name, kind="filter"):
            for handler in tuple(self._filters.get(hook_name, ())):
                value = await handler(value, *args, **kwargs)
        return value

    def clear(self) -> None:
        self._actions.clear()
        self._filters.clear()


hooks = HookRegistry()


def action(hook_name: str, priority: int = DEFAULT_PRIORITY) -> Callable[[F], F]:
    """Register the decorated function as an action on the global registry."""

    def register(func: F) -> F:
        hooks.add_action(hook_name, func, priority)
        logger.debug("Registered action %s.%s on %s", func.__module__, func.__qualname__, hook_name)
        return func

    return register


def filter(hook_name: str, priority: int = DEFAULT_PRIORITY) -> Callable[[F], F]:
    """Register the decorated function as a filter on the global registry."""

    def register(func: F) -> F:
        hooks.add_filter(hook_name, func, priority)
        logger.debug("Registered filter %s.%s on %s", func.__module__, func.__qualname__, hook_name)
        return func

    return register


# Tweets: (tweet, is_new) for saves, (tweet) for deletes, (user_id, tweet_id) otherwise
AFTER_TWEET_SAVE = "after_tweet_save"
AFTER_TWEET_DELETE = "after_tweet_delete"
AFTER_TWEET_LIKE = "after_tweet_like"
AFTER_TWEET_UNLIKE = "after_tweet_unlike"
AFTER_TWEET_RETWEET = "after_tweet_retweet"
AFTER_TWEET_UNRETWEET = "after_tweet_unretweet"

# Social graph: (follower_id, following_id)
AFTER_FOLLOW = "after_follow"
AFTER_UNFOLLOW = "after_unfollow"
AFTER_FOLLOW_ACCEPTED = "after_follow_accepted"

AFTER_MESSAGE_SENT = "after_message_sent"
AFTER_USER_LOGIN = "after_user_login"

# Realtime: filter (payload, channel, event); action (event)
REALTIME_BEFORE_TRIGGER = "realtime_before_trigger"
REALTIME_TRIGGERED = "realtime_triggered"

LOGFIRE_CONFIGURED = "logfire_configured"
