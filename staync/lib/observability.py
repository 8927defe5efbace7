"""Optional Pydantic Logfire tracing.

Logfire ships in the ``staync[logfire]`` extra and is switched on with
``logfire.enabled``. Until ``configure()`` succeeds every helper here does
nothing, so the API, database, OpenAI and httpx call sites stay unaware of it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from staync.config import Settings

logger = logging.getLogger(__name__)

_logfire: Any = None
_configured = False


def is_available() -> bool:
    return _configured and _logfire is not None


def configure(settings: Settings) -> bool:
    """Configure logfire from ``settings.logfire``. Returns whether tracing is on."""
    global _logfire, _configured

    cfg = settings.logfire
    if not cfg.enabled:
        return False

    try:
        import logfire
    except ImportError:
        logger.warning("logfire.enabled is set but logfire is not installed; pip install 'staync[logfire]'")
        return False

    options: dict[str, Any] = {"service_name": cfg.service_name, "send_to_logfire": "if-token-present"}
    if cfg.environment:
        options["environment"] = cfg.environment
    if cfg.sample_rate < 1.0:
        options["trace_sample_rate"] = cfg.sample_rate
    if cfg.console:
        options["console"] = logfire.ConsoleOptions()
    logfire.configure(**options)

    _logfire, _configured = logfire, True
    return True


def instrument_app(app):
    """Wrap the ASGI app in logfire's request spans when tracing is on."""
    return _logfire.instrument_asgi(app) if is_available() else app


def instrument_sqlalchemy(engine) -> None:
    if is_available():
        _logfire.instrument_sqlalchemy(engine=engine)


def instrument_httpx() -> None:
    # OAuth token exchanges and profile lookups
    if is_available():
        _logfire.instrument_httpx()


def instrument_openai(client) -> None:
    if is_available():
        _logfire.instrument_openai(client)


@contextmanager
def span(name: str, **attributes: Any) -> Iterator[Any]:
    """A logfire span around the block, or nothing when tracing is off."""
    if not is_available():
        yield None
        return
    with _logfire.span(name, **attributes) as current:
        yield current


def exception(msg: str, **attributes: Any) -> bool:
    """Record the exception being handled on the current span.

    Returns False when tracing is off, so callers can fall back to logging.
    """
    if not is_available():
        return False
    _logfire.exception(msg, **attributes)
    return True
