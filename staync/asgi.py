"""ASGI application factory.

``create_app()`` wires settings, database, sessions, storage, realtime and
the API controllers into a Litestar app. The module-level ``app`` is what
ASGI servers load (``staync.asgi:app``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from advanced_alchemy.config import EngineConfig
from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar
from litestar.config.compression import CompressionConfig
from litestar.types import ASGIApp

from staync.app_factory import EXCEPTION_HANDLERS, create_session_config
from staync.auth.providers import validate_no_dummy_auth_in_production
from staync.config import Settings, get_settings
from staync.controllers.ai import AIController
from staync.controllers.auth import AuthController
from staync.controllers.engagement import BookmarkController, LikeController, RetweetController
from staync.controllers.follows import FollowController
from staync.controllers.messages import ConversationController, MessageController
from staync.controllers.notifications import NotificationController
from staync.controllers.realtime import RealtimeController
from staync.controllers.tags import TagController
from staync.controllers.travel import TravelPlanController, TravelPlanItemController, TravelStatsController
from staync.controllers.tweets import TweetController
from staync.controllers.upload import UploadController
from staync.controllers.users import UserController
from staync.db.base import Base
from staync.lib import observability
from staync.lib.ai import CaptionClient
from staync.lib.hooks import LOGFIRE_CONFIGURED, hooks
from staync.lib.realtime import realtime
from staync.lib.realtime_backends import InMemoryBackend, load_backend
from staync.lib.storage import StorageManager
from staync.lib.uploads import request_body_limit
from staync.middleware.storage import StorageFilesMiddleware

logger = logging.getLogger(__name__)

ROUTE_HANDLERS = [
    AuthController,
    TweetController,
    LikeController,
    RetweetController,
    BookmarkController,
    FollowController,
    UserController,
    TagController,
    NotificationController,
    ConversationController,
    MessageController,
    RealtimeController,
    UploadController,
    AIController,
    TravelPlanController,
    TravelPlanItemController,
    TravelStatsController,
]


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_kwargs: dict[str, Any] = dict(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            pool_pre_ping=settings.db.pool_pre_ping,
            echo=settings.db.echo,
        )
        engine_config = EngineConfig(**engine_kwargs)

    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=False,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def create_realtime_backend(settings: Settings):
    if settings.realtime.backend:
        backend_cls = load_backend(settings.realtime.backend)
        return backend_cls(settings=settings)
    return InMemoryBackend()


def create_app() -> ASGIApp:
    """Create and configure the Litestar application.

    The returned ASGI app is the Litestar app wrapped in the middleware that
    serves locally stored uploads.
    """
    settings = get_settings()
    validate_no_dummy_auth_in_production(settings)

    observability.configure(settings)
    observability.instrument_httpx()

    db_config = create_db_config(settings)
    session_config = create_session_config(settings.secret_key, settings.session)
    storage_manager = StorageManager(settings.storage)
    caption_client = CaptionClient(settings.ai)
    backend = create_realtime_backend(settings)

    async def on_startup(_app: Litestar) -> None:
        observability.instrument_sqlalchemy(db_config.get_engine())
        await hooks.do_action(LOGFIRE_CONFIGURED)

        realtime.set_backend(backend)
        await backend.start()

        for store_cfg in settings.storage.stores.values():
            if store_cfg.backend == "local":
                Path(store_cfg.local_path).mkdir(parents=True, exist_ok=True)

        if not caption_client.enabled:
            logger.info("AI captioning disabled: no ai.api_key configured")

    async def on_shutdown(_app: Litestar) -> None:
        await backend.stop()
        await storage_manager.close()

    app = Litestar(
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        route_handlers=ROUTE_HANDLERS,
        plugins=[SQLAlchemyPlugin(config=db_config)],
        middleware=[session_config.middleware],
        compression_config=CompressionConfig(backend="gzip", exclude="/api/realtime/stream"),
        exception_handlers=EXCEPTION_HANDLERS,
        request_max_body_size=request_body_limit(settings.upload.max_bytes),
        debug=settings.debug,
    )
    app.state.storage_manager = storage_manager
    app.state.caption_client = caption_client

    return StorageFilesMiddleware(observability.instrument_app(app), storage_config=settings.storage)


app = create_app()
