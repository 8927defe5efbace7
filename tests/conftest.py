"""Shared pytest fixtures."""

import os

# Settings() requires a secret; set it before anything imports staync.asgi
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import yaml
from litestar import Litestar, Request, post
from litestar.datastructures import State
from litestar.di import Provide
from litestar.testing import AsyncTestClient, TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from staync.app_factory import EXCEPTION_HANDLERS, create_session_config
from staync.auth.session_keys import SESSION_USER_ID
from staync.config import SessionConfig, clear_settings_cache, set_config_path
from staync.db.base import Base
from staync.db.models.tweet import Tweet
from staync.db.models.user import User
from staync.lib.hooks import hooks
from staync.lib.realtime import ChannelRegistry, realtime


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture
def use_config(temp_app_yaml):
    """Point get_settings() at a temporary YAML config for one test."""

    def _use(config: dict):
        set_config_path(temp_app_yaml(config))
        clear_settings_cache()

    yield _use
    set_config_path(None)
    clear_settings_cache()


@pytest.fixture
def clean_hooks():
    """Save and restore hooks state around a test."""
    original_filters = {k: list(v) for k, v in hooks._filters.items()}
    original_actions = {k: list(v) for k, v in hooks._actions.items()}
    hooks._filters.clear()
    hooks._actions.clear()
    yield hooks
    hooks._filters.clear()
    hooks._filters.update(original_filters)
    hooks._actions.clear()
    hooks._actions.update(original_actions)


@pytest.fixture
def clean_realtime():
    """Reset the global realtime registry around a test."""
    original_backend = realtime._backend
    original_registry = realtime._registry
    realtime._registry = ChannelRegistry()
    realtime._backend = None
    yield realtime
    realtime._registry = original_registry
    realtime._backend = original_backend


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with a session dict."""

    def _make(session=None, json_data=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        request.headers = {"content-type": "application/json"}
        if json_data is not None:
            request.json = AsyncMock(return_value=json_data)
        return request

    return _make


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def db_session():
    """AsyncSession double: coroutine methods are AsyncMocks, ``add`` stays sync."""
    return MagicMock(spec=AsyncSession)


def build_app(provide_db, *handlers, state=None) -> Litestar:
    """A Litestar app around ``handlers`` with a real cookie session.

    ``provide_db`` is called once per request for the ``db_session`` dependency.

    ``POST /_test/login {"userId": ...}`` logs the client in.
    """

    @post("/_test/login", status_code=200)
    async def login_as(request: Request, data: dict) -> dict:
        request.session[SESSION_USER_ID] = data["userId"]
        return {}

    return Litestar(
        route_handlers=[login_as, *handlers],
        dependencies={"db_session": Provide(provide_db, sync_to_thread=False)},
        middleware=[create_session_config("test-secret", SessionConfig()).middleware],
        exception_handlers=EXCEPTION_HANDLERS,
        state=State(state or {}),
    )


@pytest.fixture
def make_client(db_session):
    """TestClient factory on the mocked session."""

    def _make(*handlers, state=None) -> TestClient:
        return TestClient(build_app(lambda: db_session, *handlers, state=state))

    return _make


@pytest.fixture
def make_api(db):
    """AsyncTestClient factory on the real SQLite session, running in the test's loop.

    Each request starts from an empty identity map, as it would with a
    session per request.
    """

    def provide_db():
        db.expunge_all()
        return db

    def _make(*handlers, state=None) -> AsyncTestClient:
        return AsyncTestClient(build_app(provide_db, *handlers, state=state))

    return _make


@pytest.fixture
def login():
    """Log a ``make_client`` client in as ``user_id``."""

    def _login(client: TestClient, user_id) -> None:
        client.post("/_test/login", json={"userId": str(user_id)})

    return _login


@pytest.fixture
async def db():
    """A real AsyncSession on a fresh in-memory SQLite database."""
    import staync.db.models  # noqa: F401  register every table on Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_user(db):
    """Insert and commit a user."""
    counter = {"n": 0}

    async def _make(name=None, is_private=False, **fields):
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            name=name or f"User {counter['n']}",
            is_private=is_private,
            **fields,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_tweet(db):
    """Insert and commit a tweet."""

    async def _make(author, content="Hello from Jeju", **fields):
        tweet = Tweet(user_id=author.id, content=content, **fields)
        db.add(tweet)
        await db.commit()
        return tweet

    return _make


@pytest.fixture
def api_login():
    """Log a ``make_api`` client in as ``user_id``."""

    async def _login(client: AsyncTestClient, user_id) -> None:
        await client.post("/_test/login", json={"userId": str(user_id)})

    return _login
