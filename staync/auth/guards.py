from uuid import UUID

from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers.base import BaseRouteHandler

from staync.auth.session_keys import SESSION_USER_ID


def get_session_user_id(connection: ASGIConnection) -> UUID | None:
    """The logged-in user's id, or None for anonymous or malformed sessions."""
    raw = connection.session.get(SESSION_USER_ID) if "session" in connection.scope else None
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


async def auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    if get_session_user_id(connection) is None:
        raise NotAuthorizedException("Unauthorized")
