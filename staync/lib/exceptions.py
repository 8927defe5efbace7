import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException, ValidationException
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from staync.lib import observability

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An internal server error occurred."


def _detail(exc: HTTPException) -> str:
    if isinstance(exc, ValidationException) and exc.extra and isinstance(exc.extra, list):
        # Litestar's own body/param validation: surface the first message
        first = exc.extra[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
    return exc.detail if isinstance(exc.detail, str) else str(exc.detail)


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Render HTTP exceptions as ``{"success": false, "error": ...}``."""
    return Response(
        content={"success": False, "error": _detail(exc)},
        status_code=exc.status_code,
        media_type="application/json",
        headers=getattr(exc, "headers", None),
    )


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected exceptions and hide their details from the client."""
    method = request.method
    path = request.url.path
    if not observability.exception(
        "Unhandled exception on {method} {path}", method=method, path=path
    ):
        logger.exception("Unhandled exception on %s %s", method, path)

    return Response(
        content={"success": False, "error": GENERIC_ERROR},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json",
    )
