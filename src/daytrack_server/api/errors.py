"""Exception handlers mapping domain, request and storage errors to JSON responses."""

from typing import Any

import structlog
from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR
from sqlalchemy.exc import SQLAlchemyError

from daytrack_server.core.exceptions import DaytrackError

logger = structlog.get_logger()


def domain_error_handler(request: Request[Any, Any, Any], exc: DaytrackError) -> Response[Any]:
    """Render a domain error with its status code and payload."""
    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return Response(content=exc.to_payload(), status_code=exc.status_code)


def _framework_detail(item: Any) -> dict[str, str]:
    # Litestar reports {"message", "key", "source"}; body-level errors carry no key
    if not isinstance(item, dict):
        return {"field": "body", "message": str(item)}
    return {"field": str(item.get("key") or "body"), "message": str(item.get("message", ""))}


def bad_request_handler(request: Request[Any, Any, Any], exc: HTTPException) -> Response[Any]:
    """Render 400s raised by the framework (malformed JSON, bad query params).

    Uses the same body shape as the domain ValidationError.
    """
    if isinstance(exc.extra, list) and exc.extra:
        details = [_framework_detail(item) for item in exc.extra]
    else:
        details = [{"field": "body", "message": exc.detail}]

    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return Response(
        content={
            "error": exc.detail,
            "fields": list(dict.fromkeys(d["field"] for d in details)),
            "details": details,
        },
        status_code=exc.status_code,
    )


def storage_error_handler(request: Request[Any, Any, Any], exc: SQLAlchemyError) -> Response[Any]:
    """Surface storage failures as a generic error without retrying."""
    logger.error(
        "Storage failure",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return Response(
        content={"error": "Storage failure"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


# Integer keys match HTTPExceptions by status code
exception_handlers: dict[int | type[Exception], Any] = {
    DaytrackError: domain_error_handler,
    HTTP_400_BAD_REQUEST: bad_request_handler,
    SQLAlchemyError: storage_error_handler,
}
