"""Structured error responses written by the dispatcher.

Every error body is JSON with an ``error`` field. Exception text never
reaches the client.
"""

import logging

from trellis.errors import HTTPError
from trellis.http.request import Request
from trellis.http.response import ResponseWriter

logger = logging.getLogger("trellis.server")

NO_RESPONSE = "No response generated"
INVALID_RESPONSE = "Invalid response format"
INTERNAL_ERROR = "Internal server error"


def write_not_found(writer: ResponseWriter, request: Request) -> None:
    """404 for a path with no route and no matching wildcard."""
    writer.status(404).json(
        {
            "error": "Not Found",
            "message": f"Route {request.method} {request.url} not found",
            "path": request.url,
            "method": request.method,
        }
    )


def write_method_not_allowed(
    writer: ResponseWriter,
    request: Request,
    allowed: tuple[str, ...],
) -> None:
    """405 for a known path requested with an unregistered method."""
    logger.info(
        "405 %s %s (allowed: %s)",
        request.method,
        request.path,
        ", ".join(allowed),
    )
    writer.status(405).set_header("Allow", ", ".join(allowed)).json(
        {
            "error": "Method Not Allowed",
            "message": f"Method {request.method} is not allowed for path {request.path}",
            "path": request.path,
            "method": request.method,
        }
    )


def write_server_error(writer: ResponseWriter, message: str) -> None:
    """500 with *message*, unless the response is already committed."""
    if writer.headers_sent:
        return
    writer.status(500).json({"error": message})


def write_http_error(writer: ResponseWriter, exc: HTTPError) -> None:
    """Answer an ``HTTPError`` raised while reading the request or running a route."""
    logger.debug("%d %s", exc.status, exc.detail)
    if writer.headers_sent:
        return
    for name, value in exc.headers:
        writer.set_header(name, value)
    body = {"error": _reason(exc.status)}
    if exc.detail:
        body["message"] = exc.detail
    writer.status(exc.status).json(body)


def _reason(status: int) -> str:
    from http import HTTPStatus

    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"
