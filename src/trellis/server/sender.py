"""ASGI response sending. Translates a ResponseWriter into ASGI messages."""

import logging

from trellis._internal.asgi import Send
from trellis.http.response import ResponseWriter

logger = logging.getLogger("trellis.server")


def _body_allowed(status: int, method: str) -> bool:
    """Whether a response with *status* to *method* may carry a body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    if 100 <= status < 200 or status in {204, 304}:
        return False
    return method != "HEAD"


async def send_response(writer: ResponseWriter, send: Send, *, method: str = "GET") -> None:
    """Flush *writer* to ASGI as one start message and one body message."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in writer.headers
        if name.lower() != "content-length"
    ]

    body = writer.body if _body_allowed(writer.status_code, method) else b""
    if writer.status_code not in {204, 304} and not 100 <= writer.status_code < 200:
        raw_headers.append((b"content-length", str(len(writer.body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": writer.status_code,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
