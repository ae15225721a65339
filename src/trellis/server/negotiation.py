"""Outcome normalization. Maps a handler's return value onto the response.

isinstance-based dispatch, no magic, fully predictable.
"""

import logging
from typing import Any

from trellis.http.response import ResponseWriter
from trellis.nodes import ResponseNode
from trellis.server.errors import INVALID_RESPONSE, NO_RESPONSE, write_server_error

logger = logging.getLogger("trellis.server")


def is_absent(value: Any) -> bool:
    """``None``, ``False``, zero, and ``""`` mean "no response"."""
    match value:
        case None | False | "":
            return True
        case bool():
            return False
        case int() | float():
            return value == 0
        case _:
            return False


def negotiate(value: Any, writer: ResponseWriter) -> None:
    """Write the outcome *value* into *writer*.

    Dispatch order:

    1. already sent        -> outcome ignored
    2. absent              -> 500 ``No response generated``
    3. ``ResponseNode``    -> headers, then the first of redirect, text,
                              html, json, status-only, 200 empty
    4. ``str``/number/bool -> 200, text/html
    5. ``bytes``           -> 200, application/octet-stream
    6. anything else       -> 500 ``Invalid response format``
    """
    if writer.headers_sent:
        if not is_absent(value):
            logger.debug("Response already sent; ignoring %s outcome", type(value).__name__)
        return

    if is_absent(value):
        write_server_error(writer, NO_RESPONSE)
        return

    match value:
        case ResponseNode():
            _write_response_node(value, writer)
        case str():
            writer.send(value)
        case bool() | int() | float():
            writer.send(str(value))
        case bytes():
            writer.send(value)
        case _:
            logger.debug("Unsupported outcome type %s", type(value).__name__)
            write_server_error(writer, INVALID_RESPONSE)


def _write_response_node(node: ResponseNode, writer: ResponseWriter) -> None:
    for name, value in (node.headers or {}).items():
        writer.set_header(name, value)

    status = node.status

    if node.redirect:
        code = status if isinstance(status, int) and not isinstance(status, bool) else 302
        writer.redirect(node.redirect, code)
        return

    if node.text is not None:
        if status:
            writer.status(status)
        writer.text(str(node.text))
        return

    if node.html is not None:
        if status:
            writer.status(status)
        writer.html(str(node.html))
        return

    if node.json is not None:
        if status:
            writer.status(status)
        writer.json(node.json)
        return

    if status:
        writer.status(status).end()
        return

    writer.status(200).end()
