"""Buffered response writer.

Handlers and middleware receive a ``ResponseWriter`` as ``res``. Calls
record status, headers, and body in memory; the dispatcher flushes the
result to ASGI once the chain has finished. One send per request: a
second ``send``/``json``/``end`` raises ``ResponseAlreadySent``.
"""

import json as json_module
from typing import Any, Self
from urllib.parse import quote

from trellis.errors import ResponseAlreadySent

JSON_TYPE = "application/json; charset=utf-8"
TEXT_TYPE = "text/plain; charset=utf-8"
HTML_TYPE = "text/html; charset=utf-8"
BINARY_TYPE = "application/octet-stream"

# Reserved and already-escaped characters kept as-is in a Location URL
_URL_SAFE = ":/?#[]@!$&'()*+,;=%"


class ResponseWriter:
    """Mutable response builder for one request.

    Usage::

        def handler():
            res = get_context("res")
            res.status(201).set_header("X-Request-Id", rid).json({"ok": True})

    Methods that configure the response return ``self`` so calls chain.
    """

    __slots__ = ("_body", "_headers", "_sent", "_status")

    def __init__(self) -> None:
        self._status = 200
        # lower-cased name -> (name as given, value)
        self._headers: dict[str, tuple[str, str]] = {}
        self._body = b""
        self._sent = False

    # -- Inspection --

    @property
    def status_code(self) -> int:
        return self._status

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers.values())

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def headers_sent(self) -> bool:
        """True once a body (or an explicit end) has been committed."""
        return self._sent

    def get_header(self, name: str) -> str | None:
        entry = self._headers.get(name.lower())
        return entry[1] if entry is not None else None

    # -- Configuration --

    def status(self, code: int) -> Self:
        self._status = code
        return self

    def set_header(self, name: str, value: Any) -> Self:
        """Set a header, replacing any existing value (case-insensitive).

        Raises ``ValueError`` when the name or value cannot be sent as
        latin-1, the only encoding ASGI header bytes carry.
        """
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        value = str(value)
        try:
            name.encode("latin-1")
            value.encode("latin-1")
        except UnicodeEncodeError as exc:
            msg = f"Header {name!r} must be latin-1 encodable"
            raise ValueError(msg) from exc
        self._headers[name.lower()] = (name, value)
        return self

    def remove_header(self, name: str) -> None:
        self._headers.pop(name.lower(), None)

    # -- Sending --

    def send(self, body: Any = b"") -> None:
        """Send *body*, choosing a content type when none was set.

        ``str`` → text/html, ``bytes`` → application/octet-stream,
        ``dict``/``list`` → JSON, anything else is stringified as text/html.
        """
        match body:
            case bytes():
                self._default_type(BINARY_TYPE)
                payload = body
            case str():
                self._default_type(HTML_TYPE)
                payload = body.encode("utf-8")
            case dict() | list():
                self.json(body)
                return
            case _:
                self._default_type(HTML_TYPE)
                payload = str(body).encode("utf-8")
        self._commit(payload)

    def json(self, data: Any) -> None:
        self._default_type(JSON_TYPE)
        self._commit(json_module.dumps(data, default=str).encode("utf-8"))

    def text(self, text: str) -> None:
        self.set_header("Content-Type", TEXT_TYPE)
        self._commit(str(text).encode("utf-8"))

    def html(self, html: str) -> None:
        self.set_header("Content-Type", HTML_TYPE)
        self._commit(str(html).encode("utf-8"))

    def redirect(self, url: str, status: int = 302) -> None:
        """Redirect to *url*; non-ASCII characters are percent-encoded."""
        self._status = status
        self.set_header("Location", quote(url, safe=_URL_SAFE))
        self._commit(b"")

    def end(self) -> None:
        """Finish with the current status and no body."""
        self._commit(b"")

    # -- Internal --

    def _default_type(self, content_type: str) -> None:
        if "content-type" not in self._headers:
            self.set_header("Content-Type", content_type)

    def _commit(self, payload: bytes) -> None:
        if self._sent:
            msg = "Response already sent for this request"
            raise ResponseAlreadySent(msg)
        self._body = payload
        self._sent = True

    def __repr__(self) -> str:
        state = "sent" if self._sent else "pending"
        return f"<ResponseWriter {self._status} {state}>"
