"""Immutable HTTP request.

Frozen metadata plus the already-parsed body. The body is read from the
ASGI receive channel once, before dispatch, so middleware and handlers
can use it synchronously.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qsl

from trellis._internal.asgi import Receive, Scope
from trellis.errors import BadRequest


def parse_query(query_string: bytes) -> dict[str, str | list[str]]:
    """Parse a raw query string. Repeated keys collect into a list."""
    query: dict[str, str | list[str]] = {}
    for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
        existing = query.get(key)
        if existing is None:
            query[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            query[key] = [existing, value]
    return query


def parse_body(raw: bytes, content_type: str | None) -> Any:
    """Decode a JSON request body.

    Non-JSON and empty bodies become ``{}``. Raises ``BadRequest`` when a
    JSON content type carries a body that does not parse.
    """
    if not raw or "json" not in (content_type or "").lower():
        return {}
    try:
        return json_module.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise BadRequest("Invalid JSON body") from exc


async def read_body(receive: Receive) -> bytes:
    """Drain the ASGI receive channel into bytes."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        body = message.get("body", b"")
        if body:
            chunks.append(body)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``headers`` keys are lower-cased. ``query`` maps each key to its value,
    or to a list of values when the key repeats. ``body`` is the decoded
    JSON body, ``{}`` when there is none.
    """

    method: str
    path: str
    headers: Mapping[str, str]
    query: dict[str, str | list[str]]
    body: Any
    path_params: dict[str, str] = field(default_factory=dict)
    query_string: bytes = b""
    raw_body: bytes = field(default=b"", repr=False)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # -- Computed properties --

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy carrying the matched route parameters."""
        return replace(self, path_params=path_params)

    # -- Factory --

    @classmethod
    async def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Read the body and build a Request from an ASGI scope.

        Raises ``BadRequest`` if a JSON body is malformed.
        """
        headers: dict[str, str] = {}
        for raw_name, raw_value in scope.get("headers", ()):
            name = raw_name.decode("latin-1").lower()
            value = raw_value.decode("latin-1")
            headers[name] = f"{headers[name]}, {value}" if name in headers else value

        raw_body = await read_body(receive)
        query_string = scope.get("query_string", b"")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=parse_query(query_string),
            body=parse_body(raw_body, headers.get("content-type")),
            query_string=query_string,
            raw_body=raw_body,
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )
