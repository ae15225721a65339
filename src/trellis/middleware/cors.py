"""Cross-Origin Resource Sharing.

``App(cors=True)`` enables CORS with permissive defaults: any origin,
the common methods, and a 204 answer to preflight requests. Pass a
``CORSConfig`` (or a mapping of its fields) to narrow it::

    App(..., cors=CORSConfig(allow_origins=("https://example.com",)))
    App(..., cors={"allow_origins": ["https://example.com"], "max_age": 600})

The dispatcher runs ``CORSMiddleware`` before routing, so preflight
requests are answered even for paths with no OPTIONS route.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from trellis.http.request import Request
from trellis.http.response import ResponseWriter
from trellis.middleware.protocol import Next

DEFAULT_METHODS = ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE")


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(v) for v in value)


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS configuration.

    Defaults allow every origin. Leaving ``allow_headers`` empty reflects
    the headers a preflight asks for in ``Access-Control-Request-Headers``.
    ``max_age=None`` omits ``Access-Control-Max-Age``.
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = DEFAULT_METHODS
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int | None = None
    preflight_status: int = 204

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> CORSConfig:
        """Build a config from a mapping of field names.

        Raises ``TypeError`` for unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            msg = f"Unknown CORS option(s): {', '.join(unknown)}"
            raise TypeError(msg)
        values = dict(options)
        for name in ("allow_origins", "allow_methods", "allow_headers", "expose_headers"):
            if name in values:
                values[name] = _as_tuple(values[name])
        return cls(**values)


def _append_vary(response: ResponseWriter, field: str) -> None:
    current = response.get_header("Vary")
    response.set_header("Vary", f"{current}, {field}" if current else field)


class CORSMiddleware:
    """CORS handling for every request.

    Handles:
    - Preflight ``OPTIONS`` requests (answered with ``preflight_status``)
    - Simple and actual requests (CORS headers set before the handler runs)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Requests from an origin outside ``allow_origins`` pass through
    without CORS headers.
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str | None) -> bool:
        if "*" in self.config.allow_origins:
            return True
        return origin is not None and origin in self.config.allow_origins

    def _add_cors_headers(self, response: ResponseWriter, origin: str | None) -> None:
        cfg = self.config

        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Origin", "*")
        elif origin is not None:
            response.set_header("Access-Control-Allow-Origin", origin)
            _append_vary(response, "Origin")

        if cfg.allow_credentials:
            response.set_header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            response.set_header("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))

    def _preflight(self, request: Request, response: ResponseWriter, origin: str | None) -> None:
        cfg = self.config
        self._add_cors_headers(response, origin)
        response.set_header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))

        if cfg.allow_headers:
            response.set_header("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers))
        else:
            requested = request.headers.get("access-control-request-headers")
            if requested:
                response.set_header("Access-Control-Allow-Headers", requested)
                _append_vary(response, "Access-Control-Request-Headers")

        if cfg.max_age is not None:
            response.set_header("Access-Control-Max-Age", str(cfg.max_age))

        response.status(cfg.preflight_status).end()

    async def __call__(self, request: Request, next: Next, response: ResponseWriter) -> Any:
        origin = request.headers.get("origin")

        if not self._is_allowed_origin(origin):
            return await next()

        if request.method == "OPTIONS":
            self._preflight(request, response, origin)
            return None

        self._add_cors_headers(response, origin)
        return await next()
