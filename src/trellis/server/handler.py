"""ASGI dispatcher. Translates ASGI scope/messages to trellis types.

The only component that touches raw ASGI directly. Converts scope dicts
to a typed Request, resolves the route, runs its middleware chain inside
a request scope, and flushes the ResponseWriter back through ASGI send().
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis._internal.invoke import invoke
from trellis.compiler import CompiledApp
from trellis.config import AppConfig
from trellis.context import (
    BODY_SCHEMA_KEY,
    QUERY_SCHEMA_KEY,
    ContextStore,
    default_store,
    use_store,
)
from trellis.errors import HTTPError
from trellis.http.request import Request
from trellis.http.response import ResponseWriter
from trellis.middleware.cors import CORSMiddleware
from trellis.middleware.protocol import Middleware
from trellis.routing.route import RouteDefinition, RouteMatch
from trellis.routing.router import Router
from trellis.server.errors import (
    INTERNAL_ERROR,
    write_http_error,
    write_method_not_allowed,
    write_not_found,
    write_server_error,
)
from trellis.server.negotiation import negotiate
from trellis.server.sender import send_response

logger = logging.getLogger("trellis.server")


async def run_chain(
    middlewares: Sequence[Middleware],
    handler: Callable[[], Any],
    request: Request,
    response: ResponseWriter,
) -> Any:
    """Run *middlewares* in order, then *handler*; return the outcome.

    Each middleware gets a ``next`` that runs the rest of the chain. A
    middleware that returns without calling it ends the chain.
    """

    async def call(index: int) -> Any:
        if index == len(middlewares):
            return await invoke(handler)
        mw = middlewares[index]
        return await invoke(mw, request, lambda: call(index + 1), response)

    return await call(0)


class Dispatcher:
    """The compiled application as an ASGI 3.0 callable.

    Usage::

        app = Dispatcher(compile_tree(root))
        # hand ``app`` to any ASGI server

    Route lookup per request:

    1. a regular route for (method, path) runs;
    2. a known path with no route for the method gets 405 + ``Allow``;
    3. wildcard routes (``path="*"``) are tried in declaration order;
    4. otherwise 404.

    The dispatcher's store (``default_store`` unless one is given)
    becomes the active store, so ``set_context()`` calls made outside a
    request land where its handlers read them.
    """

    __slots__ = ("_cors", "_router", "_wildcards", "compiled", "store")

    def __init__(self, compiled: CompiledApp, *, store: ContextStore | None = None) -> None:
        self.compiled = compiled
        self.store = store if store is not None else default_store
        use_store(self.store)

        router = Router()
        for route in compiled.routes.regular:
            router.add(route)
        router.compile()
        self._router = router
        self._wildcards = compiled.routes.wildcard

        cfg = compiled.config
        self._cors = CORSMiddleware(cfg.cors_options) if cfg.cors_enabled else None

    @property
    def config(self) -> AppConfig:
        return self.compiled.config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        match scope["type"]:
            case "http":
                await self._handle_http(scope, receive, send)
            case "lifespan":
                await self._handle_lifespan(receive, send)
            case _:
                # websocket and server-specific scopes are not served
                return

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        writer = ResponseWriter()
        try:
            request = await Request.from_asgi(scope, receive)
        except HTTPError as exc:
            write_http_error(writer, exc)
        else:
            await self.handle(request, writer)
        await send_response(writer, send, method=scope["method"].upper())

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Dispatch --

    async def handle(self, request: Request, writer: ResponseWriter) -> None:
        """Process one request into *writer*. Never raises."""
        try:
            if self._cors is not None:
                await self._cors(request, lambda: self._route(request, writer), writer)
            else:
                await self._route(request, writer)
        except Exception:
            logger.exception("500 %s %s", request.method, request.path)
            write_server_error(writer, INTERNAL_ERROR)

    async def _route(self, request: Request, writer: ResponseWriter) -> None:
        match = self._router.match(request.method, request.path)
        if match is None and request.method == "HEAD":
            match = self._router.match("GET", request.path)

        if match is None:
            allowed = self._router.allowed_methods(request.path)
            if allowed:
                write_method_not_allowed(writer, request, allowed)
                return
            wildcard = self._match_wildcard(request.method)
            if wildcard is None:
                write_not_found(writer, request)
                return
            match = RouteMatch(route=wildcard, path_params={})

        await self._run(match, request.with_path_params(match.path_params), writer)

    def _match_wildcard(self, method: str) -> RouteDefinition | None:
        for route in self._wildcards:
            if route.accepts(method):
                return route
        return None

    async def _run(self, match: RouteMatch, request: Request, writer: ResponseWriter) -> None:
        """Run the matched route inside a fresh request scope."""
        route = match.route
        token = self.store.open_scope(request, writer)
        try:
            if route.body_schema is not None:
                self.store.write(BODY_SCHEMA_KEY, route.body_schema)
            if route.query_schema is not None:
                self.store.write(QUERY_SCHEMA_KEY, route.query_schema)

            outcome = await run_chain(route.middlewares, route.handler, request, writer)
            negotiate(outcome, writer)
        except HTTPError as exc:
            write_http_error(writer, exc)
        except Exception:
            logger.exception("500 %s %s", request.method, request.path)
            write_server_error(writer, INTERNAL_ERROR)
        finally:
            self.store.close_scope(token)
