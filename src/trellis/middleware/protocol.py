"""Middleware protocol, Next, and Handler type aliases.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next, response: ResponseWriter) -> Any: ...

No base class required. The framework checks the shape, not the lineage.

``next`` takes no arguments: calling it runs the rest of the chain (and
finally the route handler) and returns its outcome. A middleware that
returns without calling ``next`` ends the chain; whatever it returns is
the outcome. Plain ``def`` middleware may ``return next()``; the
returned awaitable is awaited by the dispatcher.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from trellis.http.request import Request
    from trellis.http.response import ResponseWriter

# Route handler: takes nothing, reads the request ambiently
type Handler = Callable[[], Any]

# The rest of the middleware chain
type Next = Callable[[], Awaitable[Any]]


class Middleware(Protocol):
    """Protocol for trellis middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request, next, response):
            start = time.monotonic()
            outcome = await next()
            response.set_header("X-Time", f"{time.monotonic() - start:.3f}")
            return outcome

        # Class middleware
        class RequireToken:
            def __call__(self, request, next, response):
                if "authorization" not in request.headers:
                    return Response(status=401, json={"error": "Unauthorized"})
                return next()
    """

    def __call__(self, request: Request, next: Next, response: ResponseWriter) -> Any: ...
