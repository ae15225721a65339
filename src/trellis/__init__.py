"""Trellis: declare an HTTP server as a tree of nodes.

The tree is compiled once into a route table and served by an ASGI
dispatcher with per-request ambient context and ordered middleware.

Basic usage::

    from trellis import App, Response, Route, RouteGroup, get_context, serve

    def show_user():
        return Response(json={"id": get_context("params")["id"]})

    root = App(
        RouteGroup(
            Route(show_user, path="/users/:id", method="GET"),
            prefix="/api",
        ),
        port=3000,
    )

    serve(root).wait()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "CORSConfig",
    "ConfigurationError",
    "ContextKey",
    "Dispatcher",
    "Fragment",
    "HTTPError",
    "Handler",
    "Middleware",
    "Next",
    "Request",
    "Response",
    "ResponseWriter",
    "Route",
    "RouteGroup",
    "Server",
    "TrellisError",
    "component",
    "create_app",
    "create_context_key",
    "get_context",
    "get_route",
    "serve",
    "set_context",
    "validation_middleware",
]


# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    # Node builders
    "App": "trellis.nodes",
    "Fragment": "trellis.nodes",
    "Middleware": "trellis.nodes",
    "Response": "trellis.nodes",
    "Route": "trellis.nodes",
    "RouteGroup": "trellis.nodes",
    "component": "trellis.nodes",
    # Serving
    "Dispatcher": "trellis.server.handler",
    "Server": "trellis.server.run",
    "create_app": "trellis.server.run",
    "serve": "trellis.server.run",
    "AppConfig": "trellis.config",
    # HTTP
    "Request": "trellis.http.request",
    "ResponseWriter": "trellis.http.response",
    # Middleware
    "Handler": "trellis.middleware.protocol",
    "Next": "trellis.middleware.protocol",
    "CORSConfig": "trellis.middleware.cors",
    "validation_middleware": "trellis.middleware.validation",
    # Context
    "ContextKey": "trellis.context",
    "create_context_key": "trellis.context",
    "get_context": "trellis.context",
    "get_route": "trellis.context",
    "set_context": "trellis.context",
    # Errors
    "BadRequest": "trellis.errors",
    "ConfigurationError": "trellis.errors",
    "HTTPError": "trellis.errors",
    "TrellisError": "trellis.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trellis`` fast while providing a clean top-level API.
    """
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_path), name)
