"""Declarative node model.

A server is described as a tree of frozen nodes built by the functions
below. Nodes are pure data: they carry properties and children, nothing
else. ``TreeCompiler`` turns the tree into a route table.

Usage::

    from trellis import App, Middleware, Response, Route, RouteGroup

    def show_user():
        params = get_context("params")
        return Response(json={"id": params["id"]})

    root = App(
        RouteGroup(
            Middleware(require_auth),
            Route(show_user, path="/users/:id", method="GET"),
            prefix="/api",
        ),
        port=3000,
        middleware=[log_requests],
    )

The builders are capitalized so a tree reads like markup.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from trellis.middleware.protocol import Handler
    from trellis.middleware.protocol import Middleware as MiddlewareFunc


class NodeKind(StrEnum):
    """Discriminator for the node variants."""

    APP = "App"
    ROUTE_GROUP = "RouteGroup"
    ROUTE = "Route"
    MIDDLEWARE = "Middleware"
    RESPONSE = "Response"
    COMPONENT = "Component"
    FRAGMENT = "Fragment"


@dataclass(frozen=True, slots=True)
class AppNode:
    """Application root: port, CORS, and app-wide middleware."""

    kind: ClassVar[NodeKind] = NodeKind.APP

    children: tuple[Any, ...] = ()
    port: int | None = None
    cors: Any = None
    middleware: tuple[MiddlewareFunc, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteGroupNode:
    """Path prefix and middleware shared by the routes below it."""

    kind: ClassVar[NodeKind] = NodeKind.ROUTE_GROUP

    children: tuple[Any, ...] = ()
    prefix: str | None = None
    middleware: tuple[MiddlewareFunc, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteNode:
    """A single endpoint.

    ``body`` and ``query`` are schema objects handed to the validation
    layer; the compiler only checks that ``body`` is declared on a method
    that carries one.
    """

    kind: ClassVar[NodeKind] = NodeKind.ROUTE

    path: str | None = None
    handler: Handler | None = None
    method: str | None = None
    middleware: tuple[MiddlewareFunc, ...] = ()
    query: Any = None
    body: Any = None


@dataclass(frozen=True, slots=True)
class MiddlewareNode:
    """Middleware attached to the enclosing RouteGroup. Never a route."""

    kind: ClassVar[NodeKind] = NodeKind.MIDDLEWARE

    use: tuple[MiddlewareFunc, ...] = ()


@dataclass(frozen=True, slots=True)
class ResponseNode:
    """A response description returned by handlers and middleware.

    ``None`` means "not set" for every field. The dispatcher applies
    headers first, then the first of redirect, text, html, json, or
    status that is set.
    """

    kind: ClassVar[NodeKind] = NodeKind.RESPONSE

    json: Any = None
    status: int | None = None
    text: str | None = None
    html: str | None = None
    headers: Mapping[str, Any] | None = None
    redirect: str | None = None


@dataclass(frozen=True, slots=True)
class ComponentNode:
    """A function component: called with ``props`` at compile time."""

    kind: ClassVar[NodeKind] = NodeKind.COMPONENT

    func: Callable[..., Any]
    props: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FragmentNode:
    """A plain container. Its children are compiled as if inlined."""

    kind: ClassVar[NodeKind] = NodeKind.FRAGMENT

    children: tuple[Any, ...] = ()


type Node = (
    AppNode
    | RouteGroupNode
    | RouteNode
    | MiddlewareNode
    | ResponseNode
    | ComponentNode
    | FragmentNode
)

# What a tree position may hold: a node, nested sequences of nodes, or
# nothing (None / False are skipped, like empty markup).
type NodeTree = Node | Sequence[NodeTree] | bool | None


# -- Normalization --


def _children(children: tuple[Any, ...]) -> tuple[Any, ...]:
    """A single list/tuple argument is the children sequence itself."""
    if len(children) == 1 and isinstance(children[0], (list, tuple)):
        return tuple(children[0])
    return children


def _middlewares(value: Any) -> tuple[MiddlewareFunc, ...]:
    if value is None:
        return ()
    if callable(value):
        return (value,)
    return tuple(value)


# -- Builders --


def App(  # noqa: N802
    *children: NodeTree,
    port: int | None = None,
    cors: Any = None,
    middleware: MiddlewareFunc | Sequence[MiddlewareFunc] | None = None,
) -> AppNode:
    """Declare the application root."""
    return AppNode(
        children=_children(children),
        port=port,
        cors=cors,
        middleware=_middlewares(middleware),
    )


def RouteGroup(  # noqa: N802
    *children: NodeTree,
    prefix: str | None = None,
    middleware: MiddlewareFunc | Sequence[MiddlewareFunc] | None = None,
) -> RouteGroupNode:
    """Group routes under a shared path prefix and middleware chain."""
    return RouteGroupNode(
        children=_children(children),
        prefix=prefix,
        middleware=_middlewares(middleware),
    )


def Route(  # noqa: N802
    handler: Handler | None = None,
    *,
    path: str | None = None,
    method: str | None = None,
    middleware: MiddlewareFunc | Sequence[MiddlewareFunc] | None = None,
    query: Any = None,
    body: Any = None,
) -> RouteNode:
    """Declare an endpoint.

    The handler takes no arguments; it reads the request through the
    context accessors (``get_context``, ``get_route``). ``path`` segments
    starting with ``:`` are parameters (``/users/:id``). ``path="*"``
    declares a wildcard route, tried only when no other route matched.
    """
    return RouteNode(
        path=path,
        handler=handler,
        method=method,
        middleware=_middlewares(middleware),
        query=query,
        body=body,
    )


def Middleware(use: MiddlewareFunc | Sequence[MiddlewareFunc]) -> MiddlewareNode:  # noqa: N802
    """Attach middleware to the enclosing RouteGroup, whatever its position."""
    return MiddlewareNode(use=_middlewares(use))


def Response(  # noqa: N802
    *,
    json: Any = None,
    status: int | None = None,
    text: str | None = None,
    html: str | None = None,
    headers: Mapping[str, Any] | None = None,
    redirect: str | None = None,
) -> ResponseNode:
    """Describe the response a handler or middleware wants sent."""
    return ResponseNode(
        json=json,
        status=status,
        text=text,
        html=html,
        headers=headers,
        redirect=redirect,
    )


def Fragment(*children: NodeTree) -> FragmentNode:  # noqa: N802
    """Group nodes without adding a prefix or middleware."""
    return FragmentNode(children=_children(children))


def component(func: Callable[..., NodeTree]) -> Callable[..., ComponentNode]:
    """Turn a function returning nodes into a reusable component.

    Calling the decorated function records its keyword props; the
    compiler invokes the original function with them::

        @component
        def crud(*, name: str):
            return RouteGroup(
                Route(list_items, path="/", method="GET"),
                prefix=f"/{name}",
            )

        App(crud(name="posts"), crud(name="users"))
    """

    @functools.wraps(func)
    def build(**props: Any) -> ComponentNode:
        return ComponentNode(func=func, props=props)

    return build
