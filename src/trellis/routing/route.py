"""RouteDefinition and RouteMatch frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from trellis.middleware.protocol import Handler, Middleware

WILDCARD_PATH = "*"
ALL_METHODS = "all"

# Methods allowed to declare a body schema
BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``  (is_param=False)
    Param:   ``/:id``    (is_param=True, param_name="id")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """A compiled route.

    Created by ``TreeCompiler`` with the full prefix-joined path and the
    complete middleware chain (App, then enclosing groups outer to inner,
    then the route's own). ``method`` is stored lower-cased.
    """

    method: str
    path: str
    handler: Handler
    middlewares: tuple[Middleware, ...] = ()
    body_schema: Any = None
    query_schema: Any = None

    @property
    def is_wildcard(self) -> bool:
        """True for the ``"*"`` fallback route."""
        return self.path == WILDCARD_PATH

    def accepts(self, method: str) -> bool:
        """Whether this route answers *method* (case-insensitive)."""
        return self.method == ALL_METHODS or self.method == method.lower()


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: RouteDefinition
    path_params: dict[str, str]
