"""Compiled router with trie-based path matching.

Routes are added once by the dispatcher and the trie is frozen before the
first request. Matching is method-aware: a static segment is tried first,
then a ``:param`` segment, and the first terminal node holding a route for
the request method wins.
"""

from collections.abc import Iterator

from trellis.errors import ConfigurationError
from trellis.routing.route import ALL_METHODS, PathSegment, RouteDefinition, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"         -> [PathSegment("users")]
        "/users/:id"     -> [PathSegment("users"), PathSegment(":id", is_param=True, param_name="id")]
        "/"              -> []
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":"):
            name = part[1:]
            if not name:
                msg = f"Route path {path!r} has a parameter without a name."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part, is_param=True, param_name=name))
        else:
            segments.append(PathSegment(value=part))
    return segments


def split_request_path(path: str) -> list[str]:
    return [p for p in path.strip("/").split("/") if p]


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "param_children", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Parameter children keyed by name, in registration order
        self.param_children: dict[str, _TrieNode] = {}
        # Routes at this node, keyed by upper-cased HTTP method
        self.routes_by_method: dict[str, RouteDefinition] = {}


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(RouteDefinition("get", "/users/:id", handler))
        router.compile()
        match = router.match("GET", "/users/42")
        match.path_params  # {"id": "42"}

    The wildcard route (``"*"``) is never added here; the dispatcher
    tries it after the router reports no match.
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, route: RouteDefinition) -> None:
        """Add a route. Must be called before compile().

        The first route registered for a (method, path) pair wins.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param:
                name = seg.param_name or ""
                node = node.param_children.setdefault(name, _TrieNode())
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        node.routes_by_method.setdefault(route.method.upper(), route)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Return the route for *method* and *path*, or ``None``.

        A route registered with method ``ALL`` matches every method.
        """
        wanted = method.upper()
        any_method = ALL_METHODS.upper()
        for node, params in self._candidates(path):
            route = node.routes_by_method.get(wanted) or node.routes_by_method.get(any_method)
            if route is not None:
                return RouteMatch(route=route, path_params=params)
        return None

    def allowed_methods(self, path: str) -> tuple[str, ...]:
        """Every method registered for a route template matching *path*.

        Empty when no template matches. Used for 405 ``Allow`` headers.
        """
        allowed: dict[str, None] = {}
        for node, _ in self._candidates(path):
            for method in node.routes_by_method:
                allowed.setdefault(method, None)
        return tuple(allowed)

    def _candidates(self, path: str) -> Iterator[tuple[_TrieNode, dict[str, str]]]:
        """Yield terminal nodes matching *path*, static branches first."""
        yield from self._walk(self._root, split_request_path(path), 0, {})

    def _walk(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> Iterator[tuple[_TrieNode, dict[str, str]]]:
        if index == len(parts):
            if node.routes_by_method:
                yield node, params
            return

        part = parts[index]

        # 1. Static child (exact match)
        child = node.children.get(part)
        if child is not None:
            yield from self._walk(child, parts, index + 1, params)

        # 2. Parameter children
        for name, param_child in node.param_children.items():
            yield from self._walk(param_child, parts, index + 1, {**params, name: part})
