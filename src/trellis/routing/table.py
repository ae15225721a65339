"""RouteTable: the compiled, immutable list of routes.

Partitioned into regular and wildcard routes, with the path → allowed
methods index used for 405 responses.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from trellis.routing.route import RouteDefinition


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Routes in declaration order. Immutable after compilation."""

    routes: tuple[RouteDefinition, ...] = ()

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    @property
    def regular(self) -> tuple[RouteDefinition, ...]:
        """Routes with a real path."""
        return tuple(r for r in self.routes if not r.is_wildcard)

    @property
    def wildcard(self) -> tuple[RouteDefinition, ...]:
        """Routes declared with ``path="*"``, in declaration order."""
        return tuple(r for r in self.routes if r.is_wildcard)

    def methods_by_path(self) -> dict[str, tuple[str, ...]]:
        """Route path to upper-cased methods, in declaration order.

        A per-template view for listings such as ``trellis routes``; the
        dispatcher builds ``Allow`` from ``Router.allowed_methods``.
        """
        index: dict[str, dict[str, None]] = {}
        for route in self.regular:
            index.setdefault(route.path, {}).setdefault(route.method.upper(), None)
        return {path: tuple(methods) for path, methods in index.items()}
