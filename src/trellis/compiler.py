"""Tree compiler: flattens a node tree into a route table and config.

Walks the tree depth-first, carrying the path prefix and the middleware
chain accumulated so far. Every ``Route`` becomes one ``RouteDefinition``
whose path is the concatenation of the enclosing group prefixes and whose
chain is App → groups (outer to inner) → Route.

The compiler holds no module-level state: each ``compile()`` starts from
an empty table and default configuration.
"""

import inspect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from trellis.config import AppConfig, config_from_app_props
from trellis.errors import ConfigurationError
from trellis.middleware.protocol import Middleware
from trellis.nodes import (
    AppNode,
    ComponentNode,
    FragmentNode,
    MiddlewareNode,
    RouteGroupNode,
    RouteNode,
)
from trellis.routing.route import BODY_METHODS, RouteDefinition
from trellis.routing.table import RouteTable

logger = logging.getLogger("trellis.compiler")

type Chain = tuple[Middleware, ...]


@dataclass(frozen=True, slots=True)
class CompiledApp:
    """Output of the compiler: configuration plus routes."""

    config: AppConfig
    routes: RouteTable


class TreeCompiler:
    """Compile a node tree into a ``CompiledApp``.

    Usage::

        compiled = TreeCompiler().compile(root)
        compiled.config.port
        [r.path for r in compiled.routes]

    Raises ``ConfigurationError`` for programming mistakes: a Route
    without a method, a body schema on GET/HEAD/OPTIONS, a component
    that returns an awaitable.
    """

    __slots__ = ("_config", "_routes")

    def __init__(self) -> None:
        self._config = AppConfig()
        self._routes: list[RouteDefinition] = []

    def compile(self, root: Any) -> CompiledApp:
        """Walk *root* and return the compiled app."""
        self._config = AppConfig()
        self._routes = []
        self._visit(root, "", ())
        return CompiledApp(config=self._config, routes=RouteTable(tuple(self._routes)))

    # -- Traversal --

    def _visit(self, node: Any, prefix: str, chain: Chain) -> None:
        match node:
            case None | bool():
                return
            case str() | bytes():
                logger.debug("Ignoring text node %r", node)
            case Sequence():
                for child in node:
                    self._visit(child, prefix, chain)
            case ComponentNode():
                self._visit(self._render_component(node), prefix, chain)
            case AppNode():
                self._visit_app(node, prefix, chain)
            case RouteGroupNode():
                self._visit_group(node, prefix, chain)
            case RouteNode():
                self._visit_route(node, prefix, chain)
            case FragmentNode():
                for child in node.children:
                    self._visit(child, prefix, chain)
            case MiddlewareNode():
                logger.debug("Ignoring Middleware node outside a RouteGroup")
            case _:
                logger.debug("Ignoring %s node", type(node).__name__)

    def _render_component(self, node: ComponentNode) -> Any:
        result = node.func(**node.props)
        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            name = getattr(node.func, "__name__", repr(node.func))
            msg = f"Component {name!r} returned an awaitable. Components must be synchronous."
            raise ConfigurationError(msg)
        return result

    def _visit_app(self, node: AppNode, prefix: str, chain: Chain) -> None:
        # The last App encountered owns the configuration.
        self._config = config_from_app_props(node.port, node.cors)
        app_chain = (*chain, *node.middleware)
        for child in node.children:
            self._visit(child, prefix, app_chain)

    def _visit_group(self, node: RouteGroupNode, prefix: str, chain: Chain) -> None:
        group_prefix = f"{prefix}{node.prefix}" if node.prefix else prefix
        group_chain: Chain = (*chain, *node.middleware)

        # Pass 1: Middleware children join the chain wherever they sit
        for child in node.children:
            if isinstance(child, MiddlewareNode):
                group_chain = (*group_chain, *child.use)

        # Pass 2: everything else, with the complete group chain
        for child in node.children:
            if not isinstance(child, MiddlewareNode):
                self._visit(child, group_prefix, group_chain)

    def _visit_route(self, node: RouteNode, prefix: str, chain: Chain) -> None:
        if not node.path or node.handler is None:
            logger.debug("Skipping Route without path or handler: %r", node.path)
            return
        if not node.method:
            msg = f'Route with path "{node.path}" is missing a required "method" property'
            raise ConfigurationError(msg)

        full_path = f"{prefix}{node.path}"
        method = str(node.method).upper()

        if node.body is not None and method not in BODY_METHODS:
            allowed = ", ".join(sorted(BODY_METHODS))
            msg = (
                f"Route {method} {full_path} cannot declare a body schema. "
                f"Allowed only for {allowed}."
            )
            raise ConfigurationError(msg)

        self._routes.append(
            RouteDefinition(
                method=method.lower(),
                path=full_path,
                handler=node.handler,
                middlewares=(*chain, *node.middleware),
                body_schema=node.body,
                query_schema=node.query,
            )
        )


def compile_tree(root: Any) -> CompiledApp:
    """Compile *root* with a fresh ``TreeCompiler``."""
    return TreeCompiler().compile(root)
