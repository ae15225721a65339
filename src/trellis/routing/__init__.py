"""Routing: compiled route table with O(path-depth) matching.

Routes come out of the tree compiler and are loaded into an immutable
lookup structure when the dispatcher is built.
"""

from trellis.routing.route import RouteDefinition, RouteMatch
from trellis.routing.router import Router
from trellis.routing.table import RouteTable

__all__ = ["RouteDefinition", "RouteMatch", "RouteTable", "Router"]
