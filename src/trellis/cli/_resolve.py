"""Import-string resolution: ``"module:attribute"`` to a node tree.

Shared by ``trellis run`` and ``trellis routes``.
"""

import importlib
from typing import Any

from trellis.nodes import AppNode, ComponentNode, FragmentNode, RouteGroupNode, RouteNode

_TREE_TYPES = (AppNode, ComponentNode, FragmentNode, RouteGroupNode, RouteNode, list, tuple)


def resolve_tree(import_string: str) -> Any:
    """Resolve an import string to a node tree.

    Accepts ``"module:attribute"``. When the attribute is omitted it
    defaults to ``"app"`` (``"myapp"`` resolves to ``myapp.app``).

    A callable that is not itself a node is treated as a factory and
    called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the result is not a node tree.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, _TREE_TYPES):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, _TREE_TYPES):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a trellis node tree"
        raise TypeError(msg)

    return obj
