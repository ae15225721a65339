"""``trellis routes``: list compiled routes.

Resolves an import string to a node tree, compiles it, and prints each
route with method, path, middleware count, and handler name.
"""

import argparse
import sys

from trellis.cli._resolve import resolve_tree
from trellis.compiler import compile_tree
from trellis.errors import ConfigurationError


def show_routes(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATH, MW, and handler name."""
    try:
        compiled = compile_tree(resolve_tree(args.app))
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not compiled.routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for route in compiled.routes:
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        rows.append((route.method.upper(), route.path, str(len(route.middlewares)), handler_name))

    max_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{:<3}}  {{}}"
    print(fmt.format("METHOD", "PATH", "MW", "HANDLER"))
    sep_len = max_method + max_path + 9 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, mw_count, handler_name in rows:
        print(fmt.format(method, path, mw_count, handler_name))

    allowed = compiled.routes.methods_by_path()
    if allowed:
        print("\nAllow:")
        for path, methods in allowed.items():
            print(f"  {path}: {', '.join(methods)}")
    print(f"\nport {compiled.config.port}, cors {'on' if compiled.config.cors_enabled else 'off'}")
