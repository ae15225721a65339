"""Trellis CLI: serve a node tree from an import string.

Entry point registered as ``trellis`` in ``pyproject.toml``::

    [project.scripts]
    trellis = "trellis.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``trellis`` command."""
    parser = argparse.ArgumentParser(
        prog="trellis",
        description="Trellis: declare an HTTP server as a tree of nodes.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- trellis run ------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Compile and serve an app tree")
    run_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:root or myapp:build_app)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level for trellis loggers (default: info)",
    )

    # -- trellis routes ---------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the compiled routes")
    routes_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:root)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from trellis.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from trellis.cli._routes import show_routes

        show_routes(args)
