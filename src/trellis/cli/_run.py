"""``trellis run``: compile an app tree and serve it until interrupted.

Host and port come from, lowest to highest: the ``App`` node, the
``TRELLIS_HOST``/``TRELLIS_PORT`` environment variables, then the
``--host``/``--port`` flags.
"""

import argparse
import logging
import os
import sys

from trellis.cli._resolve import resolve_tree
from trellis.errors import ConfigurationError


def _env_port() -> int | None:
    raw = os.environ.get("TRELLIS_PORT")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        print(f"Error: TRELLIS_PORT must be an integer, got {raw!r}", file=sys.stderr)
        raise SystemExit(1) from None


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, start serving it, and block until shutdown."""
    from trellis.server.run import serve

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        root = resolve_tree(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    host = args.host or os.environ.get("TRELLIS_HOST") or None
    port = args.port if args.port is not None else _env_port()

    try:
        server = serve(root, host=host, port=port)
    except (ConfigurationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        server.wait()
    except KeyboardInterrupt:
        server.shutdown()
