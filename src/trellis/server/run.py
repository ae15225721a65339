"""Compile a node tree and serve it with pounce.

``create_app()`` builds the ASGI dispatcher without binding a socket;
``serve()`` also starts a pounce server on a background thread and
returns a handle to it.
"""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from trellis.compiler import compile_tree
from trellis.config import AppConfig
from trellis.context import ContextStore
from trellis.server.handler import Dispatcher

if TYPE_CHECKING:
    from pounce.server import Server as PounceServer

logger = logging.getLogger("trellis.server")


def create_app(root: Any, *, store: ContextStore | None = None) -> Dispatcher:
    """Compile *root* and return the ASGI dispatcher.

    Raises ``ConfigurationError`` if the tree describes an invalid server.
    """
    return Dispatcher(compile_tree(root), store=store)


class Server:
    """A running trellis server.

    Usage::

        server = serve(root)
        server.wait()          # block until shutdown
        server.shutdown()      # from another thread or a signal handler

    The pounce server runs on a non-daemon thread, so the process stays
    alive while it serves.
    """

    __slots__ = ("_error", "_pounce", "_thread", "app", "config")

    def __init__(self, app: Dispatcher, config: AppConfig) -> None:
        self.app = app
        self.config = config
        self._pounce: PounceServer | None = None
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None

    @property
    def url(self) -> str:
        return f"http://{self.config.host}:{self.config.port}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Bind and start serving on a background thread."""
        if self._thread is not None:
            msg = "Server already started"
            raise RuntimeError(msg)

        from pounce.config import ServerConfig
        from pounce.server import Server as PounceServer

        _check_bindable(self.config.host, self.config.port)

        pounce_config = ServerConfig(host=self.config.host, port=self.config.port, workers=1)
        self._pounce = PounceServer(pounce_config, self.app)
        self._thread = threading.Thread(
            target=self._serve,
            name="trellis-server",
            daemon=False,
        )
        self._thread.start()
        logger.info("Trellis running at %s", self.url)

    def wait(self, timeout: float | None = None) -> None:
        """Block until the server thread exits (or *timeout* elapses).

        Re-raises the error that stopped the server thread, if any.
        """
        if self._thread is not None:
            self._thread.join(timeout)
        if self._error is not None:
            raise self._error

    def _serve(self) -> None:
        assert self._pounce is not None
        try:
            self._pounce.run()
        except Exception as exc:
            logger.exception("Trellis server stopped with an error")
            self._error = exc

    def shutdown(self, timeout: float | None = 10.0) -> None:
        """Stop accepting connections and wait for the server thread."""
        if self._pounce is None:
            return
        self._pounce.shutdown()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Trellis stopped")


def _check_bindable(host: str, port: int) -> None:
    """Raise ``OSError`` now if *host*:*port* cannot be bound."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    with socket.socket(family, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))


def serve(
    root: Any,
    *,
    host: str | None = None,
    port: int | None = None,
    store: ContextStore | None = None,
) -> Server:
    """Compile *root*, start serving it, and return the server handle.

    ``host``/``port`` override what the ``App`` node declares. Raises
    ``ConfigurationError`` before binding if the tree is invalid, and
    ``OSError`` if the address cannot be bound.
    """
    compiled = compile_tree(root)
    overrides: dict[str, Any] = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if overrides:
        compiled = replace(compiled, config=replace(compiled.config, **overrides))

    server = Server(Dispatcher(compiled, store=store), compiled.config)
    server.start()
    return server
