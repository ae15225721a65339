"""Ambient request context via ContextVar.

Provides:
- ``RouteScope``: the per-request scope (seeded request fields plus
  entries written by middleware and handlers).
- ``ContextStore``: owns the process-wide fallback entries and opens and
  closes request scopes for the dispatcher.
- ``get_route()``, ``get_context()``, ``set_context()``: accessors for
  handlers and middleware, which receive no context argument.

Reads look in the active scope first, then in the process-wide entries.
Writes go to the active scope, or to the process-wide entries when no
request is active.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local in
    threads, so concurrent requests never see each other's scope. The
    process-wide entries are a plain shared dict with no locking; keep
    only data that is safe to share there.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    from trellis.http.request import Request
    from trellis.http.response import ResponseWriter

# Reserved keys for the validation layer
BODY_SCHEMA_KEY = "_body_schema"
QUERY_SCHEMA_KEY = "_query_schema"
PARAMS_SCHEMA_KEY = "_params_schema"

# Keys written into every scope when a request starts
SEEDED_KEYS = ("req", "res", "params", "path", "method", "headers", "query", "body")

# Writing these also updates the matching RouteScope field
_SYNCED_KEYS = frozenset({"body", "query", "params"})

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class ContextKey[T]:
    """A typed context key.

    Usage::

        CURRENT_USER = create_context_key[User]("user")

        set_context(CURRENT_USER, user)
        user = get_context(CURRENT_USER)  # typed as User | None
    """

    key: str


def create_context_key[T](key: str) -> ContextKey[T]:
    """Create a typed key for ``get_context`` / ``set_context``."""
    return ContextKey(key)


def _resolve(key: str | ContextKey[Any]) -> str:
    return key if isinstance(key, str) else key.key


@dataclass(slots=True)
class RouteScope:
    """The ambient scope of one in-flight request."""

    request: Request
    response: ResponseWriter
    params: dict[str, Any]
    query: Any
    body: Any
    path: str
    method: str
    headers: Mapping[str, str]
    fallback: MutableMapping[str, Any] = field(default_factory=dict, repr=False)
    entries: dict[str, Any] = field(default_factory=dict)

    @property
    def req(self) -> Request:
        return self.request

    @property
    def res(self) -> ResponseWriter:
        return self.response


@dataclass(frozen=True, slots=True)
class ContextSnapshot:
    """The seeded request fields, as returned by ``get_context()``."""

    body: Any
    query: Any
    params: Any
    req: Any
    res: Any
    path: Any
    method: Any
    headers: Any


scope_var: ContextVar[RouteScope | None] = ContextVar("trellis_route_scope", default=None)
"""The active request scope. Set by the dispatcher, reset after each request."""


class ContextStore:
    """Request scopes plus the process-wide fallback entries.

    One store is injected into each dispatcher, which makes it the
    active store: the module-level accessors read and write its entries
    when no request is active.
    """

    __slots__ = ("_globals",)

    def __init__(self, entries: MutableMapping[str, Any] | None = None) -> None:
        self._globals: MutableMapping[str, Any] = entries if entries is not None else {}

    @property
    def globals(self) -> MutableMapping[str, Any]:
        """The process-wide entries (shared, unsynchronized)."""
        return self._globals

    # -- Scope lifecycle (dispatcher only) --

    def open_scope(
        self,
        request: Request,
        response: ResponseWriter,
    ) -> Token[RouteScope | None]:
        """Create and activate the scope for *request*."""
        scope = RouteScope(
            request=request,
            response=response,
            params=dict(request.path_params),
            query=request.query,
            body=request.body,
            path=request.path,
            method=request.method,
            headers=request.headers,
            fallback=self._globals,
        )
        scope.entries.update(
            req=request,
            res=response,
            params=scope.params,
            path=request.path,
            method=request.method,
            headers=request.headers,
            query=scope.query,
            body=scope.body,
        )
        return scope_var.set(scope)

    def close_scope(self, token: Token[RouteScope | None]) -> None:
        """Deactivate the scope opened with *token*."""
        scope_var.reset(token)

    # -- Access --

    def read(self, key: str | ContextKey[Any], default: Any = None) -> Any:
        """Read *key* from the active scope, then the process-wide entries."""
        name = _resolve(key)
        scope = scope_var.get()
        if scope is not None:
            value = scope.entries.get(name, _MISSING)
            if value is not _MISSING:
                return value
            return scope.fallback.get(name, default)
        return self._globals.get(name, default)

    def write(self, key: str | ContextKey[Any], value: Any) -> None:
        """Write *key* into the active scope, or process-wide outside a request."""
        name = _resolve(key)
        scope = scope_var.get()
        if scope is None:
            self._globals[name] = value
            return
        scope.entries[name] = value
        if name in _SYNCED_KEYS:
            setattr(scope, name, value)

    def read_all(self) -> ContextSnapshot:
        """Snapshot of the seeded fields for the current scope."""
        return ContextSnapshot(**{name: self.read(name) for name in SEEDED_KEYS})


default_store = ContextStore()
"""Active store until a dispatcher is built with another one."""

_active_store = default_store


def use_store(store: ContextStore) -> None:
    """Make *store* the target of the accessors outside a request."""
    global _active_store
    _active_store = store


def active_store() -> ContextStore:
    """The store the accessors use outside a request."""
    return _active_store


# -- Accessors --


def get_route() -> RouteScope:
    """Return the active request scope.

    Raises ``LookupError`` if called outside a request.
    """
    scope = scope_var.get()
    if scope is None:
        msg = "get_route() must be called while a request is being handled"
        raise LookupError(msg)
    return scope


def set_context(key: str | ContextKey[Any], value: Any) -> None:
    """Store *value* for this request, or process-wide outside a request.

    Writing ``"body"``, ``"query"`` or ``"params"`` replaces the request
    field seen by later middleware and the handler.
    """
    _active_store.write(key, value)


@overload
def get_context() -> ContextSnapshot: ...
@overload
def get_context[T](key: ContextKey[T], default: T | None = None) -> T | None: ...
@overload
def get_context(key: str, default: Any = None) -> Any: ...


def get_context(key: str | ContextKey[Any] | None = None, default: Any = None) -> Any:
    """Read a context value.

    With no key, returns a ``ContextSnapshot`` of the seeded request
    fields (``body``, ``query``, ``params``, ``req``, ``res``, ``path``,
    ``method``, ``headers``).
    """
    if key is None:
        return _active_store.read_all()
    return _active_store.read(key, default)
