"""Tests for trellis.context: ambient request scope and process-wide store."""

import anyio
import pytest

from trellis.context import (
    ContextSnapshot,
    ContextStore,
    active_store,
    create_context_key,
    default_store,
    get_context,
    get_route,
    scope_var,
    set_context,
    use_store,
)
from trellis.http.request import Request
from trellis.http.response import ResponseWriter


def _request(path: str = "/x", **kwargs) -> Request:
    defaults = {
        "method": "GET",
        "path": path,
        "headers": {"host": "testserver"},
        "query": {"q": "1"},
        "body": {},
    }
    defaults.update(kwargs)
    return Request(**defaults)


@pytest.fixture
def store() -> ContextStore:
    return ContextStore()


@pytest.fixture(autouse=True)
def _clean_default_store():
    use_store(default_store)
    yield
    use_store(default_store)
    default_store.globals.clear()


class TestOutsideRequest:
    def test_get_route_raises(self) -> None:
        with pytest.raises(LookupError):
            get_route()

    def test_writes_go_process_wide(self) -> None:
        set_context("greeting", "hi")
        assert default_store.globals["greeting"] == "hi"
        assert get_context("greeting") == "hi"

    def test_missing_key_returns_default(self) -> None:
        assert get_context("nope") is None
        assert get_context("nope", 5) == 5


class TestRequestScope:
    def test_seeded_fields(self, store: ContextStore) -> None:
        request = _request(path_params={"id": "42"})
        writer = ResponseWriter()
        token = store.open_scope(request, writer)
        try:
            route = get_route()
            assert route.request is request
            assert route.response is writer
            assert route.params == {"id": "42"}
            assert get_context("req") is request
            assert get_context("res") is writer
            assert get_context("path") == "/x"
            assert get_context("method") == "GET"
            assert get_context("query") == {"q": "1"}
            assert get_context("body") == {}
        finally:
            store.close_scope(token)
        assert scope_var.get() is None

    def test_snapshot(self, store: ContextStore) -> None:
        token = store.open_scope(_request(), ResponseWriter())
        try:
            snapshot = get_context()
            assert isinstance(snapshot, ContextSnapshot)
            assert snapshot.path == "/x"
            assert snapshot.headers == {"host": "testserver"}
        finally:
            store.close_scope(token)

    def test_writes_stay_in_scope(self, store: ContextStore) -> None:
        token = store.open_scope(_request(), ResponseWriter())
        try:
            set_context("user", "ada")
            assert get_context("user") == "ada"
        finally:
            store.close_scope(token)
        assert get_context("user") is None
        assert "user" not in default_store.globals

    def test_body_write_updates_route_field(self, store: ContextStore) -> None:
        token = store.open_scope(_request(), ResponseWriter())
        try:
            set_context("body", {"name": "Ada"})
            set_context("params", {"id": 1})
            assert get_route().body == {"name": "Ada"}
            assert get_route().params == {"id": 1}
            assert get_context().body == {"name": "Ada"}
        finally:
            store.close_scope(token)

    def test_scope_falls_back_to_process_wide(self) -> None:
        store = ContextStore({"config": "shared"})
        token = store.open_scope(_request(), ResponseWriter())
        try:
            assert get_context("config") == "shared"
            set_context("config", "local")
            assert get_context("config") == "local"
        finally:
            store.close_scope(token)
        assert store.globals["config"] == "shared"

    def test_stored_none_counts_as_present(self) -> None:
        store = ContextStore({"flag": "global"})
        token = store.open_scope(_request(), ResponseWriter())
        try:
            set_context("flag", None)
            assert get_context("flag", "default") is None
        finally:
            store.close_scope(token)


class TestTypedKeys:
    def test_context_key_round_trip(self, store: ContextStore) -> None:
        user_key = create_context_key("user")
        token = store.open_scope(_request(), ResponseWriter())
        try:
            set_context(user_key, {"id": 1})
            assert get_context(user_key) == {"id": 1}
            assert get_context("user") == {"id": 1}
        finally:
            store.close_scope(token)


class TestIsolation:
    async def test_concurrent_scopes_do_not_leak(self) -> None:
        store = ContextStore({"cfg": "shared"})
        seen: dict[str, object] = {}

        async def handle(name: str, delay: float) -> None:
            token = store.open_scope(_request(path=f"/{name}"), ResponseWriter())
            try:
                set_context("who", name)
                await anyio.sleep(delay)
                seen[name] = (get_context("who"), get_route().path, get_context("cfg"))
            finally:
                store.close_scope(token)

        async with anyio.create_task_group() as tg:
            tg.start_soon(handle, "a", 0.02)
            tg.start_soon(handle, "b", 0.0)
            tg.start_soon(handle, "c", 0.01)

        assert seen == {
            "a": ("a", "/a", "shared"),
            "b": ("b", "/b", "shared"),
            "c": ("c", "/c", "shared"),
        }
        assert scope_var.get() is None


class TestActiveStore:
    def test_outside_writes_follow_active_store(self) -> None:
        custom = ContextStore()
        use_store(custom)
        set_context("cfg", "shared")
        assert custom.globals == {"cfg": "shared"}
        assert "cfg" not in default_store.globals
        assert active_store() is custom

    def test_scope_reads_owning_store(self) -> None:
        custom = ContextStore()
        use_store(custom)
        set_context("cfg", "shared")
        token = custom.open_scope(_request(), ResponseWriter())
        try:
            assert get_context("cfg") == "shared"
        finally:
            custom.close_scope(token)
