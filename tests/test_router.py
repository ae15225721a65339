"""Tests for trellis.routing: trie router and route table."""

import pytest

from trellis.errors import ConfigurationError
from trellis.routing.route import RouteDefinition
from trellis.routing.router import Router, parse_path
from trellis.routing.table import RouteTable


def _handler() -> str:
    return "ok"


def _route(path: str, method: str = "get") -> RouteDefinition:
    return RouteDefinition(method=method, path=path, handler=_handler)


def _router(*routes: RouteDefinition) -> Router:
    router = Router()
    for route in routes:
        router.add(route)
    router.compile()
    return router


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/users")
        assert len(segments) == 1
        assert segments[0].value == "users"
        assert segments[0].is_param is False

    def test_param(self) -> None:
        segments = parse_path("/users/:id")
        assert len(segments) == 2
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_unnamed_param_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_path("/users/:")


class TestRouterMatching:
    def test_static_match(self) -> None:
        router = _router(_route("/health"))
        match = router.match("GET", "/health")
        assert match is not None
        assert match.path_params == {}

    def test_param_match(self) -> None:
        router = _router(_route("/api/users/:id"))
        match = router.match("GET", "/api/users/42")
        assert match is not None
        assert match.path_params == {"id": "42"}

    def test_multiple_params(self) -> None:
        router = _router(_route("/orgs/:org/repos/:repo"))
        match = router.match("GET", "/orgs/acme/repos/site")
        assert match is not None
        assert match.path_params == {"org": "acme", "repo": "site"}

    def test_static_beats_param(self) -> None:
        me = _route("/users/me")
        by_id = _route("/users/:id")
        router = _router(by_id, me)
        match = router.match("GET", "/users/me")
        assert match is not None
        assert match.route is me

    def test_falls_back_to_param_branch_for_method(self) -> None:
        static_post = _route("/users/me", "post")
        param_get = _route("/users/:id", "get")
        router = _router(static_post, param_get)
        match = router.match("GET", "/users/me")
        assert match is not None
        assert match.route is param_get
        assert match.path_params == {"id": "me"}

    def test_method_is_case_insensitive(self) -> None:
        router = _router(_route("/x", "delete"))
        assert router.match("DELETE", "/x") is not None
        assert router.match("delete", "/x") is not None

    def test_trailing_slash_ignored(self) -> None:
        router = _router(_route("/users"))
        assert router.match("GET", "/users/") is not None

    def test_path_is_case_sensitive(self) -> None:
        router = _router(_route("/users"))
        assert router.match("GET", "/Users") is None

    def test_no_match(self) -> None:
        router = _router(_route("/users"))
        assert router.match("GET", "/posts") is None
        assert router.match("POST", "/users") is None

    def test_all_method_matches_anything(self) -> None:
        router = _router(_route("/any", "all"))
        assert router.match("PATCH", "/any") is not None

    def test_first_registration_wins(self) -> None:
        first = _route("/dup")
        second = _route("/dup")
        router = _router(first, second)
        match = router.match("GET", "/dup")
        assert match is not None
        assert match.route is first

    def test_add_after_compile_raises(self) -> None:
        router = _router()
        with pytest.raises(RuntimeError):
            router.add(_route("/late"))


class TestAllowedMethods:
    def test_lists_registered_methods_in_order(self) -> None:
        router = _router(_route("/items", "get"), _route("/items", "post"))
        assert router.allowed_methods("/items") == ("GET", "POST")

    def test_includes_param_templates(self) -> None:
        router = _router(_route("/users/:id", "get"), _route("/users/:id", "put"))
        assert router.allowed_methods("/users/7") == ("GET", "PUT")

    def test_unknown_path(self) -> None:
        router = _router(_route("/items"))
        assert router.allowed_methods("/nope") == ()


class TestRouteTable:
    def test_partitions_wildcard(self) -> None:
        table = RouteTable((_route("/a"), _route("*", "all"), _route("/b")))
        assert [r.path for r in table.regular] == ["/a", "/b"]
        assert [r.path for r in table.wildcard] == ["*"]
        assert len(table) == 3

    def test_methods_by_path(self) -> None:
        table = RouteTable((_route("/a", "get"), _route("/a", "post"), _route("/b", "delete")))
        assert table.methods_by_path() == {"/a": ("GET", "POST"), "/b": ("DELETE",)}

    def test_wildcard_accepts(self) -> None:
        assert _route("*", "all").accepts("PUT")
        assert _route("*", "get").accepts("GET")
        assert not _route("*", "get").accepts("POST")
