"""Tests for trellis.validation and the validation middleware."""

from pydantic import BaseModel, TypeAdapter

from trellis.context import PARAMS_SCHEMA_KEY, get_context, set_context
from trellis.middleware.validation import validation_middleware
from trellis.nodes import App, Response, Route
from trellis.testing import TestClient
from trellis.validation import validate_schema


class CreateUser(BaseModel):
    name: str
    age: int


class Paging(BaseModel):
    page: int = 1


class UserParams(BaseModel):
    id: int


class TestValidateSchema:
    def test_model_success_converts(self) -> None:
        result = validate_schema(CreateUser, {"name": "Ada", "age": "36"})
        assert result.ok
        assert result
        assert result.data == CreateUser(name="Ada", age=36)

    def test_issues_carry_path_message_code(self) -> None:
        result = validate_schema(CreateUser, {"name": "Ada"})
        assert not result.ok
        assert not result
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.path == "age"
        assert issue.code == "missing"
        assert issue.message

    def test_nested_path_is_dotted(self) -> None:
        result = validate_schema(dict[str, list[int]], {"ids": [1, "x"]})
        assert not result.ok
        assert result.issues[0].path == "ids.1"

    def test_type_adapter_schema(self) -> None:
        result = validate_schema(TypeAdapter(list[int]), ["1", "2"])
        assert result.data == [1, 2]


def _create_user():
    body = get_context("body")
    return Response(status=201, json={"name": body.name, "age": body.age})


class TestValidationMiddleware:
    async def test_valid_body_replaces_context(self) -> None:
        root = App(
            Route(_create_user, path="/users", method="POST", body=CreateUser),
            middleware=validation_middleware,
        )
        async with TestClient(root) as client:
            response = await client.post("/users", json={"name": "Ada", "age": "36"})
            assert response.status == 201
            assert response.json() == {"name": "Ada", "age": 36}

    async def test_invalid_body_is_400(self) -> None:
        called: list[bool] = []

        def handler():
            called.append(True)
            return "unreachable"

        root = App(
            Route(handler, path="/users", method="POST", body=CreateUser),
            middleware=validation_middleware,
        )
        async with TestClient(root) as client:
            response = await client.post("/users", json={"name": "Ada", "age": "old"})
            assert response.status == 400
            payload = response.json()
            assert payload["error"] == "Validation failed"
            assert payload["message"] == "One or more validation errors occurred"
            assert payload["details"]["body"][0]["path"] == "age"
            assert payload["details"]["body"][0]["code"] == "int_parsing"
            assert called == []

    async def test_query_schema(self) -> None:
        def handler():
            return Response(json={"page": get_context("query").page})

        root = App(
            Route(handler, path="/items", method="GET", query=Paging),
            middleware=validation_middleware,
        )
        async with TestClient(root) as client:
            assert (await client.get("/items?page=3")).json() == {"page": 3}
            assert (await client.get("/items")).json() == {"page": 1}
            response = await client.get("/items?page=x")
            assert response.status == 400
            assert "query" in response.json()["details"]

    async def test_params_schema_from_earlier_middleware(self) -> None:
        async def declare_params(request, next, response):
            set_context(PARAMS_SCHEMA_KEY, UserParams)
            return await next()

        def handler():
            return Response(json={"id": get_context("params").id + 1})

        root = App(
            Route(handler, path="/users/:id", method="GET"),
            middleware=[declare_params, validation_middleware],
        )
        async with TestClient(root) as client:
            assert (await client.get("/users/41")).json() == {"id": 42}
            response = await client.get("/users/abc")
            assert response.status == 400
            assert response.json()["details"]["params"][0]["path"] == "id"

    async def test_no_schemas_passes_through(self) -> None:
        root = App(Route(lambda: "ok", path="/", method="GET"), middleware=validation_middleware)
        async with TestClient(root) as client:
            assert (await client.get("/")).text == "ok"
