"""Request validation middleware.

Validates ``body``, ``params`` and ``query`` against the schemas a route
declares (``Route(..., body=Model, query=Model)``). Params schemas have no
Route property; set one from an earlier middleware::

    set_context(PARAMS_SCHEMA_KEY, UserParams)

Validated values replace the raw ones in the context, so the handler
sees converted data via ``get_context("body")``. Any failure ends the
chain with a 400.
"""

from typing import Any

from trellis.context import (
    BODY_SCHEMA_KEY,
    PARAMS_SCHEMA_KEY,
    QUERY_SCHEMA_KEY,
    get_context,
    set_context,
)
from trellis.http.request import Request
from trellis.http.response import ResponseWriter
from trellis.middleware.protocol import Next
from trellis.nodes import Response
from trellis.validation import validate_schema

_SECTIONS = (
    ("body", BODY_SCHEMA_KEY),
    ("params", PARAMS_SCHEMA_KEY),
    ("query", QUERY_SCHEMA_KEY),
)


async def validation_middleware(request: Request, next: Next, response: ResponseWriter) -> Any:
    details: dict[str, list[dict[str, str]]] = {}

    for section, key in _SECTIONS:
        schema = get_context(key)
        if schema is None:
            continue
        result = validate_schema(schema, get_context(section))
        if result.ok:
            set_context(section, result.data)
        else:
            details[section] = [issue.as_dict() for issue in result.issues]

    if details:
        return Response(
            status=400,
            json={
                "error": "Validation failed",
                "message": "One or more validation errors occurred",
                "details": details,
            },
        )

    return await next()
