"""Schema validation backed by pydantic.

A schema is a pydantic model class, a ``TypeAdapter``, or any type
pydantic can validate (``dict[str, int]``, a ``TypedDict``, a dataclass).

Usage::

    from pydantic import BaseModel
    from trellis.validation import validate_schema

    class CreateUser(BaseModel):
        name: str
        age: int

    result = validate_schema(CreateUser, {"name": "Ada", "age": "36"})
    result.data.age  # 36
"""

import functools
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from trellis.validation.result import SchemaIssue, SchemaResult

__all__ = ["SchemaIssue", "SchemaResult", "validate_schema"]


@functools.lru_cache(maxsize=256)
def _adapter(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


def _validate(schema: Any, value: Any) -> Any:
    if isinstance(schema, TypeAdapter):
        return schema.validate_python(value)
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_validate(value)
    return _adapter(schema).validate_python(value)


def validate_schema(schema: Any, value: Any) -> SchemaResult:
    """Validate *value* against *schema*.

    Never raises for invalid data: failures come back as
    ``SchemaResult(ok=False, issues=...)``.
    """
    try:
        data = _validate(schema, value)
    except ValidationError as exc:
        issues = tuple(
            SchemaIssue(
                path=".".join(str(part) for part in error["loc"]),
                message=error["msg"],
                code=error["type"],
            )
            for error in exc.errors()
        )
        return SchemaResult(ok=False, issues=issues)
    return SchemaResult(ok=True, data=data)
