"""Schema validation result: validated data or a list of issues."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """One validation failure.

    ``path`` is the dotted location inside the value (``"address.zip"``),
    empty for the value itself. ``code`` is the validator's error type,
    e.g. ``"missing"`` or ``"int_parsing"``.
    """

    path: str
    message: str
    code: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message, "code": self.code}


@dataclass(frozen=True, slots=True)
class SchemaResult:
    """The outcome of validating a value against a schema.

    The result is falsy when invalid, so you can write::

        result = validate_schema(CreateUser, body)
        if not result:
            return Response(status=400, json=[i.as_dict() for i in result.issues])

    ``data`` holds the validated (and converted) value when ``ok``.
    """

    ok: bool
    data: Any = None
    issues: tuple[SchemaIssue, ...] = ()

    def __bool__(self) -> bool:
        return self.ok
