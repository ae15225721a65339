"""Trellis exception hierarchy.

Shared across the compiler, dispatcher, transport adapter, and middleware
so every module raises and catches the same types.
"""

from dataclasses import dataclass


class TrellisError(Exception):
    """Base for all trellis-specific errors."""


class ConfigurationError(TrellisError):
    """Raised when the node tree describes an invalid server.

    Build-time only: a Route without a method, a body schema on a
    method that carries no body, a component that suspends. Raised by
    ``TreeCompiler.compile()`` before anything is bound.
    """


class ResponseAlreadySent(TrellisError):  # noqa: N818
    """Raised when a ``ResponseWriter`` is asked to send twice."""


@dataclass(frozen=True, slots=True)
class HTTPError(TrellisError):
    """An error that maps directly to an HTTP status code.

    Raised by the transport layer before dispatch (e.g. an unreadable
    body). The dispatcher answers it with a JSON error body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400: the request could not be read (malformed JSON body)."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)
