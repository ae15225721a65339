"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next, response: ResponseWriter) -> Any

Built-in middleware:
    CORSMiddleware -- Cross-Origin Resource Sharing (enabled with ``App(cors=...)``)
    validation_middleware -- Validate body, params and query against route schemas
"""

from trellis.middleware.cors import CORSConfig, CORSMiddleware
from trellis.middleware.protocol import Handler, Middleware, Next
from trellis.middleware.validation import validation_middleware

__all__ = [
    "CORSConfig",
    "CORSMiddleware",
    "Handler",
    "Middleware",
    "Next",
    "validation_middleware",
]
