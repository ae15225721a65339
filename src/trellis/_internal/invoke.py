"""Call sync or async callables uniformly.

Handlers and middleware can be ``def`` or ``async def``. The
sync/async check lives here and nowhere else.

Usage::

    from trellis._internal.invoke import invoke

    outcome = await invoke(handler)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable.

    Awaits repeatedly, so a sync middleware that returns ``next()``
    (a coroutine) resolves to the downstream outcome.
    """
    result = func(*args, **kwargs)
    while inspect.isawaitable(result):
        result = await result
    return result
