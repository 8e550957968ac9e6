"""Invoking request handlers and turning their results into responses."""

from __future__ import annotations

import inspect
from typing import Any, Callable

from .context import RequestCtx
from .response import Response, error_response, into_response

Handler = Callable[[RequestCtx], Any]


async def call_handler(handler: Handler, ctx: RequestCtx) -> Response:
    """Run ``handler`` (sync or async) and convert what it returns.

    An exception raised by the handler becomes a 500 ``Error: ...`` response.
    """
    try:
        result = handler(ctx)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        return error_response(exc)
    return into_response(result)