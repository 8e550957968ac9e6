"""Function-based middleware chains."""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import Any, Awaitable, Callable

from .context import RequestCtx
from .handler import Handler, call_handler
from .response import Response, into_response

Next = Callable[[RequestCtx], Awaitable[Response]]
Middleware = Callable[[RequestCtx, Next], Any]


async def _resolve(result: Any) -> Response:
    if inspect.isawaitable(result):
        result = await result
    return into_response(result)


def into_next(func: Handler) -> Next:
    """Wrap a handler so it can be passed to a middleware as ``next``."""

    async def next_(ctx: RequestCtx) -> Response:
        return await call_handler(func, ctx)

    return next_


async def execute_chain(
    middlewares: Sequence[Middleware], endpoint: Next, ctx: RequestCtx
) -> Response:
    """Run ``middlewares`` in order, each handing over to the next, ending at ``endpoint``."""
    if not middlewares:
        return await _resolve(endpoint(ctx))

    first, *rest = middlewares

    async def next_(next_ctx: RequestCtx) -> Response:
        return await execute_chain(rest, endpoint, next_ctx)

    return await _resolve(first(ctx, next_))