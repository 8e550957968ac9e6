import pytest

from sweb.context import RequestCtx
from sweb.middleware import execute_chain, into_next


def _recording(name, log):
    async def middleware(ctx, next):
        log.append(f"{name}-before")
        response = await next(ctx)
        log.append(f"{name}-after")
        return response

    return middleware


@pytest.mark.asyncio
async def test_empty_chain_calls_endpoint():
    endpoint = into_next(lambda ctx: "endpoint")
    response = await execute_chain([], endpoint, RequestCtx())
    assert response.text == "endpoint"


@pytest.mark.asyncio
async def test_middlewares_run_in_order_around_endpoint():
    log = []

    async def handler(ctx):
        log.append("endpoint")
        return "done"

    response = await execute_chain(
        [_recording("a", log), _recording("b", log)], into_next(handler), RequestCtx()
    )
    assert response.text == "done"
    assert log == ["a-before", "b-before", "endpoint", "b-after", "a-after"]


@pytest.mark.asyncio
async def test_middleware_can_short_circuit():
    called = []

    async def deny(ctx, next):
        return (401, {"error": "Unauthorized"})

    async def handler(ctx):
        called.append(True)
        return "secret"

    response = await execute_chain([deny], into_next(handler), RequestCtx())
    assert response.status == 401
    assert response.json() == {"error": "Unauthorized"}
    assert called == []


@pytest.mark.asyncio
async def test_middleware_can_modify_response_and_context():
    async def add_user(ctx, next):
        ctx.add_param("user_id", "u1")
        return await next(ctx)

    async def cors(ctx, next):
        response = await next(ctx)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    response = await execute_chain(
        [cors, add_user], into_next(lambda ctx: ctx.get_param("user_id")), RequestCtx()
    )
    assert response.text == "u1"
    assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_into_next_converts_handler_errors():
    def broken(ctx):
        raise ValueError("bad")

    response = await into_next(broken)(RequestCtx())
    assert response.status == 500
    assert response.text == "Error: bad"