"""Demo application: chained global and per-group middleware with token auth."""

from __future__ import annotations

import argparse
import asyncio
import time
from http import HTTPStatus
from typing import Optional, Sequence

from .context import RequestCtx
from .engine import Engine
from .middleware import Next
from .response import Response, into_response

API_TOKEN = "token"
ADMIN_TOKEN = "secret"
DEFAULT_ADDR = "127.0.0.1:8080"


async def logger(prefix: str, ctx: RequestCtx, next: Next) -> Response:
    """Log the request line and the response status with elapsed milliseconds."""
    print(f"[{prefix}] 📨 {ctx.method} {ctx.path}")
    start = time.perf_counter()
    response = await next(ctx)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    print(f"[{prefix}] ✅ Response: {response.status} {response.reason} ({elapsed_ms}ms)")
    return response


async def auth(token: str, ctx: RequestCtx, next: Next) -> Response:
    """Let the request through only with ``Authorization: Bearer <token>``."""
    if ctx.header("Authorization") == f"Bearer {token}":
        return await next(ctx)
    return into_response((HTTPStatus.UNAUTHORIZED, {"error": "Unauthorized"}))


async def cors(ctx: RequestCtx, next: Next) -> Response:
    """Add permissive CORS headers to the response."""
    response = await next(ctx)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
    return response


def _delete_user(ctx: RequestCtx) -> str:
    user_id = ctx.get_param("id")
    if user_id is None:
        return "User ID not found"
    return f"Deleted user {user_id}"


def build_app() -> Engine:
    """Assemble the demo application with its routes, groups and middleware."""
    app = Engine()

    (
        app.use_middleware(lambda ctx, next_: logger("Global", ctx, next_))
        .use_middleware(cors)
        .get("/", lambda _ctx: "Welcome to s_web!")
        .get("/health", lambda _ctx: {"status": "ok"})
    )

    (
        app.group("/api")
        .use_middleware(lambda ctx, next_: logger("API", ctx, next_))
        .use_middleware(lambda ctx, next_: auth(API_TOKEN, ctx, next_))
        .get("/users", lambda _ctx: {"users": ["alice", "bob"]})
        .post("/users", lambda _ctx: {"message": "User created"})
        .get("/profile", lambda _ctx: {"name": "Current User"})
    )

    (
        app.group("/admin")
        .use_middleware(lambda ctx, next_: logger("Admin", ctx, next_))
        .use_middleware(lambda ctx, next_: auth(ADMIN_TOKEN, ctx, next_))
        .get("/dashboard", lambda _ctx: "Admin Dashboard")
        .delete("/users/:id", _delete_user)
    )

    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the chained-middleware demo server."""
    parser = argparse.ArgumentParser(description="Chained middleware demo server")
    parser.add_argument("--addr", default=DEFAULT_ADDR, help="ip:port to listen on")
    args = parser.parse_args(argv)

    app = build_app()
    print(f"🚀 Chain demo server starting on http://{args.addr}")
    print("📚 Endpoints:")
    print("  GET    /                 - public")
    print("  GET    /health           - health check")
    print(f"  GET    /api/users        - needs Bearer {API_TOKEN}")
    print(f"  POST   /api/users        - needs Bearer {API_TOKEN}")
    print(f"  GET    /admin/dashboard  - needs Bearer {ADMIN_TOKEN}")
    print(f"  DELETE /admin/users/123  - needs Bearer {ADMIN_TOKEN}")
    asyncio.run(app.run(args.addr))


if __name__ == "__main__":
    main()