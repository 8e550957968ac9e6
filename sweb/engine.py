"""Application engine: route groups, middleware, lifecycle hooks and the HTTP server."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import ipaddress
import signal
import sys
from email.utils import formatdate
from http import HTTPStatus
from typing import Any, Callable, Optional

from .context import RequestCtx
from .handler import Handler
from .middleware import Middleware, execute_chain
from .response import TEXT_PLAIN, Response, ResponseBuilder
from .router import Router
from .swagger import SwaggerInfo, generate_enhanced_swagger_json, generate_swagger_ui

StatusCode = HTTPStatus

LifecycleHook = Callable[[], Any]

SWAGGER_JSON_PATH = "/docs/swagger.json"
SWAGGER_UI_PATH = "/docs/"
SHUTDOWN_GRACE_SECONDS = 10.0


class RouterGroup:
    """Routes sharing a path prefix and a list of middleware."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.router = Router()
        self.middlewares: list[Middleware] = []

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        self.router.add_route(method, f"{self.prefix}{pattern}", handler)

    def get(self, path: str, handler: Handler) -> RouterGroup:
        self.add_route("GET", path, handler)
        return self

    def post(self, path: str, handler: Handler) -> RouterGroup:
        self.add_route("POST", path, handler)
        return self

    def put(self, path: str, handler: Handler) -> RouterGroup:
        self.add_route("PUT", path, handler)
        return self

    def delete(self, path: str, handler: Handler) -> RouterGroup:
        self.add_route("DELETE", path, handler)
        return self

    def use_middleware(self, middleware: Middleware) -> RouterGroup:
        self.middlewares.append(middleware)
        return self

    async def handle_request(self, ctx: RequestCtx) -> Response:
        return await self.router.handle_request(ctx)


class _BadRequest(Exception):
    """The peer sent something that is not a valid HTTP/1.x request."""


async def _call_hook(hook: LifecycleHook) -> None:
    result = hook()
    if inspect.isawaitable(result):
        await result


def _parse_addr(addr: str) -> tuple[str, int]:
    """Parse ``ip:port`` (``[ipv6]:port`` for IPv6) into host and port."""
    error = ValueError(f"invalid socket address: {addr!r}")
    host, sep, port_text = addr.rpartition(":")
    if not sep or not port_text.isdigit():
        raise error
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as exc:
        raise error from exc
    if isinstance(ip, ipaddress.IPv6Address) != bracketed:
        raise error
    port = int(port_text)
    if port > 65535:
        raise error
    return str(ip), port


def _format_addr(host: str, port: int) -> str:
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def _install_interrupt_handler(stop: asyncio.Event) -> Callable[[], None]:
    """Make Ctrl-C set ``stop``; returns a function that undoes it."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop.set)
    except (NotImplementedError, RuntimeError, ValueError):
        pass
    else:
        return lambda: loop.remove_signal_handler(signal.SIGINT)

    try:
        previous = signal.signal(
            signal.SIGINT, lambda signum, frame: loop.call_soon_threadsafe(stop.set)
        )
    except ValueError:
        return lambda: None
    return lambda: signal.signal(signal.SIGINT, previous)


async def _readline(reader: asyncio.StreamReader) -> bytes:
    try:
        return await reader.readline()
    except (ValueError, asyncio.LimitOverrunError) as exc:
        raise _BadRequest("line too long") from exc


async def _read_exactly(reader: asyncio.StreamReader, size: int) -> bytes:
    try:
        return await reader.readexactly(size)
    except asyncio.IncompleteReadError as exc:
        raise _BadRequest("truncated body") from exc


async def _read_body(reader: asyncio.StreamReader, headers: dict[str, str]) -> bytes:
    if "chunked" in headers.get("transfer-encoding", "").lower():
        chunks = []
        while True:
            size_line = await _readline(reader)
            try:
                size = int(size_line.split(b";", 1)[0].strip(), 16)
            except ValueError as exc:
                raise _BadRequest("bad chunk size") from exc
            if size == 0:
                while (await _readline(reader)) not in (b"\r\n", b"\n", b""):
                    pass
                return b"".join(chunks)
            chunks.append(await _read_exactly(reader, size))
            if (await _readline(reader)) not in (b"\r\n", b"\n"):
                raise _BadRequest("bad chunk terminator")

    length_text = headers.get("content-length")
    if length_text is None:
        return b""
    if not length_text.isdigit():
        raise _BadRequest("bad content length")
    return await _read_exactly(reader, int(length_text))


async def _read_request(
    reader: asyncio.StreamReader,
) -> Optional[tuple[RequestCtx, bool]]:
    """Read one request; None when the peer closed the connection cleanly."""
    line = await _readline(reader)
    if not line:
        return None
    if not line.endswith(b"\n"):
        raise _BadRequest("incomplete request line")
    parts = line.decode("latin-1").split()
    if len(parts) != 3 or not parts[2].startswith("HTTP/1."):
        raise _BadRequest("malformed request line")
    method, target, version = parts

    headers: list[tuple[str, str]] = []
    while True:
        raw = await _readline(reader)
        if raw in (b"\r\n", b"\n"):
            break
        if not raw.endswith(b"\n"):
            raise _BadRequest("incomplete header")
        name, sep, value = raw.decode("latin-1").partition(":")
        name = name.strip()
        if not sep or not name:
            raise _BadRequest("malformed header")
        headers.append((name, value.strip()))

    lookup = {name.lower(): value for name, value in headers}
    body = await _read_body(reader, lookup)
    connection = lookup.get("connection", "").lower()
    if version == "HTTP/1.0":
        keep_alive = "keep-alive" in connection
    else:
        keep_alive = "close" not in connection
    return RequestCtx.from_raw(method, target, headers, body), keep_alive


def _encode_response(response: Response, keep_alive: bool) -> bytes:
    status = response.status
    headers = list(response.headers.items())
    names = {name.lower() for name, _ in headers}
    no_body = status < 200 or status in (204, 304)
    if not no_body and "content-length" not in names:
        headers.append(("Content-Length", str(len(response.body))))
    if "date" not in names:
        headers.append(("Date", formatdate(usegmt=True)))
    if not keep_alive:
        headers.append(("Connection", "close"))
    head = "".join(f"{name}: {value}\r\n" for name, value in headers)
    payload = b"" if no_body else response.body
    return f"HTTP/1.1 {status} {response.reason}\r\n{head}\r\n".encode("utf-8") + payload


class Engine:
    """An application: a main router, prefixed groups, middleware and hooks."""

    def __init__(self) -> None:
        self.router = Router()
        self.groups: dict[str, RouterGroup] = {}
        self.middlewares: list[Middleware] = []
        self.startup_hooks: list[LifecycleHook] = []
        self.shutdown_hooks: list[LifecycleHook] = []
        self.swagger_info: dict[str, SwaggerInfo] = {}
        self._connections: set[asyncio.Task] = set()
        self._idle: set[asyncio.Task] = set()
        self._closing = False

    def use_middleware(self, middleware: Middleware) -> Engine:
        """Add a middleware applied to every request."""
        self.middlewares.append(middleware)
        return self

    def on_startup(self, hook: LifecycleHook) -> Engine:
        """Run ``hook`` (sync or async) before the server starts."""
        self.startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: LifecycleHook) -> Engine:
        """Run ``hook`` (sync or async) during graceful shutdown."""
        self.shutdown_hooks.append(hook)
        return self

    def group(self, prefix: str) -> RouterGroup:
        """Create a group for ``prefix``, replacing any earlier one."""
        group = RouterGroup(prefix)
        self.groups[prefix] = group
        return group

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        self.router.add_route(method, pattern, handler)

    def get(self, path: str, handler: Handler) -> Engine:
        self.add_route("GET", path, handler)
        return self

    def get_with_swagger(self, path: str, handler: Handler, swagger_info: SwaggerInfo) -> Engine:
        self.add_route("GET", path, handler)
        return self.swagger_for_route("GET", path, swagger_info)

    def post(self, path: str, handler: Handler) -> Engine:
        self.add_route("POST", path, handler)
        return self

    def post_with_swagger(self, path: str, handler: Handler, swagger_info: SwaggerInfo) -> Engine:
        self.add_route("POST", path, handler)
        return self.swagger_for_route("POST", path, swagger_info)

    def put(self, path: str, handler: Handler) -> Engine:
        self.add_route("PUT", path, handler)
        return self

    def put_with_swagger(self, path: str, handler: Handler, swagger_info: SwaggerInfo) -> Engine:
        self.add_route("PUT", path, handler)
        return self.swagger_for_route("PUT", path, swagger_info)

    def delete(self, path: str, handler: Handler) -> Engine:
        self.add_route("DELETE", path, handler)
        return self

    def delete_with_swagger(
        self, path: str, handler: Handler, swagger_info: SwaggerInfo
    ) -> Engine:
        self.add_route("DELETE", path, handler)
        return self.swagger_for_route("DELETE", path, swagger_info)

    def swagger_for_route(self, method: str, path: str, swagger_info: SwaggerInfo) -> Engine:
        """Attach documentation to the route ``method`` ``path``."""
        self.swagger_info[f"{method.upper()}-{path}"] = swagger_info
        return self

    def add_swagger_endpoints(self) -> None:
        """Serve the OpenAPI document and Swagger UI for the routes registered so far."""
        routes = list(self.router.get_all_routes())
        for group in self.groups.values():
            routes.extend(group.router.get_all_routes())
        if not routes:
            return

        info = dict(self.swagger_info)

        def swagger_json(_ctx: RequestCtx) -> Response:
            return (
                ResponseBuilder()
                .status(HTTPStatus.OK)
                .header("Content-Type", "application/json")
                .body(generate_enhanced_swagger_json(routes, info))
            )

        def swagger_ui(_ctx: RequestCtx) -> Response:
            return (
                ResponseBuilder()
                .status(HTTPStatus.OK)
                .header("Content-Type", "text/html")
                .body(generate_swagger_ui(SWAGGER_JSON_PATH))
            )

        self.get(SWAGGER_JSON_PATH, swagger_json)
        self.get(SWAGGER_UI_PATH, swagger_ui)

    def _match_group(self, path: str) -> Optional[RouterGroup]:
        by_length = sorted(self.groups.items(), key=lambda item: len(item[0]), reverse=True)
        return next((group for prefix, group in by_length if path.startswith(prefix)), None)

    async def dispatch(self, ctx: RequestCtx) -> Response:
        """Route one request through the middleware to its handler."""
        group = self._match_group(ctx.path)
        if group is None:
            if not self.middlewares:
                return await self.router.handle_request(ctx)
            return await execute_chain(self.middlewares, self.router.handle_request, ctx)

        chain = [*self.middlewares, *group.middlewares]
        if not chain:
            return await group.handle_request(ctx)
        return await execute_chain(chain, group.handle_request, ctx)

    async def _serve_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)
        peer = writer.get_extra_info("peername")
        try:
            while not self._closing:
                if task is not None:
                    self._idle.add(task)
                try:
                    request = await _read_request(reader)
                except _BadRequest:
                    bad = (
                        ResponseBuilder()
                        .status(HTTPStatus.BAD_REQUEST)
                        .content_type(TEXT_PLAIN)
                        .body("Bad Request")
                    )
                    writer.write(_encode_response(bad, keep_alive=False))
                    await writer.drain()
                    break
                finally:
                    if task is not None:
                        self._idle.discard(task)
                if request is None:
                    break

                ctx, keep_alive = request
                try:
                    response = await self.dispatch(ctx)
                except Exception:
                    response = ResponseBuilder.internal_error()
                keep_alive = keep_alive and not self._closing
                writer.write(_encode_response(response, keep_alive))
                await writer.drain()
                if not keep_alive:
                    break
        except (ConnectionError, asyncio.IncompleteReadError) as exc:
            print(f"Connection error {peer}: {exc!r}", file=sys.stderr)
        finally:
            if task is not None:
                self._connections.discard(task)
                self._idle.discard(task)
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()

    async def _drain_connections(self) -> None:
        self._closing = True
        for task in list(self._idle):
            task.cancel()
        pending = {task for task in self._connections if not task.done()}
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=SHUTDOWN_GRACE_SECONDS)
        else:
            still_running = set()
        if still_running:
            print("⏰ Timed out waiting for all connections to close", file=sys.stderr)
            for task in still_running:
                task.cancel()
        else:
            print("✅ All connections gracefully closed", file=sys.stderr)

    async def run(self, addr: str) -> None:
        """Serve HTTP on ``addr`` (``ip:port``) until Ctrl-C, then shut down gracefully."""
        for hook in self.startup_hooks:
            await _call_hook(hook)

        host, port = _parse_addr(addr)
        shown = _format_addr(host, port)
        print(f"🚀 Server running on http://{shown}")
        self._closing = False
        server = await asyncio.start_server(self._serve_connection, host, port)

        self.add_swagger_endpoints()
        print(f"📖 Swagger UI available at http://{shown}/docs/")

        stop = asyncio.Event()
        restore = _install_interrupt_handler(stop)
        try:
            await stop.wait()
            server.close()
            print("\n🛑 Graceful shutdown signal received", file=sys.stderr)
            for hook in self.shutdown_hooks:
                await _call_hook(hook)
            await self._drain_connections()
        finally:
            restore()
            server.close()
            for task in list(self._connections):
                task.cancel()
        await server.wait_closed()