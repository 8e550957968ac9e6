"""Method-aware router built on the pattern trie."""

from __future__ import annotations

from typing import Optional

from .context import RequestCtx
from .handler import Handler, call_handler
from .response import Response, ResponseBuilder
from .trie import Node


def parse_pattern(pattern: str) -> list[str]:
    """Split a pattern into non-empty segments, stopping after the first ``*`` segment."""
    parts: list[str] = []
    for item in pattern.split("/"):
        if item:
            parts.append(item)
            if item.startswith("*"):
                break
    return parts


class Router:
    """Maps (method, pattern) pairs to handlers."""

    def __init__(self) -> None:
        self.roots: dict[str, Node] = {}
        self.handlers: dict[str, Handler] = {}

    def __repr__(self) -> str:
        return f"Router(routes={list(self.handlers)!r})"

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        self.roots.setdefault(method, Node()).insert(pattern, parse_pattern(pattern), 0)
        self.handlers[f"{method}-{pattern}"] = handler

    def get_route(self, method: str, path: str) -> tuple[Optional[Node], dict[str, str]]:
        """Find the node matching ``path`` and the parameters it binds."""
        root = self.roots.get(method)
        if root is None:
            return None, {}

        search_parts = parse_pattern(path)
        node = root.search(search_parts, 0)
        if node is None:
            return None, {}

        params: dict[str, str] = {}
        for index, part in enumerate(parse_pattern(node.pattern)):
            if part.startswith(":"):
                params[part[1:]] = search_parts[index]
            elif part.startswith("*"):
                params[part[1:]] = "/".join(search_parts[index:])
                break
        return node, params

    def handle(self, key: str) -> Optional[Handler]:
        return self.handlers.get(key)

    def get_all_routes(self) -> list[tuple[str, str]]:
        """Every registered (method, pattern) pair."""
        return [
            (method, pattern)
            for method, root in self.roots.items()
            for pattern in root.collect_patterns()
        ]

    async def handle_request(self, ctx: RequestCtx) -> Response:
        node, params = self.get_route(ctx.method, ctx.path)
        if node is None:
            return ResponseBuilder.not_found()

        ctx.params.update(params)
        handler = self.handle(f"{ctx.method}-{node.pattern}")
        if handler is None:
            return ResponseBuilder.not_found()
        return await call_handler(handler, ctx)